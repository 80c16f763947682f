from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import func, select

from quantura.core.errors import ErrorCode, MissingInputError, RepositoryError
from quantura.core.result import Result
from quantura.db.models.security import User
from .base import BaseRepository, is_blank, returns_result


# PUBLIC_INTERFACE
def normalize_email(email: str) -> str:
    """Emails are stored and compared trimmed and lower-cased."""
    return email.strip().lower()


class UserRepository(BaseRepository):
    """Repository for user accounts and their tenant membership."""

    async def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == normalize_email(email))
        return await self.scalar_one_or_none(stmt)

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        return await self.scalar_one_or_none(stmt)

    @returns_result("Failed to register user")
    async def register(
        self,
        *,
        email: str,
        hashed_password: str,
        name: Optional[str] = None,
    ) -> Result[User]:
        """Create an account that does not belong to any business yet."""
        if is_blank(email) or is_blank(hashed_password):
            raise MissingInputError()
        if await self.get_user_by_email(email) is not None:
            raise RepositoryError(ErrorCode.USER_ALREADY_EXISTS)
        user = User(email=normalize_email(email), name=name, hashed_password=hashed_password)
        await self.add(user)
        await self.session.commit()
        return Result.ok(user)
