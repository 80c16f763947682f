from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, FrozenSet, Optional, Type, TypeVar
from uuid import UUID

from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from quantura.core.cache import TaggedTTLCache
from quantura.core.errors import ErrorCode
from quantura.core.logging import business_id_var, user_id_var
from quantura.core.permissions import Permission, permissions_for
from quantura.core.result import Result
from quantura.core.security import decode_token
from quantura.core.settings import AppSettings
from quantura.db.models.security import User
from quantura.repositories.security import UserRepository
from quantura.services.notifications import Mailer

logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass(frozen=True)
class Principal:
    """The acting user as seen by the action layer."""
    id: UUID
    email: str
    name: Optional[str] = None
    business_id: Optional[UUID] = None
    role: Optional[str] = None
    permissions: FrozenSet[Permission] = field(default_factory=frozenset)

    def can(self, permission: Permission) -> bool:
        return permission in self.permissions

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            business_id=user.business_id,
            role=user.role,
            permissions=permissions_for(user.role, user.business_id),
        )


PrincipalResolver = Callable[[], Awaitable[Optional[Principal]]]


async def _anonymous() -> Optional[Principal]:
    return None


@dataclass
class ActionContext:
    """Per-request collaborators handed to every action."""
    session: AsyncSession
    cache: Optional[TaggedTTLCache]
    mailer: Mailer
    settings: AppSettings
    resolve_principal: PrincipalResolver = _anonymous

    def repository(self, repo_cls: Type[R], **kwargs: Any) -> R:
        """Instantiate a repository bound to this request's session and cache."""
        return repo_cls(self.session, self.cache, **kwargs)


# PUBLIC_INTERFACE
async def principal_from_token(session: AsyncSession, token: Optional[str]) -> Optional[Principal]:
    """
    Resolve a bearer access token to a Principal.

    Returns None for a missing, invalid or non-access token, or when the user
    no longer exists or is inactive. Tenant and role are read from the user
    row, never from the token.
    """
    if not token:
        return None
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    if payload.get("type") != "access" or not payload.get("sub"):
        return None
    try:
        user_id = UUID(str(payload["sub"]))
    except ValueError:
        return None
    user = await UserRepository(session).get_user_by_id(user_id)
    if user is None or not user.is_active:
        return None
    return Principal.from_user(user)


ProtectedHandler = Callable[..., Awaitable[Result]]
PublicHandler = Callable[..., Awaitable[Result]]


# PUBLIC_INTERFACE
def create_protected_action(
    permission: Permission,
    handler: ProtectedHandler,
    *,
    require_business: bool = True,
) -> Callable[..., Awaitable[Result]]:
    """
    Wrap `handler(ctx, principal, *args, **kwargs)` with authorization.

    The returned coroutine resolves the principal from the context and fails
    closed with UNAUTHORIZED when there is none, when it lacks `permission`,
    or (with `require_business`) when it belongs to no business. Any exception
    escaping the handler becomes FAILED_REQUEST; callers always get a Result.
    """

    @functools.wraps(handler)
    async def action(ctx: ActionContext, *args: Any, **kwargs: Any) -> Result:
        try:
            principal = await ctx.resolve_principal()
        except Exception:
            logger.exception("Failed to resolve principal for %s", handler.__name__)
            return Result.fail(ErrorCode.UNAUTHORIZED)
        if principal is None or not principal.can(permission):
            logger.info("Denied %s: missing permission %s", handler.__name__, permission.value)
            return Result.fail(ErrorCode.UNAUTHORIZED)
        if require_business and principal.business_id is None:
            logger.info("Denied %s: principal has no business", handler.__name__)
            return Result.fail(ErrorCode.UNAUTHORIZED)

        business_token = business_id_var.set(str(principal.business_id) if principal.business_id else None)
        user_token = user_id_var.set(str(principal.id))
        try:
            return await handler(ctx, principal, *args, **kwargs)
        except Exception:
            logger.exception("Action %s failed", handler.__name__)
            return Result.fail(ErrorCode.FAILED_REQUEST)
        finally:
            user_id_var.reset(user_token)
            business_id_var.reset(business_token)

    action.permission = permission  # type: ignore[attr-defined]
    return action


# PUBLIC_INTERFACE
def create_public_action(handler: PublicHandler) -> Callable[..., Awaitable[Result]]:
    """Wrap `handler(ctx, *args, **kwargs)` so that it always returns a Result."""

    @functools.wraps(handler)
    async def action(ctx: ActionContext, *args: Any, **kwargs: Any) -> Result:
        try:
            return await handler(ctx, *args, **kwargs)
        except Exception:
            logger.exception("Action %s failed", handler.__name__)
            return Result.fail(ErrorCode.FAILED_REQUEST)

    return action
