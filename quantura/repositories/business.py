from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from quantura.core.cache import cache_key, tenant_tag
from quantura.core.errors import ErrorCode, MissingInputError, RepositoryError
from quantura.core.permissions import Role
from quantura.core.result import Result
from quantura.db.models.business import Business
from quantura.db.models.security import User
from quantura.schemas.business import BusinessCreate
from .base import BaseRepository, Change, is_blank, returns_result, snapshot

# Cross-tenant listing of businesses.
ALL_BUSINESSES_KEY = "businesses:all"
ALL_BUSINESSES_TAG = "businesses"

_BUSINESS_FIELDS = ("name", "description", "email", "phone", "address", "currency")


class BusinessNotFoundError(RepositoryError):
    code = ErrorCode.BUSINESS_NOT_FOUND


class BusinessRepository(BaseRepository):
    """Repository for businesses (tenants)."""

    model_name = "business"
    cache_namespace = "business"

    @returns_result("Failed to fetch businesses")
    async def get_all(self) -> Result[List[Business]]:
        stmt = select(Business).where(Business.is_active.is_(True)).order_by(Business.created_at.desc())
        res = await self.scalars(stmt)
        return Result.ok(list(res))

    async def get_all_cached(self) -> Result[List[Business]]:
        return await self.cached(ALL_BUSINESSES_KEY, self.get_all, tags=[ALL_BUSINESSES_TAG])

    @returns_result("Failed to fetch business")
    async def get_by_id(self, business_id: UUID) -> Result[Business]:
        """Business with its categories and warehouses loaded."""
        if is_blank(business_id):
            raise MissingInputError()
        stmt = (
            select(Business)
            .where(Business.id == business_id)
            .options(selectinload(Business.categories), selectinload(Business.warehouses))
            .execution_options(populate_existing=True)
        )
        row = await self.scalar_one_or_none(stmt)
        if row is None:
            raise BusinessNotFoundError()
        return Result.ok(row)

    async def get_by_id_cached(self, business_id: UUID) -> Result[Business]:
        return await self.cached(
            cache_key("business", business_id),
            lambda: self.get_by_id(business_id),
            tags=[tenant_tag("business", business_id)],
        )

    @returns_result("Failed to create business")
    async def create(self, user_id: UUID, payload: BusinessCreate) -> Result[Business]:
        """Create a business and make `user_id` its owner."""
        if is_blank(user_id) or is_blank(payload.name):
            raise MissingInputError()
        user = await self.scalar_one_or_none(select(User).where(User.id == user_id))
        if user is None:
            raise RepositoryError(ErrorCode.USER_NOT_FOUND)
        if user.business_id is not None:
            raise RepositoryError(ErrorCode.USER_ALREADY_IN_BUSINESS)

        async def mutation() -> Change:
            business = self._build(payload)
            await self.add(business)
            await self.session.flush()
            user.business_id = business.id
            user.role = Role.OWNER.value
            return Change(business, business.id, business.id, snapshot(business))

        business = await self.mutate_with_audit(
            action="create-business", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business.id, extra_tags=[ALL_BUSINESSES_TAG])
        return Result.ok(business)

    @returns_result("Failed to create businesses")
    async def create_many(
        self, payloads: List[BusinessCreate], performed_by: Optional[UUID] = None
    ) -> Result[List[Business]]:
        """Create several businesses in one transaction; any nameless row rejects the batch."""
        if not payloads or any(is_blank(p.name) for p in payloads):
            raise MissingInputError()

        async def mutation() -> List[Change]:
            rows = [self._build(p) for p in payloads]
            await self.add_all(rows)
            await self.session.flush()
            return [Change(row, row.id, row.id, snapshot(row)) for row in rows]

        rows = await self.mutate_with_audit(
            action="create-business", performed_by=performed_by, mutation=mutation
        )
        for row in rows:
            self.revalidate(row.id, extra_tags=[ALL_BUSINESSES_TAG])
        return Result.ok(rows)

    @returns_result("Failed to update business")
    async def update(
        self, business_id: UUID, user_id: UUID, updates: Dict[str, Any]
    ) -> Result[Business]:
        if is_blank(business_id) or not updates:
            raise MissingInputError()

        async def mutation() -> Change:
            row = await self._get(business_id)
            applied = self.apply_updates(row, updates, required=("name", "currency"))
            await self.session.flush()
            return Change(row, row.id, row.id, applied)

        business = await self.mutate_with_audit(
            action="update-business", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id, extra_tags=[ALL_BUSINESSES_TAG])
        return Result.ok(business)

    @returns_result("Failed to delete business")
    async def remove(self, business_id: UUID, user_id: UUID) -> Result[Business]:
        """Hard-delete a business; tenant rows go with it through FK cascades."""
        if is_blank(business_id):
            raise MissingInputError()

        async def mutation() -> Change:
            row = await self._get(business_id)
            previous = snapshot(row)
            await self.execute(delete(Business).where(Business.id == business_id))
            return Change(row, row.id, row.id, previous)

        business = await self.mutate_with_audit(
            action="delete-business", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id, extra_tags=[ALL_BUSINESSES_TAG])
        return Result.ok(business)

    async def _get(self, business_id: UUID) -> Business:
        row = await self.scalar_one_or_none(select(Business).where(Business.id == business_id))
        if row is None:
            raise BusinessNotFoundError()
        return row

    @staticmethod
    def _build(payload: BusinessCreate) -> Business:
        values = payload.model_dump(include=set(_BUSINESS_FIELDS), exclude_none=True)
        values["name"] = values["name"].strip()
        return Business(**values)
