from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from quantura.core.cache import cache_key, tenant_tag
from quantura.core.clock import utcnow
from quantura.core.errors import MissingInputError, NotFoundError
from quantura.core.result import Result
from quantura.db.models.catalog import Category
from quantura.schemas.catalog import CategoryCreate
from .base import BaseRepository, Change, is_blank, returns_result, snapshot


class CategoryRepository(BaseRepository):
    """
    Repository for product categories.

    Creation is an upsert on (business_id, value): creating a category that
    already exists in the business updates it in place instead of failing.
    """

    model_name = "category"
    cache_namespace = "categories"

    @returns_result("Failed to fetch categories")
    async def get_all(self, business_id: UUID) -> Result[List[Category]]:
        if is_blank(business_id):
            raise MissingInputError()
        stmt = (
            select(Category)
            .where(Category.business_id == business_id)
            .order_by(Category.created_at.desc())
        )
        res = await self.scalars(stmt)
        return Result.ok(list(res))

    async def get_all_cached(self, business_id: UUID) -> Result[List[Category]]:
        return await self.cached(
            cache_key(self.cache_namespace, business_id, "all"),
            lambda: self.get_all(business_id),
            tags=[tenant_tag(self.cache_namespace, business_id)],
        )

    @returns_result("Failed to fetch category")
    async def get_by_id(self, category_id: UUID, business_id: UUID) -> Result[Category]:
        if is_blank(category_id) or is_blank(business_id):
            raise MissingInputError()
        return Result.ok(await self._get(category_id, business_id))

    async def get_by_id_cached(self, category_id: UUID, business_id: UUID) -> Result[Category]:
        return await self.cached(
            cache_key(self.cache_namespace, business_id, category_id),
            lambda: self.get_by_id(category_id, business_id),
            tags=[tenant_tag(self.cache_namespace, business_id)],
        )

    @returns_result("Failed to create category")
    async def create(self, category: CategoryCreate, user_id: Optional[UUID]) -> Result[Category]:
        """Ensure a category exists in its business; returns the stored row."""
        if is_blank(category.business_id) or is_blank(category.value):
            raise MissingInputError()
        business_id = category.business_id

        async def mutation() -> Change:
            row = await self._upsert(business_id, category.value.strip(), category.description)
            return Change(row, row.id, business_id, snapshot(row))

        row = await self.mutate_with_audit(
            action="create-category", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id, self.cache_namespace, "business", "statistics")
        return Result.ok(row)

    @returns_result("Failed to create categories")
    async def upsert_many(
        self, business_id: UUID, categories: List[CategoryCreate], user_id: Optional[UUID]
    ) -> Result[List[Category]]:
        """
        Upsert a batch of categories for one business in a single transaction.

        Rows naming another business reject the whole batch before any write;
        a blank value in any row aborts the transaction.
        """
        if is_blank(business_id) or not categories:
            raise MissingInputError()
        if any(c.business_id is not None and c.business_id != business_id for c in categories):
            raise MissingInputError()

        async def mutation() -> List[Change]:
            changes = []
            for category in categories:
                if is_blank(category.value):
                    raise MissingInputError()
                row = await self._upsert(business_id, category.value.strip(), category.description)
                changes.append(Change(row, row.id, business_id, snapshot(row)))
            return changes

        rows = await self.mutate_with_audit(
            action="create-category", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id, self.cache_namespace, "business", "statistics")
        return Result.ok(rows)

    @returns_result("Failed to update category")
    async def update(
        self,
        category_id: UUID,
        business_id: UUID,
        user_id: Optional[UUID],
        updates: Dict[str, Any],
    ) -> Result[Category]:
        if is_blank(category_id) or is_blank(business_id) or not updates:
            raise MissingInputError()

        async def mutation() -> Change:
            row = await self._get(category_id, business_id)
            applied = self.apply_updates(row, updates, required=("value",))
            await self.session.flush()
            return Change(row, row.id, business_id, applied)

        row = await self.mutate_with_audit(
            action="update-category", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id, self.cache_namespace, "business", "statistics")
        return Result.ok(row)

    @returns_result("Failed to delete category")
    async def remove(
        self, category_id: UUID, business_id: UUID, user_id: Optional[UUID]
    ) -> Result[Category]:
        if is_blank(category_id) or is_blank(business_id):
            raise MissingInputError()

        async def mutation() -> Change:
            row = await self._get(category_id, business_id)
            previous = snapshot(row)
            await self.execute(
                delete(Category).where(Category.id == category_id, Category.business_id == business_id)
            )
            return Change(row, row.id, business_id, previous)

        row = await self.mutate_with_audit(
            action="delete-category", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id, self.cache_namespace, "business", "statistics")
        return Result.ok(row)

    async def _get(self, category_id: UUID, business_id: UUID) -> Category:
        stmt = select(Category).where(Category.id == category_id, Category.business_id == business_id)
        row = await self.scalar_one_or_none(stmt)
        if row is None:
            raise NotFoundError()
        return row

    async def _upsert(self, business_id: UUID, value: str, description: Optional[str]) -> Category:
        insert = pg_insert if self.dialect_name == "postgresql" else sqlite_insert
        now = utcnow()
        stmt = insert(Category).values(
            id=uuid.uuid4(),
            business_id=business_id,
            value=value,
            description=description,
            created_at=now,
            updated_at=now,
        )
        set_ = {"value": stmt.excluded.value, "updated_at": stmt.excluded.updated_at}
        if description is not None:
            set_["description"] = stmt.excluded.description
        stmt = stmt.on_conflict_do_update(index_elements=["business_id", "value"], set_=set_)
        res = await self.session.execute(
            stmt.returning(Category), execution_options={"populate_existing": True}
        )
        return res.scalar_one()
