from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, select

from quantura.core.cache import cache_key, tenant_tag
from quantura.core.errors import MissingInputError, NotFoundError
from quantura.core.result import Result
from quantura.db.models.catalog import Supplier
from quantura.schemas.catalog import SupplierCreate
from .base import BaseRepository, Change, is_blank, returns_result, snapshot


class SupplierRepository(BaseRepository):
    """Repository for suppliers/vendors."""

    model_name = "supplier"
    cache_namespace = "suppliers"

    @returns_result("Failed to fetch suppliers")
    async def get_all(self, business_id: UUID) -> Result[List[Supplier]]:
        if is_blank(business_id):
            raise MissingInputError()
        stmt = (
            select(Supplier)
            .where(Supplier.business_id == business_id)
            .order_by(Supplier.created_at.desc())
        )
        res = await self.scalars(stmt)
        return Result.ok(list(res))

    async def get_all_cached(self, business_id: UUID) -> Result[List[Supplier]]:
        return await self.cached(
            cache_key(self.cache_namespace, business_id, "all"),
            lambda: self.get_all(business_id),
            tags=[tenant_tag(self.cache_namespace, business_id)],
        )

    @returns_result("Failed to fetch supplier")
    async def get_by_id(self, supplier_id: UUID, business_id: UUID) -> Result[Supplier]:
        if is_blank(supplier_id) or is_blank(business_id):
            raise MissingInputError()
        return Result.ok(await self._get(supplier_id, business_id))

    async def get_by_id_cached(self, supplier_id: UUID, business_id: UUID) -> Result[Supplier]:
        return await self.cached(
            cache_key(self.cache_namespace, business_id, supplier_id),
            lambda: self.get_by_id(supplier_id, business_id),
            tags=[tenant_tag(self.cache_namespace, business_id)],
        )

    @returns_result("Failed to create supplier")
    async def create(
        self, business_id: UUID, user_id: Optional[UUID], supplier: SupplierCreate
    ) -> Result[Supplier]:
        """Create a supplier inside `business_id`; any business id on the payload is ignored."""
        if is_blank(business_id) or is_blank(supplier.name):
            raise MissingInputError()

        async def mutation() -> Change:
            row = self._build(business_id, supplier)
            await self.add(row)
            await self.session.flush()
            return Change(row, row.id, business_id, snapshot(row))

        row = await self.mutate_with_audit(
            action="create-supplier", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id, self.cache_namespace, "statistics")
        return Result.ok(row)

    @returns_result("Failed to create suppliers")
    async def create_many(
        self, business_id: UUID, user_id: Optional[UUID], suppliers: List[SupplierCreate]
    ) -> Result[List[Supplier]]:
        """
        Create a batch of suppliers in one transaction.

        The batch is rejected before any write when it is empty, when a row
        names another business, or when a row has no name.
        """
        if is_blank(business_id) or not suppliers:
            raise MissingInputError()
        if any(s.business_id is not None and s.business_id != business_id for s in suppliers):
            raise MissingInputError()
        if any(is_blank(s.name) for s in suppliers):
            raise MissingInputError()

        async def mutation() -> List[Change]:
            rows = [self._build(business_id, s) for s in suppliers]
            await self.add_all(rows)
            await self.session.flush()
            return [Change(row, row.id, business_id, snapshot(row)) for row in rows]

        rows = await self.mutate_with_audit(
            action="create-supplier", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id, self.cache_namespace, "statistics")
        return Result.ok(rows)

    @returns_result("Failed to update supplier")
    async def update(
        self,
        supplier_id: UUID,
        business_id: UUID,
        user_id: Optional[UUID],
        updates: Dict[str, Any],
    ) -> Result[Supplier]:
        if is_blank(supplier_id) or is_blank(business_id) or not updates:
            raise MissingInputError()

        async def mutation() -> Change:
            row = await self._get(supplier_id, business_id)
            applied = self.apply_updates(row, updates, required=("name",))
            await self.session.flush()
            return Change(row, row.id, business_id, applied)

        row = await self.mutate_with_audit(
            action="update-supplier", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id, self.cache_namespace, "statistics")
        return Result.ok(row)

    @returns_result("Failed to delete supplier")
    async def remove(
        self, supplier_id: UUID, business_id: UUID, user_id: Optional[UUID]
    ) -> Result[Supplier]:
        if is_blank(supplier_id) or is_blank(business_id):
            raise MissingInputError()

        async def mutation() -> Change:
            row = await self._get(supplier_id, business_id)
            previous = snapshot(row)
            await self.execute(
                delete(Supplier).where(Supplier.id == supplier_id, Supplier.business_id == business_id)
            )
            return Change(row, row.id, business_id, previous)

        row = await self.mutate_with_audit(
            action="delete-supplier", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id, self.cache_namespace, "statistics")
        return Result.ok(row)

    async def _get(self, supplier_id: UUID, business_id: UUID) -> Supplier:
        stmt = select(Supplier).where(Supplier.id == supplier_id, Supplier.business_id == business_id)
        row = await self.scalar_one_or_none(stmt)
        if row is None:
            raise NotFoundError()
        return row

    @staticmethod
    def _build(business_id: UUID, supplier: SupplierCreate) -> Supplier:
        values = supplier.model_dump(exclude={"business_id"}, exclude_none=True)
        values["name"] = values["name"].strip()
        return Supplier(business_id=business_id, **values)
