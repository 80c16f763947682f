from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update

from quantura.core.cache import cache_key, tenant_tag
from quantura.core.clock import utcnow
from quantura.core.errors import ErrorCode, MissingInputError, NotFoundError, RepositoryError
from quantura.core.result import Result
from quantura.db.models.inventory import Transaction, Warehouse, WarehouseItem
from quantura.schemas.inventory import SaleCreate, WarehouseCreate, WarehouseItemCreate
from .base import BaseRepository, Change, is_blank, returns_result, snapshot

SALE = "SALE"


class InventoryRepository(BaseRepository):
    """Repository for warehouses, stocked items and stock movements."""

    model_name = "warehouse"
    cache_namespace = "inventory"

    @returns_result("Failed to fetch warehouses")
    async def get_warehouses(self, business_id: UUID) -> Result[List[Warehouse]]:
        if is_blank(business_id):
            raise MissingInputError()
        stmt = select(Warehouse).where(Warehouse.business_id == business_id).order_by(Warehouse.name)
        res = await self.scalars(stmt)
        return Result.ok(list(res))

    async def get_warehouses_cached(self, business_id: UUID) -> Result[List[Warehouse]]:
        return await self.cached(
            cache_key(self.cache_namespace, business_id, "warehouses"),
            lambda: self.get_warehouses(business_id),
            tags=[tenant_tag(self.cache_namespace, business_id)],
        )

    @returns_result("Failed to create warehouse")
    async def create_warehouse(
        self, business_id: UUID, user_id: Optional[UUID], payload: WarehouseCreate
    ) -> Result[Warehouse]:
        if is_blank(business_id) or is_blank(payload.name):
            raise MissingInputError()

        async def mutation() -> Change:
            row = Warehouse(business_id=business_id, name=payload.name.strip(), location=payload.location)
            await self.add(row)
            await self.session.flush()
            return Change(row, row.id, business_id, snapshot(row))

        row = await self.mutate_with_audit(
            action="create-warehouse", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id, self.cache_namespace, "business")
        return Result.ok(row)

    @returns_result("Failed to fetch warehouse items")
    async def get_items(
        self, business_id: UUID, warehouse_id: Optional[UUID] = None
    ) -> Result[List[WarehouseItem]]:
        if is_blank(business_id):
            raise MissingInputError()
        stmt = select(WarehouseItem).where(WarehouseItem.business_id == business_id)
        if warehouse_id:
            stmt = stmt.where(WarehouseItem.warehouse_id == warehouse_id)
        res = await self.scalars(stmt.order_by(WarehouseItem.sku))
        return Result.ok(list(res))

    @returns_result("Failed to create warehouse item")
    async def create_item(
        self, business_id: UUID, user_id: Optional[UUID], payload: WarehouseItemCreate
    ) -> Result[WarehouseItem]:
        """Register a SKU in one of the business's warehouses."""
        if is_blank(business_id) or is_blank(payload.warehouse_id):
            raise MissingInputError()
        if is_blank(payload.sku) or is_blank(payload.name):
            raise MissingInputError()

        async def mutation() -> Change:
            warehouse = await self.scalar_one_or_none(
                select(Warehouse).where(
                    Warehouse.id == payload.warehouse_id, Warehouse.business_id == business_id
                )
            )
            if warehouse is None:
                raise NotFoundError()
            row = WarehouseItem(
                business_id=business_id,
                warehouse_id=warehouse.id,
                sku=payload.sku.strip(),
                name=payload.name.strip(),
                quantity=payload.quantity,
            )
            await self.add(row)
            await self.session.flush()
            return Change(row, row.id, business_id, snapshot(row))

        row = await self.mutate_with_audit(
            action="create-warehouse-item",
            performed_by=user_id,
            mutation=mutation,
            model="warehouse-item",
        )
        self.revalidate(business_id)
        return Result.ok(row)

    @returns_result("Failed to create sale transaction")
    async def create_sale(
        self, business_id: UUID, user_id: Optional[UUID], sale: SaleCreate
    ) -> Result[Transaction]:
        """
        Sell units of a warehouse item.

        Stock is decremented and a SALE transaction with a negative quantity
        is recorded. Selling more than is on hand fails with INSUFFICIENT_STOCK.
        """
        if is_blank(business_id) or is_blank(sale.warehouse_item_id):
            raise MissingInputError()
        if sale.quantity is None or sale.quantity <= 0:
            raise MissingInputError()

        async def mutation() -> Change:
            item = await self.scalar_one_or_none(
                select(WarehouseItem).where(
                    WarehouseItem.id == sale.warehouse_item_id,
                    WarehouseItem.business_id == business_id,
                )
            )
            if item is None:
                raise NotFoundError()
            # Conditional decrement: a concurrent sale that drained the stock
            # first leaves no row to update.
            res = await self.execute(
                update(WarehouseItem)
                .where(WarehouseItem.id == item.id, WarehouseItem.quantity >= sale.quantity)
                .values(quantity=WarehouseItem.quantity - sale.quantity, updated_at=utcnow())
                .returning(WarehouseItem.quantity)
            )
            remaining = res.scalar_one_or_none()
            if remaining is None:
                raise RepositoryError(ErrorCode.INSUFFICIENT_STOCK)
            row = Transaction(
                business_id=business_id,
                warehouse_item_id=item.id,
                type=SALE,
                quantity=-sale.quantity,
                note=sale.note,
                reference=sale.reference,
                created_by=user_id,
            )
            await self.add(row)
            await self.session.flush()
            return Change(row, row.id, business_id, {**snapshot(row), "remaining": remaining})

        row = await self.mutate_with_audit(
            action="create-sale-transaction",
            performed_by=user_id,
            mutation=mutation,
            model="transaction",
        )
        self.revalidate(business_id, self.cache_namespace, "statistics")
        return Result.ok(row)
