"""
Warehouses, stocked items and sales with their stock decrement.
"""

from sqlalchemy import func, select

from quantura.core.errors import ErrorCode
from quantura.db.models.audit import AuditLog
from quantura.db.models.inventory import Transaction, WarehouseItem
from quantura.repositories.inventory import InventoryRepository
from quantura.schemas.inventory import SaleCreate, WarehouseCreate, WarehouseItemCreate


async def _stock(session, item_id):
    stmt = select(WarehouseItem.quantity).where(WarehouseItem.id == item_id)
    return (await session.execute(stmt)).scalar_one()


async def _transaction_count(session, business_id):
    stmt = select(func.count(Transaction.id)).where(Transaction.business_id == business_id)
    return (await session.execute(stmt)).scalar_one()


async def _stocked_item(session, business_id, user_id, quantity=10):
    repo = InventoryRepository(session)
    warehouse = (await repo.create_warehouse(business_id, user_id, WarehouseCreate(name="Main"))).data
    item = (
        await repo.create_item(
            business_id,
            user_id,
            WarehouseItemCreate(warehouse_id=warehouse.id, sku="SKU-1", name="Widget", quantity=quantity),
        )
    ).data
    return warehouse.id, item.id


class TestWarehouses:
    async def test_create_and_list(self, session, cache, owner, business_id):
        repo = InventoryRepository(session, cache)

        created = await repo.create_warehouse(business_id, owner.id, WarehouseCreate(name=" Back room "))
        listed = await repo.get_warehouses_cached(business_id)

        assert created.data.name == "Back room"
        assert [w.id for w in listed.data] == [created.data.id]

    async def test_nameless_warehouse_is_missing_input(self, session, owner, business_id):
        result = await InventoryRepository(session).create_warehouse(business_id, owner.id, WarehouseCreate())
        assert result.error is ErrorCode.MISSING_INPUT

    async def test_item_in_foreign_warehouse_is_not_found(self, session, owner, business_id, make_business):
        other_owner, other = await make_business("other@example.com", name="Other")
        other_owner_id, other_id = other_owner.id, other.id
        warehouse_id, _ = await _stocked_item(session, business_id, owner.id)

        result = await InventoryRepository(session).create_item(
            other_id,
            other_owner_id,
            WarehouseItemCreate(warehouse_id=warehouse_id, sku="X", name="Stolen"),
        )

        assert result.error is ErrorCode.NOT_FOUND

    async def test_items_filter_by_warehouse(self, session, owner, business_id):
        warehouse_id, item_id = await _stocked_item(session, business_id, owner.id)
        repo = InventoryRepository(session)
        spare = (await repo.create_warehouse(business_id, owner.id, WarehouseCreate(name="Spare"))).data

        in_main = await repo.get_items(business_id, warehouse_id)
        in_spare = await repo.get_items(business_id, spare.id)

        assert [i.id for i in in_main.data] == [item_id]
        assert in_spare.data == []


class TestSales:
    async def test_sale_decrements_stock_and_records_negative_quantity(self, session, owner, business_id):
        _, item_id = await _stocked_item(session, business_id, owner.id, quantity=10)

        result = await InventoryRepository(session).create_sale(
            business_id, owner.id, SaleCreate(warehouse_item_id=item_id, quantity=3, reference="R-100")
        )

        assert result.is_ok
        assert result.data.type == "SALE"
        assert result.data.quantity == -3
        assert result.data.created_by == owner.id
        assert await _stock(session, item_id) == 7
        audit = (
            await session.execute(select(AuditLog).where(AuditLog.action == "create-sale-transaction"))
        ).scalar_one()
        assert audit.model == "transaction"
        assert audit.changes["remaining"] == 7

    async def test_selling_exact_stock_leaves_zero(self, session, owner, business_id):
        _, item_id = await _stocked_item(session, business_id, owner.id, quantity=2)

        result = await InventoryRepository(session).create_sale(
            business_id, owner.id, SaleCreate(warehouse_item_id=item_id, quantity=2)
        )

        assert result.is_ok
        assert await _stock(session, item_id) == 0

    async def test_oversell_is_rejected_without_transaction(self, session, owner, business_id):
        _, item_id = await _stocked_item(session, business_id, owner.id, quantity=1)

        result = await InventoryRepository(session).create_sale(
            business_id, owner.id, SaleCreate(warehouse_item_id=item_id, quantity=5)
        )

        assert result.error is ErrorCode.INSUFFICIENT_STOCK
        assert await _stock(session, item_id) == 1
        assert await _transaction_count(session, business_id) == 0

    async def test_non_positive_quantity_is_missing_input(self, session, owner, business_id):
        _, item_id = await _stocked_item(session, business_id, owner.id)
        owner_id = owner.id
        repo = InventoryRepository(session)

        for quantity in (0, -4, None):
            result = await repo.create_sale(
                business_id, owner_id, SaleCreate(warehouse_item_id=item_id, quantity=quantity)
            )
            assert result.error is ErrorCode.MISSING_INPUT
        assert await _stock(session, item_id) == 10

    async def test_item_of_another_business_is_not_found(self, session, owner, business_id, make_business):
        other_owner, other = await make_business("other@example.com", name="Other")
        other_owner_id, other_id = other_owner.id, other.id
        _, item_id = await _stocked_item(session, business_id, owner.id)

        result = await InventoryRepository(session).create_sale(
            other_id, other_owner_id, SaleCreate(warehouse_item_id=item_id, quantity=1)
        )

        assert result.error is ErrorCode.NOT_FOUND
        assert await _stock(session, item_id) == 10
