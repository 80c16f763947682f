from __future__ import annotations

from typing import Optional
from uuid import UUID

from quantura.core.permissions import Permission
from quantura.core.result import Result
from quantura.repositories.inventory import InventoryRepository
from quantura.schemas.inventory import SaleCreate, WarehouseCreate, WarehouseItemCreate
from .factory import ActionContext, Principal, create_protected_action


async def _get_warehouses(ctx: ActionContext, principal: Principal) -> Result:
    return await ctx.repository(InventoryRepository).get_warehouses_cached(principal.business_id)


async def _create_warehouse(ctx: ActionContext, principal: Principal, payload: WarehouseCreate) -> Result:
    return await ctx.repository(InventoryRepository).create_warehouse(principal.business_id, principal.id, payload)


async def _get_items(ctx: ActionContext, principal: Principal, warehouse_id: Optional[UUID] = None) -> Result:
    return await ctx.repository(InventoryRepository).get_items(principal.business_id, warehouse_id)


async def _create_item(ctx: ActionContext, principal: Principal, payload: WarehouseItemCreate) -> Result:
    return await ctx.repository(InventoryRepository).create_item(principal.business_id, principal.id, payload)


async def _create_sale(ctx: ActionContext, principal: Principal, payload: SaleCreate) -> Result:
    return await ctx.repository(InventoryRepository).create_sale(principal.business_id, principal.id, payload)


get_warehouses = create_protected_action(Permission.INVENTORY_VIEW, _get_warehouses)
create_warehouse = create_protected_action(Permission.INVENTORY_MANAGE, _create_warehouse)
get_items = create_protected_action(Permission.INVENTORY_VIEW, _get_items)
create_item = create_protected_action(Permission.INVENTORY_MANAGE, _create_item)
create_sale = create_protected_action(Permission.TRANSACTION_CREATE, _create_sale)
