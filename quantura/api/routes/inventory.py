from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from quantura.actions import inventory as actions
from quantura.actions.factory import ActionContext
from quantura.api.responses import envelope_response
from quantura.core.deps import get_action_context
from quantura.schemas.common import Envelope
from quantura.schemas.inventory import (
    SaleCreate,
    TransactionRead,
    WarehouseCreate,
    WarehouseItemCreate,
    WarehouseItemRead,
    WarehouseRead,
)

router = APIRouter(prefix="/inventory", tags=["Inventory"])


# PUBLIC_INTERFACE
@router.get("/warehouses", response_model=Envelope[List[WarehouseRead]], summary="List warehouses")
async def list_warehouses(ctx: ActionContext = Depends(get_action_context)):
    return envelope_response(await actions.get_warehouses(ctx), List[WarehouseRead])


# PUBLIC_INTERFACE
@router.post(
    "/warehouses",
    response_model=Envelope[WarehouseRead],
    status_code=201,
    summary="Create warehouse",
)
async def create_warehouse(payload: WarehouseCreate, ctx: ActionContext = Depends(get_action_context)):
    return envelope_response(await actions.create_warehouse(ctx, payload), WarehouseRead, status_code=201)


# PUBLIC_INTERFACE
@router.get(
    "/items",
    response_model=Envelope[List[WarehouseItemRead]],
    summary="List stock",
    description="Stock per SKU, optionally limited to one warehouse.",
)
async def list_items(
    warehouse_id: Optional[UUID] = Query(None, description="Filter by warehouse"),
    ctx: ActionContext = Depends(get_action_context),
):
    return envelope_response(await actions.get_items(ctx, warehouse_id), List[WarehouseItemRead])


# PUBLIC_INTERFACE
@router.post(
    "/items",
    response_model=Envelope[WarehouseItemRead],
    status_code=201,
    summary="Register SKU",
)
async def create_item(payload: WarehouseItemCreate, ctx: ActionContext = Depends(get_action_context)):
    return envelope_response(await actions.create_item(ctx, payload), WarehouseItemRead, status_code=201)


# PUBLIC_INTERFACE
@router.post(
    "/sales",
    response_model=Envelope[TransactionRead],
    status_code=201,
    summary="Record sale",
    description="Decrement stock and record a SALE transaction. Fails with INSUFFICIENT_STOCK when stock is short.",
)
async def create_sale(payload: SaleCreate, ctx: ActionContext = Depends(get_action_context)):
    return envelope_response(await actions.create_sale(ctx, payload), TransactionRead, status_code=201)
