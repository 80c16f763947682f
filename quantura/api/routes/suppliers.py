from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from quantura.actions import suppliers as actions
from quantura.actions.factory import ActionContext
from quantura.api.responses import envelope_response
from quantura.core.deps import get_action_context
from quantura.schemas.catalog import SupplierCreate, SupplierRead, SupplierUpdate
from quantura.schemas.common import Envelope

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])


# PUBLIC_INTERFACE
@router.get("", response_model=Envelope[List[SupplierRead]], summary="List suppliers")
async def list_suppliers(ctx: ActionContext = Depends(get_action_context)):
    return envelope_response(await actions.get_suppliers(ctx), List[SupplierRead])


# PUBLIC_INTERFACE
@router.post("", response_model=Envelope[SupplierRead], status_code=201, summary="Create supplier")
async def create_supplier(payload: SupplierCreate, ctx: ActionContext = Depends(get_action_context)):
    return envelope_response(await actions.create_supplier(ctx, payload), SupplierRead, status_code=201)


# PUBLIC_INTERFACE
@router.post(
    "/batch",
    response_model=Envelope[List[SupplierRead]],
    status_code=201,
    summary="Create suppliers",
    description="Create several suppliers in one transaction; any invalid row rejects the batch.",
)
async def create_suppliers(
    payload: List[SupplierCreate], ctx: ActionContext = Depends(get_action_context)
):
    result = await actions.create_suppliers(ctx, payload)
    return envelope_response(result, List[SupplierRead], status_code=201)


# PUBLIC_INTERFACE
@router.get("/{supplier_id}", response_model=Envelope[SupplierRead], summary="Get supplier")
async def get_supplier(
    supplier_id: UUID = Path(..., description="Supplier ID"),
    ctx: ActionContext = Depends(get_action_context),
):
    return envelope_response(await actions.get_supplier(ctx, supplier_id), SupplierRead)


# PUBLIC_INTERFACE
@router.patch("/{supplier_id}", response_model=Envelope[SupplierRead], summary="Update supplier")
async def update_supplier(
    payload: SupplierUpdate,
    supplier_id: UUID = Path(..., description="Supplier ID"),
    ctx: ActionContext = Depends(get_action_context),
):
    result = await actions.update_supplier(ctx, supplier_id, payload.model_dump(exclude_unset=True))
    return envelope_response(result, SupplierRead)


# PUBLIC_INTERFACE
@router.delete("/{supplier_id}", response_model=Envelope[SupplierRead], summary="Delete supplier")
async def delete_supplier(
    supplier_id: UUID = Path(..., description="Supplier ID"),
    ctx: ActionContext = Depends(get_action_context),
):
    return envelope_response(await actions.delete_supplier(ctx, supplier_id), SupplierRead)
