from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from quantura.actions import categories as actions
from quantura.actions.factory import ActionContext
from quantura.api.responses import envelope_response
from quantura.core.deps import get_action_context
from quantura.schemas.catalog import CategoryCreate, CategoryRead, CategoryUpdate
from quantura.schemas.common import Envelope

router = APIRouter(prefix="/categories", tags=["Categories"])


# PUBLIC_INTERFACE
@router.get("", response_model=Envelope[List[CategoryRead]], summary="List categories")
async def list_categories(ctx: ActionContext = Depends(get_action_context)):
    return envelope_response(await actions.get_categories(ctx), List[CategoryRead])


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=Envelope[CategoryRead],
    status_code=201,
    summary="Create category",
    description="Create a category, or update the existing one with the same value.",
)
async def create_category(payload: CategoryCreate, ctx: ActionContext = Depends(get_action_context)):
    return envelope_response(await actions.create_category(ctx, payload), CategoryRead, status_code=201)


# PUBLIC_INTERFACE
@router.post(
    "/batch",
    response_model=Envelope[List[CategoryRead]],
    status_code=201,
    summary="Upsert categories",
    description="Upsert several categories in one transaction; any invalid row rejects the batch.",
)
async def create_categories(
    payload: List[CategoryCreate], ctx: ActionContext = Depends(get_action_context)
):
    result = await actions.create_categories(ctx, payload)
    return envelope_response(result, List[CategoryRead], status_code=201)


# PUBLIC_INTERFACE
@router.get("/{category_id}", response_model=Envelope[CategoryRead], summary="Get category")
async def get_category(
    category_id: UUID = Path(..., description="Category ID"),
    ctx: ActionContext = Depends(get_action_context),
):
    return envelope_response(await actions.get_category(ctx, category_id), CategoryRead)


# PUBLIC_INTERFACE
@router.patch("/{category_id}", response_model=Envelope[CategoryRead], summary="Update category")
async def update_category(
    payload: CategoryUpdate,
    category_id: UUID = Path(..., description="Category ID"),
    ctx: ActionContext = Depends(get_action_context),
):
    result = await actions.update_category(ctx, category_id, payload.model_dump(exclude_unset=True))
    return envelope_response(result, CategoryRead)


# PUBLIC_INTERFACE
@router.delete("/{category_id}", response_model=Envelope[CategoryRead], summary="Delete category")
async def delete_category(
    category_id: UUID = Path(..., description="Category ID"),
    ctx: ActionContext = Depends(get_action_context),
):
    return envelope_response(await actions.delete_category(ctx, category_id), CategoryRead)
