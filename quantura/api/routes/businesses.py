from __future__ import annotations

from fastapi import APIRouter, Depends

from quantura.actions import business as actions
from quantura.actions.factory import ActionContext
from quantura.api.responses import envelope_response
from quantura.core.deps import get_action_context
from quantura.schemas.business import BusinessCreate, BusinessDetail, BusinessRead, BusinessUpdate
from quantura.schemas.common import Envelope

router = APIRouter(prefix="/businesses", tags=["Businesses"])


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=Envelope[BusinessRead],
    status_code=201,
    summary="Create business",
    description="Create a business; the caller becomes its OWNER.",
)
async def create_business(payload: BusinessCreate, ctx: ActionContext = Depends(get_action_context)):
    result = await actions.create_business(ctx, payload)
    return envelope_response(result, BusinessRead, status_code=201)


# PUBLIC_INTERFACE
@router.get(
    "/current",
    response_model=Envelope[BusinessDetail],
    summary="Current business",
    description="The caller's business with its categories and warehouses.",
)
async def get_current_business(ctx: ActionContext = Depends(get_action_context)):
    return envelope_response(await actions.get_current_business(ctx), BusinessDetail)


# PUBLIC_INTERFACE
@router.patch(
    "/current",
    response_model=Envelope[BusinessRead],
    summary="Update business",
)
async def update_business(payload: BusinessUpdate, ctx: ActionContext = Depends(get_action_context)):
    result = await actions.update_business(ctx, payload.model_dump(exclude_unset=True))
    return envelope_response(result, BusinessRead)


# PUBLIC_INTERFACE
@router.delete(
    "/current",
    response_model=Envelope[BusinessRead],
    summary="Delete business",
    description="Hard-delete the caller's business and everything it owns.",
)
async def delete_business(ctx: ActionContext = Depends(get_action_context)):
    return envelope_response(await actions.delete_business(ctx), BusinessRead)
