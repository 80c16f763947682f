from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from quantura.actions import expenses as actions
from quantura.actions.factory import ActionContext
from quantura.api.responses import envelope_response
from quantura.core.deps import get_action_context
from quantura.schemas.common import Envelope
from quantura.schemas.expense import ExpenseCreate, ExpenseRead, ExpenseUpdate, ExpenseWithCreator

router = APIRouter(prefix="/expenses", tags=["Expenses"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=Envelope[List[ExpenseWithCreator]],
    summary="List expenses",
    description="All expenses, or those created between date_from and date_to (inclusive) when both are given.",
)
async def list_expenses(
    date_from: Optional[datetime] = Query(None, description="Start of the window (inclusive)"),
    date_to: Optional[datetime] = Query(None, description="End of the window (inclusive)"),
    ctx: ActionContext = Depends(get_action_context),
):
    if date_from is not None or date_to is not None:
        result = await actions.get_expenses_between(ctx, date_from, date_to)
    else:
        result = await actions.get_expenses(ctx)
    return envelope_response(result, List[ExpenseWithCreator])


# PUBLIC_INTERFACE
@router.post("", response_model=Envelope[ExpenseRead], status_code=201, summary="Record expense")
async def create_expense(payload: ExpenseCreate, ctx: ActionContext = Depends(get_action_context)):
    return envelope_response(await actions.create_expense(ctx, payload), ExpenseRead, status_code=201)


# PUBLIC_INTERFACE
@router.get("/{expense_id}", response_model=Envelope[ExpenseWithCreator], summary="Get expense")
async def get_expense(
    expense_id: UUID = Path(..., description="Expense ID"),
    ctx: ActionContext = Depends(get_action_context),
):
    return envelope_response(await actions.get_expense(ctx, expense_id), ExpenseWithCreator)


# PUBLIC_INTERFACE
@router.patch("/{expense_id}", response_model=Envelope[ExpenseRead], summary="Update expense")
async def update_expense(
    payload: ExpenseUpdate,
    expense_id: UUID = Path(..., description="Expense ID"),
    ctx: ActionContext = Depends(get_action_context),
):
    result = await actions.update_expense(ctx, expense_id, payload.model_dump(exclude_unset=True))
    return envelope_response(result, ExpenseRead)


# PUBLIC_INTERFACE
@router.delete("/{expense_id}", response_model=Envelope[ExpenseRead], summary="Delete expense")
async def delete_expense(
    expense_id: UUID = Path(..., description="Expense ID"),
    ctx: ActionContext = Depends(get_action_context),
):
    return envelope_response(await actions.delete_expense(ctx, expense_id), ExpenseRead)
