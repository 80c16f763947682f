from __future__ import annotations

from datetime import datetime
from typing import Any, Dict
from uuid import UUID

from quantura.core.permissions import Permission
from quantura.core.result import Result
from quantura.repositories.expense import ExpenseRepository
from quantura.schemas.expense import ExpenseCreate
from .factory import ActionContext, Principal, create_protected_action


async def _get_expenses(ctx: ActionContext, principal: Principal) -> Result:
    return await ctx.repository(ExpenseRepository).get_all_cached(principal.business_id)


async def _get_expenses_between(
    ctx: ActionContext, principal: Principal, date_from: datetime, date_to: datetime
) -> Result:
    return await ctx.repository(ExpenseRepository).get_by_time_interval(
        principal.business_id, date_from, date_to
    )


async def _get_expense(ctx: ActionContext, principal: Principal, expense_id: UUID) -> Result:
    return await ctx.repository(ExpenseRepository).get_by_id(expense_id, principal.business_id)


async def _create_expense(ctx: ActionContext, principal: Principal, payload: ExpenseCreate) -> Result:
    expense = payload.model_copy(update={"business_id": principal.business_id, "created_by": principal.id})
    return await ctx.repository(ExpenseRepository).create(expense)


async def _update_expense(
    ctx: ActionContext, principal: Principal, expense_id: UUID, updates: Dict[str, Any]
) -> Result:
    return await ctx.repository(ExpenseRepository).update(
        expense_id, principal.business_id, principal.id, updates
    )


async def _delete_expense(ctx: ActionContext, principal: Principal, expense_id: UUID) -> Result:
    return await ctx.repository(ExpenseRepository).remove(expense_id, principal.business_id, principal.id)


get_expenses = create_protected_action(Permission.EXPENSE_VIEW, _get_expenses)
get_expenses_between = create_protected_action(Permission.EXPENSE_VIEW, _get_expenses_between)
get_expense = create_protected_action(Permission.EXPENSE_VIEW, _get_expense)
create_expense = create_protected_action(Permission.EXPENSE_CREATE, _create_expense)
update_expense = create_protected_action(Permission.EXPENSE_UPDATE, _update_expense)
delete_expense = create_protected_action(Permission.EXPENSE_DELETE, _delete_expense)
