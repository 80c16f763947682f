from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from quantura.core.cache import cache_key, tenant_tag
from quantura.core.clock import as_utc
from quantura.core.errors import MissingInputError, NotFoundError
from quantura.core.result import Result
from quantura.db.models.expense import Expense
from quantura.schemas.expense import ExpenseCreate
from .base import BaseRepository, Change, is_blank, returns_result, snapshot


def _positive(amount: Any) -> bool:
    if amount is None:
        return False
    try:
        return Decimal(str(amount)) > 0
    except InvalidOperation:
        return False


class ExpenseRepository(BaseRepository):
    """Repository for business expenses."""

    model_name = "expense"
    cache_namespace = "expenses"

    @returns_result("Failed to fetch expenses")
    async def get_all(self, business_id: UUID) -> Result[List[Expense]]:
        """Expenses of a business, newest first, with the recording user loaded."""
        if is_blank(business_id):
            raise MissingInputError()
        stmt = (
            select(Expense)
            .where(Expense.business_id == business_id)
            .options(selectinload(Expense.created_by_user))
            .order_by(Expense.created_at.desc())
        )
        res = await self.scalars(stmt)
        return Result.ok(list(res))

    async def get_all_cached(self, business_id: UUID) -> Result[List[Expense]]:
        return await self.cached(
            cache_key(self.cache_namespace, business_id, "all"),
            lambda: self.get_all(business_id),
            tags=[tenant_tag(self.cache_namespace, business_id)],
        )

    @returns_result("Failed to fetch expenses by time interval")
    async def get_by_time_interval(
        self, business_id: UUID, date_from: datetime, date_to: datetime
    ) -> Result[List[Expense]]:
        """Expenses created within [date_from, date_to], both bounds inclusive."""
        if is_blank(business_id) or date_from is None or date_to is None:
            raise MissingInputError()
        start, end = as_utc(date_from), as_utc(date_to)
        if start > end:
            raise MissingInputError()
        stmt = (
            select(Expense)
            .where(
                Expense.business_id == business_id,
                Expense.created_at >= start,
                Expense.created_at <= end,
            )
            .options(selectinload(Expense.created_by_user))
            .order_by(Expense.created_at.desc())
        )
        res = await self.scalars(stmt)
        return Result.ok(list(res))

    @returns_result("Failed to fetch expense")
    async def get_by_id(self, expense_id: UUID, business_id: UUID) -> Result[Expense]:
        if is_blank(expense_id) or is_blank(business_id):
            raise MissingInputError()
        stmt = (
            select(Expense)
            .where(Expense.id == expense_id, Expense.business_id == business_id)
            .options(selectinload(Expense.created_by_user))
        )
        row = await self.scalar_one_or_none(stmt)
        if row is None:
            raise NotFoundError()
        return Result.ok(row)

    @returns_result("Failed to create expense")
    async def create(self, expense: ExpenseCreate) -> Result[Expense]:
        """Record an expense; the audit entry is attributed to `created_by`."""
        if is_blank(expense.business_id) or not _positive(expense.amount):
            raise MissingInputError()
        values = expense.model_dump(exclude_none=True)

        async def mutation() -> Change:
            row = Expense(**values)
            await self.add(row)
            await self.session.flush()
            return Change(row, row.id, row.business_id, snapshot(row))

        row = await self.mutate_with_audit(
            action="create-expense", performed_by=expense.created_by, mutation=mutation
        )
        self.revalidate(row.business_id, self.cache_namespace, "statistics")
        return Result.ok(row)

    @returns_result("Failed to update expense")
    async def update(
        self,
        expense_id: UUID,
        business_id: UUID,
        user_id: Optional[UUID],
        updates: Dict[str, Any],
    ) -> Result[Expense]:
        if is_blank(expense_id) or is_blank(business_id) or not updates:
            raise MissingInputError()
        if "amount" in updates and not _positive(updates["amount"]):
            raise MissingInputError()

        async def mutation() -> Change:
            row = await self._get(expense_id, business_id)
            applied = self.apply_updates(row, updates)
            await self.session.flush()
            return Change(row, row.id, business_id, applied)

        row = await self.mutate_with_audit(
            action="update-expense", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id, self.cache_namespace, "statistics")
        return Result.ok(row)

    @returns_result("Failed to delete expense")
    async def remove(
        self, expense_id: UUID, business_id: UUID, user_id: Optional[UUID]
    ) -> Result[Expense]:
        if is_blank(expense_id) or is_blank(business_id):
            raise MissingInputError()

        async def mutation() -> Change:
            row = await self._get(expense_id, business_id)
            previous = snapshot(row)
            await self.execute(
                delete(Expense).where(Expense.id == expense_id, Expense.business_id == business_id)
            )
            return Change(row, row.id, business_id, previous)

        row = await self.mutate_with_audit(
            action="delete-expense", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id, self.cache_namespace, "statistics")
        return Result.ok(row)

    async def _get(self, expense_id: UUID, business_id: UUID) -> Expense:
        stmt = select(Expense).where(Expense.id == expense_id, Expense.business_id == business_id)
        row = await self.scalar_one_or_none(stmt)
        if row is None:
            raise NotFoundError()
        return row
