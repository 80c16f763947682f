from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from quantura.core.cache import cache_key, tenant_tag
from quantura.core.clock import as_utc
from quantura.core.errors import MissingInputError
from quantura.core.result import Result
from quantura.db.models.audit import AuditLog
from quantura.db.models.catalog import Category, Supplier
from quantura.db.models.expense import Expense
from quantura.db.models.inventory import Transaction
from .base import BaseRepository, is_blank, returns_result
from .inventory import SALE


class StatisticsRepository(BaseRepository):
    """Read-only dashboards: stock movements, the audit trail and headline figures."""

    cache_namespace = "statistics"

    @returns_result("Failed to fetch transactions")
    async def get_transactions(self, business_id: UUID) -> Result[List[Transaction]]:
        if is_blank(business_id):
            raise MissingInputError()
        stmt = (
            select(Transaction)
            .where(Transaction.business_id == business_id)
            .options(selectinload(Transaction.created_by_user))
            .order_by(Transaction.created_at.desc())
        )
        res = await self.scalars(stmt)
        return Result.ok(list(res))

    @returns_result("Failed to fetch audit logs")
    async def get_audit_logs(
        self, business_id: UUID, *, limit: int = 100, offset: int = 0
    ) -> Result[List[AuditLog]]:
        """Audit entries of a business, newest first, with the performing user loaded."""
        if is_blank(business_id):
            raise MissingInputError()
        stmt = (
            select(AuditLog)
            .where(AuditLog.business_id == business_id)
            .options(selectinload(AuditLog.performer))
            .order_by(AuditLog.performed_at.desc())
            .offset(offset)
            .limit(limit)
        )
        res = await self.scalars(stmt)
        return Result.ok(list(res))

    @returns_result("Failed to compute summary")
    async def get_summary(
        self,
        business_id: UUID,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Result[Dict[str, Any]]:
        """Expense and sales totals over an optional inclusive window."""
        if is_blank(business_id):
            raise MissingInputError()
        start, end = as_utc(date_from), as_utc(date_to)
        if start is not None and end is not None and start > end:
            raise MissingInputError()

        expense_stmt = select(
            func.coalesce(func.sum(Expense.amount), 0), func.count(Expense.id)
        ).where(Expense.business_id == business_id)
        sale_stmt = select(
            func.count(Transaction.id), func.coalesce(func.sum(-Transaction.quantity), 0)
        ).where(Transaction.business_id == business_id, Transaction.type == SALE)
        if start is not None:
            expense_stmt = expense_stmt.where(Expense.created_at >= start)
            sale_stmt = sale_stmt.where(Transaction.created_at >= start)
        if end is not None:
            expense_stmt = expense_stmt.where(Expense.created_at <= end)
            sale_stmt = sale_stmt.where(Transaction.created_at <= end)

        expense_total, expense_count = (await self.execute(expense_stmt)).one()
        sale_count, units_sold = (await self.execute(sale_stmt)).one()
        supplier_count = (
            await self.execute(select(func.count(Supplier.id)).where(Supplier.business_id == business_id))
        ).scalar_one()
        category_count = (
            await self.execute(select(func.count(Category.id)).where(Category.business_id == business_id))
        ).scalar_one()

        return Result.ok(
            {
                "date_from": start,
                "date_to": end,
                "expense_total": Decimal(str(expense_total)),
                "expense_count": int(expense_count),
                "sale_count": int(sale_count),
                "units_sold": int(units_sold),
                "supplier_count": int(supplier_count),
                "category_count": int(category_count),
            }
        )

    async def get_summary_cached(
        self,
        business_id: UUID,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Result[Dict[str, Any]]:
        return await self.cached(
            cache_key(self.cache_namespace, business_id, "summary", date_from, date_to),
            lambda: self.get_summary(business_id, date_from, date_to),
            tags=[tenant_tag(self.cache_namespace, business_id)],
        )
