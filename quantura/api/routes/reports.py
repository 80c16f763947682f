from __future__ import annotations

from typing import Callable

import pandas as pd
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from quantura.actions import expenses as expense_actions
from quantura.actions import statistics as statistics_actions
from quantura.actions import suppliers as supplier_actions
from quantura.actions.factory import ActionContext
from quantura.api.responses import error_response
from quantura.core.deps import get_action_context
from quantura.core.result import Result
from quantura.services.reports import (
    audit_logs_frame,
    expenses_frame,
    export_dataframe,
    suppliers_frame,
    transactions_frame,
)

router = APIRouter(prefix="/reports", tags=["Reports"])

FORMAT_QUERY = Query("csv", pattern="^(csv|xlsx|pdf)$", description="Export format: csv | xlsx | pdf")


def _file_response(result: Result, to_frame: Callable[..., pd.DataFrame], filename_base: str, export_format: str):
    """Render a successful read as a file download; failures keep the envelope."""
    if not result.is_ok:
        return error_response(result.error)
    exported = export_dataframe(to_frame(result.data), filename_base, export_format)
    headers = {"Content-Disposition": f'attachment; filename="{exported.filename}"'}
    return Response(content=exported.content, media_type=exported.media_type, headers=headers)


# PUBLIC_INTERFACE
@router.get(
    "/expenses",
    summary="Expenses report",
    description="Exports the business's expenses with the recording user.",
    response_description="File (CSV/XLSX/PDF)",
)
async def expenses_report(
    format: str = FORMAT_QUERY,
    ctx: ActionContext = Depends(get_action_context),
):
    result = await expense_actions.get_expenses(ctx)
    return _file_response(result, expenses_frame, "expenses", format)


# PUBLIC_INTERFACE
@router.get(
    "/transactions",
    summary="Transactions report",
    description="Exports stock movements, including sales.",
    response_description="File (CSV/XLSX/PDF)",
)
async def transactions_report(
    format: str = FORMAT_QUERY,
    ctx: ActionContext = Depends(get_action_context),
):
    result = await statistics_actions.get_transactions(ctx)
    return _file_response(result, transactions_frame, "transactions", format)


# PUBLIC_INTERFACE
@router.get(
    "/suppliers",
    summary="Suppliers report",
    response_description="File (CSV/XLSX/PDF)",
)
async def suppliers_report(
    format: str = FORMAT_QUERY,
    ctx: ActionContext = Depends(get_action_context),
):
    result = await supplier_actions.get_suppliers(ctx)
    return _file_response(result, suppliers_frame, "suppliers", format)


# PUBLIC_INTERFACE
@router.get(
    "/audit-logs",
    summary="Audit trail report",
    description="Exports the most recent audit entries, newest first.",
    response_description="File (CSV/XLSX/PDF)",
)
async def audit_logs_report(
    format: str = FORMAT_QUERY,
    limit: int = Query(1000, ge=1, le=10000),
    ctx: ActionContext = Depends(get_action_context),
):
    result = await statistics_actions.get_audit_logs(ctx, limit=limit)
    return _file_response(result, audit_logs_frame, "audit_logs", format)
