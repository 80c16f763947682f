from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from quantura.actions import statistics as actions
from quantura.actions.factory import ActionContext
from quantura.api.responses import envelope_response
from quantura.core.deps import get_action_context
from quantura.schemas.common import Envelope
from quantura.schemas.inventory import TransactionWithCreator
from quantura.schemas.statistics import AuditLogRead, DashboardSummary

router = APIRouter(prefix="/statistics", tags=["Statistics"])


# PUBLIC_INTERFACE
@router.get(
    "/transactions",
    response_model=Envelope[List[TransactionWithCreator]],
    summary="List transactions",
)
async def list_transactions(ctx: ActionContext = Depends(get_action_context)):
    return envelope_response(await actions.get_transactions(ctx), List[TransactionWithCreator])


# PUBLIC_INTERFACE
@router.get(
    "/audit-logs",
    response_model=Envelope[List[AuditLogRead]],
    summary="Audit trail",
    description="Audit entries for the business, newest first.",
)
async def list_audit_logs(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: ActionContext = Depends(get_action_context),
):
    result = await actions.get_audit_logs(ctx, limit=limit, offset=offset)
    return envelope_response(result, List[AuditLogRead])


# PUBLIC_INTERFACE
@router.get(
    "/summary",
    response_model=Envelope[DashboardSummary],
    summary="Dashboard summary",
    description="Expense, sales and catalog totals, optionally within a period.",
)
async def get_summary(
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    ctx: ActionContext = Depends(get_action_context),
):
    return envelope_response(await actions.get_summary(ctx, date_from, date_to), DashboardSummary)
