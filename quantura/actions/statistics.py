from __future__ import annotations

from datetime import datetime
from typing import Optional

from quantura.core.permissions import Permission
from quantura.core.result import Result
from quantura.repositories.statistics import StatisticsRepository
from .factory import ActionContext, Principal, create_protected_action


async def _get_transactions(ctx: ActionContext, principal: Principal) -> Result:
    return await ctx.repository(StatisticsRepository).get_transactions(principal.business_id)


async def _get_audit_logs(
    ctx: ActionContext, principal: Principal, limit: int = 100, offset: int = 0
) -> Result:
    return await ctx.repository(StatisticsRepository).get_audit_logs(
        principal.business_id, limit=limit, offset=offset
    )


async def _get_summary(
    ctx: ActionContext,
    principal: Principal,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> Result:
    return await ctx.repository(StatisticsRepository).get_summary_cached(
        principal.business_id, date_from, date_to
    )


get_transactions = create_protected_action(Permission.STATISTICS_VIEW, _get_transactions)
get_audit_logs = create_protected_action(Permission.STATISTICS_VIEW, _get_audit_logs)
get_summary = create_protected_action(Permission.STATISTICS_VIEW, _get_summary)
