from __future__ import annotations

from typing import Any, Dict

from quantura.core.permissions import Permission
from quantura.core.result import Result
from quantura.repositories.business import BusinessRepository
from quantura.schemas.business import BusinessCreate
from .factory import ActionContext, Principal, create_protected_action


async def _get_current_business(ctx: ActionContext, principal: Principal) -> Result:
    return await ctx.repository(BusinessRepository).get_by_id_cached(principal.business_id)


async def _create_business(ctx: ActionContext, principal: Principal, payload: BusinessCreate) -> Result:
    return await ctx.repository(BusinessRepository).create(principal.id, payload)


async def _update_business(ctx: ActionContext, principal: Principal, updates: Dict[str, Any]) -> Result:
    return await ctx.repository(BusinessRepository).update(principal.business_id, principal.id, updates)


async def _delete_business(ctx: ActionContext, principal: Principal) -> Result:
    return await ctx.repository(BusinessRepository).remove(principal.business_id, principal.id)


get_current_business = create_protected_action(Permission.BUSINESS_VIEW, _get_current_business)
# A user creates a business before belonging to one.
create_business = create_protected_action(
    Permission.BUSINESS_CREATE, _create_business, require_business=False
)
update_business = create_protected_action(Permission.BUSINESS_UPDATE, _update_business)
delete_business = create_protected_action(Permission.BUSINESS_DELETE, _delete_business)
