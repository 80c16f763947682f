from __future__ import annotations

from typing import Any, Dict, List
from uuid import UUID

from quantura.core.permissions import Permission
from quantura.core.result import Result
from quantura.repositories.category import CategoryRepository
from quantura.schemas.catalog import CategoryCreate
from .factory import ActionContext, Principal, create_protected_action


async def _get_categories(ctx: ActionContext, principal: Principal) -> Result:
    return await ctx.repository(CategoryRepository).get_all_cached(principal.business_id)


async def _get_category(ctx: ActionContext, principal: Principal, category_id: UUID) -> Result:
    return await ctx.repository(CategoryRepository).get_by_id_cached(category_id, principal.business_id)


async def _create_category(ctx: ActionContext, principal: Principal, payload: CategoryCreate) -> Result:
    category = payload.model_copy(update={"business_id": principal.business_id})
    return await ctx.repository(CategoryRepository).create(category, principal.id)


async def _create_categories(
    ctx: ActionContext, principal: Principal, payloads: List[CategoryCreate]
) -> Result:
    # Rows without a business are the caller's; rows naming another one reject the batch.
    rows = [
        p if p.business_id is not None else p.model_copy(update={"business_id": principal.business_id})
        for p in payloads or []
    ]
    return await ctx.repository(CategoryRepository).upsert_many(principal.business_id, rows, principal.id)


async def _update_category(
    ctx: ActionContext, principal: Principal, category_id: UUID, updates: Dict[str, Any]
) -> Result:
    return await ctx.repository(CategoryRepository).update(
        category_id, principal.business_id, principal.id, updates
    )


async def _delete_category(ctx: ActionContext, principal: Principal, category_id: UUID) -> Result:
    return await ctx.repository(CategoryRepository).remove(category_id, principal.business_id, principal.id)


get_categories = create_protected_action(Permission.CATEGORY_VIEW, _get_categories)
get_category = create_protected_action(Permission.CATEGORY_VIEW, _get_category)
create_category = create_protected_action(Permission.CATEGORY_CREATE, _create_category)
create_categories = create_protected_action(Permission.CATEGORY_CREATE, _create_categories)
update_category = create_protected_action(Permission.CATEGORY_UPDATE, _update_category)
delete_category = create_protected_action(Permission.CATEGORY_DELETE, _delete_category)
