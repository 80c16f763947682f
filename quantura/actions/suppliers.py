from __future__ import annotations

from typing import Any, Dict, List
from uuid import UUID

from quantura.core.permissions import Permission
from quantura.core.result import Result
from quantura.repositories.supplier import SupplierRepository
from quantura.schemas.catalog import SupplierCreate
from .factory import ActionContext, Principal, create_protected_action


async def _get_suppliers(ctx: ActionContext, principal: Principal) -> Result:
    return await ctx.repository(SupplierRepository).get_all_cached(principal.business_id)


async def _get_supplier(ctx: ActionContext, principal: Principal, supplier_id: UUID) -> Result:
    return await ctx.repository(SupplierRepository).get_by_id_cached(supplier_id, principal.business_id)


async def _create_supplier(ctx: ActionContext, principal: Principal, payload: SupplierCreate) -> Result:
    return await ctx.repository(SupplierRepository).create(principal.business_id, principal.id, payload)


async def _create_suppliers(
    ctx: ActionContext, principal: Principal, payloads: List[SupplierCreate]
) -> Result:
    return await ctx.repository(SupplierRepository).create_many(
        principal.business_id, principal.id, payloads or []
    )


async def _update_supplier(
    ctx: ActionContext, principal: Principal, supplier_id: UUID, updates: Dict[str, Any]
) -> Result:
    return await ctx.repository(SupplierRepository).update(
        supplier_id, principal.business_id, principal.id, updates
    )


async def _delete_supplier(ctx: ActionContext, principal: Principal, supplier_id: UUID) -> Result:
    return await ctx.repository(SupplierRepository).remove(supplier_id, principal.business_id, principal.id)


get_suppliers = create_protected_action(Permission.SUPPLIER_VIEW, _get_suppliers)
get_supplier = create_protected_action(Permission.SUPPLIER_VIEW, _get_supplier)
create_supplier = create_protected_action(Permission.SUPPLIER_CREATE, _create_supplier)
create_suppliers = create_protected_action(Permission.SUPPLIER_CREATE, _create_suppliers)
update_supplier = create_protected_action(Permission.SUPPLIER_UPDATE, _update_supplier)
delete_supplier = create_protected_action(Permission.SUPPLIER_DELETE, _delete_supplier)
