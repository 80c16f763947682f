from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Optional


class Permission(str, Enum):
    """Permission codes checked by the action wrapper."""

    BUSINESS_CREATE = "business:create"
    BUSINESS_VIEW = "business:view"
    BUSINESS_UPDATE = "business:update"
    BUSINESS_DELETE = "business:delete"

    CATEGORY_VIEW = "category:view"
    CATEGORY_CREATE = "category:create"
    CATEGORY_UPDATE = "category:update"
    CATEGORY_DELETE = "category:delete"

    EXPENSE_VIEW = "expense:view"
    EXPENSE_CREATE = "expense:create"
    EXPENSE_UPDATE = "expense:update"
    EXPENSE_DELETE = "expense:delete"

    SUPPLIER_VIEW = "supplier:view"
    SUPPLIER_CREATE = "supplier:create"
    SUPPLIER_UPDATE = "supplier:update"
    SUPPLIER_DELETE = "supplier:delete"

    INVITATION_VIEW = "invitation:view"
    INVITATION_CREATE = "invitation:create"
    INVITATION_UPDATE = "invitation:update"
    INVITATION_DELETE = "invitation:delete"

    INVENTORY_VIEW = "inventory:view"
    INVENTORY_MANAGE = "inventory:manage"
    TRANSACTION_CREATE = "transaction:create"

    STATISTICS_VIEW = "statistics:view"


class Role(str, Enum):
    """Membership role of a user inside a business."""

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    MEMBER = "MEMBER"


_VIEW = frozenset(p for p in Permission if p.value.endswith(":view"))

ROLE_PERMISSIONS: Dict[Role, FrozenSet[Permission]] = {
    Role.OWNER: frozenset(Permission),
    Role.ADMIN: frozenset(Permission) - {Permission.BUSINESS_DELETE},
    Role.MANAGER: _VIEW
    | {
        Permission.CATEGORY_CREATE,
        Permission.CATEGORY_UPDATE,
        Permission.EXPENSE_CREATE,
        Permission.EXPENSE_UPDATE,
        Permission.SUPPLIER_CREATE,
        Permission.SUPPLIER_UPDATE,
        Permission.INVENTORY_MANAGE,
        Permission.TRANSACTION_CREATE,
    },
    Role.MEMBER: _VIEW | {Permission.TRANSACTION_CREATE},
}

# Users that do not belong to any business yet may only create one.
UNAFFILIATED_PERMISSIONS: FrozenSet[Permission] = frozenset({Permission.BUSINESS_CREATE})


# PUBLIC_INTERFACE
def permissions_for(role: Optional[str], business_id: object = None) -> FrozenSet[Permission]:
    """Return the permission set granted to a role within a business."""
    if business_id is None or not role:
        return UNAFFILIATED_PERMISSIONS
    try:
        return ROLE_PERMISSIONS[Role(role)]
    except ValueError:
        return frozenset()
