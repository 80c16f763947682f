"""
ORM models for the tenant (business), its members, catalog, expenses,
inventory, invitations and the audit trail.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .business import Business  # noqa: F401
from .security import User  # noqa: F401
from .catalog import (  # noqa: F401
    Category,
    Supplier,
)
from .expense import Expense  # noqa: F401
from .inventory import (  # noqa: F401
    Warehouse,
    WarehouseItem,
    Transaction,
)
from .invitation import Invitation, InvitationStatus  # noqa: F401
from .audit import AuditLog  # noqa: F401
