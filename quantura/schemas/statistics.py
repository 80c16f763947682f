from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import UserSummary


class AuditLogRead(BaseModel):
    """Audit trail entry."""
    id: UUID = Field(..., description="Audit entry ID")
    business_id: UUID = Field(..., description="Business the change belongs to")
    model: str = Field(..., description="Entity kind")
    record_id: UUID = Field(..., description="Affected record")
    action: str = Field(..., description="Action label, e.g. create-category")
    changes: Any = Field(None, description="Snapshot of the change")
    performed_by: Optional[UUID] = Field(None)
    performed_at: datetime = Field(..., description="When the change committed")
    performer: Optional[UserSummary] = Field(None)

    class Config:
        from_attributes = True


class DashboardSummary(BaseModel):
    """Headline figures for a business over a period."""
    date_from: Optional[datetime] = Field(None)
    date_to: Optional[datetime] = Field(None)
    expense_total: Decimal = Field(..., description="Sum of expense amounts")
    expense_count: int = Field(..., description="Number of expenses")
    sale_count: int = Field(..., description="Number of sale transactions")
    units_sold: int = Field(..., description="Units sold across sale transactions")
    supplier_count: int = Field(..., description="Suppliers on file")
    category_count: int = Field(..., description="Categories on file")
