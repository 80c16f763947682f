from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import UserSummary


class ExpenseRead(BaseModel):
    """Expense read model."""
    id: UUID = Field(..., description="Expense ID")
    business_id: UUID = Field(..., description="Owning business")
    description: Optional[str] = Field(None)
    amount: Decimal = Field(..., description="Amount spent")
    category: Optional[str] = Field(None)
    note: Optional[str] = Field(None)
    created_by: Optional[UUID] = Field(None, description="User who recorded the expense")
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True


class ExpenseWithCreator(ExpenseRead):
    """Expense read model including the recording user."""
    created_by_user: Optional[UserSummary] = Field(None)


class ExpenseCreate(BaseModel):
    """
    Create expense payload.

    `business_id` and `created_by` are filled from the caller when omitted.
    """
    business_id: Optional[UUID] = Field(None)
    created_by: Optional[UUID] = Field(None)
    amount: Optional[Decimal] = Field(None, description="Amount spent (required, > 0)")
    description: Optional[str] = Field(None)
    category: Optional[str] = Field(None)
    note: Optional[str] = Field(None)


class ExpenseUpdate(BaseModel):
    """Partial expense update."""
    amount: Optional[Decimal] = Field(None)
    description: Optional[str] = Field(None)
    category: Optional[str] = Field(None)
    note: Optional[str] = Field(None)
