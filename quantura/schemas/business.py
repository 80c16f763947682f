from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .catalog import CategoryRead
from .inventory import WarehouseRead


class BusinessRead(BaseModel):
    """Business (tenant) read model."""
    id: UUID = Field(..., description="Business ID")
    name: str = Field(..., description="Business name")
    description: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    currency: str = Field(..., description="ISO currency code")
    is_active: bool = Field(..., description="Active flag")
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True


class BusinessDetail(BusinessRead):
    """Business with its categories and warehouses."""
    categories: List[CategoryRead] = Field(default_factory=list)
    warehouses: List[WarehouseRead] = Field(default_factory=list)


class BusinessCreate(BaseModel):
    """Create business payload."""
    name: Optional[str] = Field(None, description="Business name (required)")
    description: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    currency: Optional[str] = Field("USD", min_length=3, max_length=3)


class BusinessUpdate(BaseModel):
    """Partial business update."""
    name: Optional[str] = Field(None)
    description: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    is_active: Optional[bool] = Field(None)
