from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CategoryRead(BaseModel):
    """Category read model."""
    id: UUID = Field(..., description="Category ID")
    business_id: UUID = Field(..., description="Owning business")
    value: str = Field(..., description="Category name, unique within the business")
    description: Optional[str] = Field(None)
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    """
    Create (or ensure) a category.

    `business_id` is filled from the caller's tenant when omitted.
    """
    business_id: Optional[UUID] = Field(None, description="Owning business")
    value: Optional[str] = Field(None, description="Category name (required)")
    description: Optional[str] = Field(None)


class CategoryUpdate(BaseModel):
    """Partial category update."""
    value: Optional[str] = Field(None)
    description: Optional[str] = Field(None)


class SupplierRead(BaseModel):
    """Supplier read model."""
    id: UUID = Field(..., description="Supplier ID")
    business_id: UUID = Field(..., description="Owning business")
    name: str = Field(..., description="Supplier name")
    contact_name: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True


class SupplierCreate(BaseModel):
    """Create supplier payload; `business_id` defaults to the caller's tenant."""
    business_id: Optional[UUID] = Field(None, description="Owning business")
    name: Optional[str] = Field(None, description="Supplier name (required)")
    contact_name: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)


class SupplierUpdate(BaseModel):
    """Partial supplier update."""
    name: Optional[str] = Field(None)
    contact_name: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
