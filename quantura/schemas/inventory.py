from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import UserSummary


class WarehouseRead(BaseModel):
    """Warehouse read model."""
    id: UUID = Field(..., description="Warehouse ID")
    business_id: UUID = Field(..., description="Owning business")
    name: str = Field(..., description="Warehouse name")
    location: Optional[str] = Field(None)
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True


class WarehouseCreate(BaseModel):
    """Create warehouse payload."""
    name: Optional[str] = Field(None, description="Warehouse name (required)")
    location: Optional[str] = Field(None)


class WarehouseItemRead(BaseModel):
    """Stock held for one SKU in one warehouse."""
    id: UUID = Field(..., description="Warehouse item ID")
    business_id: UUID = Field(..., description="Owning business")
    warehouse_id: UUID = Field(..., description="Warehouse ID")
    sku: str = Field(..., description="SKU")
    name: str = Field(..., description="Item name")
    quantity: int = Field(..., description="On-hand quantity")
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True


class WarehouseItemCreate(BaseModel):
    """Register a SKU in a warehouse."""
    warehouse_id: Optional[UUID] = Field(None, description="Warehouse (required)")
    sku: Optional[str] = Field(None, description="SKU (required)")
    name: Optional[str] = Field(None, description="Item name (required)")
    quantity: int = Field(0, ge=0, description="Opening quantity")


class SaleCreate(BaseModel):
    """Sale of a quantity of one warehouse item."""
    warehouse_item_id: Optional[UUID] = Field(None, description="Item sold (required)")
    quantity: Optional[int] = Field(None, description="Units sold (required, > 0)")
    note: Optional[str] = Field(None)
    reference: Optional[str] = Field(None, description="External reference, e.g. receipt number")


class TransactionRead(BaseModel):
    """Stock movement read model."""
    id: UUID = Field(..., description="Transaction ID")
    business_id: UUID = Field(..., description="Owning business")
    warehouse_item_id: Optional[UUID] = Field(None)
    type: str = Field(..., description="Movement type, e.g. SALE")
    quantity: int = Field(..., description="Signed quantity; sales are negative")
    note: Optional[str] = Field(None)
    reference: Optional[str] = Field(None)
    created_by: Optional[UUID] = Field(None)
    created_at: datetime = Field(..., description="Created timestamp")

    class Config:
        from_attributes = True


class TransactionWithCreator(TransactionRead):
    """Stock movement including the user who recorded it."""
    created_by_user: Optional[UserSummary] = Field(None)
