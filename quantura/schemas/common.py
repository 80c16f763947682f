from __future__ import annotations

from datetime import datetime
from typing import Generic, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field

from quantura.core.errors import ErrorCode

T = TypeVar("T")


class IDModel(BaseModel):
    """Base schema exposing a UUID primary key."""
    id: UUID = Field(..., description="Unique identifier")


class Timestamps(BaseModel):
    """Common created/updated timestamp fields."""
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: datetime = Field(..., description="Last update timestamp (UTC)")


class MessageResponse(BaseModel):
    """Standard message response."""
    message: str = Field(..., description="Human readable message")
    details: Optional[dict] = Field(default=None, description="Optional extra data")


class UserSummary(BaseModel):
    """Minimal user projection embedded in other read models."""
    id: UUID = Field(..., description="User ID")
    email: str = Field(..., description="User email")
    name: Optional[str] = Field(None, description="Display name")

    class Config:
        from_attributes = True


class RedirectRead(BaseModel):
    """Where the client should navigate next."""
    redirect: str = Field(..., description="Relative URL of the next page")


# PUBLIC_INTERFACE
class Envelope(BaseModel, Generic[T]):
    """
    Result envelope returned by every endpoint.

    Exactly one of `data` and `error` is populated. `message` carries the
    human-readable text for `error` and is null on success.
    """
    data: Optional[T] = Field(default=None, description="Payload on success")
    error: Optional[ErrorCode] = Field(default=None, description="Machine-readable error code")
    message: Optional[str] = Field(default=None, description="Human-readable error message")
