from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from quantura.core.permissions import Role


class InvitationRead(BaseModel):
    """Invitation read model; the code itself is only ever emailed."""
    id: UUID = Field(..., description="Invitation ID")
    business_id: UUID = Field(..., description="Inviting business")
    email: str = Field(..., description="Invited email address")
    role: str = Field(..., description="Role granted on acceptance")
    status: str = Field(..., description="pending, accepted or declined")
    expires_at: datetime = Field(..., description="Expiry timestamp")
    responded_at: Optional[datetime] = Field(None)
    invited_by: Optional[UUID] = Field(None)
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True


class InvitationCreate(BaseModel):
    """Invite an email address into the caller's business."""
    email: Optional[str] = Field(None, description="Email to invite (required)")
    role: Role = Field(Role.MEMBER, description="Role granted on acceptance")


class InvitationUpdate(BaseModel):
    """Partial invitation update."""
    email: Optional[str] = Field(None)
    role: Optional[Role] = Field(None)
    expires_at: Optional[datetime] = Field(None)


class InvitationRespond(BaseModel):
    """Answer an invitation."""
    code: str = Field(..., description="Invitation code from the email")
    action: Literal["accept", "decline"] = Field(..., description="accept or decline")


class InvitationOutcome(BaseModel):
    """Result of answering an invitation."""
    status: str = Field(..., description="Invitation status after the call")
    redirect: Optional[str] = Field(None, description="Next page, when the invitee must sign up")


class SetPasswordRequest(BaseModel):
    """Create the invited account and join the business."""
    email: EmailStr = Field(..., description="Invited email")
    code: str = Field(..., description="Invitation code")
    password: str = Field(..., min_length=6, description="New password")
    name: Optional[str] = Field(None, description="Display name")
