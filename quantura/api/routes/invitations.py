from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from quantura.actions import invitations as actions
from quantura.actions.factory import ActionContext
from quantura.api.responses import envelope_response
from quantura.core.deps import get_action_context
from quantura.schemas.common import Envelope
from quantura.schemas.invitation import (
    InvitationCreate,
    InvitationOutcome,
    InvitationRead,
    InvitationRespond,
    InvitationUpdate,
    SetPasswordRequest,
)

router = APIRouter(prefix="/invitations", tags=["Invitations"])


# PUBLIC_INTERFACE
@router.get("", response_model=Envelope[List[InvitationRead]], summary="List invitations")
async def list_invitations(ctx: ActionContext = Depends(get_action_context)):
    return envelope_response(await actions.get_invitations(ctx), List[InvitationRead])


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=Envelope[InvitationRead],
    status_code=201,
    summary="Invite user",
    description="Create an invitation and email the invite link.",
)
async def create_invitation(payload: InvitationCreate, ctx: ActionContext = Depends(get_action_context)):
    result = await actions.create_invitation(ctx, payload)
    return envelope_response(result, InvitationRead, status_code=201)


# PUBLIC_INTERFACE
@router.post(
    "/batch",
    response_model=Envelope[List[InvitationRead]],
    status_code=201,
    summary="Invite users",
)
async def create_invitations(
    payload: List[InvitationCreate], ctx: ActionContext = Depends(get_action_context)
):
    result = await actions.create_invitations(ctx, payload)
    return envelope_response(result, List[InvitationRead], status_code=201)


# PUBLIC_INTERFACE
@router.post(
    "/respond",
    response_model=Envelope[InvitationOutcome],
    summary="Accept or decline",
    description="Public endpoint used from the emailed link.",
)
async def respond_to_invitation(
    payload: InvitationRespond, ctx: ActionContext = Depends(get_action_context)
):
    result = await actions.respond_to_invitation(ctx, payload.code, payload.action)
    return envelope_response(result, InvitationOutcome)


# PUBLIC_INTERFACE
@router.post(
    "/set-password",
    response_model=Envelope[InvitationOutcome],
    summary="Create invited account",
    description="Create the invitee's account and join the inviting business.",
)
async def set_password_for_invitation(
    payload: SetPasswordRequest, ctx: ActionContext = Depends(get_action_context)
):
    result = await actions.set_password_for_invitation(
        ctx, payload.email, payload.code, payload.password, name=payload.name
    )
    return envelope_response(result, InvitationOutcome)


# PUBLIC_INTERFACE
@router.get("/{invitation_id}", response_model=Envelope[InvitationRead], summary="Get invitation")
async def get_invitation(
    invitation_id: UUID = Path(..., description="Invitation ID"),
    ctx: ActionContext = Depends(get_action_context),
):
    return envelope_response(await actions.get_invitation(ctx, invitation_id), InvitationRead)


# PUBLIC_INTERFACE
@router.patch("/{invitation_id}", response_model=Envelope[InvitationRead], summary="Update invitation")
async def update_invitation(
    payload: InvitationUpdate,
    invitation_id: UUID = Path(..., description="Invitation ID"),
    ctx: ActionContext = Depends(get_action_context),
):
    result = await actions.update_invitation(ctx, invitation_id, payload.model_dump(exclude_unset=True))
    return envelope_response(result, InvitationRead)


# PUBLIC_INTERFACE
@router.delete("/{invitation_id}", response_model=Envelope[InvitationRead], summary="Delete invitation")
async def delete_invitation(
    invitation_id: UUID = Path(..., description="Invitation ID"),
    ctx: ActionContext = Depends(get_action_context),
):
    return envelope_response(await actions.delete_invitation(ctx, invitation_id), InvitationRead)
