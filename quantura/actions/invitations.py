from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from quantura.core.permissions import Permission
from quantura.core.result import Result
from quantura.repositories.invitation import InvitationRepository
from quantura.schemas.invitation import InvitationCreate
from quantura.services.invitations import InvitationService
from .factory import ActionContext, Principal, create_protected_action, create_public_action


def _repo(ctx: ActionContext) -> InvitationRepository:
    return ctx.repository(InvitationRepository, ttl_hours=ctx.settings.INVITATION_TTL_HOURS)


def _service(ctx: ActionContext) -> InvitationService:
    return InvitationService(ctx.session, ctx.cache, ctx.mailer, ctx.settings)


async def _get_invitations(ctx: ActionContext, principal: Principal) -> Result:
    return await _repo(ctx).get_all_cached(principal.business_id)


async def _get_invitation(ctx: ActionContext, principal: Principal, invitation_id: UUID) -> Result:
    return await _repo(ctx).get_by_id(invitation_id, principal.business_id)


async def _create_invitation(ctx: ActionContext, principal: Principal, payload: InvitationCreate) -> Result:
    return await _service(ctx).invite(principal.business_id, principal.id, principal.name, payload)


async def _create_invitations(
    ctx: ActionContext, principal: Principal, payloads: List[InvitationCreate]
) -> Result:
    return await _service(ctx).invite_many(principal.business_id, principal.id, principal.name, payloads or [])


async def _update_invitation(
    ctx: ActionContext, principal: Principal, invitation_id: UUID, updates: Dict[str, Any]
) -> Result:
    return await _repo(ctx).update(invitation_id, principal.business_id, principal.id, updates)


async def _delete_invitation(ctx: ActionContext, principal: Principal, invitation_id: UUID) -> Result:
    return await _repo(ctx).remove(invitation_id, principal.business_id, principal.id)


async def _respond_to_invitation(ctx: ActionContext, code: str, action: str) -> Result:
    return await _repo(ctx).respond(code, action)


async def _set_password_for_invitation(
    ctx: ActionContext, email: str, code: str, password: str, name: Optional[str] = None
) -> Result:
    return await _repo(ctx).set_password_for_invitation(email, code, password, name=name)


get_invitations = create_protected_action(Permission.INVITATION_VIEW, _get_invitations)
get_invitation = create_protected_action(Permission.INVITATION_VIEW, _get_invitation)
create_invitation = create_protected_action(Permission.INVITATION_CREATE, _create_invitation)
create_invitations = create_protected_action(Permission.INVITATION_CREATE, _create_invitations)
update_invitation = create_protected_action(Permission.INVITATION_UPDATE, _update_invitation)
delete_invitation = create_protected_action(Permission.INVITATION_DELETE, _delete_invitation)
# Invitees answer from the emailed link, usually before they have an account.
respond_to_invitation = create_public_action(_respond_to_invitation)
set_password_for_invitation = create_public_action(_set_password_for_invitation)
