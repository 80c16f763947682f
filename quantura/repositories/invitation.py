from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode
from uuid import UUID

from sqlalchemy import delete, select

from quantura.core.cache import cache_key, tenant_tag
from quantura.core.clock import ensure_aware, utcnow
from quantura.core.errors import ErrorCode, MissingInputError, NotFoundError, RepositoryError
from quantura.core.permissions import Role
from quantura.core.result import Result
from quantura.core.security import generate_invitation_code, get_password_hash
from quantura.db.models.invitation import Invitation, InvitationStatus
from quantura.db.models.security import User
from quantura.schemas.invitation import InvitationCreate
from .base import BaseRepository, Change, is_blank, returns_result, snapshot
from .security import normalize_email

SIGN_IN_PATH = "/auth/sign-in"
SET_PASSWORD_PATH = "/auth/set-password"

RESPONSES = {"accept", "decline"}
UPDATABLE_FIELDS = ("email", "role", "expires_at")


def _as_role(value: Any) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise MissingInputError() from None


class InvitationRepository(BaseRepository):
    """
    Repository for invitations and their pending -> accepted/declined lifecycle.

    Accepting grants the invitee membership of the inviting business in the
    same transaction as the status change.
    """

    model_name = "invitation"
    cache_namespace = "invitations"

    def __init__(self, session, cache=None, ttl_hours: int = 24 * 7) -> None:
        super().__init__(session, cache)
        self.ttl_hours = ttl_hours

    @returns_result("Failed to fetch invitations")
    async def get_all(self, business_id: UUID) -> Result[List[Invitation]]:
        if is_blank(business_id):
            raise MissingInputError()
        stmt = (
            select(Invitation)
            .where(Invitation.business_id == business_id)
            .order_by(Invitation.created_at.desc())
        )
        res = await self.scalars(stmt)
        return Result.ok(list(res))

    async def get_all_cached(self, business_id: UUID) -> Result[List[Invitation]]:
        return await self.cached(
            cache_key(self.cache_namespace, business_id, "all"),
            lambda: self.get_all(business_id),
            tags=[tenant_tag(self.cache_namespace, business_id)],
        )

    @returns_result("Failed to fetch invitation")
    async def get_by_id(self, invitation_id: UUID, business_id: UUID) -> Result[Invitation]:
        if is_blank(invitation_id) or is_blank(business_id):
            raise MissingInputError()
        return Result.ok(await self._get(invitation_id, business_id))

    @returns_result("Failed to create invitation")
    async def create(
        self, business_id: UUID, user_id: Optional[UUID], data: InvitationCreate
    ) -> Result[Invitation]:
        """Create a pending invitation with a fresh code and expiry."""
        if is_blank(business_id) or is_blank(data.email):
            raise MissingInputError()

        async def mutation() -> Change:
            row = self._build(business_id, user_id, data)
            await self.add(row)
            await self.session.flush()
            return Change(row, row.id, business_id, self._public(row))

        row = await self.mutate_with_audit(
            action="create-invitation", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id)
        return Result.ok(row)

    @returns_result("Failed to create invitations")
    async def create_many(
        self, business_id: UUID, user_id: Optional[UUID], items: List[InvitationCreate]
    ) -> Result[List[Invitation]]:
        if is_blank(business_id) or not items or any(is_blank(i.email) for i in items):
            raise MissingInputError()

        async def mutation() -> List[Change]:
            rows = [self._build(business_id, user_id, item) for item in items]
            await self.add_all(rows)
            await self.session.flush()
            return [Change(row, row.id, business_id, self._public(row)) for row in rows]

        rows = await self.mutate_with_audit(
            action="create-invitation", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id)
        return Result.ok(rows)

    @returns_result("Failed to update invitation")
    async def update(
        self,
        invitation_id: UUID,
        business_id: UUID,
        user_id: Optional[UUID],
        updates: Dict[str, Any],
    ) -> Result[Invitation]:
        updates = {k: v for k, v in (updates or {}).items() if k in UPDATABLE_FIELDS}
        if is_blank(invitation_id) or is_blank(business_id) or not updates:
            raise MissingInputError()
        if "email" in updates and not is_blank(updates["email"]):
            updates["email"] = normalize_email(updates["email"])
        if "role" in updates:
            updates["role"] = _as_role(updates["role"])

        async def mutation() -> Change:
            row = await self._get(invitation_id, business_id)
            if row.status != InvitationStatus.PENDING.value:
                raise RepositoryError(ErrorCode.INVITATION_ALREADY_PROCESSED)
            applied = self.apply_updates(row, updates, required=("email", "role"))
            await self.session.flush()
            return Change(row, row.id, business_id, applied)

        row = await self.mutate_with_audit(
            action="update-invitation", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id)
        return Result.ok(row)

    @returns_result("Failed to delete invitation")
    async def remove(
        self, invitation_id: UUID, business_id: UUID, user_id: Optional[UUID]
    ) -> Result[Invitation]:
        if is_blank(invitation_id) or is_blank(business_id):
            raise MissingInputError()

        async def mutation() -> Change:
            row = await self._get(invitation_id, business_id)
            previous = self._public(row)
            await self.execute(
                delete(Invitation).where(
                    Invitation.id == invitation_id, Invitation.business_id == business_id
                )
            )
            return Change(row, row.id, business_id, previous)

        row = await self.mutate_with_audit(
            action="delete-invitation", performed_by=user_id, mutation=mutation
        )
        self.revalidate(business_id)
        return Result.ok(row)

    @returns_result("Failed to respond to invitation")
    async def respond(self, code: str, action: str) -> Result[Dict[str, Any]]:
        """
        Accept or decline a pending invitation.

        Accepting without an account leaves the invitation pending and returns
        the set-password page to continue on.
        """
        if is_blank(code) or action not in RESPONSES:
            raise MissingInputError()
        invitation = await self._get_pending(code)
        user = await self.scalar_one_or_none(
            select(User).where(User.email == normalize_email(invitation.email))
        )

        if action == "decline":
            await self.mutate_with_audit(
                action="decline-invitation",
                performed_by=user.id if user is not None else None,
                mutation=lambda: self._transition(invitation, InvitationStatus.DECLINED),
            )
            self.revalidate(invitation.business_id)
            return Result.ok({"status": InvitationStatus.DECLINED.value, "redirect": "/"})

        if user is None:
            query = urlencode({"code": code, "email": invitation.email})
            return Result.ok(
                {"status": InvitationStatus.PENDING.value, "redirect": f"{SET_PASSWORD_PATH}?{query}"}
            )
        if user.business_id is not None and user.business_id != invitation.business_id:
            raise RepositoryError(ErrorCode.USER_ALREADY_IN_BUSINESS)

        already_member = user.business_id == invitation.business_id

        async def accept() -> Change:
            # existing members keep their current role
            if not already_member:
                user.business_id = invitation.business_id
                user.role = invitation.role
                await self.session.flush()
            return await self._transition(
                invitation, InvitationStatus.ACCEPTED, user_id=user.id, role=user.role
            )

        await self.mutate_with_audit(action="accept-invitation", performed_by=user.id, mutation=accept)
        self.revalidate(invitation.business_id, self.cache_namespace, "business")
        return Result.ok({"status": InvitationStatus.ACCEPTED.value, "redirect": "/"})

    @returns_result("Failed to set password for invitation")
    async def set_password_for_invitation(
        self, email: str, code: str, password: str, name: Optional[str] = None
    ) -> Result[Dict[str, Any]]:
        """Create the invitee's account inside the business and accept the invitation."""
        if is_blank(email) or is_blank(code) or is_blank(password):
            raise MissingInputError()
        invitation = await self._get_pending(code)
        if normalize_email(invitation.email) != normalize_email(email):
            raise RepositoryError(ErrorCode.INVITATION_NOT_FOUND)
        existing = await self.scalar_one_or_none(
            select(User).where(User.email == normalize_email(email))
        )
        if existing is not None:
            raise RepositoryError(ErrorCode.USER_ALREADY_EXISTS)
        user_id = uuid.uuid4()

        async def accept() -> Change:
            user = User(
                id=user_id,
                email=normalize_email(email),
                name=name,
                hashed_password=get_password_hash(password),
                business_id=invitation.business_id,
                role=invitation.role,
            )
            await self.add(user)
            await self.session.flush()
            return await self._transition(invitation, InvitationStatus.ACCEPTED, user_id=user_id)

        await self.mutate_with_audit(action="accept-invitation", performed_by=user_id, mutation=accept)
        self.revalidate(invitation.business_id, self.cache_namespace, "business")
        return Result.ok({"status": InvitationStatus.ACCEPTED.value, "redirect": SIGN_IN_PATH})

    async def _get(self, invitation_id: UUID, business_id: UUID) -> Invitation:
        stmt = select(Invitation).where(
            Invitation.id == invitation_id, Invitation.business_id == business_id
        )
        row = await self.scalar_one_or_none(stmt)
        if row is None:
            raise NotFoundError()
        return row

    async def _get_pending(self, code: str) -> Invitation:
        row = await self.scalar_one_or_none(select(Invitation).where(Invitation.code == code.strip()))
        if row is None:
            raise RepositoryError(ErrorCode.INVITATION_NOT_FOUND)
        if row.status != InvitationStatus.PENDING.value:
            raise RepositoryError(ErrorCode.INVITATION_ALREADY_PROCESSED)
        if ensure_aware(row.expires_at) <= utcnow():
            raise RepositoryError(ErrorCode.INVITATION_EXPIRED)
        return row

    async def _transition(
        self,
        invitation: Invitation,
        status: InvitationStatus,
        user_id: Optional[UUID] = None,
        role: Optional[str] = None,
    ) -> Change:
        now = utcnow()
        invitation.status = status.value
        invitation.responded_at = now
        invitation.updated_at = now
        await self.session.flush()
        changes: Dict[str, Any] = {"status": status.value}
        if user_id is not None:
            changes.update(user_id=user_id, role=role or invitation.role)
        return Change(invitation, invitation.id, invitation.business_id, changes)

    def _build(self, business_id: UUID, user_id: Optional[UUID], data: InvitationCreate) -> Invitation:
        return Invitation(
            business_id=business_id,
            email=normalize_email(data.email),
            role=data.role.value,
            code=generate_invitation_code(),
            status=InvitationStatus.PENDING.value,
            expires_at=utcnow() + timedelta(hours=self.ttl_hours),
            invited_by=user_id,
        )

    @staticmethod
    def _public(row: Invitation) -> Dict[str, Any]:
        values = snapshot(row)
        values.pop("code", None)
        return values
