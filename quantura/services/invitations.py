from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from quantura.core.cache import TaggedTTLCache
from quantura.core.errors import ErrorCode
from quantura.core.result import Result
from quantura.core.settings import AppSettings
from quantura.db.models.invitation import Invitation
from quantura.repositories.business import BusinessRepository
from quantura.repositories.invitation import InvitationRepository
from quantura.schemas.invitation import InvitationCreate
from quantura.services.base import BaseService
from quantura.services.notifications import Mailer, build_invitation_message

logger = logging.getLogger(__name__)


class InvitationService(BaseService):
    """
    Domain service for inviting people into a business.

    Creates invitations through the repository and emails each invitee once
    the invitation has committed.
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: Optional[TaggedTTLCache],
        mailer: Mailer,
        settings: AppSettings,
    ) -> None:
        super().__init__(session, cache)
        self.mailer = mailer
        self.settings = settings
        self.invitations = InvitationRepository(session, cache, ttl_hours=settings.INVITATION_TTL_HOURS)
        self.businesses = BusinessRepository(session, cache)

    # PUBLIC_INTERFACE
    async def invite(
        self,
        business_id: UUID,
        inviter_id: UUID,
        inviter_name: Optional[str],
        data: InvitationCreate,
    ) -> Result[Invitation]:
        """
        Create an invitation and email it.

        A failed send is reported as FAILED_REQUEST; the invitation itself
        stays committed and can be re-sent.
        """
        created = await self.invitations.create(business_id, inviter_id, data)
        if not created.is_ok:
            return created
        business_name = await self._business_name(business_id)
        if business_name is None:
            return Result.fail(ErrorCode.FAILED_REQUEST)
        try:
            await self._send(created.data, business_name, inviter_name)
        except Exception:
            logger.exception("Failed to send invitation email to %s", created.data.email)
            return Result.fail(ErrorCode.FAILED_REQUEST)
        return created

    # PUBLIC_INTERFACE
    async def invite_many(
        self,
        business_id: UUID,
        inviter_id: UUID,
        inviter_name: Optional[str],
        items: List[InvitationCreate],
    ) -> Result[List[Invitation]]:
        """Create a batch of invitations; individual send failures are only logged."""
        created = await self.invitations.create_many(business_id, inviter_id, items)
        if not created.is_ok:
            return created
        business_name = await self._business_name(business_id)
        if business_name is None:
            return Result.fail(ErrorCode.FAILED_REQUEST)
        for invitation in created.data:
            try:
                await self._send(invitation, business_name, inviter_name)
            except Exception:
                logger.exception("Failed to send invitation email to %s", invitation.email)
        return created

    async def _business_name(self, business_id: UUID) -> Optional[str]:
        business = await self.businesses.get_by_id_cached(business_id)
        if not business.is_ok:
            logger.error("Business %s unavailable while sending invitations: %s", business_id, business.error)
            return None
        return business.data.name

    async def _send(self, invitation: Invitation, business_name: str, inviter_name: Optional[str]) -> None:
        message = build_invitation_message(
            to=invitation.email,
            code=invitation.code,
            business_name=business_name,
            base_url=self.settings.PUBLIC_BASE_URL,
            invited_by_name=inviter_name,
            expires_at=invitation.expires_at,
        )
        await self.mailer.send(message)
