"""
Outbound email: template rendering, mailer selection, Resend delivery failures
and the invitation service's send-after-commit behaviour.
"""

from datetime import datetime, timezone

import pytest
import requests
from sqlalchemy import func, select

from quantura.core.errors import ErrorCode
from quantura.core.settings import AppSettings
from quantura.db.models.invitation import Invitation
from quantura.schemas.invitation import InvitationCreate
from quantura.services.invitations import InvitationService
from quantura.services.notifications import (
    EmailMessage,
    LogMailer,
    MailDeliveryError,
    Mailer,
    ResendMailer,
    build_invitation_message,
    get_mailer,
    invitation_link,
)


class FailingMailer(Mailer):
    async def send(self, message: EmailMessage) -> None:
        raise MailDeliveryError("provider down")


class TestRendering:
    def test_link_encodes_code(self):
        link = invitation_link("https://app.example.com/", "a b")
        assert link == "https://app.example.com/auth/accept-invitation?code=a+b"

    def test_message_mentions_business_inviter_and_link(self):
        message = build_invitation_message(
            to="guest@example.com",
            code="abc123",
            business_name="Corner <Shop>",
            base_url="https://app.example.com",
            invited_by_name="Olive",
            expires_at=datetime(2030, 5, 1, tzinfo=timezone.utc),
        )

        assert message.subject == "Join Corner <Shop> on Quantura"
        assert "https://app.example.com/auth/accept-invitation?code=abc123" in message.html
        assert "Olive" in message.html
        # Business names are escaped in the HTML body.
        assert "Corner &lt;Shop&gt;" in message.html


class TestMailerSelection:
    def test_log_backend_by_default(self):
        assert isinstance(get_mailer(AppSettings(MAIL_BACKEND="log")), LogMailer)

    def test_resend_requires_api_key(self):
        with pytest.raises(ValueError):
            get_mailer(AppSettings(MAIL_BACKEND="resend", RESEND_API_KEY=None))

    def test_resend_backend(self):
        mailer = get_mailer(AppSettings(MAIL_BACKEND="resend", RESEND_API_KEY="re_test"))
        assert isinstance(mailer, ResendMailer)
        assert mailer.api_key == "re_test"


class TestResendMailer:
    async def test_posts_message(self, monkeypatch):
        calls = []

        class FakeResponse:
            def raise_for_status(self):
                return None

            def json(self):
                return {"id": "email_1"}

        def fake_post(url, json=None, headers=None, timeout=None):
            calls.append((url, json, headers))
            return FakeResponse()

        monkeypatch.setattr(requests, "post", fake_post)
        mailer = ResendMailer(api_key="re_test", sender="Shop <shop@example.com>")

        await mailer.send(EmailMessage(to="guest@example.com", subject="Hi", html="<p>Hi</p>"))

        [(url, payload, headers)] = calls
        assert url == "https://api.resend.com/emails"
        assert payload["to"] == ["guest@example.com"]
        assert headers["Authorization"] == "Bearer re_test"

    async def test_transport_error_becomes_delivery_error(self, monkeypatch):
        def fake_post(*args, **kwargs):
            raise requests.exceptions.ConnectionError("no route")

        monkeypatch.setattr(requests, "post", fake_post)
        mailer = ResendMailer(api_key="re_test", sender="shop@example.com")

        with pytest.raises(MailDeliveryError):
            await mailer.send(EmailMessage(to="guest@example.com", subject="Hi", html="<p>Hi</p>"))


class TestInvitationService:
    async def test_failed_send_reports_failure_but_keeps_invitation(self, session, cache, settings, owner, business_id):
        service = InvitationService(session, cache, FailingMailer(), settings)

        result = await service.invite(business_id, owner.id, owner.name, InvitationCreate(email="guest@example.com"))

        assert result.error is ErrorCode.FAILED_REQUEST
        stored = (await session.execute(select(func.count(Invitation.id)))).scalar_one()
        assert stored == 1

    async def test_batch_send_failures_are_not_fatal(self, session, cache, settings, owner, business_id):
        service = InvitationService(session, cache, FailingMailer(), settings)
        items = [InvitationCreate(email="a@example.com"), InvitationCreate(email="b@example.com")]

        result = await service.invite_many(business_id, owner.id, owner.name, items)

        assert result.is_ok
        assert len(result.data) == 2

    async def test_rejected_invitation_sends_nothing(self, session, cache, settings, owner, business_id):
        mailer = LogMailer()
        service = InvitationService(session, cache, mailer, settings)

        result = await service.invite(business_id, owner.id, owner.name, InvitationCreate(email=""))

        assert result.error is ErrorCode.MISSING_INPUT
        assert mailer.outbox == []
