from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import requests
from jinja2 import Environment, PackageLoader, select_autoescape
from starlette.concurrency import run_in_threadpool

from quantura.core.settings import AppSettings

logger = logging.getLogger(__name__)

_templates = Environment(
    loader=PackageLoader("quantura", "templates"),
    autoescape=select_autoescape(["html"]),
)


@dataclass(frozen=True)
class EmailMessage:
    """A pre-rendered outbound email."""
    to: str
    subject: str
    html: str


class MailDeliveryError(Exception):
    """The email provider rejected or failed to accept a message."""


class Mailer:
    """Outbound email dispatch."""

    async def send(self, message: EmailMessage) -> None:
        raise NotImplementedError


class LogMailer(Mailer):
    """
    Development mailer: keeps sent messages in `outbox` and logs them.

    Nothing leaves the process, which makes it the default for local runs and tests.
    """

    def __init__(self) -> None:
        self.outbox: List[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        self.outbox.append(message)
        logger.info("Email queued to=%s subject=%r", message.to, message.subject)


class ResendMailer(Mailer):
    """Mailer backed by the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        api_url: str = "https://api.resend.com/emails",
        timeout: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.sender = sender
        self.api_url = api_url
        self.timeout = timeout

    def _post(self, message: EmailMessage) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        try:
            response = requests.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            raise MailDeliveryError(f"Failed to send email to {message.to}") from exc
        return response.json()

    async def send(self, message: EmailMessage) -> None:
        # requests is blocking; keep it off the event loop.
        body = await run_in_threadpool(self._post, message)
        logger.info("Email sent to=%s id=%s", message.to, body.get("id"))


# PUBLIC_INTERFACE
def get_mailer(settings: AppSettings) -> Mailer:
    """Return the mailer selected by MAIL_BACKEND."""
    if settings.MAIL_BACKEND == "resend":
        if not settings.RESEND_API_KEY:
            raise ValueError("RESEND_API_KEY is required when MAIL_BACKEND=resend")
        return ResendMailer(
            api_key=settings.RESEND_API_KEY,
            sender=settings.MAIL_FROM,
            api_url=settings.RESEND_API_URL,
            timeout=settings.MAIL_TIMEOUT_SECONDS,
        )
    return LogMailer()


# PUBLIC_INTERFACE
def invitation_link(base_url: str, code: str) -> str:
    """Link the invitee follows to accept or decline."""
    return f"{base_url.rstrip('/')}/auth/accept-invitation?{urlencode({'code': code})}"


# PUBLIC_INTERFACE
def render_invitation_email(
    *,
    invite_link: str,
    business_name: str,
    invited_by_name: Optional[str] = None,
    expires_at: Optional[datetime] = None,
) -> str:
    """Render the invitation email body."""
    template = _templates.get_template("invitation_email.html")
    return template.render(
        invite_link=invite_link,
        business_name=business_name,
        invited_by_name=invited_by_name,
        expires_at=expires_at,
    )


# PUBLIC_INTERFACE
def build_invitation_message(
    *,
    to: str,
    code: str,
    business_name: str,
    base_url: str,
    invited_by_name: Optional[str] = None,
    expires_at: Optional[datetime] = None,
) -> EmailMessage:
    """Compose the invitation email for one invitee."""
    html = render_invitation_email(
        invite_link=invitation_link(base_url, code),
        business_name=business_name,
        invited_by_name=invited_by_name,
        expires_at=expires_at,
    )
    return EmailMessage(to=to, subject=f"Join {business_name} on Quantura", html=html)
