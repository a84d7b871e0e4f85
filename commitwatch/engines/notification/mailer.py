"""SMTP delivery for notification emails.

smtplib is blocking, so each send runs in a worker thread. Failures come
back as a :class:`DeliveryResult` rather than an exception: a lost email
is logged by the caller and never retried.
"""

from __future__ import annotations

import asyncio
import os
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

NOT_CONFIGURED = "Email service not configured"


@dataclass(frozen=True)
class DeliveryResult:
    success: bool
    error: str | None = None


class Mailer:
    """HTML mail over SMTP with STARTTLS, configured from ``COMMITWATCH_SMTP_*``."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        user: str | None = None,
        password: str | None = None,
        from_addr: str | None = None,
    ) -> None:
        env = os.environ
        self.host = env.get("COMMITWATCH_SMTP_HOST", "") if host is None else host
        self.port = port or int(env.get("COMMITWATCH_SMTP_PORT", "587"))
        self.user = env.get("COMMITWATCH_SMTP_USER", "") if user is None else user
        self.password = env.get("COMMITWATCH_SMTP_PASSWORD", "") if password is None else password
        self.from_addr = from_addr or env.get("COMMITWATCH_SMTP_FROM") or self.user

    @property
    def configured(self) -> bool:
        return bool(self.host)

    async def send(self, to: str, subject: str, html_body: str) -> DeliveryResult:
        if not self.configured:
            return DeliveryResult(success=False, error=NOT_CONFIGURED)
        message = self._build(to, subject, html_body)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            return DeliveryResult(success=False, error=f"{type(exc).__name__}: {exc}")
        return DeliveryResult(success=True)

    def _build(self, to: str, subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.from_addr
        message["To"] = to
        message.set_content("This message is best viewed in an HTML-capable mail client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=30) as server:
            server.starttls()
            if self.user:
                server.login(self.user, self.password)
            server.send_message(message)
