"""
ChallengeKit - Email Service

Supports two delivery methods:
    1. Resend HTTP API (recommended for cloud platforms like Render/Railway)
    2. SMTP fallback (for local dev or self-hosted with Gmail, SES, etc.)

Resend is checked first. If RESEND_API_KEY is not set, falls back to SMTP.
Gracefully degrades: if neither is configured, logs a warning and returns False.

A rejected message returns False. A transport that cannot be reached or
times out raises TransientDependencyFailure so the caller can retry.
"""
import logging
from typing import Optional, Protocol

import aiosmtplib
import httpx

from ..auth.exceptions import TransientDependencyFailure
from ..config import EmailSettings, settings

logger = logging.getLogger("challengekit.email")

EMAIL_CHANNEL = "Email"


class Notifier(Protocol):
    async def send(self, channel: str, subject: str, body: str, recipient: str) -> bool: ...


class EmailService:
    """Async email service with Resend HTTP API and SMTP fallback."""

    RESEND_API_URL = "https://api.resend.com/emails"

    def __init__(self, email_settings: Optional[EmailSettings] = None, transport=None):
        self.config = email_settings or settings.email
        # Optional httpx transport, used to stub the Resend API
        self._transport = transport

    def is_configured(self) -> bool:
        """Check if any email backend is configured."""
        return bool(
            self.config.resend_api_key
            or (self.config.smtp_host and self.config.smtp_username)
        )

    def _use_resend(self) -> bool:
        """Check if Resend API key is set."""
        return bool(self.config.resend_api_key)

    @property
    def _sender(self) -> str:
        return f"{self.config.from_name} <{self.config.from_email}>"

    async def _send_via_resend(
        self, to_email: str, subject: str, html_body: str
    ) -> bool:
        """Send email via Resend HTTP API."""
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self.config.timeout_seconds
            ) as client:
                response = await client.post(
                    self.RESEND_API_URL,
                    headers={
                        "Authorization": f"Bearer {self.config.resend_api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": self._sender,
                        "to": [to_email],
                        "subject": subject,
                        "html": html_body,
                    },
                )
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            logger.error("Resend unreachable while sending to %s: %s", to_email, e)
            raise TransientDependencyFailure("email", f"Resend unreachable: {e}") from e

        if response.status_code == 200:
            logger.info("Email sent via Resend to %s: %s", to_email, subject)
            return True
        if response.status_code == 429 or response.status_code >= 500:
            logger.error("Resend temporarily unavailable (%s)", response.status_code)
            raise TransientDependencyFailure(
                "email", f"Resend returned {response.status_code}"
            )

        logger.error(
            "Resend API error (%s): %s", response.status_code, response.text
        )
        return False

    async def _send_via_smtp(
        self, to_email: str, subject: str, html_body: str
    ) -> bool:
        """Send email via SMTP."""
        from email.mime.text import MIMEText

        message = MIMEText(html_body, "html")
        message["From"] = self._sender
        message["To"] = to_email
        message["Subject"] = subject

        try:
            await aiosmtplib.send(
                message,
                hostname=self.config.smtp_host,
                port=self.config.smtp_port,
                username=self.config.smtp_username,
                password=self.config.smtp_password,
                start_tls=self.config.smtp_use_tls,
                timeout=self.config.timeout_seconds,
            )
        except (aiosmtplib.SMTPConnectError, aiosmtplib.SMTPTimeoutError,
                aiosmtplib.SMTPServerDisconnected) as e:
            logger.error("SMTP server unreachable while sending to %s: %s", to_email, e)
            raise TransientDependencyFailure("email", f"SMTP unreachable: {e}") from e
        except aiosmtplib.SMTPException as e:
            logger.error("Failed to send email via SMTP to %s: %s", to_email, e)
            return False

        logger.info("Email sent via SMTP to %s: %s", to_email, subject)
        return True

    async def send_email(self, to_email: str, subject: str, html_body: str) -> bool:
        """Send an email. Uses Resend if configured, otherwise SMTP."""
        if not self.is_configured():
            logger.warning("Email not configured, skipping send to %s", to_email)
            return False

        if self._use_resend():
            return await self._send_via_resend(to_email, subject, html_body)
        else:
            return await self._send_via_smtp(to_email, subject, html_body)

    async def send(self, channel: str, subject: str, body: str, recipient: str) -> bool:
        """
        Deliver a rendered message on a channel.

        Only the "Email" channel exists.

        Raises:
            ValueError: for an unknown channel
            TransientDependencyFailure: if the transport is unreachable
        """
        if channel != EMAIL_CHANNEL:
            raise ValueError(f"Unsupported notification channel: {channel}")
        return await self.send_email(recipient, subject, body)

