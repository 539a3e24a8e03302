"""SMTP transport for the rendered HTML report.

``smtplib`` is blocking, so the send runs in ``asyncio.to_thread`` under an
``asyncio.wait_for`` timeout.  Any failure to hand the message to the
server surfaces as ``DeliveryError`` so the orchestrator retries the run.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from collections.abc import Sequence
from email.message import EmailMessage
from typing import Final

from Market_Pulse.utils.exceptions import DeliveryError

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS: Final[float] = 20.0
PLAIN_TEXT_FALLBACK: Final[str] = "This report requires an HTML-capable mail client."


class EmailTransport:
    """Sends one HTML message per report to a fixed recipient list.

    Usage::

        transport = EmailTransport(
            recipients=("me@example.com",),
            sender="bot@example.com",
            host="smtp.gmail.com",
            port=587,
            username="bot@example.com",
            password="app-password",
        )
        await transport.deliver(report.subject, html)
    """

    def __init__(
        self,
        *,
        recipients: Sequence[str],
        sender: str,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        timeout: float = SMTP_TIMEOUT_SECONDS,
    ) -> None:
        self._recipients = tuple(recipients)
        self._sender = sender
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._timeout = timeout

    @property
    def recipients(self) -> tuple[str, ...]:
        return self._recipients

    def build_message(self, subject: str, html_body: str) -> EmailMessage:
        """Assemble a multipart/alternative message with an HTML part."""
        msg = EmailMessage()
        msg["From"] = self._sender or self._username
        msg["To"] = ", ".join(self._recipients)
        msg["Subject"] = subject
        msg.set_content(PLAIN_TEXT_FALLBACK)
        msg.add_alternative(html_body, subtype="html")
        return msg

    async def deliver(self, subject: str, html_body: str) -> None:
        """Send the report.

        Raises:
            DeliveryError: If no recipients are configured or the SMTP
                exchange fails or times out.
        """
        if not self._recipients:
            raise DeliveryError("No email recipients configured (EMAIL_TO)")

        msg = self.build_message(subject, html_body)
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._send_sync, msg),
                timeout=self._timeout + 5,
            )
        except TimeoutError as exc:
            raise DeliveryError(f"SMTP send timed out after {self._timeout:.0f}s") from exc
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"SMTP send failed: {exc}") from exc

        logger.info("Email sent to %s: %s", ", ".join(self._recipients), subject)

    def _send_sync(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
            smtp.starttls()
            if self._username:
                smtp.login(self._username, self._password)
            smtp.send_message(msg)
