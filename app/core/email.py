from __future__ import annotations

import asyncio
import logging
import mimetypes
import re
import smtplib
from email.message import EmailMessage
from pathlib import Path
from typing import Optional

from app.core.config import settings
from app.core.errors import TransportError
from app.schemas.mail import OutgoingMessage

logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r"[\r\n]+\s*")


def _header_value(value: str) -> str:
    """Fold submitted text onto one line so it is safe as a header value."""
    return _LINE_BREAKS.sub(" ", value).strip()


class MailSender:
    """Delivers outgoing messages through the configured SMTP relay.

    Every send opens a fresh connection, verifies the relay (STARTTLS, login,
    NOOP) and only then transmits. There is exactly one attempt per call.
    """

    def __init__(
        self,
        host: str,
        port: int,
        user: Optional[str],
        password: Optional[str],
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "MailSender":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.EMAIL_USER,
            password=(
                settings.EMAIL_PASS.get_secret_value() if settings.EMAIL_PASS else None
            ),
            timeout=settings.SMTP_TIMEOUT,
        )

    def build_email_message(self, message: OutgoingMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = _header_value(message.sender)
        msg["To"] = _header_value(message.to)
        if message.reply_to:
            msg["Reply-To"] = _header_value(message.reply_to)
        msg["Subject"] = _header_value(message.subject)

        if message.html is not None:
            if message.text is not None:
                msg.set_content(message.text)
                msg.add_alternative(message.html, subtype="html")
            else:
                msg.set_content(message.html, subtype="html")
        else:
            msg.set_content(message.text)

        for attachment in message.attachments:
            content_type, _ = mimetypes.guess_type(attachment.filename)
            maintype, subtype = ("application", "octet-stream")
            if content_type and "/" in content_type:
                maintype, subtype = content_type.split("/", 1)
            msg.add_attachment(
                Path(attachment.path).read_bytes(),
                maintype=maintype,
                subtype=subtype,
                filename=_header_value(attachment.filename),
            )

        return msg

    def _verify(self, server: smtplib.SMTP) -> None:
        server.ehlo()
        server.starttls()
        server.ehlo()
        server.login(self.user, self.password)
        code, reply = server.noop()
        if code != 250:
            raise smtplib.SMTPResponseException(code, reply)
        logger.info("SMTP server %s:%s is ready to send messages", self.host, self.port)

    def _send_sync(self, message: OutgoingMessage) -> None:
        if not self.user or not self.password:
            raise TransportError("Mail relay credentials are not configured")

        try:
            email_message = self.build_email_message(message)
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                self._verify(server)
                server.send_message(email_message)
        except (smtplib.SMTPException, OSError) as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc

    async def send(self, message: OutgoingMessage) -> None:
        """Verify the relay and deliver ``message``; raises ``TransportError``."""
        await asyncio.to_thread(self._send_sync, message)
        logger.info(
            "Email delivered subject=%r attachments=%s",
            message.subject,
            len(message.attachments),
        )


def get_mail_sender() -> MailSender:
    """Return the mail sender used by the request handlers."""
    return MailSender.from_settings()
