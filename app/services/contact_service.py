from __future__ import annotations

import logging

from app.core.config import settings
from app.core.email import MailSender
from app.core.errors import MissingFieldsError, TransportError
from app.schemas.contact import ContactSubmission
from app.schemas.mail import OutgoingMessage

logger = logging.getLogger(__name__)


class ContactService:
    """Service to validate and relay contact form submissions."""

    def __init__(self, mail_sender: MailSender):
        self.mail_sender = mail_sender

    def validate(self, submission: ContactSubmission) -> None:
        if not submission.name or not submission.email or not submission.message:
            raise MissingFieldsError()

    def build_email_message(self, submission: ContactSubmission) -> OutgoingMessage:
        mailbox = settings.EMAIL_USER or ""
        return OutgoingMessage(
            sender=mailbox,
            reply_to=submission.email,
            to=mailbox,
            subject=f"New Contact Form Submission from {submission.name}",
            text=(
                f"Name: {submission.name}\n"
                f"Email: {submission.email}\n"
                f"Message: {submission.message}"
            ),
        )

    async def send_contact_email(self, submission: ContactSubmission) -> None:
        """Validate ``submission`` and deliver it to the service mailbox."""
        logger.info(
            "Contact form data received name=%s email=%s",
            submission.name,
            submission.email,
        )
        self.validate(submission)

        message = self.build_email_message(submission)
        try:
            await self.mail_sender.send(message)
        except TransportError:
            raise
        except Exception as exc:
            raise TransportError(str(exc)) from exc
        logger.info("Contact email sent successfully")
