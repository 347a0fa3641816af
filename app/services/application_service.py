from __future__ import annotations

import html
import logging
from typing import Iterable, List

from app.core.config import settings
from app.core.email import MailSender
from app.core.errors import MissingFieldsError, TransportError
from app.schemas.application import JobApplication, UploadedDocument
from app.schemas.mail import MailAttachment, OutgoingMessage
from app.services.file_intake import remove_stored_file

logger = logging.getLogger(__name__)


def collect_attachments(documents: Iterable[UploadedDocument]) -> List[MailAttachment]:
    return [
        MailAttachment(filename=document.original_name, path=document.stored_path)
        for document in documents
    ]


class ApplicationService:
    """Service to validate, deliver and clean up job applications."""

    def __init__(self, mail_sender: MailSender):
        self.mail_sender = mail_sender

    def validate(self, application: JobApplication) -> None:
        # Documents are optional: only the scalar fields are required.
        if not (
            application.name
            and application.email
            and application.phone
            and application.job_title
        ):
            raise MissingFieldsError()

    def build_email_message(
        self, application: JobApplication, attachments: List[MailAttachment]
    ) -> OutgoingMessage:
        mailbox = settings.EMAIL_USER or ""
        body = (
            "<h3>New Job Application</h3>\n"
            f"<p><strong>Job:</strong> {html.escape(application.job_title)}</p>\n"
            f"<p><strong>Name:</strong> {html.escape(application.name)}</p>\n"
            f"<p><strong>Email:</strong> {html.escape(application.email)}</p>\n"
            f"<p><strong>Phone:</strong> {html.escape(application.phone)}</p>\n"
            "<p><strong>Note:</strong> All required documents attached.</p>\n"
        )
        return OutgoingMessage(
            sender=mailbox,
            reply_to=application.email,
            to=mailbox,
            subject=f"Job Application: {application.job_title} — {application.name}",
            html=body,
            attachments=attachments,
        )

    def cleanup(self, attachments: List[MailAttachment]) -> None:
        for attachment in attachments:
            remove_stored_file(attachment.path)

    async def submit(self, application: JobApplication) -> None:
        """Email ``application`` with its documents, then delete the staged files.

        Staged files are only removed after a successful send; on a transport
        failure they stay in the upload directory.
        """
        logger.info(
            "Job application data received name=%s email=%s phone=%s job_title=%s",
            application.name,
            application.email,
            application.phone,
            application.job_title,
        )
        self.validate(application)

        attachments = collect_attachments(application.documents)
        message = self.build_email_message(application, attachments)
        try:
            await self.mail_sender.send(message)
        except TransportError:
            raise
        except Exception as exc:
            raise TransportError(str(exc)) from exc

        self.cleanup(attachments)
        logger.info(
            "Job application email sent successfully attachments=%s", len(attachments)
        )
