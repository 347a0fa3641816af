"""
Contact form relay.

Public endpoint that forwards a contact submission to the service mailbox.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status

from app.core.email import MailSender, get_mail_sender
from app.core.errors import TransportError
from app.schemas.contact import ContactSubmission, MessageResponse
from app.services.contact_service import ContactService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_contact_service(
    mail_sender: MailSender = Depends(get_mail_sender),
) -> ContactService:
    """Return contact service instance used by the contact endpoint."""
    return ContactService(mail_sender)


@router.post(
    "/send-email",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Send contact form",
    description="Relays a contact form submission to the service mailbox.",
)
async def send_email(
    submission: Optional[ContactSubmission] = Body(None),
    service: ContactService = Depends(get_contact_service),
) -> MessageResponse:
    try:
        await service.send_contact_email(submission or ContactSubmission())
    except TransportError as exc:
        logger.error("Error sending email: %s", exc, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send email",
        ) from exc

    return MessageResponse(message="Email sent successfully")
