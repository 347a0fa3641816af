"""
Job applications.

Accepts the application form with up to eight identity and qualification
documents and emails it to the service mailbox with the documents attached.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.email import MailSender, get_mail_sender
from app.core.errors import TransportError
from app.schemas.application import JobApplication
from app.schemas.contact import MessageResponse
from app.services.application_service import ApplicationService
from app.services.file_intake import IntakeResult, accept_application, ordered_documents

logger = logging.getLogger(__name__)

router = APIRouter()


def get_application_service(
    mail_sender: MailSender = Depends(get_mail_sender),
) -> ApplicationService:
    return ApplicationService(mail_sender)


@router.post(
    "/apply-job",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Submit job application",
    description=(
        "Accepts name, email, phone and jobTitle plus optional documents "
        "(passport_front, passport_back, photo, education, experience, "
        "aadhaar, pan, birth_certificate; .pdf/.jpg/.jpeg/.png, 6MB each)."
    ),
)
async def apply_job(
    intake: IntakeResult = Depends(accept_application),
    service: ApplicationService = Depends(get_application_service),
) -> MessageResponse:
    # The body is parsed by the intake dependency, not by Form() params,
    # so documents are size-checked while they stream in.
    application = JobApplication(
        name=intake.fields.get("name"),
        email=intake.fields.get("email"),
        phone=intake.fields.get("phone"),
        job_title=intake.fields.get("jobTitle"),
        documents=ordered_documents(intake.documents),
    )

    try:
        await service.submit(application)
    except TransportError as exc:
        logger.error("apply-job error: %s", exc, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process application",
        ) from exc

    return MessageResponse(message="Application sent successfully")
