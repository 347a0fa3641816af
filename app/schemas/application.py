from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".pdf"}


class DocumentField(str, Enum):
    """Document slots accepted by the application form, in registration order."""

    PASSPORT_FRONT = "passport_front"
    PASSPORT_BACK = "passport_back"
    PHOTO = "photo"
    EDUCATION = "education"
    EXPERIENCE = "experience"
    AADHAAR = "aadhaar"
    PAN = "pan"
    BIRTH_CERTIFICATE = "birth_certificate"


class UploadedDocument(BaseModel):
    field_name: DocumentField
    original_name: str
    stored_path: str
    size_bytes: int = Field(..., ge=0)


DocumentMap = Dict[DocumentField, List[UploadedDocument]]


class JobApplication(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    job_title: Optional[str] = Field(None, alias="jobTitle")
    documents: List[UploadedDocument] = Field(default_factory=list)

    model_config = {"populate_by_name": True}
