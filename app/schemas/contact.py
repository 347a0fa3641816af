from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ContactSubmission(BaseModel):
    # Presence is checked by ContactService so that empty values share the
    # same 400 response as absent ones.
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None


class MessageResponse(BaseModel):
    message: str = Field(..., examples=["Email sent successfully"])
