from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class MailAttachment(BaseModel):
    filename: str
    path: str


class OutgoingMessage(BaseModel):
    """A single email handed to the mail sender."""

    sender: str
    reply_to: Optional[str] = None
    to: str
    subject: str
    text: Optional[str] = None
    html: Optional[str] = None
    attachments: List[MailAttachment] = Field(default_factory=list)

    @model_validator(mode="after")
    def require_body(self) -> "OutgoingMessage":
        if self.text is None and self.html is None:
            raise ValueError("OutgoingMessage needs a text or html body")
        return self
