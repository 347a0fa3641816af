"""
File intake for job applications.

Parses the multipart body of an application as it arrives, validating each
document part and streaming it straight into the upload directory. Size,
type and field limits are enforced while parsing, so a rejected part is never
received in full.
"""
from __future__ import annotations

import asyncio
import logging
import random
import re
import time
from dataclasses import dataclass, field as dataclass_field
from pathlib import Path, PureWindowsPath
from typing import AsyncIterator, BinaryIO, Dict, Iterable, List, Optional, Set, Tuple

from fastapi import Depends, Request
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from app.core.config import settings
from app.core.errors import INVALID_BODY_MESSAGE, DocumentRejectedError, SubmissionError
from app.schemas.application import (
    ALLOWED_EXTENSIONS,
    DocumentField,
    DocumentMap,
    UploadedDocument,
)

logger = logging.getLogger(__name__)

NAME_ATTEMPTS = 5
MAX_FIELD_BYTES = 1024 * 1024  # scalar form values
BODY_OVERHEAD_BYTES = 1024 * 1024  # headers, boundaries and scalar fields

UNEXPECTED_FIELD_MESSAGE = "Unexpected field"
BAD_EXTENSION_MESSAGE = "Only .pdf, .jpg, .jpeg, .png allowed"
TOO_LARGE_MESSAGE = "File too large"
FIELD_TOO_LARGE_MESSAGE = "Field value too long"

_WHITESPACE = re.compile(r"\s+")
_KNOWN_FIELDS = {field.value: field for field in DocumentField}


def ensure_upload_dir(path: Path) -> Path:
    """Create the staging directory if it does not exist yet."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def remove_stored_file(path: str) -> bool:
    """Delete a staged upload. Returns False if it could not be removed."""
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Failed to delete upload %s: %s", path, exc)
        return False
    return True


def _empty_documents() -> DocumentMap:
    return {field: [] for field in DocumentField}


@dataclass
class IntakeResult:
    """Scalar form fields and staged documents of one application request."""

    fields: Dict[str, str] = dataclass_field(default_factory=dict)
    documents: DocumentMap = dataclass_field(default_factory=_empty_documents)


@dataclass
class _Part:
    name: str
    filename: Optional[str] = None
    field: Optional[DocumentField] = None
    path: Optional[Path] = None
    target: Optional[BinaryIO] = None
    size: int = 0
    value: bytearray = dataclass_field(default_factory=bytearray)


class FileIntake:
    """Validates and stages the eight document slots of an application."""

    def __init__(self, upload_dir: Path, max_bytes: int):
        self.upload_dir = upload_dir
        self.max_bytes = max_bytes

    @property
    def max_request_bytes(self) -> int:
        return len(DocumentField) * self.max_bytes + BODY_OVERHEAD_BYTES

    @staticmethod
    def stored_name(original_name: str) -> str:
        unique = f"{time.time_ns() // 1_000_000}-{random.randint(0, 10**9)}"
        safe_name = _WHITESPACE.sub("_", PureWindowsPath(original_name).name)
        return f"{unique}-{safe_name}"

    @staticmethod
    def has_allowed_extension(filename: str) -> bool:
        return Path(filename).suffix.lower() in ALLOWED_EXTENSIONS

    def check_part(self, name: str, filename: str, seen: Set[DocumentField]) -> DocumentField:
        field = _KNOWN_FIELDS.get(name)
        if field is None or field in seen:
            raise DocumentRejectedError(UNEXPECTED_FIELD_MESSAGE)
        if not self.has_allowed_extension(filename):
            raise DocumentRejectedError(BAD_EXTENSION_MESSAGE)
        seen.add(field)
        return field

    def open_target(self, original_name: str) -> Tuple[Path, BinaryIO]:
        for _ in range(NAME_ATTEMPTS):
            destination = self.upload_dir / self.stored_name(original_name)
            try:
                return destination, open(destination, "xb")
            except FileExistsError:
                continue
        raise FileExistsError(f"Could not allocate a name for {original_name}")

    def discard(self, documents: Iterable[UploadedDocument]) -> None:
        for document in documents:
            remove_stored_file(document.stored_path)

    async def accept_stream(
        self, boundary: bytes, stream: AsyncIterator[bytes]
    ) -> IntakeResult:
        """Parse a multipart body chunk by chunk, staging documents as they arrive.

        Either every part is accepted or the request is rejected and nothing
        from it is left in the upload directory. Reading stops at the first
        rejected part.
        """
        session = MultipartIntake(self, boundary)
        try:
            async for chunk in stream:
                if chunk:
                    await asyncio.to_thread(session.write, chunk)
            session.finish()
        except MultipartParseError as exc:
            session.abort()
            raise SubmissionError(INVALID_BODY_MESSAGE) from exc
        except BaseException:
            session.abort()
            raise
        return session.result()


class MultipartIntake:
    """State of one multipart body being parsed into fields and documents."""

    def __init__(self, intake: FileIntake, boundary: bytes, charset: str = "utf-8"):
        self.intake = intake
        self.charset = charset
        self.fields: Dict[str, str] = {}
        self.stored: List[UploadedDocument] = []
        self._seen: Set[DocumentField] = set()
        self._headers: Dict[bytes, bytes] = {}
        self._header_field = b""
        self._header_value = b""
        self._part: Optional[_Part] = None
        self._parser = MultipartParser(
            boundary,
            callbacks={
                "on_part_begin": self._on_part_begin,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
            },
        )

    def _decode(self, value: bytes) -> str:
        try:
            return value.decode(self.charset)
        except UnicodeDecodeError:
            return value.decode("latin-1")

    def _on_part_begin(self) -> None:
        self._headers = {}
        self._header_field = b""
        self._header_value = b""

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        self._headers[self._header_field.lower()] = self._header_value
        self._header_field = b""
        self._header_value = b""

    def _on_headers_finished(self) -> None:
        _, options = parse_options_header(self._headers.get(b"content-disposition", b""))
        part = _Part(name=self._decode(options.get(b"name", b"")))

        filename = options.get(b"filename")
        if filename is not None:
            part.filename = self._decode(filename)
            # Browsers send an empty part for a file input left blank.
            if part.filename:
                part.field = self.intake.check_part(part.name, part.filename, self._seen)
                part.path, part.target = self.intake.open_target(part.filename)
        self._part = part

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        part = self._part
        chunk = data[start:end]
        if part.filename is None:
            if len(part.value) + len(chunk) > MAX_FIELD_BYTES:
                raise SubmissionError(FIELD_TOO_LARGE_MESSAGE)
            part.value.extend(chunk)
        elif part.target is not None:
            part.size += len(chunk)
            if part.size > self.intake.max_bytes:
                raise DocumentRejectedError(TOO_LARGE_MESSAGE)
            part.target.write(chunk)

    def _on_part_end(self) -> None:
        part, self._part = self._part, None
        if part.filename is None:
            self.fields[part.name] = self._decode(bytes(part.value))
            return
        if part.target is None:
            return

        part.target.close()
        self.stored.append(
            UploadedDocument(
                field_name=part.field,
                original_name=part.filename,
                stored_path=str(part.path),
                size_bytes=part.size,
            )
        )
        logger.info(
            "Document staged field=%s filename=%s size=%s",
            part.field.value,
            part.filename,
            part.size,
        )

    def write(self, chunk: bytes) -> None:
        self._parser.write(chunk)

    def finish(self) -> None:
        self._parser.finalize()
        if self._part is not None:
            # Body ended inside a part.
            raise SubmissionError(INVALID_BODY_MESSAGE)

    def abort(self) -> None:
        part, self._part = self._part, None
        if part is not None and part.target is not None:
            part.target.close()
            part.path.unlink(missing_ok=True)
        self.intake.discard(self.stored)
        self.stored = []

    def result(self) -> IntakeResult:
        documents = _empty_documents()
        for document in self.stored:
            documents[document.field_name].append(document)
        return IntakeResult(fields=self.fields, documents=documents)


def get_file_intake() -> FileIntake:
    """Return the intake bound to the configured upload directory."""
    return FileIntake(settings.upload_path, max_bytes=settings.MAX_UPLOAD_BYTES)


async def accept_application(
    request: Request,
    intake: FileIntake = Depends(get_file_intake),
) -> IntakeResult:
    """Dependency running intake before the application handler sees the request."""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit():
        if int(content_length) > intake.max_request_bytes:
            raise DocumentRejectedError(TOO_LARGE_MESSAGE)

    content_type, options = parse_options_header(request.headers.get("content-type", ""))
    if content_type.strip().lower() == b"multipart/form-data":
        boundary = options.get(b"boundary")
        if not boundary:
            raise SubmissionError(INVALID_BODY_MESSAGE)
        return await intake.accept_stream(boundary, request.stream())

    # Urlencoded or empty bodies carry no documents.
    form = await request.form()
    return IntakeResult(
        fields={key: value for key, value in form.items() if isinstance(value, str)}
    )


def ordered_documents(documents: DocumentMap) -> List[UploadedDocument]:
    """Flatten intake output in document registration order, skipping empty slots."""
    return [
        document
        for field in DocumentField
        for document in documents.get(field, [])
    ]
