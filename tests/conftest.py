from contextlib import contextmanager
from pathlib import Path
from email.message import EmailMessage
from typing import List

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.email import MailSender, get_mail_sender
from app.core.errors import TransportError
from app.main import app
from app.schemas.mail import OutgoingMessage

# -----------------------------------------------------------------------------
# Mail sender double
# -----------------------------------------------------------------------------


class RecordingMailSender(MailSender):
    """Mail sender that records messages instead of talking to a relay."""

    __test__ = False

    def __init__(self, error: Exception = None):
        super().__init__(host="smtp.test", port=587, user="jobs@test", password="pass")
        self.sent: List[OutgoingMessage] = []
        self.built: List[EmailMessage] = []
        self.error = error
        self.attachments_present_at_send: List[bool] = []

    async def send(self, message: OutgoingMessage) -> None:
        self.attachments_present_at_send = [
            Path(attachment.path).exists() for attachment in message.attachments
        ]
        self.built.append(self.build_email_message(message))
        if self.error is not None:
            raise self.error
        self.sent.append(message)


# -----------------------------------------------------------------------------
# Settings Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _mail_settings(monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_USER", "jobs@test", raising=False)


@pytest.fixture()
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path), raising=False)
    return path


# -----------------------------------------------------------------------------
# Client Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture()
def mail_sender_cls():
    return RecordingMailSender


@pytest.fixture()
def mail_sender():
    return RecordingMailSender()


@pytest.fixture()
def failing_mail_sender():
    return RecordingMailSender(error=TransportError("535 authentication failed"))


@pytest.fixture()
def make_client(upload_dir):
    """Build a TestClient whose handlers use the given mail sender."""

    @contextmanager
    def _make(sender):
        app.dependency_overrides[get_mail_sender] = lambda: sender
        try:
            # Using 'with' context manager to trigger lifespan events (startup/shutdown)
            with TestClient(app) as c:
                yield c
        finally:
            app.dependency_overrides.clear()

    return _make


@pytest.fixture()
def client(make_client, mail_sender):
    with make_client(mail_sender) as c:
        yield c


@pytest.fixture()
def failing_client(make_client, failing_mail_sender):
    with make_client(failing_mail_sender) as c:
        yield c
