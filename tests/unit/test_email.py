import smtplib
from unittest.mock import MagicMock, patch

import pytest

from app.core.config import settings
from app.core.email import MailSender, get_mail_sender
from app.core.errors import TransportError
from app.schemas.mail import MailAttachment, OutgoingMessage


def _sender(**kwargs):
    params = dict(host="smtp.test", port=587, user="jobs@test", password="pass")
    params.update(kwargs)
    return MailSender(**params)


def _message(**kwargs):
    params = dict(
        sender="jobs@test",
        reply_to="ann@example.com",
        to="jobs@test",
        subject="New Contact Form Submission from Ann",
        text="Name: Ann",
    )
    params.update(kwargs)
    return OutgoingMessage(**params)


@pytest.fixture()
def smtp_server():
    server = MagicMock()
    server.noop.return_value = (250, b"OK")
    with patch("app.core.email.smtplib.SMTP") as smtp_cls:
        smtp_cls.return_value.__enter__.return_value = server
        yield smtp_cls, server


@pytest.mark.asyncio
async def test_send_verifies_relay_before_delivery(smtp_server):
    smtp_cls, server = smtp_server

    await _sender(timeout=5).send(_message())

    smtp_cls.assert_called_once_with("smtp.test", 587, timeout=5)
    calls = [c[0] for c in server.method_calls]
    assert calls.index("starttls") < calls.index("login") < calls.index("noop")
    assert calls.index("noop") < calls.index("send_message")
    server.login.assert_called_once_with("jobs@test", "pass")

    sent = server.send_message.call_args[0][0]
    assert sent["Reply-To"] == "ann@example.com"
    assert sent["Subject"] == "New Contact Form Submission from Ann"


@pytest.mark.asyncio
async def test_login_failure_raises_transport_error_without_sending(smtp_server):
    _, server = smtp_server
    server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad creds")

    with pytest.raises(TransportError):
        await _sender().send(_message())

    server.send_message.assert_not_called()


@pytest.mark.asyncio
async def test_failed_noop_raises_transport_error(smtp_server):
    _, server = smtp_server
    server.noop.return_value = (421, b"closing")

    with pytest.raises(TransportError):
        await _sender().send(_message())

    server.send_message.assert_not_called()


@pytest.mark.asyncio
async def test_unreachable_relay_raises_transport_error():
    with patch(
        "app.core.email.smtplib.SMTP", side_effect=ConnectionRefusedError("refused")
    ):
        with pytest.raises(TransportError, match="ConnectionRefusedError"):
            await _sender().send(_message())


@pytest.mark.asyncio
async def test_missing_credentials_fail_without_connecting():
    with patch("app.core.email.smtplib.SMTP") as smtp_cls:
        with pytest.raises(TransportError):
            await _sender(password=None).send(_message())

    smtp_cls.assert_not_called()


def test_build_email_message_attaches_files(tmp_path):
    stored = tmp_path / "1700000000000-42-scan.pdf"
    stored.write_bytes(b"%PDF-1.4")
    photo = tmp_path / "1700000000000-43-me.png"
    photo.write_bytes(b"\x89PNG")

    email_message = _sender().build_email_message(
        _message(
            text=None,
            html="<h3>New Job Application</h3>",
            attachments=[
                MailAttachment(filename="scan.pdf", path=str(stored)),
                MailAttachment(filename="me.png", path=str(photo)),
            ],
        )
    )

    attachments = list(email_message.iter_attachments())
    assert [a.get_filename() for a in attachments] == ["scan.pdf", "me.png"]
    assert attachments[0].get_content_type() == "application/pdf"
    assert attachments[1].get_content_type() == "image/png"
    assert attachments[0].get_payload(decode=True) == b"%PDF-1.4"
    body = email_message.get_body(preferencelist=("html",))
    assert "New Job Application" in body.get_content()


def test_outgoing_message_requires_a_body():
    with pytest.raises(ValueError):
        OutgoingMessage(sender="a@test", to="a@test", subject="s")


def test_get_mail_sender_reads_settings(monkeypatch):
    from pydantic import SecretStr

    monkeypatch.setattr(settings, "EMAIL_PASS", SecretStr("app-password"))
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.org")

    sender = get_mail_sender()

    assert sender.host == "smtp.example.org"
    assert sender.user == "jobs@test"
    assert sender.password == "app-password"


def test_build_email_message_folds_line_breaks_in_headers():
    email_message = _sender().build_email_message(
        _message(
            subject="New Contact Form Submission from Ann\nBcc: victim@example.com",
            reply_to="ann@example.com\r\n",
        )
    )

    assert email_message["Subject"] == (
        "New Contact Form Submission from Ann Bcc: victim@example.com"
    )
    assert email_message["Reply-To"] == "ann@example.com"
    assert email_message["Bcc"] is None
