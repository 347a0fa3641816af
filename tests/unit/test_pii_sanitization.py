"""Tests for PII redaction applied to every log line."""
import logging

from app.core.sanitizer import redact_pii


class TestRedactPii:
    def test_email_redacted(self):
        assert "user@example.com" not in redact_pii("Contact user@example.com for info")
        assert "u***@example.com" in redact_pii("Contact user@example.com for info")

    def test_plus_address_redacted(self):
        result = redact_pii("email=ravi+jobs@example.in")
        assert "ravi+jobs" not in result

    def test_international_phone_redacted(self):
        result = redact_pii("phone=+91 98765 43210")
        assert "98765" not in result
        assert "[PHONE_REDACTED]" in result

    def test_local_mobile_redacted(self):
        result = redact_pii("phone=9876543210 job=Welder")
        assert "9876543210" not in result
        assert "job=Welder" in result

    def test_aadhaar_redacted(self):
        for value in ("1234 5678 9012", "1234-5678-9012", "123456789012"):
            result = redact_pii(f"aadhaar {value}")
            assert value not in result
            assert "[AADHAAR_REDACTED]" in result

    def test_pan_redacted(self):
        result = redact_pii("PAN: ABCDE1234F")
        assert "ABCDE1234F" not in result
        assert "[PAN_REDACTED]" in result

    def test_password_redacted(self):
        result = redact_pii("EMAIL_PASS=supersecret123")
        assert "supersecret123" not in result
        assert "[REDACTED]" in result

    def test_stored_upload_names_untouched(self):
        name = "uploads/1760000000000-123456789-me.png"
        assert redact_pii(f"Failed to delete upload {name}") == (
            f"Failed to delete upload {name}"
        )

    def test_non_string_handled(self):
        assert redact_pii(12345) == "12345"
        assert redact_pii(None) == "None"


def test_configured_formatter_redacts_log_args():
    import app.main  # noqa: F401  configures logging

    import structlog

    formatter = next(
        handler.formatter
        for handler in logging.getLogger().handlers
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter)
    )
    record = logging.LogRecord(
        "app.services.contact_service",
        logging.INFO,
        __file__,
        1,
        "Contact form data received name=%s email=%s",
        ("Ann", "ann@example.com"),
        None,
    )

    output = formatter.format(record)

    assert "ann@example.com" not in output
    assert "a***@example.com" in output
