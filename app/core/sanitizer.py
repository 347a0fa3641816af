import re


def redact_pii(message: str) -> str:
    """Redact personally identifiable information from log messages.

    Applicants submit contact details and identity document numbers, so
    emails, phone numbers, Aadhaar and PAN numbers and password values are
    masked before anything reaches a log sink.
    """
    if not isinstance(message, str):
        return str(message)

    # Emails: user@example.com -> u***@example.com
    message = re.sub(
        r"[\w.+-]+@[\w.-]+\.\w+",
        lambda m: m.group()[0] + "***@" + m.group().split("@")[1],
        message,
    )

    # Aadhaar: 1234 5678 9012 / 1234-5678-9012 / 123456789012
    message = re.sub(
        r"\b\d{4}[ -]?\d{4}[ -]?\d{4}\b", "[AADHAAR_REDACTED]", message
    )

    # PAN: ABCDE1234F
    message = re.sub(r"\b[A-Z]{5}\d{4}[A-Z]\b", "[PAN_REDACTED]", message)

    # Phones: +91 98765 43210, +44-20-7946-0958
    message = re.sub(r"\+\d[\d -]{6,16}\d", "[PHONE_REDACTED]", message)

    # Local mobiles: 9876543210, 98765 43210
    message = re.sub(r"\b[6-9]\d{4}[ -]?\d{5}\b", "[PHONE_REDACTED]", message)

    # Password values in common patterns
    message = re.sub(
        r'(password|passwd|pwd|secret|pass)["\']?\s*[:=]\s*["\']?[^"\'&\s]+',
        r"\1=[REDACTED]",
        message,
        flags=re.IGNORECASE,
    )

    return message
