"""HTML sanitization for user-supplied text and PII redaction for log output."""
import re

import bleach

# Formatting tags kept by sanitize_html. No attributes are ever allowed.
FORMATTING_TAGS = frozenset({"p", "br", "strong", "em", "u"})


def sanitize_text(value: str) -> str:
    """Strip every tag and attribute, leaving only escaped text.

    Used for all contact form fields. Script and event-handler injection is
    neutralized because no element survives; bare ``<`` and ``&`` come back as
    entities, so cleaning the output again returns it unchanged.
    """
    return bleach.clean(
        value,
        tags=frozenset(),
        attributes={},
        strip=True,
        strip_comments=True,
    )


def sanitize_html(value: str) -> str:
    """Keep paragraph, line break, bold, italic and underline tags without attributes."""
    return bleach.clean(
        value,
        tags=FORMATTING_TAGS,
        attributes={},
        strip=True,
        strip_comments=True,
    )


def redact_pii(message: str) -> str:
    """Redact personally identifiable information from log messages.

    Masks emails, IPs, long hex tokens and password assignments so submitter
    details never reach the log sink verbatim.
    """
    if not isinstance(message, str):
        return str(message)

    # Emails: user@example.com -> u***@example.com
    message = re.sub(
        r"[\w.+-]+@[\w.-]+\.\w+",
        lambda m: m.group()[0] + "***@" + m.group().split("@")[1],
        message,
    )

    # IPs (IPv4): 192.168.1.100 -> 192.168.1.***
    message = re.sub(
        r"\b(\d{1,3}\.\d{1,3}\.\d{1,3}\.)\d{1,3}\b", r"\1***", message
    )

    # Tokens and API keys: long hex strings (32+ chars)
    message = re.sub(r"\b[a-fA-F0-9]{32,}\b", "[TOKEN_REDACTED]", message)

    # Password values in common patterns
    message = re.sub(
        r'(password|passwd|pwd|secret)["\']?\s*[:=]\s*["\']?[^"\'&\s]+',
        r"\1=[REDACTED]",
        message,
        flags=re.IGNORECASE,
    )

    return message
