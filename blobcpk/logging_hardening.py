"""Logging Hardening and Redaction.

This module provides filters to prevent customer-provided encryption keys
from appearing in application logs. Only the x-ms-encryption-key value is
redacted; its SHA-256 and the algorithm name are not secret.
"""
import logging
import re
from typing import Any, Dict, Mapping, Optional

from blobcpk.domain.encryption.models import HEADER_ENCRYPTION_KEY
from blobcpk.settings import Settings, settings as default_settings

REDACTED = "[REDACTED]"

# Header name followed by ": value", "=value", a quoted dict rendering or
# a (name, value) tuple of str or bytes.
# The lookahead keeps x-ms-encryption-key-sha256 intact.
SECRET_PATTERNS = [
    (
        re.compile(
            r"(x-ms-encryption-key(?![\w-])['\"]?\s*[:=,]\s*b?['\"]?)[A-Za-z0-9+/]+={0,2}",
            re.IGNORECASE,
        ),
        r"\1" + REDACTED,
    ),
]


def redact_string(text: str) -> str:
    """Redact encryption key values from a string."""
    result = text
    for pattern, replacement in SECRET_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Return a plain dict copy of headers with the key value redacted."""
    return {
        name: REDACTED if _is_key_header(name) else value
        for name, value in headers.items()
    }


def _is_key_header(name: Any) -> bool:
    if isinstance(name, bytes):
        name = name.decode("latin-1")
    return str(name).lower() == HEADER_ENCRYPTION_KEY


def _redact_arg(arg: Any) -> Any:
    if isinstance(arg, str):
        return redact_string(arg)
    if isinstance(arg, (int, float, bool)) or arg is None:
        return arg
    # Header containers and requests render the key through str()
    rendered = str(arg)
    if HEADER_ENCRYPTION_KEY in rendered.lower():
        return redact_string(rendered)
    return arg


class SecretRedactionFilter(logging.Filter):
    """Filter that redacts encryption key values from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact_string(record.msg)

        if isinstance(record.args, tuple):
            record.args = tuple(_redact_arg(arg) for arg in record.args)
        elif isinstance(record.args, Mapping):
            record.args = {
                k: REDACTED if _is_key_header(k) else _redact_arg(v)
                for k, v in record.args.items()
            }

        return True


def setup_logging_redaction() -> None:
    """Apply the SecretRedactionFilter to all existing loggers."""
    redact_filter = SecretRedactionFilter()

    root_logger = logging.getLogger()
    loggers = [root_logger] + [
        logger for logger in logging.root.manager.loggerDict.values()
        if isinstance(logger, logging.Logger)
    ]

    for logger in loggers:
        # Remove existing filters if any (to avoid duplicates)
        for f in logger.filters[:]:
            if isinstance(f, SecretRedactionFilter):
                logger.removeFilter(f)
        logger.addFilter(redact_filter)

    logging.getLogger(__name__).info("Logging redaction filters active.")


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Set the package log level and install redaction if enabled."""
    settings = settings or default_settings
    logging.getLogger("blobcpk").setLevel(settings.LOG_LEVEL.upper())

    if settings.LOG_REDACTION_ENABLED:
        setup_logging_redaction()
