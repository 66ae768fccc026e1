"""
Error types raised by the services and the messages the API shows for them.
"""

import logging
import re

logger = logging.getLogger(__name__)


class RemoteStoreError(Exception):
    """Raised when the remote store cannot be read or written."""


class QuotationNotFoundError(LookupError):
    """Raised when an operation targets a quotation id that does not exist."""


# Checked in order; the first matching class decides the message
PUBLIC_MESSAGES = (
    (RemoteStoreError, "Remote store unavailable"),
    (LookupError, "Resource not found"),
    (TimeoutError, "Request timed out"),
)

_SCRUB_PATTERNS = (
    (re.compile(r'arn:aws:[^\s]+'), '[aws-resource]'),
    (re.compile(r'/[^\s]+'), '[path]'),
    (re.compile(r'[A-Z]:\\[^\s]+'), '[path]'),
)


def _scrub(message: str) -> str:
    for pattern, replacement in _SCRUB_PATTERNS:
        message = pattern.sub(replacement, message)
    if 'Traceback' in message or 'File "' in message:
        return "An internal error occurred"
    return message


def sanitize_error_message(error: Exception, include_details: bool = False) -> str:
    """
    Message safe to return to a client for ``error``.

    The full error is logged server-side. ValueError text (validation
    failures) is passed through, scrubbed of paths and ARNs, only when
    ``include_details`` is set.
    """
    logger.error(f"Error: {type(error).__name__}: {error}", exc_info=True)

    for error_class, message in PUBLIC_MESSAGES:
        if isinstance(error, error_class):
            return message
    if isinstance(error, ValueError):
        return _scrub(str(error)) if include_details else "Invalid input"
    return "An error occurred processing your request"
