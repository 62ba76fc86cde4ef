"""
Exception hierarchy shared by every part of the SDK.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "Cancelled",
    "ConfigurationError",
    "DeadlineExceeded",
    "DecodeError",
    "MalformedPayload",
    "SignatureMismatch",
    "TransportError",
    "UploadFetchError",
    "WeChatError",
]


class WeChatError(Exception):
    """Base class for errors raised by the SDK."""


class TransportError(WeChatError):
    """Raised when the HTTP round trip fails or answers with a non-200 status."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UploadFetchError(TransportError):
    """Raised when a remote upload resource cannot be fetched."""


class MalformedPayload(WeChatError):
    """Raised when response bytes cannot be parsed."""


class DecodeError(WeChatError):
    """Raised when the vendor reports a business error in an otherwise valid response."""

    def __init__(self, code: object, message: str) -> None:
        super().__init__(f"{code}|{message}")
        self.code = code
        self.message = message


class ConfigurationError(WeChatError):
    """Raised when the supplied configuration is invalid or incomplete."""


class SignatureMismatch(WeChatError):
    """Raised when a signature does not verify."""


class Cancelled(WeChatError):
    """Raised when the call context is cancelled before the call completes."""


class DeadlineExceeded(Cancelled):
    """Raised when the call context's deadline passes before the call completes."""
