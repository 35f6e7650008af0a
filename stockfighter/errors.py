"""
Stockfighter Client - Error Taxonomy.

============================================================
PURPOSE
============================================================
Typed errors for every way an API call or stream can fail.

Transport and business failure are orthogonal: a 200 OK
response whose envelope says ``ok: false`` is still an error.

============================================================
ERROR HIERARCHY
============================================================
StockfighterError (base)
├── TransportError          - connection, DNS, timeout
│   └── StreamClosedError   - websocket closed by the peer
├── EncodingError           - request body not serializable
├── MalformedResponseError  - body is not a valid envelope
├── StatusError             - 5xx with an undecodable body
├── ApiError                - envelope decoded, ok == false
└── ValidationError         - echoed fields do not match request

============================================================
"""

from enum import Enum
from typing import Any, Dict, Optional


# ============================================================
# ERROR TAXONOMY
# ============================================================

class ErrorCategory(Enum):
    """Error categories."""

    NETWORK = "NETWORK"
    ENCODING = "ENCODING"
    MALFORMED = "MALFORMED"
    STATUS = "STATUS"
    BUSINESS = "BUSINESS"
    VALIDATION = "VALIDATION"


# ============================================================
# BASE EXCEPTION
# ============================================================

class StockfighterError(Exception):
    """
    Base exception for all client errors.

    Carries the category plus the request context (url,
    HTTP status) when one is known.
    """

    category: ErrorCategory = ErrorCategory.NETWORK

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        http_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.url = url
        self.http_status = http_status

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "category": self.category.value,
            "error_type": type(self).__name__,
            "message": self.message,
            "url": self.url,
            "http_status": self.http_status,
        }

    def __str__(self) -> str:
        return self.message


# ============================================================
# CONCRETE ERRORS
# ============================================================

class TransportError(StockfighterError):
    """Connection refused, DNS failure, timeout or other transport fault."""

    category = ErrorCategory.NETWORK


class StreamClosedError(TransportError):
    """The websocket was closed by the remote end."""


class EncodingError(StockfighterError):
    """Request body could not be serialized; nothing was sent."""

    category = ErrorCategory.ENCODING


class MalformedResponseError(StockfighterError):
    """Body does not parse into the expected envelope shape."""

    category = ErrorCategory.MALFORMED


class StatusError(StockfighterError):
    """
    Server fault (HTTP status >= 500) whose body is not an envelope.

    The message is the HTTP status line, e.g. ``502 Bad Gateway``.
    """

    category = ErrorCategory.STATUS

    @classmethod
    def from_status(
        cls,
        status: int,
        reason: Optional[str],
        url: Optional[str] = None,
    ) -> "StatusError":
        line = f"{status} {reason}" if reason else str(status)
        return cls(line, url=url, http_status=status)


class ApiError(StockfighterError):
    """The service answered with ``ok: false``; message is its error text."""

    category = ErrorCategory.BUSINESS


class ValidationError(StockfighterError):
    """The response does not describe what was requested."""

    category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        expected: Any = None,
        actual: Any = None,
        url: Optional[str] = None,
    ):
        super().__init__(message, url=url)
        self.field = field
        self.expected = expected
        self.actual = actual

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "field": self.field,
            "expected": self.expected,
            "actual": self.actual,
        })
        return data
