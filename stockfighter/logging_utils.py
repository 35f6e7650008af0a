"""
Stockfighter Client - Secure Logging Utilities.

============================================================
PURPOSE
============================================================
Structured logging for client operations with:
- Credential masking (the authorization header, url query
  parameters)
- Structured JSON request/response entries
- Full debug dumps when the client runs in debug mode

============================================================
SECURITY REQUIREMENTS
============================================================
1. NEVER log the raw API key, not even in debug dumps
2. Truncate response previews in non-debug entries

============================================================
"""

import json
import logging
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from .errors import StockfighterError


# Header names that should be masked
SENSITIVE_HEADERS = {
    "x-starfighter-authorization",
    "authorization",
    "cookie",
}

# Query parameters that should be masked
SENSITIVE_PARAMS = {
    "apikey",
    "api_key",
    "key",
    "token",
}

PREVIEW_CHARS = 200


# ============================================================
# MASKING FUNCTIONS
# ============================================================

def mask_value(value: str, show_chars: int = 4) -> str:
    """
    Mask a sensitive value, showing only first few chars.

    Args:
        value: Value to mask
        show_chars: Number of chars to show at start

    Returns:
        Masked value
    """
    if not value or len(value) <= show_chars:
        return "***"
    return f"{value[:show_chars]}...***"


def mask_headers(headers: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """
    Mask sensitive headers.

    Args:
        headers: Request/response headers

    Returns:
        Headers with sensitive values masked
    """
    if not headers:
        return {}

    masked = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            masked[key] = mask_value(str(value))
        else:
            masked[key] = value
    return masked


def mask_url(url: str) -> str:
    """
    Mask sensitive query parameters in a url.

    Args:
        url: URL string

    Returns:
        URL with sensitive params masked
    """
    if not url:
        return url

    for param in SENSITIVE_PARAMS:
        pattern = re.compile(f"([?&]{param}=)([^&]+)", re.IGNORECASE)
        url = pattern.sub(lambda m: f"{m.group(1)}***", url)

    return url


def _preview(body: Optional[bytes], limit: Optional[int] = PREVIEW_CHARS) -> Optional[str]:
    if not body:
        return None
    text = body.decode("utf-8", errors="replace")
    return text if limit is None else text[:limit]


# ============================================================
# LOG ENTRY STRUCTURES
# ============================================================

@dataclass
class RequestLogEntry:
    """Structured log entry for requests."""

    timestamp: str
    request_id: str
    method: str
    url: str
    headers: Dict[str, str] = None
    body: str = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON logging."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class ResponseLogEntry:
    """Structured log entry for responses."""

    timestamp: str
    request_id: str
    url: str
    status_code: int = None
    latency_ms: float = None
    success: bool = True
    error_type: str = None
    error_message: str = None
    error_detail: Dict[str, Any] = None
    response_preview: str = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON logging."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


# ============================================================
# CLIENT LOGGER
# ============================================================

class ClientLogger:
    """
    Secure logger for client operations.

    Normal entries go out at DEBUG with a truncated body
    preview. In debug mode the full request and response
    bodies are written at INFO.
    """

    def __init__(self, name: str = "stockfighter.client", debug: bool = False):
        self._logger = logging.getLogger(name)
        self._debug = debug
        self._request_counter = 0

    def _generate_request_id(self) -> str:
        self._request_counter += 1
        return f"sf-{self._request_counter}"

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def log_request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[bytes] = None,
    ) -> str:
        """
        Log outgoing request.

        Returns:
            Request ID for correlation
        """
        request_id = self._generate_request_id()

        entry = RequestLogEntry(
            timestamp=self._now(),
            request_id=request_id,
            method=method,
            url=mask_url(url),
            headers=mask_headers(headers) if headers else None,
            body=_preview(body, None if self._debug else PREVIEW_CHARS),
        )

        if self._debug:
            self._logger.info(f"REQUEST: {entry.to_json()}")
        else:
            self._logger.debug(f"REQUEST: {entry.to_json()}")
        return request_id

    def log_response(
        self,
        request_id: str,
        url: str,
        status_code: Optional[int],
        latency_ms: float,
        body: Optional[bytes] = None,
        error: Optional[Exception] = None,
    ) -> None:
        """Log a response, or the error that replaced it."""
        error_detail = None
        if isinstance(error, StockfighterError):
            error_detail = error.to_dict()
            error_detail["url"] = mask_url(error_detail["url"])

        entry = ResponseLogEntry(
            timestamp=self._now(),
            request_id=request_id,
            url=mask_url(url),
            status_code=status_code,
            latency_ms=round(latency_ms, 3),
            success=error is None,
            error_type=type(error).__name__ if error else None,
            error_message=str(error)[:PREVIEW_CHARS] if error else None,
            error_detail=error_detail,
            response_preview=_preview(body, None if self._debug else PREVIEW_CHARS),
        )

        if error is not None:
            self._logger.warning(f"RESPONSE_ERROR: {entry.to_json()}")
        elif self._debug:
            self._logger.info(f"RESPONSE: {entry.to_json()}")
        else:
            self._logger.debug(f"RESPONSE: {entry.to_json()}")

    def log_frame(self, url: str, data: Any) -> None:
        """Dump one raw stream frame (debug mode only)."""
        if not self._debug:
            return
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")
        self._logger.info(f"FRAME [{mask_url(url)}]: {data}")
