"""
Stockfighter Client - Envelope Codec.

============================================================
PURPOSE
============================================================
Every wire message, HTTP body or websocket frame, is a JSON
object of the form::

    {"ok": true, ...payload fields...}
    {"ok": false, "error": "message"}

The payload is flattened into the envelope, not nested.

CONTRACT:
- ``ok: false`` is a business error even on HTTP 200
- An undecodable body is a malformed response, a different
  error class from a business error

============================================================
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar, Union

from .errors import ApiError, EncodingError, MalformedResponseError
from .wire import WireObject


T = TypeVar("T")

Shape = Callable[[WireObject], T]


@dataclass(frozen=True)
class Envelope(Generic[T]):
    """Decoded envelope."""

    ok: bool
    error: str = ""
    payload: Optional[T] = None

    def unwrap(self, url: Optional[str] = None) -> T:
        """
        Return the payload.

        Raises:
            ApiError: If the envelope is not ok
        """
        if not self.ok:
            raise ApiError(self.error or "request failed", url=url)
        return self.payload


def raw_payload(obj: WireObject) -> WireObject:
    """Shape that keeps the payload undecoded."""
    return obj


def decode_envelope(
    raw: Union[bytes, str],
    shape: Shape = raw_payload,
    url: Optional[str] = None,
) -> Envelope:
    """
    Decode one wire message.

    The payload is only shaped when ``ok`` is true; failure
    envelopes carry no payload.

    Args:
        raw: Message bytes or text
        shape: Builds the payload from the envelope fields
        url: Source, for error context

    Returns:
        Envelope with success flag, error text and payload

    Raises:
        MalformedResponseError: If the message is not a valid
            envelope or the payload does not fit the shape
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedResponseError(f"Invalid JSON: {e}", url=url) from e

    try:
        obj = WireObject(data)
    except ValueError as e:
        raise MalformedResponseError(str(e), url=url) from e

    ok = obj.get("ok")
    if not isinstance(ok, bool):
        raise MalformedResponseError(f"Missing or invalid ok flag: {ok!r}", url=url)

    error = obj.get("error", "")
    if not isinstance(error, str):
        error = str(error)

    if not ok:
        return Envelope(ok=False, error=error)

    try:
        payload = shape(obj)
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedResponseError(f"Invalid payload: {e}", url=url) from e

    return Envelope(ok=True, error=error, payload=payload)


def encode_envelope(
    payload: Optional[Dict[str, Any]] = None,
    ok: bool = True,
    error: Optional[str] = None,
) -> bytes:
    """Encode a payload into a flat envelope."""
    message: Dict[str, Any] = {"ok": ok}
    if error:
        message["error"] = error
    if payload:
        message.update(payload)
    return encode_json(message)


def encode_json(value: Any) -> bytes:
    """
    Serialize a request body.

    Raises:
        EncodingError: If the value is not JSON serializable
    """
    try:
        return json.dumps(value, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Cannot encode request body: {e}") from e
