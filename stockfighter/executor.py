"""
Stockfighter Client - Request Executor.

============================================================
PURPOSE
============================================================
Perform exactly one HTTP request/response cycle and return a
typed payload or raise a typed error.

ORDER OF CHECKS:
1. Encode the request body (no I/O on failure)
2. Send with the credential header (transport errors raised)
3. Decode the envelope
   - undecodable and status >= 500 -> StatusError
   - undecodable otherwise         -> MalformedResponseError
   - ok == false                   -> ApiError
4. Return the shaped payload

No retries, no caching, no timeouts beyond aiohttp defaults.

============================================================
"""

import asyncio
import time
from typing import Any, Optional

import aiohttp

from .config import ClientConfig
from .envelope import Shape, decode_envelope, encode_json, raw_payload
from .errors import MalformedResponseError, StatusError, StockfighterError, TransportError
from .logging_utils import ClientLogger


class RequestExecutor:
    """
    Issues single request/response round trips.

    Owns one aiohttp session, created on first use.
    """

    def __init__(
        self,
        config: ClientConfig,
        session: Optional[aiohttp.ClientSession] = None,
        client_logger: Optional[ClientLogger] = None,
    ):
        """
        Initialize executor.

        Args:
            config: Client configuration
            session: Externally owned session (not closed by us)
            client_logger: Structured request logger
        """
        self._config = config
        self._session = session
        self._owns_session = session is None
        self._log = client_logger or ClientLogger(debug=config.debug)

    @property
    def is_closed(self) -> bool:
        return self._session is None or self._session.closed

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if we created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def execute(
        self,
        method: str,
        url: str,
        body: Any = None,
        shape: Shape = raw_payload,
    ) -> Any:
        """
        Run one request and decode the envelope.

        Args:
            method: HTTP method
            url: Full endpoint url
            body: JSON-serializable request body, or None
            shape: Builds the result from the payload

        Returns:
            The shaped payload

        Raises:
            EncodingError: Body not serializable (nothing sent)
            TransportError: Network failure
            StatusError: 5xx with an undecodable body
            MalformedResponseError: Body is not a valid envelope
            ApiError: Envelope reported ok == false
        """
        data = encode_json(body) if body is not None else None

        headers = dict(self._config.auth_headers)
        if data is not None:
            headers["Content-Type"] = "application/json"

        request_id = self._log.log_request(method, url, headers, data)
        started = time.monotonic()
        status: Optional[int] = None
        raw: Optional[bytes] = None

        try:
            try:
                async with self._get_session().request(
                    method,
                    url,
                    data=data,
                    headers=headers,
                ) as response:
                    status = response.status
                    reason = response.reason
                    raw = await response.read()
            except aiohttp.ClientError as e:
                raise TransportError(f"{method} {url}: {e}", url=url) from e
            except asyncio.TimeoutError as e:
                raise TransportError(f"{method} {url}: request timed out", url=url) from e

            try:
                envelope = decode_envelope(raw, shape, url=url)
            except MalformedResponseError as e:
                if status >= 500:
                    raise StatusError.from_status(status, reason, url=url) from e
                e.http_status = status
                raise

            result = envelope.unwrap(url=url)

        except StockfighterError as e:
            if e.http_status is None:
                e.http_status = status
            self._log.log_response(
                request_id, url, status, (time.monotonic() - started) * 1000, raw, error=e,
            )
            raise

        self._log.log_response(
            request_id, url, status, (time.monotonic() - started) * 1000, raw,
        )
        return result
