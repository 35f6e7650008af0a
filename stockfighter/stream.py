"""
Stockfighter Client - Stream Pump.

============================================================
PURPOSE
============================================================
Turn one websocket connection into an ordered sequence of
typed events delivered through an asyncio channel.

LIFECYCLE:
1. ``StreamPump.subscribe`` dials; a failed dial raises and
   no subscription exists
2. A dedicated task reads one frame at a time, decodes the
   envelope and puts the payload on the channel
3. The first read failure, close frame, malformed frame or
   ``ok: false`` frame ends the task, closes the channel and
   releases the connection. There is no reconnect.
4. ``Subscription.close()`` stops the task from the consumer
   side

The channel is bounded (``ClientConfig.stream_buffer``): a
slow consumer blocks the read loop, nothing is dropped.

The channel closes as soon as the pump stops; releasing the
connection happens afterwards and is bounded by
``CLOSE_TIMEOUT`` so a peer that never answers the close
frame cannot hold the consumer.

============================================================
USAGE
============================================================
```python
async with await pump.subscribe(url, shape) as quotes:
    async for quote in quotes:
        ...
if quotes.error:
    ...
```

============================================================
"""

import asyncio
import logging
from typing import AsyncIterator, Generic, Optional, Set, TypeVar

import aiohttp

from .config import ClientConfig
from .envelope import Shape, decode_envelope
from .errors import StockfighterError, StreamClosedError, TransportError
from .logging_utils import ClientLogger


logger = logging.getLogger(__name__)


T = TypeVar("T")


# Seconds to wait for the peer to answer our close frame
CLOSE_TIMEOUT = 1.0


_CLOSE_TYPES = (
    aiohttp.WSMsgType.CLOSE,
    aiohttp.WSMsgType.CLOSING,
    aiohttp.WSMsgType.CLOSED,
)


# ============================================================
# SUBSCRIPTION
# ============================================================

class Subscription(Generic[T]):
    """
    Receive side of one stream.

    Iterate with ``async for``. Iteration ends when the pump
    stops; ``error`` then holds the terminal cause, or None if
    the consumer closed the subscription.
    """

    def __init__(
        self,
        url: str,
        session: aiohttp.ClientSession,
        ws: aiohttp.ClientWebSocketResponse,
        shape: Shape,
        buffer: int = 1,
        client_logger: Optional[ClientLogger] = None,
    ):
        self._url = url
        self._session = session
        self._ws = ws
        self._shape = shape
        self._log = client_logger or ClientLogger()

        self._queue: asyncio.Queue = asyncio.Queue(maxsize=buffer)
        self._done = asyncio.Event()
        self._released = asyncio.Event()
        self._error: Optional[BaseException] = None
        self._task: Optional[asyncio.Task] = None

    # --------------------------------------------------------
    # PROPERTIES
    # --------------------------------------------------------

    @property
    def url(self) -> str:
        return self._url

    @property
    def closed(self) -> bool:
        """True once the pump has stopped."""
        return self._done.is_set()

    @property
    def error(self) -> Optional[BaseException]:
        """Why the stream ended, None while running or after close()."""
        return self._error

    # --------------------------------------------------------
    # PUMP
    # --------------------------------------------------------

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.ensure_future(self._pump())

    async def _pump(self) -> None:
        try:
            while True:
                event = await self._read_event()
                await self._queue.put(event)
        except StockfighterError as e:
            self._error = e
            logger.warning(f"Stream ended [{self._url}]: {type(e).__name__}: {e}")
        except asyncio.CancelledError:
            logger.info(f"Stream closed by consumer [{self._url}]")
            raise
        except Exception as e:
            self._error = e
            logger.error(f"Stream failed [{self._url}]: {e}", exc_info=True)
        finally:
            self._done.set()
            await self._release()

    async def _read_event(self) -> T:
        """Read frames until one decodes into an event."""
        while True:
            try:
                msg = await self._ws.receive()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise TransportError(f"Stream read failed: {e}", url=self._url) from e

            if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                self._log.log_frame(self._url, msg.data)
                envelope = decode_envelope(msg.data, self._shape, url=self._url)
                return envelope.unwrap(url=self._url)

            if msg.type in _CLOSE_TYPES:
                raise StreamClosedError(
                    f"Stream closed by server (code {self._ws.close_code})",
                    url=self._url,
                )

            if msg.type == aiohttp.WSMsgType.ERROR:
                raise TransportError(
                    f"Stream error: {self._ws.exception()}",
                    url=self._url,
                )

            # PING/PONG are answered by aiohttp

    async def _release(self) -> None:
        try:
            if not self._ws.closed:
                await asyncio.wait_for(self._ws.close(), CLOSE_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning(f"Stream close handshake timed out [{self._url}]")
        finally:
            if not self._session.closed:
                await self._session.close()
            self._released.set()

    # --------------------------------------------------------
    # CONSUMER SIDE
    # --------------------------------------------------------

    async def close(self) -> None:
        """Stop the pump and release the connection."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._done.set()
        await self._release()

    async def wait_closed(self) -> None:
        """Wait until the connection and session are released."""
        await self._released.wait()

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        while True:
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self._done.is_set():
                raise StopAsyncIteration

            getter = asyncio.ensure_future(self._queue.get())
            finished = asyncio.ensure_future(self._done.wait())
            try:
                await asyncio.wait({getter, finished}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for future in (getter, finished):
                    if not future.done():
                        future.cancel()

            if getter.done() and not getter.cancelled():
                return getter.result()

    async def __aenter__(self) -> "Subscription[T]":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


# ============================================================
# STREAM PUMP
# ============================================================

class StreamPump:
    """
    Opens subscriptions.

    Each subscription owns its own session, connection and
    task; they share nothing and are not ordered relative to
    each other.
    """

    def __init__(
        self,
        config: ClientConfig,
        client_logger: Optional[ClientLogger] = None,
    ):
        self._config = config
        self._log = client_logger or ClientLogger(debug=config.debug)
        self._open: Set[Subscription] = set()

    @property
    def open_subscriptions(self) -> int:
        return len(self._open)

    async def subscribe(self, url: str, shape: Shape) -> Subscription:
        """
        Dial a stream and start its pump.

        Args:
            url: Websocket url
            shape: Builds an event from each ok frame

        Returns:
            Running subscription

        Raises:
            TransportError: If the dial fails
        """
        session = aiohttp.ClientSession()
        try:
            ws = await session.ws_connect(url, headers=self._config.auth_headers)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await session.close()
            raise TransportError(f"Stream dial failed [{url}]: {e}", url=url) from e
        except BaseException:
            await session.close()
            raise

        logger.info(f"Stream connected: {url}")

        subscription: Subscription = Subscription(
            url,
            session,
            ws,
            shape,
            buffer=self._config.stream_buffer,
            client_logger=self._log,
        )
        subscription.start()

        self._open.add(subscription)
        subscription._task.add_done_callback(lambda _: self._open.discard(subscription))
        return subscription

    async def close_all(self) -> None:
        """Close every subscription still running."""
        for subscription in list(self._open):
            await subscription.close()
