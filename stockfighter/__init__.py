"""
Stockfighter Client Package.

============================================================
PURPOSE
============================================================
Async client for the Stockfighter trading simulation API.

COMPONENTS:
- Stockfighter: one coroutine per remote operation
- RequestExecutor: single HTTP round trip per call
- StreamPump / Subscription: websocket streams as async channels
- Envelope codec: ``{ok, error, ...payload}`` messages

============================================================
"""

from .config import ClientConfig, AUTH_HEADER, DEFAULT_HOST
from .client import Stockfighter
from .envelope import Envelope, decode_envelope, encode_envelope, encode_json
from .executor import RequestExecutor
from .stream import StreamPump, Subscription
from .errors import (
    ApiError,
    EncodingError,
    ErrorCategory,
    MalformedResponseError,
    StatusError,
    StockfighterError,
    StreamClosedError,
    TransportError,
    ValidationError,
)
from .logging_utils import ClientLogger, mask_headers, mask_url, mask_value
from .types import (
    Direction,
    Evidence,
    Execution,
    Fill,
    Flash,
    Game,
    GameDetails,
    GameState,
    Order,
    OrderBook,
    OrderState,
    OrderType,
    Quote,
    StandingOrder,
    Symbol,
    depth,
)
from .wire import WireObject, format_timestamp, parse_timestamp


__all__ = [
    # Client
    "Stockfighter",
    "ClientConfig",
    "AUTH_HEADER",
    "DEFAULT_HOST",
    # Core
    "RequestExecutor",
    "StreamPump",
    "Subscription",
    "Envelope",
    "decode_envelope",
    "encode_envelope",
    "encode_json",
    "WireObject",
    "parse_timestamp",
    "format_timestamp",
    # Errors
    "StockfighterError",
    "ErrorCategory",
    "TransportError",
    "StreamClosedError",
    "EncodingError",
    "MalformedResponseError",
    "StatusError",
    "ApiError",
    "ValidationError",
    # Logging
    "ClientLogger",
    "mask_headers",
    "mask_url",
    "mask_value",
    # Types
    "Direction",
    "Evidence",
    "Execution",
    "Fill",
    "Flash",
    "Game",
    "GameDetails",
    "GameState",
    "Order",
    "OrderBook",
    "OrderState",
    "OrderType",
    "Quote",
    "StandingOrder",
    "Symbol",
    "depth",
]
