"""
Stockfighter Client - Facade.

============================================================
PURPOSE
============================================================
One coroutine per remote operation.

Each synchronous operation is a single RequestExecutor call
with a fixed path and result shape; each stream is a single
StreamPump subscription. The only logic here is path
construction and checking that order responses describe the
order that was asked about.

============================================================
USAGE
============================================================
```python
async with Stockfighter(ClientConfig.from_env()) as sf:
    book = await sf.order_book("TESTEX", "FOOBAR")
    async with await sf.quotes(account, "TESTEX", "FOOBAR") as quotes:
        async for quote in quotes:
            print(quote)
```

============================================================
"""

import json
import logging
from typing import Any, List, Optional

import aiohttp

from .config import ClientConfig
from .errors import ValidationError
from .executor import RequestExecutor
from .logging_utils import ClientLogger
from .stream import StreamPump, Subscription
from .types import (
    Evidence,
    Execution,
    Game,
    GameState,
    Order,
    OrderBook,
    OrderState,
    Quote,
    Symbol,
)
from .wire import WireObject


logger = logging.getLogger(__name__)


# ============================================================
# RESULT SHAPES
# ============================================================

def _ignore(obj: WireObject) -> None:
    return None


def _symbols(obj: WireObject) -> List[Symbol]:
    return [Symbol.from_wire(s) for s in obj.objects("symbols")]


def _orders(obj: WireObject) -> List[OrderState]:
    return [OrderState.from_wire(o) for o in obj.objects("orders")]


def _quote_frame(obj: WireObject) -> Quote:
    return Quote.from_wire(obj.child("quote"))


def _check(url: str, field: str, expected: Any, actual: Any) -> None:
    if expected != actual:
        error = ValidationError(
            f"Response {field} {actual!r} does not match requested {expected!r}",
            field=field,
            expected=expected,
            actual=actual,
            url=url,
        )
        logger.warning(f"VALIDATION_ERROR: {json.dumps(error.to_dict())}")
        raise error


# ============================================================
# CLIENT
# ============================================================

class Stockfighter:
    """
    Stockfighter API client.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize client.

        Args:
            config: Client configuration (default: from environment)
            session: Optional shared session for HTTP calls
        """
        self._config = config or ClientConfig.from_env()
        client_logger = ClientLogger(debug=self._config.debug)
        self._executor = RequestExecutor(self._config, session=session, client_logger=client_logger)
        self._pump = StreamPump(self._config, client_logger=client_logger)

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def close(self) -> None:
        """Close open subscriptions and the HTTP session."""
        await self._pump.close_all()
        await self._executor.close()

    async def __aenter__(self) -> "Stockfighter":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # --------------------------------------------------------
    # MARKET DATA
    # --------------------------------------------------------

    async def heartbeat(self, venue: str = "") -> None:
        """
        Check the API is up, or a venue if one is given.

        Raises:
            StockfighterError: If the API or venue is down
        """
        if venue:
            url = self._config.api_url("venues", venue, "heartbeat")
        else:
            url = self._config.api_url("heartbeat")
        await self._executor.execute("GET", url, shape=_ignore)

    async def stocks(self, venue: str) -> List[Symbol]:
        """Stocks available for trading on a venue."""
        url = self._config.api_url("venues", venue, "stocks")
        return await self._executor.execute("GET", url, shape=_symbols)

    async def order_book(self, venue: str, stock: str) -> OrderBook:
        """Order book for a stock."""
        url = self._config.api_url("venues", venue, "stocks", stock)
        return await self._executor.execute("GET", url, shape=OrderBook.from_wire)

    async def quote(self, venue: str, stock: str) -> Quote:
        """Most recent trade information for a stock."""
        url = self._config.api_url("venues", venue, "stocks", stock, "quote")
        return await self._executor.execute("GET", url, shape=Quote.from_wire)

    # --------------------------------------------------------
    # ORDERS
    # --------------------------------------------------------

    async def place(self, order: Order) -> OrderState:
        """
        Place an order.

        Raises:
            ValidationError: If the response is for another venue or stock
        """
        url = self._config.api_url("venues", order.venue, "stocks", order.stock, "orders")
        state = await self._executor.execute(
            "POST", url, body=order.to_wire(), shape=OrderState.from_wire,
        )
        _check(url, "venue", order.venue, state.venue)
        _check(url, "symbol", order.stock, state.symbol)
        logger.info(
            f"Order placed: id={state.id} {state.direction} {state.original_qty} "
            f"{state.symbol}@{state.price} ({state.order_type})"
        )
        return state

    async def status(self, venue: str, stock: str, order_id: int) -> OrderState:
        """Status of an existing order."""
        url = self._config.api_url("venues", venue, "stocks", stock, "orders", order_id)
        state = await self._executor.execute("GET", url, shape=OrderState.from_wire)
        self._check_order(url, venue, stock, order_id, state)
        return state

    async def cancel(self, venue: str, stock: str, order_id: int) -> OrderState:
        """Cancel an existing order; returns its final state."""
        url = self._config.api_url("venues", venue, "stocks", stock, "orders", order_id)
        state = await self._executor.execute("DELETE", url, shape=OrderState.from_wire)
        self._check_order(url, venue, stock, order_id, state)
        logger.info(f"Order cancelled: id={state.id} filled={state.total_filled}/{state.original_qty}")
        return state

    async def stock_status(self, account: str, venue: str, stock: str = "") -> List[OrderState]:
        """
        Statuses of all an account's orders on a venue.

        If stock is given, only orders for that stock are returned.
        """
        if stock:
            url = self._config.api_url("venues", venue, "accounts", account, "stocks", stock, "orders")
        else:
            url = self._config.api_url("venues", venue, "accounts", account, "orders")
        return await self._executor.execute("GET", url, shape=_orders)

    @staticmethod
    def _check_order(url: str, venue: str, stock: str, order_id: int, state: OrderState) -> None:
        _check(url, "venue", venue, state.venue)
        _check(url, "symbol", stock, state.symbol)
        _check(url, "id", order_id, state.id)

    # --------------------------------------------------------
    # STREAMS
    # --------------------------------------------------------

    async def quotes(self, account: str, venue: str, stock: str = "") -> Subscription[Quote]:
        """
        Subscribe to quotes for a venue.

        If stock is given, only quotes for that stock are delivered.
        """
        if stock:
            url = self._config.ws_url(account, "venues", venue, "tickertape", "stocks", stock)
        else:
            url = self._config.ws_url(account, "venues", venue, "tickertape")
        return await self._pump.subscribe(url, _quote_frame)

    async def executions(self, account: str, venue: str, stock: str = "") -> Subscription[Execution]:
        """
        Subscribe to executions for an account on a venue.

        If stock is given, only executions for that stock are delivered.
        """
        if stock:
            url = self._config.ws_url(account, "venues", venue, "executions", "stocks", stock)
        else:
            url = self._config.ws_url(account, "venues", venue, "executions")
        return await self._pump.subscribe(url, Execution.from_wire)

    # --------------------------------------------------------
    # GAME MASTER
    # --------------------------------------------------------

    async def start(self, level: str) -> Game:
        """Start a level."""
        url = self._config.gm_url("levels", level)
        game = await self._executor.execute("POST", url, shape=Game.from_wire)
        logger.info(f"Level started: {level} instance={game.instance_id} account={game.account}")
        return game

    async def restart(self, instance_id: int) -> None:
        """Restart a level instance."""
        url = self._config.gm_url("instances", instance_id, "restart")
        await self._executor.execute("POST", url, shape=_ignore)

    async def resume(self, instance_id: int) -> None:
        """Resume a level instance."""
        url = self._config.gm_url("instances", instance_id, "resume")
        await self._executor.execute("POST", url, shape=_ignore)

    async def stop(self, instance_id: int) -> None:
        """Stop a level instance."""
        url = self._config.gm_url("instances", instance_id, "stop")
        await self._executor.execute("POST", url, shape=_ignore)
        logger.info(f"Level stopped: instance={instance_id}")

    async def game_status(self, instance_id: int) -> GameState:
        """State of a level instance."""
        url = self._config.gm_url("instances", instance_id)
        return await self._executor.execute("GET", url, shape=GameState.from_wire)

    async def judge(self, instance_id: int, evidence: Evidence) -> GameState:
        """Submit evidence for a judged level."""
        url = self._config.gm_url("instances", instance_id, "judge")
        return await self._executor.execute(
            "POST", url, body=evidence.to_wire(), shape=GameState.from_wire,
        )
