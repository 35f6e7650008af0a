"""
Stockfighter Client - Types.

============================================================
PURPOSE
============================================================
Domain value types for the exchange simulation.

Every type is an immutable record built from decoded wire
data (``from_wire``) and can be written back to the same wire
shape (``to_wire``).

ORDERING CONTRACT:
    Order book asks are sorted by price ascending, bids by
    price descending, so the first entry is always the best
    price on that side.

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .wire import WireObject, format_timestamp


# ============================================================
# ENUMERATIONS
# ============================================================

class OrderType(Enum):
    """
    Order type.

    Wire strings are exact and case-sensitive. There is no
    default: an unknown string is an error.
    """

    LIMIT = "limit"
    """Rest on the book at the given price or better."""

    MARKET = "market"
    """Match whatever is available at any price."""

    FILL_OR_KILL = "fill-or-kill"
    """Fill completely and immediately or not at all."""

    IMMEDIATE_OR_CANCEL = "immediate-or-cancel"
    """Fill what is possible immediately, cancel the rest."""

    @classmethod
    def from_wire(cls, value: Any) -> "OrderType":
        """
        Decode a wire string.

        Raises:
            ValueError: If value is not a known order type
        """
        if not isinstance(value, str):
            raise ValueError(f"Unknown order type: {value!r}")
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown order type: {value}") from None

    def to_wire(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


class Direction(Enum):
    """Order direction."""

    BUY = "buy"
    SELL = "sell"

    @classmethod
    def from_wire(cls, value: Any) -> "Direction":
        if not isinstance(value, str):
            raise ValueError(f"Unknown direction: {value!r}")
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown direction: {value}") from None

    def to_wire(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


def _ts(value: Optional[datetime]) -> Optional[str]:
    return format_timestamp(value) if value is not None else None


def _show(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.strftime("%b %d %H:%M:%S.%f")


# ============================================================
# MARKET DATA
# ============================================================

@dataclass(frozen=True)
class Symbol:
    """Tradable instrument on a venue."""

    symbol: str
    name: str = ""

    @classmethod
    def from_wire(cls, obj: WireObject) -> "Symbol":
        return cls(symbol=obj.text("symbol"), name=obj.text("name"))

    def to_wire(self) -> Dict[str, Any]:
        return {"symbol": self.symbol, "name": self.name}

    def __str__(self) -> str:
        return f"{self.symbol} ({self.name})" if self.name else self.symbol


@dataclass(frozen=True)
class StandingOrder:
    """One resting entry in an order book."""

    price: int
    qty: int
    is_buy: bool

    @classmethod
    def from_wire(cls, obj: WireObject) -> "StandingOrder":
        return cls(
            price=obj.integer("price"),
            qty=obj.integer("qty"),
            is_buy=obj.flag("isBuy"),
        )

    def to_wire(self) -> Dict[str, Any]:
        return {"price": self.price, "qty": self.qty, "isBuy": self.is_buy}

    def __str__(self) -> str:
        return f"({self.price},{self.qty})"


def depth(orders: Iterable[StandingOrder]) -> int:
    """Total outstanding quantity across standing orders."""
    return sum(order.qty for order in orders)


@dataclass(frozen=True)
class OrderBook:
    """Snapshot of the resting orders for one stock."""

    venue: str
    symbol: str
    asks: List[StandingOrder] = field(default_factory=list)
    """Sorted by price ascending."""

    bids: List[StandingOrder] = field(default_factory=list)
    """Sorted by price descending."""

    ts: Optional[datetime] = None

    @classmethod
    def from_wire(cls, obj: WireObject) -> "OrderBook":
        asks = [StandingOrder.from_wire(o) for o in obj.objects("asks")]
        bids = [StandingOrder.from_wire(o) for o in obj.objects("bids")]
        return cls(
            venue=obj.text("venue"),
            symbol=obj.text("symbol"),
            asks=sorted(asks, key=lambda o: o.price),
            bids=sorted(bids, key=lambda o: o.price, reverse=True),
            ts=obj.timestamp("ts"),
        )

    def to_wire(self) -> Dict[str, Any]:
        return {
            "venue": self.venue,
            "symbol": self.symbol,
            "asks": [o.to_wire() for o in self.asks],
            "bids": [o.to_wire() for o in self.bids],
            "ts": _ts(self.ts),
        }

    @property
    def ask_depth(self) -> int:
        return depth(self.asks)

    @property
    def bid_depth(self) -> int:
        return depth(self.bids)

    @property
    def best_ask(self) -> Optional[StandingOrder]:
        return self.asks[0] if self.asks else None

    @property
    def best_bid(self) -> Optional[StandingOrder]:
        return self.bids[0] if self.bids else None

    @property
    def spread(self) -> Optional[int]:
        """Best ask minus best bid, None if either side is empty."""
        if not self.asks or not self.bids:
            return None
        return self.asks[0].price - self.bids[0].price

    def __str__(self) -> str:
        asks = ",".join(str(o) for o in self.asks)
        bids = ",".join(str(o) for o in self.bids)
        return (
            f"{_show(self.ts)} Venue: {self.venue} Symbol: {self.symbol} "
            f"Asks: [{asks}] AskDepth: {self.ask_depth} "
            f"Bids: [{bids}] BidDepth: {self.bid_depth}"
        )


@dataclass(frozen=True)
class Quote:
    """Top of book plus last trade for one stock."""

    venue: str
    symbol: str
    bid: int = 0
    bid_size: int = 0
    bid_depth: int = 0
    ask: int = 0
    ask_size: int = 0
    ask_depth: int = 0
    last: int = 0
    last_size: int = 0
    last_trade: Optional[datetime] = None
    quote_time: Optional[datetime] = None

    @classmethod
    def from_wire(cls, obj: WireObject) -> "Quote":
        return cls(
            venue=obj.text("venue"),
            symbol=obj.text("symbol"),
            bid=obj.integer("bid"),
            bid_size=obj.integer("bidSize"),
            bid_depth=obj.integer("bidDepth"),
            ask=obj.integer("ask"),
            ask_size=obj.integer("askSize"),
            ask_depth=obj.integer("askDepth"),
            last=obj.integer("last"),
            last_size=obj.integer("lastSize"),
            last_trade=obj.timestamp("lastTrade"),
            quote_time=obj.timestamp("quoteTime"),
        )

    def to_wire(self) -> Dict[str, Any]:
        return {
            "venue": self.venue,
            "symbol": self.symbol,
            "bid": self.bid,
            "bidSize": self.bid_size,
            "bidDepth": self.bid_depth,
            "ask": self.ask,
            "askSize": self.ask_size,
            "askDepth": self.ask_depth,
            "last": self.last,
            "lastSize": self.last_size,
            "lastTrade": _ts(self.last_trade),
            "quoteTime": _ts(self.quote_time),
        }

    def __str__(self) -> str:
        return (
            f"{_show(self.quote_time)} Venue: {self.venue} Symbol: {self.symbol} "
            f"Bid: {self.bid:8d} BidSize: {self.bid_size:6d} BidDepth: {self.bid_depth:6d} "
            f"Ask: {self.ask:8d} AskSize: {self.ask_size:6d} AskDepth: {self.ask_depth:6d} "
            f"Last: ({self.last:8d},{self.last_size:8d},{_show(self.last_trade)})"
        )


# ============================================================
# ORDERS
# ============================================================

@dataclass(frozen=True)
class Order:
    """Request to place an order."""

    account: str
    venue: str
    stock: str
    price: int
    qty: int
    direction: Direction
    order_type: OrderType = OrderType.LIMIT

    def to_wire(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "venue": self.venue,
            "stock": self.stock,
            "price": self.price,
            "qty": self.qty,
            "direction": self.direction.to_wire(),
            "orderType": self.order_type.to_wire(),
        }


@dataclass(frozen=True)
class Fill:
    """One (partial) execution of an order."""

    price: int
    qty: int
    ts: Optional[datetime] = None

    @classmethod
    def from_wire(cls, obj: WireObject) -> "Fill":
        return cls(
            price=obj.integer("price"),
            qty=obj.integer("qty"),
            ts=obj.timestamp("ts"),
        )

    def to_wire(self) -> Dict[str, Any]:
        return {"price": self.price, "qty": self.qty, "ts": _ts(self.ts)}

    def __str__(self) -> str:
        return f"{_show(self.ts)} Price: {self.price:6d} Quantity: {self.qty:6d}"


@dataclass(frozen=True)
class OrderState:
    """Lifecycle snapshot of a placed order."""

    venue: str
    symbol: str
    price: int
    original_qty: int
    qty: int
    """Quantity still outstanding."""

    direction: Direction
    order_type: OrderType
    id: int
    account: str
    ts: Optional[datetime] = None
    fills: List[Fill] = field(default_factory=list)
    total_filled: int = 0
    open: bool = False

    @classmethod
    def from_wire(cls, obj: WireObject) -> "OrderState":
        return cls(
            venue=obj.text("venue"),
            symbol=obj.text("symbol"),
            price=obj.integer("price"),
            original_qty=obj.integer("originalQty"),
            qty=obj.integer("qty"),
            direction=Direction.from_wire(obj.get("direction")),
            order_type=OrderType.from_wire(obj.get("orderType")),
            id=obj.integer("id"),
            account=obj.text("account"),
            ts=obj.timestamp("ts"),
            fills=[Fill.from_wire(f) for f in obj.objects("fills")],
            total_filled=obj.integer("totalFilled"),
            open=obj.flag("open"),
        )

    def to_wire(self) -> Dict[str, Any]:
        return {
            "venue": self.venue,
            "symbol": self.symbol,
            "price": self.price,
            "originalQty": self.original_qty,
            "qty": self.qty,
            "direction": self.direction.to_wire(),
            "orderType": self.order_type.to_wire(),
            "id": self.id,
            "account": self.account,
            "ts": _ts(self.ts),
            "fills": [f.to_wire() for f in self.fills],
            "totalFilled": self.total_filled,
            "open": self.open,
        }

    @property
    def filled_from_fills(self) -> int:
        return sum(f.qty for f in self.fills)

    def __str__(self) -> str:
        head = (
            f"{_show(self.ts)} Venue: {self.venue} Symbol: {self.symbol} "
            f"Direction: {self.direction.value:4s} Price: {self.price:8d} "
            f"Filled: {self.total_filled:6d}/{self.original_qty:6d} Open: {self.open!s:5s} "
            f"Id: {self.id} Account: {self.account} Type: {self.order_type}"
        )
        if not self.fills:
            return head
        return head + "\n" + "\n".join(str(f) for f in self.fills)


@dataclass(frozen=True)
class Execution:
    """A single match between a standing and an incoming order."""

    account: str
    venue: str
    symbol: str
    order: OrderState
    standing_id: int
    incoming_id: int
    price: int
    filled: int
    filled_at: Optional[datetime] = None
    standing_complete: bool = False
    incoming_complete: bool = False

    @classmethod
    def from_wire(cls, obj: WireObject) -> "Execution":
        return cls(
            account=obj.text("account"),
            venue=obj.text("venue"),
            symbol=obj.text("symbol"),
            order=OrderState.from_wire(obj.child("order")),
            standing_id=obj.integer("standingId"),
            incoming_id=obj.integer("incomingId"),
            price=obj.integer("price"),
            filled=obj.integer("filled"),
            filled_at=obj.timestamp("filledAt"),
            standing_complete=obj.flag("standingComplete"),
            incoming_complete=obj.flag("incomingComplete"),
        )

    def to_wire(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "venue": self.venue,
            "symbol": self.symbol,
            "order": self.order.to_wire(),
            "standingId": self.standing_id,
            "incomingId": self.incoming_id,
            "price": self.price,
            "filled": self.filled,
            "filledAt": _ts(self.filled_at),
            "standingComplete": self.standing_complete,
            "incomingComplete": self.incoming_complete,
        }

    def __str__(self) -> str:
        return (
            f"{_show(self.filled_at)} Account: {self.account} Venue: {self.venue} "
            f"Symbol: {self.symbol} Direction: {self.order.direction.value:4s} "
            f"Price: {self.price:8d} Filled: {self.filled:6d} "
            f"Standing: {self.standing_id:6d} ({self.standing_complete}) "
            f"Incoming: {self.incoming_id:6d} ({self.incoming_complete}) "
            f"Type: {self.order.order_type}"
        )


# ============================================================
# GAME MASTER
# ============================================================

@dataclass(frozen=True)
class Game:
    """A started level."""

    account: str
    instance_id: int
    venues: List[str] = field(default_factory=list)
    tickers: List[str] = field(default_factory=list)
    seconds_per_trading_day: int = 0
    instructions: Dict[str, str] = field(default_factory=dict)
    balances: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_wire(cls, obj: WireObject) -> "Game":
        return cls(
            account=obj.text("account"),
            instance_id=obj.integer("instanceId"),
            venues=[str(v) for v in obj.items("venues")],
            tickers=[str(t) for t in obj.items("tickers")],
            seconds_per_trading_day=obj.integer("secondsPerTradingDay"),
            instructions=obj.mapping("instructions"),
            balances=obj.mapping("balances"),
        )

    def to_wire(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "instanceId": self.instance_id,
            "venues": list(self.venues),
            "tickers": list(self.tickers),
            "secondsPerTradingDay": self.seconds_per_trading_day,
            "instructions": dict(self.instructions),
            "balances": dict(self.balances),
        }

    def __str__(self) -> str:
        return (
            f"Account: {self.account} Venues: {self.venues} Tickers: {self.tickers} "
            f"InstanceId: {self.instance_id:6d} SecondsPerDay: {self.seconds_per_trading_day}"
        )


@dataclass(frozen=True)
class GameDetails:
    end_of_the_world_day: int = 0
    trading_day: int = 0


@dataclass(frozen=True)
class Flash:
    """Messages the game master wants shown to the player."""

    info: str = ""
    warning: str = ""
    danger: str = ""


@dataclass(frozen=True)
class GameState:
    """Progress of a running level."""

    id: int
    state: str = ""
    done: bool = False
    details: GameDetails = field(default_factory=GameDetails)
    flash: Flash = field(default_factory=Flash)

    @classmethod
    def from_wire(cls, obj: WireObject) -> "GameState":
        details = obj.child("details")
        flash = obj.child("flash")
        return cls(
            id=obj.integer("id"),
            state=obj.text("state"),
            done=obj.flag("done"),
            details=GameDetails(
                end_of_the_world_day=details.integer("endOfTheWorldDay"),
                trading_day=details.integer("tradingDay"),
            ),
            flash=Flash(
                info=flash.text("info"),
                warning=flash.text("warning"),
                danger=flash.text("danger"),
            ),
        )

    def to_wire(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "state": self.state,
            "done": self.done,
            "details": {
                "endOfTheWorldDay": self.details.end_of_the_world_day,
                "tradingDay": self.details.trading_day,
            },
            "flash": {
                "info": self.flash.info,
                "warning": self.flash.warning,
                "danger": self.flash.danger,
            },
        }

    def __str__(self) -> str:
        return (
            f"Id: {self.id} State: {self.state} Done: {self.done} "
            f"Day: {self.details.trading_day}/{self.details.end_of_the_world_day}"
        )


@dataclass(frozen=True)
class Evidence:
    """Submission for a judged level."""

    account: str
    explanation_link: str
    executive_summary: str

    def to_wire(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "explanation_link": self.explanation_link,
            "executive_summary": self.executive_summary,
        }
