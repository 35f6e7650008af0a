"""
Fixtures for the Stockfighter client tests.

FakeExchange is an in-process aiohttp server that answers HTTP
calls with canned envelopes and plays scripted frames on
websocket paths.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Set, Tuple, Union

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from stockfighter import ClientConfig


# ============================================================
# WIRE SAMPLES
# ============================================================

TS = "2015-12-04T09:02:16.680986Z"
TS_NANOS = "2015-12-04T09:02:16.680986205Z"


def order_state_wire(**overrides: Any) -> Dict[str, Any]:
    data = {
        "symbol": "FOOBAR",
        "venue": "TESTEX",
        "direction": "buy",
        "originalQty": 100,
        "qty": 20,
        "price": 5100,
        "orderType": "limit",
        "id": 12345,
        "account": "OGB12345",
        "ts": TS,
        "fills": [
            {"price": 5050, "qty": 50, "ts": TS},
            {"price": 5100, "qty": 30, "ts": TS},
        ],
        "totalFilled": 80,
        "open": True,
    }
    data.update(overrides)
    return data


def quote_wire(**overrides: Any) -> Dict[str, Any]:
    data = {
        "symbol": "FOOBAR",
        "venue": "TESTEX",
        "bid": 5100,
        "ask": 5125,
        "bidSize": 392,
        "askSize": 711,
        "bidDepth": 2748,
        "askDepth": 2237,
        "last": 5125,
        "lastSize": 52,
        "lastTrade": TS,
        "quoteTime": TS,
    }
    data.update(overrides)
    return data


def order_book_wire() -> Dict[str, Any]:
    # deliberately unsorted
    return {
        "venue": "TESTEX",
        "symbol": "FOOBAR",
        "asks": [
            {"price": 5210, "qty": 100, "isBuy": False},
            {"price": 5205, "qty": 150, "isBuy": False},
            {"price": 5220, "qty": 40, "isBuy": False},
        ],
        "bids": [
            {"price": 5180, "qty": 80, "isBuy": True},
            {"price": 5200, "qty": 20, "isBuy": True},
        ],
        "ts": TS_NANOS,
    }


def execution_wire(**overrides: Any) -> Dict[str, Any]:
    data = {
        "account": "OGB12345",
        "venue": "TESTEX",
        "symbol": "FOOBAR",
        "order": order_state_wire(),
        "standingId": 12300,
        "incomingId": 12345,
        "price": 5100,
        "filled": 30,
        "filledAt": TS,
        "standingComplete": False,
        "incomingComplete": True,
    }
    data.update(overrides)
    return data


def envelope(payload: Optional[Dict[str, Any]] = None, ok: bool = True, error: str = "") -> str:
    message: Dict[str, Any] = {"ok": ok}
    if error:
        message["error"] = error
    message.update(payload or {})
    return json.dumps(message)


# ============================================================
# FAKE EXCHANGE
# ============================================================

Body = Union[Dict[str, Any], str, bytes]


class FakeExchange:
    """Scriptable HTTP + websocket server."""

    def __init__(self):
        self.app = web.Application()
        self.app.router.add_route("*", "/{tail:.*}", self._handle)
        self.server: Optional[TestServer] = None

        self._responses: Dict[Tuple[str, str], Tuple[int, bytes]] = {}
        self._streams: Dict[str, Tuple[List[str], bool, bool]] = {}
        self._stalls: Set[str] = set()
        self._stop = asyncio.Event()
        self.requests: List[Dict[str, Any]] = []
        self.sockets: List[web.WebSocketResponse] = []

    @property
    def host(self) -> str:
        return f"{self.server.host}:{self.server.port}"

    def respond(self, method: str, path: str, body: Body, status: int = 200) -> None:
        if isinstance(body, dict):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        self._responses[(method, path)] = (status, body)

    def stream(
        self,
        path: str,
        frames: List[str],
        hold_open: bool = True,
        answer_close: bool = True,
    ) -> None:
        """Script a websocket; with answer_close=False the socket goes silent after the frames."""
        self._streams[path] = (frames, hold_open, answer_close)

    def stall(self, path: str) -> None:
        """Never answer requests to path until shutdown."""
        self._stalls.add(path)

    async def _handle(self, request: web.Request) -> web.StreamResponse:
        body = await request.read()
        self.requests.append({
            "method": request.method,
            "path": request.path,
            "headers": dict(request.headers),
            "body": json.loads(body) if body else None,
        })

        if request.path in self._stalls:
            await self._stop.wait()
            return web.Response(status=503)

        if request.path in self._streams:
            return await self._play(request)

        key = (request.method, request.path)
        if key not in self._responses:
            return web.Response(status=404, text="404 page not found")

        status, payload = self._responses[key]
        return web.Response(status=status, body=payload, content_type="application/json")

    async def _play(self, request: web.Request) -> web.WebSocketResponse:
        frames, hold_open, answer_close = self._streams[request.path]
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        self.sockets.append(ws)

        for frame in frames:
            if ws.closed:
                break
            try:
                await ws.send_str(frame)
            except ConnectionResetError:
                break

        if not answer_close:
            await self._stop.wait()
        elif hold_open:
            async for _ in ws:
                pass
        else:
            await ws.close()
        return ws

    async def shutdown(self) -> None:
        self._stop.set()
        for ws in self.sockets:
            if not ws.closed:
                await ws.close()
        await self.server.close()


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
async def exchange():
    """Running fake exchange."""
    fake = FakeExchange()
    fake.server = TestServer(fake.app)
    await fake.server.start_server()
    yield fake
    await fake.shutdown()


@pytest.fixture
def config(exchange):
    """Client config pointed at the fake exchange."""
    return ClientConfig(api_key="test-key-0123456789", host=exchange.host, secure=False)


@pytest.fixture
def dead_config():
    """Client config pointed at a port nothing listens on."""
    return ClientConfig(api_key="test-key", host="127.0.0.1:1", secure=False)
