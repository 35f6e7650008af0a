"""
Logging Tests.

Credential masking and debug dumps.
"""

import json
import logging

import pytest

from stockfighter import (
    ApiError,
    ClientConfig,
    RequestExecutor,
    ValidationError,
    mask_headers,
    mask_url,
    mask_value,
)
from stockfighter.logging_utils import ClientLogger

from .conftest import envelope, quote_wire


class TestMasking:
    """Tests for credential masking."""

    def test_mask_value(self):
        assert mask_value("abcdef123456") == "abcd...***"
        assert mask_value("abc") == "***"
        assert mask_value("") == "***"

    def test_mask_headers(self):
        masked = mask_headers({
            "X-Starfighter-Authorization": "secret-key-value",
            "Content-Type": "application/json",
        })

        assert masked["X-Starfighter-Authorization"] == "secr...***"
        assert masked["Content-Type"] == "application/json"

    def test_mask_empty(self):
        assert mask_headers(None) == {}

    def test_mask_url(self):
        assert mask_url("http://x/ob/api/heartbeat?apikey=secret&venue=TESTEX") == (
            "http://x/ob/api/heartbeat?apikey=***&venue=TESTEX"
        )
        assert mask_url("http://x/ob/api/heartbeat") == "http://x/ob/api/heartbeat"
        assert mask_url("") == ""


class TestClientLogger:
    """Tests for structured request/response entries."""

    def test_request_ids_increment(self):
        client_logger = ClientLogger()

        first = client_logger.log_request("GET", "http://x/heartbeat")
        second = client_logger.log_request("GET", "http://x/heartbeat")

        assert first != second

    def test_error_logged_as_warning(self, caplog):
        client_logger = ClientLogger()

        with caplog.at_level(logging.DEBUG, logger="stockfighter.client"):
            client_logger.log_response("sf-1", "http://x", 500, 1.5, b"oops", error=ValueError("bad"))

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "RESPONSE_ERROR" in record.getMessage()
        assert "ValueError" in record.getMessage()

    def test_error_detail_is_structured(self, caplog):
        client_logger = ClientLogger()
        error = ApiError("Invalid qty", url="http://x/orders?token=abc", http_status=200)

        with caplog.at_level(logging.DEBUG, logger="stockfighter.client"):
            client_logger.log_response("sf-1", "http://x/orders?token=abc", 200, 1.0, error=error)

        message = caplog.records[-1].getMessage()
        entry = json.loads(message[len("RESPONSE_ERROR: "):])

        assert entry["url"] == "http://x/orders?token=***"
        assert entry["error_detail"] == {
            "category": "BUSINESS",
            "error_type": "ApiError",
            "message": "Invalid qty",
            "url": "http://x/orders?token=***",
            "http_status": 200,
        }

    def test_validation_error_detail(self):
        error = ValidationError("venue mismatch", field="venue", expected="TESTEX", actual="OTHEREX")

        detail = error.to_dict()

        assert detail["category"] == "VALIDATION"
        assert detail["field"] == "venue"
        assert detail["expected"] == "TESTEX"
        assert detail["actual"] == "OTHEREX"

    def test_frames_only_in_debug(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="stockfighter.client"):
            ClientLogger(debug=False).log_frame("ws://x", '{"ok": true}')
            assert caplog.records == []

            ClientLogger(debug=True).log_frame("ws://x", b'{"ok": true}')

        assert 'FRAME [ws://x]: {"ok": true}' in caplog.records[-1].getMessage()


class TestDebugDump:
    """Tests for debug-mode request dumps."""

    @pytest.mark.asyncio
    async def test_debug_dump_masks_key(self, exchange, caplog):
        config = ClientConfig(api_key="super-secret-key", host=exchange.host, secure=False, debug=True)
        exchange.respond("GET", "/ob/api/venues/TESTEX/stocks/FOOBAR/quote", envelope(quote_wire()))
        executor = RequestExecutor(config)

        try:
            with caplog.at_level(logging.INFO, logger="stockfighter.client"):
                await executor.execute("GET", config.api_url("venues", "TESTEX", "stocks", "FOOBAR", "quote"))
        finally:
            await executor.close()

        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith("REQUEST:") for m in messages)
        assert any(m.startswith("RESPONSE:") and "5125" in m for m in messages)
        assert not any("super-secret-key" in m for m in messages)
