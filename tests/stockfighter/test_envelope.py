"""
Envelope Codec Tests.

============================================================
PURPOSE
============================================================
Tests for decoding and encoding ``{ok, error, ...payload}``
messages.

============================================================
"""

import json

import pytest

from stockfighter import (
    ApiError,
    EncodingError,
    MalformedResponseError,
    OrderBook,
    OrderState,
    Quote,
    decode_envelope,
    encode_envelope,
    encode_json,
)
from stockfighter.errors import ErrorCategory

from .conftest import envelope, order_book_wire, order_state_wire, quote_wire


class TestDecodeEnvelope:
    """Tests for decode_envelope."""

    def test_ok_payload_shaped(self):
        """Test a success envelope is shaped from its flat fields."""
        result = decode_envelope(envelope(order_state_wire()), OrderState.from_wire)

        assert result.ok is True
        assert result.error == ""
        assert result.payload.id == 12345
        assert result.unwrap() is result.payload

    def test_failure_envelope(self):
        """Test an ok == false envelope carries its error text."""
        result = decode_envelope(envelope(ok=False, error="No venue exists with the symbol OTHEREX"))

        assert result.ok is False
        assert result.payload is None

        with pytest.raises(ApiError, match="No venue exists") as exc_info:
            result.unwrap(url="http://x")
        assert exc_info.value.category == ErrorCategory.BUSINESS
        assert exc_info.value.url == "http://x"

    def test_failure_payload_not_shaped(self):
        """Test the shape is not applied to failure envelopes."""
        def shape(obj):
            raise AssertionError("shape called")

        result = decode_envelope(envelope(ok=False, error="boom"), shape)

        assert result.ok is False

    def test_capitalised_ok(self):
        result = decode_envelope(json.dumps({"Ok": True, "quote": quote_wire()}))

        assert result.ok is True

    def test_bytes_input(self):
        result = decode_envelope(envelope({"venue": "TESTEX"}).encode("utf-8"))

        assert result.payload.text("venue") == "TESTEX"

    @pytest.mark.parametrize("raw", [
        "<html>502 Bad Gateway</html>",
        "",
        "[1, 2, 3]",
        '"ok"',
        '{"error": "no flag"}',
        '{"ok": "true"}',
    ])
    def test_malformed(self, raw):
        """Test non-envelopes are malformed, not business errors."""
        with pytest.raises(MalformedResponseError) as exc_info:
            decode_envelope(raw)

        assert not isinstance(exc_info.value, ApiError)
        assert exc_info.value.category == ErrorCategory.MALFORMED

    def test_payload_not_fitting_shape(self):
        """Test a bad order type inside an ok envelope is malformed."""
        with pytest.raises(MalformedResponseError, match="Unknown order type"):
            decode_envelope(envelope(order_state_wire(orderType="stop")), OrderState.from_wire)


class TestEncodeEnvelope:
    """Tests for encode_envelope / encode_json."""

    @pytest.mark.parametrize("shape, payload", [
        (OrderState.from_wire, order_state_wire()),
        (Quote.from_wire, quote_wire()),
    ])
    def test_round_trip_preserves_payload(self, shape, payload):
        """Test decode then re-encode preserves payload field values."""
        decoded = decode_envelope(envelope(payload), shape)

        encoded = json.loads(encode_envelope(decoded.payload.to_wire()))

        assert encoded["ok"] is True
        for key, value in payload.items():
            assert encoded[key] == value

    def test_round_trip_order_book_values(self):
        """Test order book levels survive a round trip (sorted)."""
        decoded = decode_envelope(envelope(order_book_wire()), OrderBook.from_wire)

        again = decode_envelope(encode_envelope(decoded.payload.to_wire()), OrderBook.from_wire)

        assert again.payload == decoded.payload

    def test_failure_encoding(self):
        encoded = json.loads(encode_envelope(ok=False, error="boom"))

        assert encoded == {"ok": False, "error": "boom"}

    def test_unserializable_body(self):
        with pytest.raises(EncodingError):
            encode_json({"price": object()})

    def test_nan_rejected(self):
        with pytest.raises(EncodingError):
            encode_json({"price": float("nan")})
