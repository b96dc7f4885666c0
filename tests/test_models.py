"""Tests for event models and batch parsing."""

from __future__ import annotations

import json

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from pydantic import BaseModel, ValidationError

from conftest import DEEPLY_NESTED_BODY, OVERSIZED_INT_BODY
from routemaster.models import BatchDecodeError, ReceivedEvent, parse_batch


class _Order(BaseModel):
    restaurant_id: int


_events = st.fixed_dictionaries(
    {
        "topic": st.text(min_size=1, max_size=20),
        "type": st.sampled_from(["create", "update", "delete", "noop"]),
        "url": st.from_regex(r"https://[a-z]{1,10}/[0-9]{1,5}", fullmatch=True),
    },
    optional={"t": st.integers(min_value=0, max_value=2**53)},
)


class TestParseBatch:
    """parse_batch() accepts only non-empty arrays of events."""

    def test_single_event(self, order_body):
        (event,) = parse_batch(order_body)
        assert event == ReceivedEvent(topic="orders", type="create", url="https://orders/1", timestamp=500)

    def test_timestamp_key_accepted(self):
        body = b'[{"topic": "a", "type": "noop", "url": "https://a/1", "timestamp": 7}]'
        assert parse_batch(body)[0].timestamp == 7

    def test_timestamp_optional(self):
        body = b'[{"topic": "a", "type": "noop", "url": "https://a/1"}]'
        assert parse_batch(body)[0].timestamp is None

    def test_data_is_opaque(self):
        body = b'[{"topic": "a", "type": "noop", "url": "https://a/1", "data": [1, {"x": null}]}]'
        assert parse_batch(body)[0].data == [1, {"x": None}]

    def test_unknown_keys_ignored(self):
        body = b'[{"topic": "a", "type": "noop", "url": "https://a/1", "extra": true}]'
        assert parse_batch(body)[0].topic == "a"

    def test_returns_tuple(self, order_body):
        assert isinstance(parse_batch(order_body), tuple)

    def test_str_body(self):
        assert parse_batch('[{"topic": "a", "type": "noop", "url": "https://a/1"}]')[0].url == "https://a/1"

    @pytest.mark.parametrize(
        "body",
        [
            b"",
            b"[]",
            b"null",
            b"{}",
            b'{"topic": "orders", "type": "create", "url": "https://orders/1"}',
            b'{"topic": "orders", "type": "create", "url": "https://orders/1"}]',
            b"[1, 2]",
            b'[{"topic": "a", "type": "noop"}]',
            b'[{"topic": "a", "type": "noop", "url": "/relative"}]',
            b'[{"topic": 5, "type": "noop", "url": "https://a/1"}]',
            b"\xff\xfe",
            OVERSIZED_INT_BODY,
            DEEPLY_NESTED_BODY,
            b'[{"topic": "a", "type": "noop", "url": "https://a/1", "t": "500"}]',
            b'[{"topic": "a", "type": "noop", "url": "https://a/1", "t": 500.0}]',
            b'[{"topic": "a", "type": "noop", "url": "https://a/1", "t": true}]',
            b'[{"topic": "a", "type": 1, "url": "https://a/1"}]',
        ],
    )
    def test_rejects(self, body):
        with pytest.raises(BatchDecodeError):
            parse_batch(body)

    def test_empty_message(self):
        with pytest.raises(BatchDecodeError, match="empty batch"):
            parse_batch(b"[]")

    @pytest.mark.parametrize("body", [OVERSIZED_INT_BODY, DEEPLY_NESTED_BODY])
    def test_decoder_limits_reported_as_invalid_json(self, body):
        with pytest.raises(BatchDecodeError, match="invalid JSON"):
            parse_batch(body)

    @pytest.mark.parametrize("depth", [1, 10, 100])
    def test_nesting_inside_data_accepted(self, depth):
        body = b'[{"topic": "a", "type": "noop", "url": "https://a/1", "data": ' + b"[" * depth + b"]" * depth + b"}]"
        assert parse_batch(body)[0].data is not None

    @given(st.one_of(st.text(), st.floats(allow_nan=False), st.booleans(), st.lists(st.integers(), max_size=2)))
    @settings(max_examples=50)
    def test_non_integer_timestamps_rejected(self, stamp):
        """Timestamps are never coerced from strings, floats or booleans."""
        body = json.dumps([{"topic": "a", "type": "noop", "url": "https://a/1", "t": stamp}]).encode()
        with pytest.raises(BatchDecodeError):
            parse_batch(body)

    @given(st.lists(_events, min_size=1, max_size=10))
    @settings(max_examples=50)
    def test_preserves_order_and_fields(self, raw):
        """Decoded events match the input element by element."""
        events = parse_batch(json.dumps(raw).encode())
        assert len(events) == len(raw)
        for event, item in zip(events, raw):
            assert (event.topic, event.type, event.url) == (item["topic"], item["type"], item["url"])
            assert event.timestamp == item.get("t")

    @given(st.one_of(st.integers(), st.text(), st.booleans(), st.none(), st.dictionaries(st.text(), st.integers())))
    @settings(max_examples=50)
    def test_non_array_documents_rejected(self, doc):
        with pytest.raises(BatchDecodeError):
            parse_batch(json.dumps(doc).encode())


class TestReceivedEvent:
    def test_immutable(self):
        event = ReceivedEvent(topic="a", type="noop", url="https://a/1")
        with pytest.raises(ValidationError):
            event.topic = "b"  # type: ignore[misc]

    def test_decode_data(self):
        """Consumers decode data lazily into their own types."""
        event = ReceivedEvent(topic="orders", type="create", url="https://orders/1", data={"restaurant_id": 123})
        assert event.decode(_Order).restaurant_id == 123

    def test_decode_plain_type(self):
        event = ReceivedEvent(topic="a", type="noop", url="https://a/1", data=[1, 2])
        assert event.decode(list[int]) == [1, 2]

    def test_decode_error_surfaces(self):
        event = ReceivedEvent(topic="a", type="noop", url="https://a/1", data={"restaurant_id": "abc"})
        with pytest.raises(ValidationError):
            event.decode(_Order)
