"""Event models for batches delivered by the Routemaster bus.

The bus POSTs a JSON array of events to the listener. Each element carries
``topic``, ``type`` and ``url``; ``t`` (or ``timestamp``) and ``data`` are
optional. ``data`` is opaque here: consumers decode it with
``ReceivedEvent.decode()`` into whatever shape they expect.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar
from urllib.parse import urlsplit

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

T = TypeVar("T")


class BatchDecodeError(ValueError):
    """The request body is not a non-empty JSON array of events."""


class ReceivedEvent(BaseModel):
    """One event as delivered to the listener. Immutable."""

    model_config = ConfigDict(frozen=True, extra="ignore", strict=True)

    topic: str
    type: str
    url: str
    timestamp: int | None = Field(default=None, validation_alias=AliasChoices("t", "timestamp"))
    data: Any = None

    @field_validator("url")
    @classmethod
    def _absolute_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if not parts.scheme or not parts.netloc:
            raise ValueError("url must be absolute")
        return value

    def decode(self, model: type[T]) -> T:
        """Decode ``data`` into ``model`` (a pydantic model or any type pydantic accepts).

        Raises:
            pydantic.ValidationError: if the payload does not fit ``model``.
        """
        return TypeAdapter(model).validate_python(self.data)


EventBatch = tuple[ReceivedEvent, ...]

_batch_adapter = TypeAdapter(list[ReceivedEvent])


def parse_batch(body: bytes | str) -> EventBatch:
    """Decode a request body into a non-empty batch, preserving order.

    Raises:
        BatchDecodeError: on invalid JSON, a non-array document, an element
            that is not a valid event, or an empty array.
    """
    try:
        raw = json.loads(body)
    except (ValueError, RecursionError) as exc:
        raise BatchDecodeError(f"invalid JSON: {exc}") from exc
    if not isinstance(raw, list):
        raise BatchDecodeError(f"expected a JSON array, got {type(raw).__name__}")
    if not raw:
        raise BatchDecodeError("empty batch")
    try:
        events = _batch_adapter.validate_python(raw)
    except ValidationError as exc:
        raise BatchDecodeError(f"invalid event: {exc.error_count()} error(s)") from exc
    return tuple(events)
