"""Receiver for event batches pushed by the Routemaster bus."""

from routemaster.models import BatchDecodeError, EventBatch, ReceivedEvent, parse_batch
from routemaster.webhooks import HandlerError, Listener, ListenerResponse, register_listener_routes

__all__ = [
    "BatchDecodeError",
    "EventBatch",
    "HandlerError",
    "Listener",
    "ListenerResponse",
    "ReceivedEvent",
    "parse_batch",
    "register_listener_routes",
]
