"""Webhook receiver for event batches pushed by the Routemaster bus.

Deliveries are authenticated by Basic auth, parsed, and handed to a user
handler synchronously. Every failure maps to one HTTP status and one
diagnostic.
"""

from routemaster.webhooks.errors import (
    AuthFailure,
    BodyReadFailure,
    ErrorHookPanic,
    HandlerError,
    HandlerFailure,
    HandlerPanic,
    ListenerConfigError,
    ListenerError,
    MalformedBatch,
)
from routemaster.webhooks.listener import Listener, ListenerResponse
from routemaster.webhooks.routes import register_listener_routes

__all__ = [
    "AuthFailure",
    "BodyReadFailure",
    "ErrorHookPanic",
    "HandlerError",
    "HandlerFailure",
    "HandlerPanic",
    "Listener",
    "ListenerConfigError",
    "ListenerError",
    "ListenerResponse",
    "MalformedBatch",
    "register_listener_routes",
]
