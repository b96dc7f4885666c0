"""Listener failure taxonomy.

Each failure maps to exactly one HTTP status. The exception carries the
internal detail (raw payload, handler error, trace) for the diagnostic
hook; callers of the webhook only ever see the status line.
"""

from __future__ import annotations

from typing import Any, ClassVar

from routemaster.logmsg import describe_error
from routemaster.stacktrace import Frame


class ListenerConfigError(ValueError):
    """Listener constructed with missing or invalid configuration."""


class HandlerError(Exception):
    """Raised by an event handler to report an explicit failure.

    Treated the same as returning an exception instance: 500, HandlerFailure.
    """


class ListenerError(Exception):
    """Base class for failures reported by the listener."""

    kind: ClassVar[str] = "listener_error"
    status_code: ClassVar[int] = 500

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {"kind": self.kind, "message": describe_error(self)}
        cause = self.__cause__
        if cause is not None:
            out["cause"] = describe_error(cause)
            out["cause_type"] = type(cause).__name__
        return out


class AuthFailure(ListenerError):
    kind = "auth_failure"
    status_code = 401

    def __init__(self, message: str = "bad token") -> None:
        super().__init__(message)


class MalformedBatch(ListenerError):
    """Body is not a non-empty JSON array of events."""

    kind = "malformed_batch"
    status_code = 400

    def __init__(self, payload: str) -> None:
        super().__init__(f"body malformed: {payload}")
        self.payload = payload

    def to_json(self) -> dict[str, Any]:
        out = super().to_json()
        out["payload"] = self.payload
        return out


class BodyReadFailure(ListenerError):
    kind = "body_read_failure"

    def __init__(self, message: str = "request body read failed") -> None:
        super().__init__(message)


class HandlerFailure(ListenerError):
    """The handler reported an error."""

    kind = "handler_failure"


class HandlerPanic(ListenerError):
    """The handler raised; ``trace`` points at the raise site."""

    kind = "handler_panic"

    def __init__(self, message: str, trace: list[Frame] | None = None) -> None:
        super().__init__(message)
        self.trace = trace or []

    def to_json(self) -> dict[str, Any]:
        out = super().to_json()
        if self.trace:
            out["trace"] = [frame.to_json() for frame in self.trace]
        return out


class ErrorHookPanic(ListenerError):
    """The diagnostic hook raised while reporting ``original``."""

    kind = "error_hook_panic"

    def __init__(self, message: str, original: ListenerError) -> None:
        super().__init__(message)
        self.original = original

    def to_json(self) -> dict[str, Any]:
        out = super().to_json()
        out["original"] = self.original.to_json()
        return out
