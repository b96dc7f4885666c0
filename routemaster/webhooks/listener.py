"""Routemaster event listener — terminates webhook deliveries from the bus.

Each request:
1. Authenticates (Basic-auth username must equal the subscription UUID)
2. Parses the body into a non-empty event batch
3. Calls the handler once, synchronously
4. Returns exactly one ListenerResponse

Failure contract:
- Every failure becomes one status code with a terse standard body
- Every failure produces one diagnostic: the on_error hook if configured,
  otherwise an error-level log message on the sink
- A hook that raises is logged as ErrorHookPanic; the status intended for
  the original failure is still returned, once
- Payloads, handler errors and traces go to diagnostics only, never to the
  HTTP caller
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from http import HTTPStatus

from routemaster import logmsg, stacktrace
from routemaster.logmsg import LogSink, describe_error
from routemaster.models import BatchDecodeError, EventBatch, parse_batch
from routemaster.webhooks.errors import (
    AuthFailure,
    ErrorHookPanic,
    HandlerError,
    HandlerFailure,
    HandlerPanic,
    ListenerConfigError,
    ListenerError,
    MalformedBatch,
)
from routemaster.webhooks.verification import verify_basic_auth

logger = logging.getLogger(__name__)

# A handler returns None on success, or an exception instance on failure.
HandlerFunc = Callable[[EventBatch], "BaseException | None"]
ErrorHook = Callable[[ListenerError], None]

# Frames kept on a HandlerPanic
_PANIC_TRACE_DEPTH = 10


@dataclass(frozen=True)
class ListenerResponse:
    """The single response produced for a request."""

    status_code: int
    body: str = ""

    @classmethod
    def for_status(cls, status_code: int) -> ListenerResponse:
        if status_code == HTTPStatus.OK:
            return cls(status_code)
        return cls(status_code, f"{status_code} {HTTPStatus(status_code).phrase}\n")


class Listener:
    """Handles Routemaster webhook deliveries.

    Args:
        handler: Called with each non-empty batch. Return None on success;
            return an exception (or raise HandlerError) to fail with 500.
        secret: Subscription UUID expected as the Basic-auth username.
        on_error: Diagnostic hook, called once per failed request.
        sink: Destination for log messages (default hook, hook panics).
    """

    def __init__(
        self,
        handler: HandlerFunc,
        secret: str,
        *,
        on_error: ErrorHook | None = None,
        sink: LogSink | None = None,
    ) -> None:
        if not callable(handler):
            raise ListenerConfigError("handler must be callable")
        if not secret:
            raise ListenerConfigError("secret (subscription UUID) must be non-empty")
        if on_error is not None and not callable(on_error):
            raise ListenerConfigError("on_error must be callable")
        self._handler = handler
        self._secret = secret
        self._on_error = on_error
        self._sink = sink if sink is not None else logmsg.StreamSink()

    @property
    def sink(self) -> LogSink:
        return self._sink

    def request_context(self) -> logmsg.Context:
        """Log context for one request, tagged with a fresh request ID."""
        return logmsg.Context(sink=self._sink).set("request_id", uuid.uuid4().hex)

    def serve(self, authorization: str | None, body: bytes) -> ListenerResponse:
        """Process one delivery and return its response."""
        ctx = self.request_context()

        if not verify_basic_auth(authorization, self._secret):
            return self.report_error(ctx, AuthFailure())

        try:
            events = parse_batch(body)
        except BatchDecodeError as exc:
            err = MalformedBatch(body.decode("utf-8", errors="replace"))
            err.__cause__ = exc
            return self.report_error(ctx, err)

        failure = self._dispatch(events)
        if failure is not None:
            return self.report_error(ctx, failure)

        logger.debug("Delivered %d event(s) to handler", len(events))
        return ListenerResponse.for_status(HTTPStatus.OK)

    def _dispatch(self, events: EventBatch) -> ListenerError | None:
        """Run the handler; convert whatever goes wrong into a ListenerError."""
        try:
            result = self._handler(events)
        except HandlerError as exc:
            failure: ListenerError = HandlerFailure(describe_error(exc))
            failure.__cause__ = exc
            return failure
        except Exception as exc:
            trace = list(stacktrace.frames(0, _PANIC_TRACE_DEPTH))
            panic = HandlerPanic(f"handler raised {type(exc).__name__}: {describe_error(exc)}", trace)
            panic.__cause__ = exc
            return panic
        if isinstance(result, BaseException):
            failure = HandlerFailure(describe_error(result))
            failure.__cause__ = result
            return failure
        return None

    def report_error(self, ctx: logmsg.Context, err: ListenerError) -> ListenerResponse:
        """Emit the diagnostic for ``err`` and build its response.

        The response is built after the hook returns or raises; either way
        it is returned exactly once.
        """
        try:
            if self._on_error is not None:
                self._on_error(err)
            else:
                ctx.error(err.kind).set_error(err).print()
        except Exception as exc:
            hook_panic = ErrorHookPanic(f"panic while running error handler: {describe_error(exc)}", err)
            hook_panic.__cause__ = exc
            self._log_hook_panic(ctx, hook_panic)
        return ListenerResponse.for_status(err.status_code)

    def _log_hook_panic(self, ctx: logmsg.Context, hook_panic: ErrorHookPanic) -> None:
        try:
            ctx.error(hook_panic.kind).set_error(hook_panic).stack_trace().print()
        except Exception:
            # The sink itself is broken; fall back to the module logger.
            logger.exception("Failed to log error hook panic: %s", hook_panic)
