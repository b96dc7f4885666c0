"""Structured log messages.

A Message is one diagnostic record: when, how severe, where it was made,
what happened, plus two field maps. ``context`` holds cross-cutting fields
inherited from an enclosing scope (a request ID, say); ``data`` holds the
fields specific to this call site.

Usage::

    ctx = Context(sink).set("request_id", rid)
    ctx.error("handler failed").set_error(err).print()

Serialization renders fields in a fixed order (time, level, file, line,
trace, what, context, data) and never fails as a whole: a field value that
cannot be encoded is replaced by the encoding error's text.
"""

from __future__ import annotations

import json
import os
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel

from routemaster import stacktrace
from routemaster.logmsg.sinks import LogSink, StreamSink

# Frames recorded by Message.stack_trace()
_TRACE_DEPTH = 10


class Level(str, Enum):
    """Message severity."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogPanic(Exception):
    """Raised by Message.panic() after the message has been emitted."""


class Message:
    """A structured log message. Setters chain and return the message."""

    __slots__ = ("time", "level", "file", "line", "trace", "what", "context", "data", "_sink")

    def __init__(
        self,
        level: Level,
        what: str,
        *,
        file: str = "",
        line: int = 0,
        context: dict[str, Any] | None = None,
        sink: LogSink | None = None,
    ) -> None:
        self.time = datetime.now(timezone.utc)
        self.level = level
        self.file = file
        self.line = line
        self.trace: list[stacktrace.Frame] = []
        self.what = what
        self.context: dict[str, Any] = dict(context) if context else {}
        self.data: dict[str, Any] = {}
        self._sink = sink

    def set(self, key: str, value: Any) -> Message:
        """Add a key-value pair to the message data.

        Exceptions are stored as their text unless they define ``to_json()``;
        most exceptions would otherwise encode as nothing useful.
        """
        if isinstance(value, BaseException) and not callable(getattr(value, "to_json", None)):
            value = describe_error(value)
        self.data[key] = value
        return self

    def set_error(self, err: BaseException) -> Message:
        return self.set("error", err)

    def stack_trace(self) -> Message:
        """Attach the caller's stack trace."""
        self.trace = list(stacktrace.frames(1, _TRACE_DEPTH))
        return self

    # -- serialization -------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "time": self.time.isoformat(),
            "level": self.level.value,
            "file": self.file,
            "line": self.line,
        }
        if self.trace:
            out["trace"] = [frame.to_json() for frame in self.trace]
        out["what"] = self.what
        if self.context:
            out["context"] = dict(self.context)
        if self.data:
            out["data"] = dict(self.data)
        return out

    def to_json(self) -> str:
        parts = [
            f'"time":{json.dumps(self.time.isoformat())}',
            f'"level":{json.dumps(self.level.value)}',
            f'"file":{json.dumps(self.file)}',
            f'"line":{int(self.line)}',
        ]
        if self.trace:
            parts.append(f'"trace":{_encode([frame.to_json() for frame in self.trace])}')
        parts.append(f'"what":{json.dumps(self.what)}')
        if self.context:
            parts.append(f'"context":{_encode_params(self.context)}')
        if self.data:
            parts.append(f'"data":{_encode_params(self.data)}')
        return "{" + ",".join(parts) + "}"

    def __str__(self) -> str:
        return self.to_json()

    def __repr__(self) -> str:
        return f"<Message {self.level.value} {self.what!r} {self.file}:{self.line}>"

    # -- emission ------------------------------------------------------

    def print(self) -> None:
        """Write the message to its sink."""
        sink = self._sink if self._sink is not None else StreamSink()
        line = self.to_json()
        with sink.undecorated():
            sink.emit(line)

    def fatal(self) -> None:
        """Write the message, then exit the process with status 1."""
        self.print()
        raise SystemExit(1)

    def panic(self) -> None:
        """Write the message, then raise LogPanic carrying its text."""
        self.print()
        raise LogPanic(self.to_json())


def describe_error(err: BaseException) -> str:
    """Text of ``err``, or its class name when the text is empty or unavailable."""
    try:
        text = str(err)
    except Exception:
        text = ""
    return text or type(err).__name__


def _default(value: Any) -> Any:
    to_json = getattr(value, "to_json", None)
    if callable(to_json):
        return to_json()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, BaseException):
        return describe_error(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _encode(value: Any) -> str:
    try:
        return json.dumps(value, default=_default, allow_nan=False)
    except Exception as exc:
        return json.dumps(describe_error(exc))


def _encode_params(params: dict[str, Any]) -> str:
    items = (f"{json.dumps(str(k))}:{_encode(v)}" for k, v in params.items())
    return "{" + ",".join(items) + "}"


def new_message(level: Level, what: str, context: dict[str, Any] | None, sink: LogSink | None, depth: int = 2) -> Message:
    """Build a Message stamped with the source location ``depth`` frames up.

    depth=2 names the caller of the public constructor that called this.
    """
    caller = sys._getframe(depth)
    return Message(
        level,
        what,
        file=os.path.basename(caller.f_code.co_filename),
        line=caller.f_lineno,
        context=context,
        sink=sink,
    )


def debug(what: str, *, sink: LogSink | None = None) -> Message:
    return new_message(Level.DEBUG, what, None, sink)


def info(what: str, *, sink: LogSink | None = None) -> Message:
    return new_message(Level.INFO, what, None, sink)


def warning(what: str, *, sink: LogSink | None = None) -> Message:
    return new_message(Level.WARNING, what, None, sink)


def error(what: str, *, sink: LogSink | None = None) -> Message:
    return new_message(Level.ERROR, what, None, sink)


class Context:
    """Fields shared by every message made from it.

    Messages copy the context when they are created; later changes to the
    context do not reach messages already built.
    """

    def __init__(self, fields: dict[str, Any] | None = None, *, sink: LogSink | None = None) -> None:
        self.fields: dict[str, Any] = dict(fields) if fields else {}
        self.sink = sink

    def set(self, key: str, value: Any) -> Context:
        self.fields[key] = value
        return self

    def unset(self, key: str) -> Context:
        self.fields.pop(key, None)
        return self

    def copy(self) -> Context:
        return Context(self.fields, sink=self.sink)

    def debug(self, what: str) -> Message:
        return new_message(Level.DEBUG, what, self.fields, self.sink)

    def info(self, what: str) -> Message:
        return new_message(Level.INFO, what, self.fields, self.sink)

    def warning(self, what: str) -> Message:
        return new_message(Level.WARNING, what, self.fields, self.sink)

    def error(self, what: str) -> Message:
        return new_message(Level.ERROR, what, self.fields, self.sink)
