"""Structured log messages and the sinks they are written to."""

from routemaster.logmsg.message import (
    Context,
    Level,
    LogPanic,
    Message,
    debug,
    describe_error,
    error,
    info,
    warning,
)
from routemaster.logmsg.sinks import FileSink, LoggerSink, LogSink, StreamSink

__all__ = [
    "Context",
    "FileSink",
    "Level",
    "LogPanic",
    "LogSink",
    "LoggerSink",
    "Message",
    "StreamSink",
    "debug",
    "describe_error",
    "error",
    "info",
    "warning",
]
