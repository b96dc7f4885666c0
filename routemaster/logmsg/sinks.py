"""Diagnostic sinks: where serialized log messages end up.

A sink does one thing: emit a line of text. Adapters cover the concrete
destinations:

- StreamSink: a text stream, stderr unless told otherwise
- FileSink: a file opened in append mode, one line per record
- LoggerSink: a stdlib ``logging.Logger``; attach any handler to it
  (``SysLogHandler``, ``SocketHandler``) to forward records to a collector

Messages carry their own timestamp, so sinks that decorate output expose
``undecorated()``, a context manager that strips the decoration for the
duration of one emission.
"""

from __future__ import annotations

import contextlib
import logging
import sys
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path
from typing import TextIO

# Formatter installed on LoggerSink handlers while a message is emitted
_BARE_FORMATTER = logging.Formatter("%(message)s")


class LogSink(ABC):
    """Destination for serialized diagnostic records."""

    @abstractmethod
    def emit(self, line: str) -> None:
        """Write one line of text (no trailing newline expected)."""

    def undecorated(self) -> contextlib.AbstractContextManager[None]:
        """Suspend timestamp/prefix decoration for one emission."""
        return contextlib.nullcontext()


class StreamSink(LogSink):
    """Writes records to a text stream.

    With no stream, writes to whatever ``sys.stderr`` is at emit time.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def emit(self, line: str) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        with self._lock:
            stream.write(line + "\n")
            stream.flush()


class FileSink(LogSink):
    """Appends records to a file, one JSON line each."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def emit(self, line: str) -> None:
        with self._lock:
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")


class LoggerSink(LogSink):
    """Forwards records to a stdlib logger.

    While undecorated() is active every handler the logger reaches (its own
    and those of propagating ancestors) formats with a bare ``%(message)s``
    formatter; the previous formatters come back when the block exits,
    whether or not the write succeeded.

    The swap is made on the handler objects themselves. A handler shared
    with other loggers (a root handler, typically) also formats their
    records bare while the block is open, including records logged from
    other threads; the lock only serializes LoggerSink emissions.
    """

    def __init__(self, logger: logging.Logger | str = "routemaster", level: int = logging.INFO) -> None:
        self.logger = logging.getLogger(logger) if isinstance(logger, str) else logger
        self.level = level
        self._lock = threading.RLock()

    def emit(self, line: str) -> None:
        self.logger.log(self.level, line)

    def handlers(self) -> list[logging.Handler]:
        """Handlers a record from this logger reaches, ancestors included."""
        found: list[logging.Handler] = []
        logger: logging.Logger | None = self.logger
        while logger is not None:
            found.extend(logger.handlers)
            if not logger.propagate:
                break
            logger = logger.parent
        return found

    @contextlib.contextmanager
    def undecorated(self) -> Iterator[None]:
        with self._lock:
            saved = [(h, h.formatter) for h in self.handlers()]
            for handler, _ in saved:
                handler.setFormatter(_BARE_FORMATTER)
            try:
                yield
            finally:
                for handler, formatter in saved:
                    handler.setFormatter(formatter)
