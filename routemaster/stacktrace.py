"""Stack trace capture for the running thread.

Frames are produced innermost first as a lazy, single-use iterator.
Interpreter bootstrap frames (``<frozen importlib._bootstrap>`` and friends)
are left out. When a capture happens while an exception is being handled,
the frames between the raise site and the handler are kept in front of the
live stack, so a trace taken in an ``except`` block still points at the
line that raised.
"""

from __future__ import annotations

import itertools
import sys
import traceback
from collections.abc import Iterator
from dataclasses import asdict, dataclass
from types import FrameType

DEFAULT_MAX_FRAMES = 10


@dataclass(frozen=True)
class Frame:
    """One function call in the call stack."""

    func: str
    file: str
    line: int

    def to_json(self) -> dict[str, str | int]:
        return asdict(self)


def frames(skip_frames: int = 0, max_frames: int = DEFAULT_MAX_FRAMES) -> Iterator[Frame]:
    """Return the current thread's call frames, innermost first.

    Args:
        skip_frames: Number of callers to skip above the caller of frames().
        max_frames: Upper bound on the number of frames produced.

    Returns:
        An iterator; it is consumed once and cannot be restarted.
    """
    # Starting frame is fixed here, not on first next().
    start = sys._getframe(skip_frames + 1)
    exc = sys.exc_info()[1]
    raised = _raise_site_frames(exc, start) if exc is not None else []
    if raised:
        start = start.f_back
    chain = itertools.chain(raised, _walk(start))
    return itertools.islice(chain, max(max_frames, 0))


def format_trace(max_bytes: int = 4096) -> str:
    """Return the textual stack of the caller, truncated to max_bytes."""
    text = "".join(traceback.format_stack(sys._getframe(1)))
    data = text.encode("utf-8")
    if len(data) <= max_bytes:
        return text
    return data[:max_bytes].decode("utf-8", errors="ignore")


def _walk(frame: FrameType | None) -> Iterator[Frame]:
    while frame is not None:
        if not _is_internal(frame.f_code.co_filename):
            yield _to_frame(frame, frame.f_lineno)
        frame = frame.f_back


def _raise_site_frames(exc: BaseException, handler: FrameType) -> list[Frame]:
    """Frames from the handling frame down to the raise site, innermost first.

    Only applies when the exception is handled in ``handler`` itself; an
    exception still in flight from an outer frame says nothing about the
    frames being captured.
    """
    tb = exc.__traceback__
    if tb is None or tb.tb_frame is not handler:
        return []
    found = []
    while tb is not None:
        found.append(_to_frame(tb.tb_frame, tb.tb_lineno))
        tb = tb.tb_next
    found.reverse()
    return found


def _to_frame(frame: FrameType, lineno: int | None) -> Frame:
    code = frame.f_code
    module = frame.f_globals.get("__name__", "")
    name = getattr(code, "co_qualname", code.co_name)
    func = f"{module}.{name}" if module else name
    return Frame(func=func, file=code.co_filename, line=lineno or 0)


def _is_internal(filename: str) -> bool:
    return filename.startswith("<frozen ")
