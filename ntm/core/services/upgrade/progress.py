"""
Output sink and download progress reporting.

The upgrade core never writes to stdout directly. It talks to an
``OutputSink`` supplied by the caller: the CLI passes one backed by
click, tests pass a recording sink with a fixed ``isatty()`` answer.
"""

from __future__ import annotations

import sys
import time
from typing import BinaryIO, Callable, Protocol, TextIO

# Redraw at most every 100ms (10 Hz)
PROGRESS_INTERVAL = 0.1


class OutputSink(Protocol):
    """Where the upgrade pipeline reports what it is doing."""

    def write(self, text: str) -> None:
        """Write raw text without a newline."""

    def line(self, text: str = "", style: str | None = None) -> None:
        """Write one line. ``style`` is ok / warn / error / dim / title."""

    def isatty(self) -> bool:
        """Whether in-place progress redraws make sense."""


class StreamSink:
    """Plain sink over a text stream (stdout by default), no styling."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdout

    def write(self, text: str) -> None:
        self._stream.write(text)
        self._stream.flush()

    def line(self, text: str = "", style: str | None = None) -> None:
        self.write(text + "\n")

    def isatty(self) -> bool:
        try:
            return self._stream.isatty()
        except (AttributeError, ValueError):
            return False


def format_size(n: int | float) -> str:
    """Format a byte count, e.g. ``512 B``, ``1.5 MB``."""
    if n < 1024:
        return f"{int(n)} B"
    for unit in ("KB", "MB", "GB", "TB"):
        n /= 1024
        if n < 1024:
            return f"{n:.1f} {unit}"
    return f"{n:.1f} PB"


class ProgressWriter:
    """File wrapper that reports download progress to a sink.

    On a TTY it redraws ``Downloading... NN% done/total (rate/s)`` in
    place, throttled to ``PROGRESS_INTERVAL``. Elsewhere it is silent.
    """

    def __init__(
        self,
        target: BinaryIO,
        sink: OutputSink,
        total: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._target = target
        self._sink = sink
        self._clock = clock
        self._tty = sink.isatty()
        self.total = total
        self.downloaded = 0
        self._started = clock()
        self._last_update = self._started

    def write(self, chunk: bytes) -> int:
        n = self._target.write(chunk)
        self.downloaded += len(chunk)
        now = self._clock()
        if now - self._last_update >= PROGRESS_INTERVAL:
            self._display(now)
            self._last_update = now
        return n

    def _display(self, now: float) -> None:
        if not self._tty:
            return
        if self.total <= 0:
            self._sink.write(f"\r  Downloading... {format_size(self.downloaded)}")
            return
        percent = self.downloaded / self.total * 100
        elapsed = now - self._started
        speed = self.downloaded / elapsed if elapsed > 0 else 0
        self._sink.write(
            f"\r  Downloading... {percent:.0f}% "
            f"{format_size(self.downloaded)}/{format_size(self.total)} "
            f"({format_size(speed)}/s)    "
        )

    def finish(self) -> None:
        """Reset the progress line so a status mark can follow it."""
        if self._tty:
            self._sink.write("\r  Downloading... ")
