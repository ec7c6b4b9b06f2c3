"""Sinks that persist or display rendered lines.

Every sink takes a finished line and reports success. Sinks never raise:
failures are reported on the diagnostic logger and the line is dropped.
"""

from __future__ import annotations

import io
import logging
import sys
from collections import deque
from pathlib import Path
from typing import IO, Protocol, runtime_checkable

from rich.console import Console
from rich.text import Text

_log = logging.getLogger(__name__)


@runtime_checkable
class Sink(Protocol):
    """Accepts a rendered line."""

    def write(self, line: str) -> bool: ...


class ConsoleSink:
    """Writes lines to a Rich console.

    ANSI-colored lines are converted to Rich text so color is kept on a
    terminal and stripped when the console is not one.
    """

    def __init__(self, console: Console | None = None, ansi: bool = True) -> None:
        """Initialize the console sink.

        Args:
            console: Rich Console instance (creates new if None)
            ansi: Interpret ANSI escape codes in lines
        """
        self.console = console or Console(soft_wrap=True, emoji=False)
        self.ansi = ansi

    def write(self, line: str) -> bool:
        """Print a line to the console.

        Args:
            line: Rendered log line

        Returns:
            True if the line was printed
        """
        try:
            if self.ansi:
                self.console.print(Text.from_ansi(line), emoji=False)
            else:
                self.console.print(line, markup=False, highlight=False, emoji=False)
        except Exception:
            _log.exception("Console sink failed to write a line")
            return False
        return True


class StreamSink:
    """Writes lines to a text stream and flushes after each one.

    Useful for ensuring immediate output in CI/CD environments.
    """

    def __init__(self, stream: IO[str] | None = None) -> None:
        self.stream = stream or sys.stderr

    def write(self, line: str) -> bool:
        """Write a line and flush the stream.

        Args:
            line: Rendered log line

        Returns:
            True if the line was written
        """
        try:
            self.stream.write(line + "\n")
            self.stream.flush()
        except Exception:
            _log.exception("Stream sink failed to write a line")
            return False
        return True


class FileSink:
    """Appends lines to a file, creating its directory on first write."""

    def __init__(self, filename: str | Path, encoding: str = "utf-8") -> None:
        """Initialize the file sink.

        Args:
            filename: Path to the log file
            encoding: File encoding
        """
        self.path = Path(filename)
        self.encoding = encoding

    def write(self, line: str) -> bool:
        """Append a line to the file.

        Args:
            line: Rendered log line

        Returns:
            True if the line was written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding=self.encoding) as f:
                f.write(line + "\n")
        except OSError:
            _log.exception("File sink failed to write to %s", self.path)
            return False
        return True


class BufferingSink:
    """Keeps the most recent lines in memory.

    Useful for collecting output during a specific operation (e.g., for
    testing or batch uploads).
    """

    def __init__(self, capacity: int = 1000) -> None:
        self.capacity = capacity
        self.buffer: deque[str] = deque(maxlen=capacity)

    def write(self, line: str) -> bool:
        """Store a line, dropping the oldest once at capacity."""
        self.buffer.append(line)
        return True

    @property
    def lines(self) -> list[str]:
        """Buffered lines, oldest first."""
        return list(self.buffer)

    def clear(self) -> None:
        """Drop all buffered lines."""
        self.buffer.clear()


class FanOutSink:
    """Writes each line to every bound sink."""

    def __init__(self, sinks: list[Sink] | None = None) -> None:
        self.sinks: list[Sink] = list(sinks or [])

    def add(self, sink: Sink) -> None:
        """Bind another sink."""
        self.sinks.append(sink)

    def write(self, line: str) -> bool:
        """Write a line to every bound sink.

        Args:
            line: Rendered log line

        Returns:
            True if there is at least one sink and all of them succeeded
        """
        if not self.sinks:
            return False
        results = [sink.write(line) for sink in self.sinks]
        return all(results)


def as_sink(target: Sink | IO[str]) -> Sink:
    """Wrap a text stream as a sink; sinks pass through unchanged."""
    if isinstance(target, io.IOBase):
        return StreamSink(target)
    return target
