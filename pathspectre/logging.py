"""Logging framework for pathspectre.
Provides leveled, categorized logging for explorations. Entries are kept in
memory so tests and reports can inspect what an exploration did; output is
written to a stream (stderr by default) when the entry's level is enabled.
"""

from __future__ import annotations

import os
import sys
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any, TextIO


class LogLevel(IntEnum):
    """Verbosity levels, from silent to per-step tracing."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3
    TRACE = 4


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    GRAY = "\033[90m"


def supports_color(stream: TextIO) -> bool:
    """Check if the stream supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if not hasattr(stream, "isatty") or not stream.isatty():
        return False
    if sys.platform == "win32":
        return bool(os.environ.get("TERM") or "ANSICON" in os.environ)
    return True


@dataclass
class LogEntry:
    """A log entry with metadata."""

    level: LogLevel
    message: str
    category: str = "general"
    timestamp: float = field(default_factory=time.time)
    context: dict[str, Any] = field(default_factory=dict)

    def format(self, color: bool = True, show_time: bool = True) -> str:
        """Format the log entry for display."""
        parts = []
        if show_time:
            stamp = time.strftime("%H:%M:%S", time.localtime(self.timestamp))
            parts.append(f"{Colors.GRAY}{stamp}{Colors.RESET}" if color else stamp)
        marker = self._marker(color)
        if marker:
            parts.append(marker)
        if self.category != "general":
            tag = f"[{self.category}]"
            parts.append(f"{Colors.CYAN}{tag}{Colors.RESET}" if color else tag)
        parts.append(self.message)
        if self.context:
            details = " ".join(f"{k}={v}" for k, v in sorted(self.context.items()))
            parts.append(f"{Colors.GRAY}{details}{Colors.RESET}" if color else details)
        return " ".join(parts)

    def _marker(self, color: bool) -> str:
        markers = {
            LogLevel.NORMAL: ("•", Colors.WHITE),
            LogLevel.VERBOSE: ("→", Colors.BLUE),
            LogLevel.DEBUG: ("⚙", Colors.MAGENTA),
            LogLevel.TRACE: ("⋯", Colors.GRAY),
        }
        char, col = markers.get(self.level, ("", ""))
        if color and char:
            return f"{col}{char}{Colors.RESET}"
        return char


class PathSpectreLogger:
    """Main logger for pathspectre.
    Thread-safe: explorations of independent functions may log concurrently.
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.NORMAL,
        color: bool = True,
        stream: TextIO | None = None,
        file_path: Path | None = None,
        keep_entries: bool = True,
    ):
        self.level = level
        self._stream = stream or sys.stderr
        self._color = color and supports_color(self._stream)
        self._file_handle: TextIO | None = None
        self._keep_entries = keep_entries
        self._entries: list[LogEntry] = []
        self._lock = threading.RLock()
        if file_path is not None:
            self.open_file(file_path)

    def is_enabled(self, level: LogLevel) -> bool:
        """Check if a message at this level would be written."""
        return level <= self.level

    def _emit(self, entry: LogEntry) -> None:
        with self._lock:
            if self._keep_entries:
                self._entries.append(entry)
            if not self.is_enabled(entry.level):
                return
            self._stream.write(entry.format(color=self._color) + "\n")
            self._stream.flush()
            if self._file_handle:
                self._file_handle.write(entry.format(color=False) + "\n")
                self._file_handle.flush()

    def log(
        self,
        level: LogLevel,
        message: str,
        category: str = "general",
        **context: Any,
    ) -> None:
        """Log a message at the specified level."""
        self._emit(LogEntry(level=level, message=message, category=category, context=context))

    def info(self, message: str, category: str = "general", **context: Any) -> None:
        self.log(LogLevel.NORMAL, message, category, **context)

    def verbose(self, message: str, category: str = "general", **context: Any) -> None:
        self.log(LogLevel.VERBOSE, message, category, **context)

    def debug(self, message: str, category: str = "general", **context: Any) -> None:
        self.log(LogLevel.DEBUG, message, category, **context)

    def trace(self, message: str, category: str = "general", **context: Any) -> None:
        self.log(LogLevel.TRACE, message, category, **context)

    def _write_marked(self, symbol: str, color: str, message: str, level: LogLevel) -> None:
        with self._lock:
            if self._keep_entries:
                self._entries.append(LogEntry(level=level, message=message, category="status"))
            if not self.is_enabled(level):
                return
            prefix = f"{color}{symbol}{Colors.RESET}" if self._color else symbol
            self._stream.write(f"{prefix} {message}\n")
            self._stream.flush()
            if self._file_handle:
                self._file_handle.write(f"{symbol} {message}\n")
                self._file_handle.flush()

    def success(self, message: str) -> None:
        """Log a success message with green checkmark."""
        self._write_marked("✓", Colors.GREEN, message, LogLevel.NORMAL)

    def warning(self, message: str) -> None:
        """Log a warning message (shown unless quiet)."""
        self._write_marked("⚠", Colors.YELLOW, message, LogLevel.NORMAL)

    def error(self, message: str) -> None:
        """Log an error message (always shown)."""
        self._write_marked("✗", Colors.RED, message, LogLevel.QUIET)

    @contextmanager
    def timer(self, name: str, category: str = "timing"):
        """Context manager for timing operations."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.verbose(f"{name}: {time.perf_counter() - start:.3f}s", category=category)

    def get_entries(
        self,
        level: LogLevel | None = None,
        category: str | None = None,
    ) -> list[LogEntry]:
        """Get logged entries, optionally filtered."""
        with self._lock:
            entries = list(self._entries)
        if level is not None:
            entries = [e for e in entries if e.level == level]
        if category is not None:
            entries = [e for e in entries if e.category == category]
        return entries

    def open_file(self, path: Path) -> None:
        """Also write enabled entries to a file."""
        self._file_handle = open(path, "w", encoding="utf-8")

    def close(self) -> None:
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None


_logger: PathSpectreLogger | None = None


def get_logger() -> PathSpectreLogger:
    """Get the global logger instance."""
    global _logger
    if _logger is None:
        _logger = PathSpectreLogger()
    return _logger


def set_logger(logger: PathSpectreLogger) -> None:
    """Set the global logger instance."""
    global _logger
    _logger = logger


def configure_logging(
    level: LogLevel = LogLevel.NORMAL,
    color: bool = True,
    file_path: Path | None = None,
    stream: TextIO | None = None,
) -> PathSpectreLogger:
    """Configure and return the global logger."""
    global _logger
    _logger = PathSpectreLogger(level=level, color=color, stream=stream, file_path=file_path)
    return _logger


__all__ = [
    "LogLevel",
    "LogEntry",
    "Colors",
    "PathSpectreLogger",
    "get_logger",
    "set_logger",
    "configure_logging",
    "supports_color",
]
