"""Progress records passed from worker threads to whichever front end is listening."""

from __future__ import annotations

import queue
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Deque, Iterator, List, Optional, Protocol


DEFAULT_MAX_LOG_LINES = 1000


class StatusType(str, Enum):
    UNKNOWN = "unknown"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"

    @property
    def tag(self) -> str:
        return _TAGS[self]

    @property
    def style(self) -> str:
        """Rich style name used when echoing to the terminal."""
        return _STYLES[self]


_TAGS = {
    StatusType.UNKNOWN: "[*]",
    StatusType.SUCCESS: "[OK]",
    StatusType.WARNING: "[WARN]",
    StatusType.ERROR: "[ERROR]",
    StatusType.INFO: "[INFO]",
}

_STYLES = {
    StatusType.UNKNOWN: "muted",
    StatusType.SUCCESS: "ok",
    StatusType.WARNING: "warn",
    StatusType.ERROR: "error",
    StatusType.INFO: "info",
}


@dataclass(frozen=True)
class ProgressUpdate:
    """One message from a worker.

    ``message`` drives the progress bar and label; when it is ``None`` only the
    console line (``log_message``) is applied and the bar stays where it is.
    """

    progress: float = 0.0
    message: Optional[str] = None
    log_message: Optional[str] = None
    log_type: StatusType = StatusType.INFO

    @property
    def moves_bar(self) -> bool:
        return self.message is not None

    @property
    def fraction(self) -> float:
        return max(0.0, min(self.progress, 100.0)) / 100.0


class Reporter(Protocol):
    def post(self, update: ProgressUpdate) -> None:
        ...


class NullReporter:
    def post(self, update: ProgressUpdate) -> None:
        return None


class CallbackReporter:
    """Forward each update to ``callback`` (e.g. a ``GLib.idle_add`` wrapper)."""

    def __init__(self, callback: Callable[[ProgressUpdate], object]):
        self._callback = callback

    def post(self, update: ProgressUpdate) -> None:
        self._callback(update)


class QueueReporter:
    """Thread-safe FIFO of updates for consumers that poll."""

    def __init__(self) -> None:
        self._queue: "queue.Queue[ProgressUpdate]" = queue.Queue()

    def post(self, update: ProgressUpdate) -> None:
        self._queue.put(update)

    def drain(self) -> Iterator[ProgressUpdate]:
        while True:
            try:
                yield self._queue.get_nowait()
            except queue.Empty:
                return

    def empty(self) -> bool:
        return self._queue.empty()


def log(reporter: Reporter, text: str, status: StatusType = StatusType.INFO) -> None:
    """Post a console-only line."""
    reporter.post(ProgressUpdate(log_message=text, log_type=status))


def progress(
    reporter: Reporter,
    percent: float,
    message: str,
    log_message: Optional[str] = None,
    status: StatusType = StatusType.INFO,
) -> None:
    """Post a bar update, optionally with a console line."""
    reporter.post(
        ProgressUpdate(
            progress=percent,
            message=message,
            log_message=log_message,
            log_type=status,
        )
    )


def format_log_line(
    message: str, status: StatusType, now: Optional[datetime] = None
) -> str:
    stamp = (now or datetime.now()).strftime("%H:%M:%S")
    return f"[{stamp}] {status.tag} {message}"


class ConsoleBuffer:
    """Bounded list of formatted console lines; oldest lines fall off first."""

    def __init__(self, max_lines: int = DEFAULT_MAX_LOG_LINES):
        if max_lines < 1:
            raise ValueError("max_lines must be positive")
        self.max_lines = max_lines
        self._lines: Deque[str] = deque(maxlen=max_lines)

    def append(
        self, message: str, status: StatusType, now: Optional[datetime] = None
    ) -> str:
        line = format_log_line(message, status, now)
        self._lines.append(line)
        return line

    def lines(self) -> List[str]:
        return list(self._lines)

    def text(self) -> str:
        return "".join(f"{line}\n" for line in self._lines)

    def __len__(self) -> int:
        return len(self._lines)
