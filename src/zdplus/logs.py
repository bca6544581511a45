"""Buffer browser log messages from a zendriver tab and save them to numbered files.

Two log types are collected:

* ``browser``: ``console.*`` calls made by the page (CDP ``Runtime.consoleAPICalled``).
* ``exceptions``: uncaught page exceptions (CDP ``Runtime.exceptionThrown``).

Messages accumulate until fetched. Fetching drains the buffer, so fetching
and discarding the result is how stale messages are cleared before a test.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

import zendriver as zd

logger = logging.getLogger(__name__)

LOG_TYPES: tuple[str, ...] = ("browser", "exceptions")

_CONSOLE_LEVELS = {
    "error": "ERROR",
    "assert": "ERROR",
    "warning": "WARNING",
    "debug": "DEBUG",
    "trace": "DEBUG",
}


@dataclass
class LogMessage:
    """One buffered log entry. *timestamp* is in seconds since the epoch."""

    level: str
    text: str
    timestamp: float

    def format(self) -> str:
        when = datetime.fromtimestamp(self.timestamp, tz=timezone.utc).isoformat()
        return f"{when} {self.level} {self.text}"


def get_enabled_log_types() -> list[str]:
    """Return the log types enabled in settings."""
    from zdplus.settings import get_settings

    return list(get_settings().logs.enabled_types)


def _remote_object_text(obj: Any) -> str:
    value = getattr(obj, "value", None)
    if value is not None:
        return str(value)
    return str(getattr(obj, "description", None) or getattr(obj, "unserializable_value", None) or "")


def _cdp_time(timestamp: Any) -> float:
    # CDP reports milliseconds since the epoch.
    return float(timestamp) / 1000.0 if timestamp else time.time()


class LogCollector:
    """Collects console and exception events from one tab, per log type."""

    def __init__(self) -> None:
        self._buffers: dict[str, deque[LogMessage]] = {t: deque() for t in LOG_TYPES}

    def attach(self, tab: Any) -> None:
        """Subscribe to the tab's runtime events."""
        tab.add_handler(zd.cdp.runtime.ConsoleAPICalled, self._on_console)
        tab.add_handler(zd.cdp.runtime.ExceptionThrown, self._on_exception)

    def _on_console(self, event: Any) -> None:
        text = " ".join(_remote_object_text(arg) for arg in (event.args or []))
        level = _CONSOLE_LEVELS.get(str(event.type_), "INFO")
        self._buffers["browser"].append(LogMessage(level, text, _cdp_time(event.timestamp)))

    def _on_exception(self, event: Any) -> None:
        details = event.exception_details
        text = details.text
        if details.exception is not None:
            text = f"{text} {_remote_object_text(details.exception)}".strip()
        if details.url:
            text = f"{text} ({details.url}:{details.line_number}:{details.column_number})"
        self._buffers["exceptions"].append(LogMessage("ERROR", text, _cdp_time(event.timestamp)))

    def fetch(self, log_type: str) -> list[LogMessage]:
        """Return and clear the buffered messages of *log_type*."""
        if log_type not in self._buffers:
            raise ValueError(f"Unknown log type {log_type!r}; expected one of {LOG_TYPES}")
        buffer = self._buffers[log_type]
        messages = list(buffer)
        buffer.clear()
        return messages


def save_logs(
    messages: Iterable[LogMessage],
    rel_path: str,
    directory: str | Path | None = None,
) -> Path | None:
    """Write *messages* to a numbered file under *directory* (default: ``settings.logdir``).

    Returns the path written, or ``None`` when there is no directory or nothing to write.
    """
    from zdplus.numbered_file import create_numbered_file

    if directory is None:
        from zdplus.settings import get_settings

        directory = get_settings().logdir
    messages = list(messages)
    if not directory or not messages:
        return None

    log_path = create_numbered_file(Path(directory).resolve() / rel_path)
    log_path.write_text("".join(m.format() + "\n" for m in messages), encoding="utf-8")
    logger.info("Saved %d log messages: %s", len(messages), log_path)
    return log_path
