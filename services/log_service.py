"""
services/log_service.py

Responsibility: Keeps a bounded in-memory history of update activity for the
/status endpoint and mirrors every entry to Python's standard logging.
Does NOT: persist entries, schedule updates, or format HTTP responses.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 30

# "WARN" is accepted as shorthand for "WARNING"
_LEVEL_ALIASES = {"WARN": "WARNING"}
_LEVELS = {"INFO", "WARNING", "ERROR"}


@dataclass(frozen=True)
class LogEntry:
    """A single activity log line."""

    timestamp: datetime
    level: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.timestamp.isoformat(),
            "level": self.level,
            "message": self.message,
        }


class LogService:
    """
    Ring buffer of the most recent activity log entries.

    These entries are the ones exposed through serviceData / GET /status.
    They are separate from Python's standard logging infrastructure (which
    writes to stdout / uvicorn's logging pipeline), but every entry is
    mirrored there too.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        """
        Args:
            max_entries: Number of entries retained; older ones are dropped.
        """
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)

    def log(self, message: str, level: str = "INFO") -> LogEntry:
        """
        Appends a single log entry, evicting the oldest when full.

        Args:
            message: The human-readable log message.
            level: Log severity string ("INFO", "WARNING"/"WARN", "ERROR").

        Returns:
            The stored LogEntry instance.

        Raises:
            ValueError: If level is not one of the supported severities.
        """
        normalised = level.upper()
        normalised = _LEVEL_ALIASES.get(normalised, normalised)
        if normalised not in _LEVELS:
            raise ValueError(f"Unsupported log level: {level!r}")

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc),
            level=normalised,
            message=message,
        )
        self._entries.append(entry)

        # Mirror to Python logging so the message appears in container stdout
        logger.log(getattr(logging, normalised), message)

        return entry

    def get_recent(self) -> list[LogEntry]:
        """
        Returns the retained entries, oldest first.
        """
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
