"""Append-only event log shared by every component."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import List, Tuple

from .models import LogEntry

logger = logging.getLogger("sigint_ai.events")


class EventLog:
    """
    Ordered, timestamped log lines behind a single lock.

    Every component appends here; the control surface reads it every frame.
    Appends are mirrored to the ``sigint_ai.events`` logger so the standard
    logging configuration also sees them.

    Usage:
        >>> log = EventLog()
        >>> log.append("[WHISPER] hello")
        >>> log.lines()
        ['[WHISPER] hello']
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: List[LogEntry] = []

    def append(self, text: str, *, level: int = logging.INFO) -> LogEntry:
        entry = LogEntry(timestamp=datetime.now(), text=text)
        with self._lock:
            self._entries.append(entry)
        logger.log(level, text)
        return entry

    def error(self, text: str) -> LogEntry:
        return self.append(text, level=logging.ERROR)

    def lines(self) -> List[str]:
        with self._lock:
            return [entry.text for entry in self._entries]

    def since(self, cursor: int) -> Tuple[List[LogEntry], int]:
        """
        Return entries appended after ``cursor`` and the new cursor.

        Sinks call this repeatedly, passing back the returned cursor, to see
        each line exactly once.
        """
        with self._lock:
            new = self._entries[cursor:]
            return list(new), len(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
