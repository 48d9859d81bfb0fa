"""Data models for shellgen history and actions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class HistoryStatus(str, Enum):
    """Outcome marker stored with every history entry."""

    EXECUTED = "executed"
    EXPLAINED = "explained"
    COPIED = "copied"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"


class ActionKind(Enum):
    RUN = "y"
    EXPLAIN = "e"
    COPY = "c"
    HISTORY = "h"
    CANCEL = "n"

    @classmethod
    def from_key(cls, key: str) -> ActionKind:
        """Map a keystroke to an action. Unknown keys cancel."""
        try:
            return cls(key.strip().lower()[:1])
        except ValueError:
            return cls.CANCEL


@dataclass
class HistoryEntry:
    """A stored history line: timestamp | status | query | command."""

    status: HistoryStatus
    query: str
    command: str
    timestamp: str = field(default_factory=lambda: datetime.now().strftime(TIMESTAMP_FORMAT))
