"""Append-only, size-bounded history ledger shared by concurrent processes."""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile

from shellgen.config import HistoryConfig
from shellgen.errors import HistoryWriteFailure, LockTimeout
from shellgen.storage.locking import ResourceLock, exclusive
from shellgen.storage.models import HistoryEntry, HistoryStatus

logger = logging.getLogger(__name__)

DELIMITER = "|"
FIELD_COUNT = 4

_ESCAPES = {"\\": "\\\\", DELIMITER: "\\" + DELIMITER, "\n": "\\n", "\r": "\\r"}
_UNESCAPES = {"\\": "\\", DELIMITER: DELIMITER, "n": "\n", "r": "\r"}


def escape_field(value: str) -> str:
    """Escape the delimiter, backslashes and line breaks in a stored field."""
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def split_fields(line: str) -> list[str]:
    """Split a stored line on unescaped delimiters, unescaping each field."""
    fields: list[str] = []
    current: list[str] = []
    chars = iter(line)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, "")
            current.append(_UNESCAPES.get(nxt, "\\" + nxt))
        elif ch == DELIMITER:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
    fields.append("".join(current))
    return fields


def format_entry(entry: HistoryEntry, max_command_length: int) -> str:
    command = entry.command[:max_command_length]
    return DELIMITER.join(
        [entry.timestamp, entry.status.value, escape_field(entry.query), escape_field(command)]
    )


def parse_entry(line: str) -> HistoryEntry | None:
    """Parse one stored line. Returns None for malformed lines."""
    parts = split_fields(line.rstrip("\n"))
    if len(parts) != FIELD_COUNT:
        return None
    timestamp, status, query, command = parts
    try:
        return HistoryEntry(status=HistoryStatus(status), query=query, command=command, timestamp=timestamp)
    except ValueError:
        return None


class HistoryLedger:
    """Line-per-entry history file, trimmed to the most recent ``max_entries``."""

    def __init__(self, config: HistoryConfig, lock: ResourceLock | None = None) -> None:
        self.config = config
        self.path = config.path
        self._lock = lock

    def append(self, entry: HistoryEntry) -> None:
        """Append an entry under an exclusive lock, trimming on overflow.

        Raises HistoryWriteFailure when the file cannot be written at all.
        """
        line = format_entry(entry, self.config.max_command_length) + "\n"
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            try:
                with exclusive(
                    self.path,
                    attempts=self.config.lock_attempts,
                    delay=self.config.lock_delay,
                    lock=self._lock,
                ):
                    self._write_line(line)
                    self._trim()
            except LockTimeout:
                logger.warning("History lock unavailable, appending without lock: %s", self.path)
                self._write_line(line)
        except (OSError, UnicodeError) as e:
            raise HistoryWriteFailure(f"Failed to write history {self.path}: {e}") from e

    def tail(self, count: int = 10) -> list[HistoryEntry]:
        """Return the last ``count`` well-formed entries, oldest first.

        An unreadable file reads as empty.
        """
        if count <= 0:
            return []
        try:
            lines = self._read_lines()
        except OSError as e:
            logger.error("Failed to read history %s: %s", self.path, e)
            return []
        entries = [entry for entry in map(parse_entry, lines) if entry is not None]
        return entries[-count:]

    def __len__(self) -> int:
        return len(self._read_lines())

    def _read_lines(self, errors: str = "replace") -> list[str]:
        try:
            with open(self.path, encoding="utf-8", errors=errors) as f:
                return [line for line in f.read().split("\n") if line]
        except FileNotFoundError:
            return []

    def _write_line(self, line: str) -> None:
        # Single write per entry.
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(line)
            f.flush()
            os.fsync(f.fileno())

    def _trim(self) -> None:
        # Undecodable bytes survive the rewrite unchanged
        lines = self._read_lines(errors="surrogateescape")
        if len(lines) <= self.config.max_entries:
            return

        keep = lines[-self.config.max_entries :] if self.config.max_entries > 0 else []
        logger.debug("Trimming history %s: %d -> %d entries", self.path, len(lines), len(keep))

        # Atomic rewrite: temp file in the same directory, then rename
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape") as f:
                f.writelines(line + "\n" for line in keep)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            raise