"""Tests for terminal rendering helpers."""

from __future__ import annotations

from shellgen.storage.models import ActionKind, HistoryEntry, HistoryStatus
from shellgen.utils.formatting import head_lines, print_history, truncate


class TestTruncate:
    def test_short_text(self):
        assert truncate("hello", 10) == "hello"

    def test_long_text(self):
        assert truncate("a" * 50, 10) == "aaaaaaa..."

    def test_flattens_newlines(self):
        assert truncate("cd /tmp &&\n  ls", 40) == "cd /tmp && ls"


class TestHeadLines:
    def test_limits_lines(self):
        text = "\n".join(f"line {i}" for i in range(20))
        assert head_lines(text, 3) == "line 0\nline 1\nline 2"

    def test_strips_surrounding_blank_lines(self):
        assert head_lines("\n\nonly\n\n", 10) == "only"


class TestPrintHistory:
    def test_empty(self, console):
        print_history(console, [])
        assert "No history yet" in console.file.getvalue()

    def test_rows(self, console):
        entries = [
            HistoryEntry(HistoryStatus.EXECUTED, "list files", "ls -la", "2024-01-02 03:04:05"),
            HistoryEntry(HistoryStatus.BLOCKED, "wipe [disk]", "dd if=/dev/zero of=/dev/sda", "2024-01-02 03:05:00"),
        ]
        print_history(console, entries)
        output = console.file.getvalue()
        assert "ls -la" in output
        assert "wipe [disk]" in output
        assert "blocked" in output


class TestActionKeys:
    def test_primary_letters(self):
        assert ActionKind.from_key("y") is ActionKind.RUN
        assert ActionKind.from_key("E") is ActionKind.EXPLAIN
        assert ActionKind.from_key("c") is ActionKind.COPY
        assert ActionKind.from_key("H") is ActionKind.HISTORY
        assert ActionKind.from_key("n") is ActionKind.CANCEL

    def test_unknown_key_cancels(self):
        assert ActionKind.from_key("x") is ActionKind.CANCEL
        assert ActionKind.from_key("") is ActionKind.CANCEL
        assert ActionKind.from_key("\r") is ActionKind.CANCEL
