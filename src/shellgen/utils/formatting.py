"""Terminal rendering helpers."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.text import Text

from shellgen.storage.models import HistoryEntry, HistoryStatus

QUERY_PREVIEW = 40

STATUS_STYLES: dict[HistoryStatus, str] = {
    HistoryStatus.EXECUTED: "green",
    HistoryStatus.EXPLAINED: "cyan",
    HistoryStatus.COPIED: "cyan",
    HistoryStatus.BLOCKED: "red",
    HistoryStatus.CANCELLED: "dim",
}

MENU = Text.assemble(
    "  ",
    ("[y]", "green"), "es, ",
    ("[e]", "green"), "xplain, ",
    ("[c]", "green"), "opy, ",
    ("[h]", "green"), "istory, ",
    ("[n]", "green"), "o",
)


def truncate(text: str, limit: int) -> str:
    """Shorten to ``limit`` characters on a single line."""
    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    return flat[: max(limit - 3, 0)] + "..."


def history_table(entries: list[HistoryEntry]) -> Table:
    table = Table(title=f"Last {len(entries)}", show_edge=False)
    table.add_column("When", style="dim")
    table.add_column("Status")
    table.add_column("Query")
    table.add_column("Command", style="bold")

    for entry in entries:
        style = STATUS_STYLES.get(entry.status, "")
        table.add_row(
            entry.timestamp,
            Text(entry.status.value, style=style),
            Text(truncate(entry.query, QUERY_PREVIEW)),
            Text(truncate(entry.command, QUERY_PREVIEW)),
        )
    return table


def head_lines(text: str, count: int) -> str:
    return "\n".join(text.strip().splitlines()[:count])


def print_history(console: Console, entries: list[HistoryEntry]) -> None:
    if not entries:
        console.print("  No history yet")
        return
    console.print(history_table(entries))
