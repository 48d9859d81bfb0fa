"""Single-keystroke action menu and its side effects."""

from __future__ import annotations

import logging
from typing import Callable

import typer
from rich.console import Console
from rich.text import Text

from shellgen.config import AppConfig
from shellgen.errors import HistoryWriteFailure, ShellgenError
from shellgen.services.clipboard import Clipboard
from shellgen.services.extract import strip_fences
from shellgen.services.model import ModelRunner
from shellgen.services.shell import ShellRunner
from shellgen.storage.history import HistoryLedger
from shellgen.storage.models import ActionKind, HistoryEntry, HistoryStatus
from shellgen.utils.formatting import MENU, head_lines, print_history

logger = logging.getLogger(__name__)

HISTORY_PREVIEW = 10


def read_keystroke() -> str:
    try:
        return typer.getchar()
    except EOFError:
        return ""


class ActionDispatcher:
    """Run exactly one user-selected action for a generated command."""

    def __init__(
        self,
        config: AppConfig,
        console: Console,
        ledger: HistoryLedger,
        model: ModelRunner,
        shell: ShellRunner,
        clipboard: Clipboard,
        read_key: Callable[[], str] = read_keystroke,
    ) -> None:
        self.config = config
        self.console = console
        self.ledger = ledger
        self.model = model
        self.shell = shell
        self.clipboard = clipboard
        self.read_key = read_key

    def choose(self) -> ActionKind:
        self.console.print()
        self.console.print(MENU)
        self.console.print()
        self.console.print("Choice: ", end="")
        key = self.read_key()
        self.console.print(Text(key.strip()))
        return ActionKind.from_key(key)

    async def dispatch(self, action: ActionKind, query: str, command: str) -> int:
        """Perform ``action``. Returns the process exit code for this run."""
        if action is ActionKind.RUN:
            self.console.print(Text("Running...", style="green"))
            exit_code = await self.shell.run(command)
            self.record(HistoryStatus.EXECUTED, query, command)
            return exit_code

        if action is ActionKind.EXPLAIN:
            await self.explain(command)
            self.record(HistoryStatus.EXPLAINED, query, command)
            return 0

        if action is ActionKind.COPY:
            if self.clipboard.copy(command):
                self.console.print(Text("✓ Copied", style="green"))
            else:
                self.console.print(Text("No clipboard tool", style="yellow"))
                self.console.print(Text.assemble("Command: ", command))
            self.record(HistoryStatus.COPIED, query, command)
            return 0

        if action is ActionKind.HISTORY:
            self.show_history()
            return 0

        self.console.print(Text("Cancelled", style="red"))
        self.record(HistoryStatus.CANCELLED, query, command)
        return 0

    async def explain(self, command: str) -> None:
        self.console.print(Text("Explaining...", style="yellow"))
        try:
            raw = await self.model.explain(command)
        except ShellgenError as e:
            logger.warning("Explanation failed: %s", e)
            self.console.print(Text("Explanation failed", style="red"))
            return
        self.console.print(Text(head_lines(strip_fences(raw), self.config.model.explain_lines)))

    def show_history(self, count: int = HISTORY_PREVIEW) -> None:
        print_history(self.console, self.ledger.tail(count))

    def record(self, status: HistoryStatus, query: str, command: str) -> None:
        try:
            self.ledger.append(HistoryEntry(status=status, query=query, command=command))
        except HistoryWriteFailure as e:
            logger.error("%s", e)
