"""Query -> model -> extract -> classify -> confirm -> dispatch."""

from __future__ import annotations

import logging
from typing import Callable

from rich.console import Console

from shellgen.config import AppConfig
from shellgen.dispatcher import ActionDispatcher, read_keystroke
from shellgen.errors import DangerDeclined, QueryEmpty
from shellgen.gate import ConfirmationGate, GateState, prompt_line
from shellgen.services.clipboard import Clipboard
from shellgen.services.danger import DangerClassifier, build_rules
from shellgen.services.extract import extract_command
from shellgen.services.model import ModelRunner
from shellgen.services.shell import ShellRunner
from shellgen.storage.history import HistoryLedger
from shellgen.storage.models import HistoryStatus
from shellgen.utils.progress import run_with_progress

logger = logging.getLogger(__name__)


class Pipeline:
    """Compose the stages for one invocation. Stages run strictly in sequence."""

    def __init__(
        self,
        config: AppConfig,
        console: Console,
        model: ModelRunner | None = None,
        classifier: DangerClassifier | None = None,
        ledger: HistoryLedger | None = None,
        shell: ShellRunner | None = None,
        clipboard: Clipboard | None = None,
        ask: Callable[[str], str] = prompt_line,
        read_key: Callable[[], str] = read_keystroke,
    ) -> None:
        self.config = config
        self.console = console
        self.model = model if model is not None else ModelRunner(config)
        self.classifier = classifier if classifier is not None else DangerClassifier(build_rules(config.danger))
        self.ledger = ledger if ledger is not None else HistoryLedger(config.history)
        self.gate = ConfirmationGate(console, self.classifier, ask=ask)
        self.dispatcher = ActionDispatcher(
            config,
            console,
            self.ledger,
            self.model,
            shell if shell is not None else ShellRunner(),
            clipboard if clipboard is not None else Clipboard(),
            read_key=read_key,
        )

    async def generate(self, query: str) -> str:
        await self.model.ensure_server()
        raw = await run_with_progress(self.model.generate(query), self.console, "Generating...")
        return extract_command(raw)

    async def run(self, query: str) -> int:
        """Run the whole pipeline for ``query``. Returns the exit code.

        Raises a ShellgenError subclass for terminal failures.
        """
        query = query.strip()
        if not query:
            raise QueryEmpty()

        logger.info("Query: %s", query)
        command = await self.generate(query)
        verdict = self.classifier.classify(command)

        if self.gate.review(command, verdict) is GateState.DECLINED:
            self.dispatcher.record(HistoryStatus.BLOCKED, query, command)
            raise DangerDeclined(verdict.matched)

        action = self.dispatcher.choose()
        logger.info("Action %s for command: %s", action.name, command)
        return await self.dispatcher.dispatch(action, query, command)
