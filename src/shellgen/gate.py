"""Mandatory confirmation step between generation and any action."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

import typer
from rich.console import Console
from rich.text import Text

from shellgen.services.danger import DangerClassifier, DangerVerdict

logger = logging.getLogger(__name__)

AFFIRMATIVE = {"y", "yes"}


class GateState(Enum):
    SHOWN = "shown"
    APPROVED = "approved"
    DECLINED = "declined"


def prompt_line(message: str) -> str:
    """Read one answer line. End of input or Ctrl-C reads as an empty answer."""
    try:
        return typer.prompt(message, default="", show_default=False)
    except typer.Abort:
        typer.echo()
        return ""


class ConfirmationGate:
    """Show the command; require a typed "y" before flagged commands go further."""

    def __init__(
        self,
        console: Console,
        classifier: DangerClassifier,
        ask: Callable[[str], str] = prompt_line,
    ) -> None:
        self.console = console
        self.classifier = classifier
        self.ask = ask
        self.state = GateState.SHOWN

    def review(self, command: str, verdict: DangerVerdict) -> GateState:
        self.state = GateState.SHOWN
        if not verdict.flagged:
            self.console.print(Text.assemble(("Command: ", "green"), command))
            self.state = GateState.APPROVED
            return self.state

        self.console.print(Text("Danger detected", style="bold red"))
        self.console.print(Text.assemble(("Command: ", "yellow"), command))
        self.console.print(Text("Matches:", style="red"))
        for rule_id in verdict.matched:
            self.console.print(Text(f"  • {rule_id}: {self.classifier.describe(rule_id)}"))

        answer = self.ask("Continue? [y/N]")
        if answer.strip().lower() in AFFIRMATIVE:
            logger.info("Flagged command approved: %s", command)
            self.state = GateState.APPROVED
        else:
            logger.info("Flagged command declined: %s", command)
            self.state = GateState.DECLINED
        return self.state
