"""CLI entry point using typer."""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from shellgen import __version__
from shellgen.config import CONFIG_FILE, AppConfig, load_config, save_config, set_value
from shellgen.errors import ShellgenError
from shellgen.pipeline import Pipeline
from shellgen.storage.history import HistoryLedger
from shellgen.utils.formatting import print_history

app = typer.Typer(
    name="shellgen",
    help="Describe a shell command in plain words; review it before anything runs.",
    add_completion=False,
)
console = Console()


def setup_logging(config: AppConfig) -> None:
    level = getattr(logging, config.logging.level.upper(), logging.WARNING)
    log_path = Path(config.logging.file).expanduser()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(str(log_path))
    except OSError:
        handler = logging.StreamHandler()
        level = max(level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[handler],
    )


def show_config(config: AppConfig) -> None:
    table = Table(title="Configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")

    for section_name, section in config.sections().items():
        for key, value in asdict(section).items():
            table.add_row(f"{section_name}.{key}", Text(str(value)))

    console.print(table)
    console.print(f"[dim]File: {CONFIG_FILE}[/dim]")


def update_config(config: AppConfig, assignments: list[str]) -> None:
    for item in assignments:
        key, sep, value = item.partition("=")
        if not sep:
            console.print("[red]Usage: shellgen --set section.key=value[/red]")
            raise typer.Exit(1)
        try:
            typed_value = set_value(config, key.strip(), value)
        except KeyError as e:
            console.print(Text(str(e.args[0]), style="red"))
            raise typer.Exit(1)
        except ValueError:
            console.print(Text(f"Invalid value type for {key}", style="red"))
            raise typer.Exit(1)
        console.print(Text(f"{key.strip()} = {typed_value}", style="green"))

    save_config(config)


@app.command(context_settings={"ignore_unknown_options": True})
def main(
    query: Optional[List[str]] = typer.Argument(None, help="What the command should do"),
    history: bool = typer.Option(False, "--history", help="Show the last 10 history entries"),
    config_view: bool = typer.Option(False, "--show-config", help="Show the effective configuration"),
    assignments: Optional[List[str]] = typer.Option(None, "--set", help="Persist a setting, e.g. model.timeout=20"),
    version: bool = typer.Option(False, "--version", help="Show version information"),
) -> None:
    """Generate a shell command from a description, then choose what to do with it."""
    if version:
        console.print(f"shellgen v{__version__}")
        console.print(f"Python: {sys.version.split()[0]}")
        console.print(f"Config: {CONFIG_FILE}")
        return

    config = load_config()

    if assignments:
        update_config(config, assignments)
        return

    if config_view:
        show_config(config)
        return

    setup_logging(config)

    if history:
        print_history(console, HistoryLedger(config.history).tail(10))
        return

    text = " ".join(query) if query else typer.prompt("Describe command", default="", show_default=False)

    pipeline = Pipeline(config, console)
    try:
        exit_code = asyncio.run(pipeline.run(text))
    except ShellgenError as e:
        console.print(Text(f"✗ {e}", style="red"))
        raise typer.Exit(e.exit_code)
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted.[/dim]")
        raise typer.Exit(130)

    raise typer.Exit(exit_code)


if __name__ == "__main__":
    app()
