"""Shared test fixtures."""

from __future__ import annotations

import io

import pytest
from rich.console import Console

from shellgen.config import AppConfig, DangerConfig, HistoryConfig, LoggingConfig, ModelConfig


@pytest.fixture
def app_config(tmp_path):
    """Create a test configuration."""
    return AppConfig(
        model=ModelConfig(name="shellcmd", timeout=2, explain_timeout=1, auto_serve=False),
        history=HistoryConfig(
            file=str(tmp_path / "history"),
            max_entries=50,
            max_command_length=500,
            lock_attempts=5,
            lock_delay=0.01,
        ),
        danger=DangerConfig(),
        logging=LoggingConfig(level="DEBUG", file=str(tmp_path / "test.log")),
    )


@pytest.fixture
def console():
    """A rich console writing to a buffer; read it back with ``console.file.getvalue()``."""
    return Console(file=io.StringIO(), width=120, force_terminal=False, color_system=None)
