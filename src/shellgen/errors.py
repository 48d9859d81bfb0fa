"""Error taxonomy for the shellgen pipeline."""

from __future__ import annotations


class ShellgenError(Exception):
    """Base error. Terminal errors carry the process exit code."""

    exit_code: int = 1


class QueryEmpty(ShellgenError):
    def __init__(self) -> None:
        super().__init__("Empty query")


class ModelTimeout(ShellgenError):
    def __init__(self, timeout: float) -> None:
        super().__init__(f"Model timed out after {timeout:g}s")
        self.timeout = timeout


class ModelProcessError(ShellgenError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Model error: {detail}" if detail else "Model error")
        self.detail = detail


class ExtractionEmpty(ShellgenError):
    def __init__(self) -> None:
        super().__init__("Empty output")


class DangerDeclined(ShellgenError):
    def __init__(self, rule_ids: tuple[str, ...]) -> None:
        super().__init__("Dangerous command declined")
        self.rule_ids = rule_ids


class HistoryWriteFailure(ShellgenError):
    """Non-fatal: the user-visible action still succeeds."""


class LockTimeout(ShellgenError):
    def __init__(self, resource: str, attempts: int) -> None:
        super().__init__(f"Could not lock {resource} after {attempts} attempts")
        self.resource = resource
        self.attempts = attempts
