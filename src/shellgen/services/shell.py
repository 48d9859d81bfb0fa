"""Shell command executor service."""

from __future__ import annotations

import asyncio
import logging
import time

logger = logging.getLogger(__name__)

DEFAULT_SHELL = "bash"


class ShellRunner:
    """Run a command in a fresh shell attached to the current terminal."""

    def __init__(self, shell: str = DEFAULT_SHELL) -> None:
        self.shell = shell

    async def run(self, command: str) -> int:
        """Execute ``command`` and return its exit status unaltered."""
        start = time.monotonic()
        # Inherit stdin/stdout/stderr so interactive commands work as typed
        proc = await asyncio.create_subprocess_exec(self.shell, "-c", "--", command)
        exit_code = await proc.wait()

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info("Command exited %d in %dms: %s", exit_code, elapsed_ms, command)
        return exit_code
