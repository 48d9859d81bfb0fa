"""Ollama model backend executor service."""

from __future__ import annotations

import asyncio
import logging
import subprocess
import time

from shellgen.config import AppConfig
from shellgen.errors import ModelProcessError, ModelTimeout

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 0.5


class ModelRunner:
    """Run prompts through ``ollama run`` with a hard time bound."""

    def __init__(self, config: AppConfig, binary: str = "ollama") -> None:
        self.config = config
        self.binary = binary

    async def generate(self, prompt: str, timeout: float | None = None) -> str:
        """Return the model's raw output for ``prompt``.

        Raises ModelTimeout when the child outlives ``timeout`` (it is killed
        and reaped first) and ModelProcessError when it produced no output.
        """
        timeout = self.config.model.timeout if timeout is None else timeout
        # Build command args (use exec, not shell, to prevent injection)
        cmd = [self.binary, "run", self.config.model.name, prompt]

        start = time.monotonic()
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise ModelProcessError(f"{self.binary} not found. Install from https://ollama.com") from None

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Model timed out after %ss", timeout)
            await self._kill(proc)
            raise ModelTimeout(timeout) from None
        except asyncio.CancelledError:
            await self._kill(proc)
            raise

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")
        logger.debug("Model exited %s in %dms (%d bytes)", proc.returncode, elapsed_ms, len(stdout))

        if not stdout.strip():
            first_line = stderr.strip().splitlines()[0] if stderr.strip() else ""
            raise ModelProcessError(first_line or f"exit status {proc.returncode}")
        return stdout

    async def explain(self, command: str) -> str:
        """Ask the model for a short explanation, bounded by the explain timeout."""
        return await self.generate(f"Explain in one line: {command}", timeout=self.config.model.explain_timeout)

    async def ensure_server(self) -> bool:
        """Start ``ollama serve`` in the background if the backend is unreachable.

        Best effort: returns whether a server was reachable or spawned, never raises.
        """
        if await self._server_reachable():
            return True
        if not self.config.model.auto_serve:
            return False

        logger.info("Model backend not reachable at %s, starting %s serve", self.config.model.host, self.binary)
        try:
            subprocess.Popen(
                [self.binary, "serve"],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            logger.warning("Could not start model backend: %s", e)
            return False
        return True

    async def _server_reachable(self) -> bool:
        host, _, port = self.config.model.host.rpartition(":")
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host or "127.0.0.1", int(port)),
                timeout=PROBE_TIMEOUT,
            )
        except (OSError, ValueError, asyncio.TimeoutError):
            return False
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return True

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        await proc.communicate()
