"""Tests for the model backend executor service."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from shellgen.errors import ModelProcessError, ModelTimeout
from shellgen.services.model import ModelRunner


@pytest.fixture
def runner(app_config):
    return ModelRunner(app_config)


def make_proc(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> AsyncMock:
    proc = AsyncMock()
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    proc.returncode = returncode
    proc.kill = MagicMock()
    return proc


class TestModelRunner:
    @pytest.mark.asyncio
    async def test_generate_success(self, runner):
        proc = make_proc(b"```bash\nls -la\n```\n")

        with patch("shellgen.services.model.asyncio.create_subprocess_exec", return_value=proc) as create:
            output = await runner.generate("list files")

        assert output == "```bash\nls -la\n```\n"
        assert create.call_args.args == ("ollama", "run", "shellcmd", "list files")

    @pytest.mark.asyncio
    async def test_output_returned_despite_nonzero_exit(self, runner):
        proc = make_proc(b"uptime\n", b"warning: slow", returncode=1)
        with patch("shellgen.services.model.asyncio.create_subprocess_exec", return_value=proc):
            assert await runner.generate("uptime") == "uptime\n"

    @pytest.mark.asyncio
    async def test_empty_output_reports_first_stderr_line(self, runner):
        proc = make_proc(b"  \n", b"Error: model 'shellcmd' not found\nsecond line\n", returncode=1)
        with patch("shellgen.services.model.asyncio.create_subprocess_exec", return_value=proc):
            with pytest.raises(ModelProcessError) as excinfo:
                await runner.generate("anything")
        assert excinfo.value.detail == "Error: model 'shellcmd' not found"

    @pytest.mark.asyncio
    async def test_empty_output_without_stderr(self, runner):
        proc = make_proc(b"", b"", returncode=2)
        with patch("shellgen.services.model.asyncio.create_subprocess_exec", return_value=proc):
            with pytest.raises(ModelProcessError, match="exit status 2"):
                await runner.generate("anything")

    @pytest.mark.asyncio
    async def test_timeout_kills_child(self, runner):
        proc = make_proc()
        proc.returncode = None
        proc.communicate = AsyncMock(side_effect=[asyncio.TimeoutError, (b"", b"")])

        with patch("shellgen.services.model.asyncio.create_subprocess_exec", return_value=proc):
            with pytest.raises(ModelTimeout):
                await runner.generate("long task")

        proc.kill.assert_called_once()
        assert proc.communicate.await_count == 2

    @pytest.mark.asyncio
    async def test_real_child_killed_on_timeout(self, runner):
        real_exec = asyncio.create_subprocess_exec
        spawned = []

        async def slow_child(*args, **kwargs):
            proc = await real_exec("sleep", "5", **kwargs)
            spawned.append(proc)
            return proc

        with patch("shellgen.services.model.asyncio.create_subprocess_exec", side_effect=slow_child):
            with pytest.raises(ModelTimeout):
                await runner.generate("x", timeout=0.2)

        assert spawned[0].returncode is not None

    @pytest.mark.asyncio
    async def test_cli_not_found(self, runner):
        with patch("shellgen.services.model.asyncio.create_subprocess_exec", side_effect=FileNotFoundError):
            with pytest.raises(ModelProcessError, match="not found"):
                await runner.generate("hello")

    @pytest.mark.asyncio
    async def test_explain_uses_shorter_timeout(self, runner, app_config):
        with patch.object(runner, "generate", AsyncMock(return_value="Lists files")) as generate:
            assert await runner.explain("ls -la") == "Lists files"
        generate.assert_awaited_once_with("Explain in one line: ls -la", timeout=app_config.model.explain_timeout)


class TestEnsureServer:
    @pytest.mark.asyncio
    async def test_reachable_server_not_spawned(self, runner):
        with patch.object(runner, "_server_reachable", AsyncMock(return_value=True)):
            with patch("shellgen.services.model.subprocess.Popen") as popen:
                assert await runner.ensure_server() is True
        popen.assert_not_called()

    @pytest.mark.asyncio
    async def test_auto_serve_disabled(self, runner):
        with patch.object(runner, "_server_reachable", AsyncMock(return_value=False)):
            with patch("shellgen.services.model.subprocess.Popen") as popen:
                assert await runner.ensure_server() is False
        popen.assert_not_called()

    @pytest.mark.asyncio
    async def test_spawns_serve(self, runner, app_config):
        app_config.model.auto_serve = True
        with patch.object(runner, "_server_reachable", AsyncMock(return_value=False)):
            with patch("shellgen.services.model.subprocess.Popen") as popen:
                assert await runner.ensure_server() is True
        assert popen.call_args.args[0] == ["ollama", "serve"]

    @pytest.mark.asyncio
    async def test_spawn_failure_is_not_fatal(self, runner, app_config):
        app_config.model.auto_serve = True
        with patch.object(runner, "_server_reachable", AsyncMock(return_value=False)):
            with patch("shellgen.services.model.subprocess.Popen", side_effect=FileNotFoundError):
                assert await runner.ensure_server() is False

    @pytest.mark.asyncio
    async def test_unreachable_port_not_reachable(self, runner, app_config):
        app_config.model.host = "127.0.0.1:1"
        assert await runner._server_reachable() is False

    @pytest.mark.asyncio
    async def test_bad_host_value_not_reachable(self, runner, app_config):
        app_config.model.host = "localhost:notaport"
        assert await runner._server_reachable() is False
