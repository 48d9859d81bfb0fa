"""Tests for command extraction."""

from __future__ import annotations

import pytest

from shellgen.errors import ExtractionEmpty
from shellgen.services.extract import MAX_COMMAND_LINES, extract_command, strip_fences


class TestExtractCommand:
    def test_fenced_bash_block(self):
        assert extract_command("```bash\nls -la\n```") == "ls -la"

    def test_plain_output(self):
        assert extract_command("df -h\n") == "df -h"

    def test_leading_blank_lines_skipped(self):
        assert extract_command("\n\n   \ngit status\n") == "git status"

    def test_stops_at_first_blank_line(self):
        raw = "find . -name '*.py'\n\nThis finds every Python file."
        assert extract_command(raw) == "find . -name '*.py'"

    def test_multiline_block_kept(self):
        raw = "```sh\ncd /tmp &&\n  ls\n```\nexplanation"
        assert extract_command(raw) == "cd /tmp &&\n  ls"

    def test_caps_at_five_lines(self):
        raw = "\n".join(f"echo {i}" for i in range(8))
        command = extract_command(raw)
        assert command.splitlines() == [f"echo {i}" for i in range(MAX_COMMAND_LINES)]

    def test_no_fence_markers_remain(self):
        raw = "```zsh\nfor f in *; do\n  echo $f\ndone\n```"
        command = extract_command(raw)
        assert "```" not in command
        assert len(command.splitlines()) <= MAX_COMMAND_LINES

    def test_surrounding_whitespace_trimmed(self):
        assert extract_command("   uptime   \n") == "uptime"

    def test_same_input_same_command(self):
        raw = "```\n  tar czf out.tgz dir\n```\n\nnotes"
        assert extract_command(raw) == extract_command(raw)

    @pytest.mark.parametrize("raw", ["", "\n\n", "```\n```", "```bash\n\n```\n"])
    def test_empty_raises(self, raw):
        with pytest.raises(ExtractionEmpty):
            extract_command(raw)


class TestStripFences:
    def test_removes_language_tag_and_closing_fence(self):
        assert strip_fences("```python\nprint(1)\n```") == "\nprint(1)\n"

    def test_leaves_inline_text_alone(self):
        assert strip_fences("grep foo file") == "grep foo file"
