"""Extract a single candidate command from raw model output."""

from __future__ import annotations

import re

from shellgen.errors import ExtractionEmpty

MAX_COMMAND_LINES = 5

_OPEN_FENCE = re.compile(r"^\s*```[\w+.-]*")
_CLOSE_FENCE = re.compile(r"```\s*$")


def strip_fences(text: str) -> str:
    """Remove markdown code-fence markers at the start and end of each line."""
    lines = [_CLOSE_FENCE.sub("", _OPEN_FENCE.sub("", line)) for line in text.splitlines()]
    return "\n".join(lines)


def extract_command(raw: str) -> str:
    """Return the first contiguous block of non-blank lines (at most 5), trimmed.

    Raises ExtractionEmpty when nothing usable remains.
    """
    block: list[str] = []
    for line in strip_fences(raw).splitlines():
        if not line.strip():
            if block:
                break
            continue
        block.append(line)
        if len(block) == MAX_COMMAND_LINES:
            break

    command = "\n".join(block).strip()
    if not command:
        raise ExtractionEmpty()
    return command
