"""Clipboard capability backed by whichever platform tool is installed."""

from __future__ import annotations

import logging
import shutil
import subprocess

logger = logging.getLogger(__name__)

CLIPBOARD_TOOLS: list[list[str]] = [
    ["pbcopy"],
    ["wl-copy"],
    ["xclip", "-selection", "clipboard"],
    ["xsel", "--clipboard", "--input"],
    ["clip.exe"],
]

COPY_TIMEOUT = 5


class Clipboard:
    def __init__(self, tools: list[list[str]] | None = None) -> None:
        self.tools = tools if tools is not None else CLIPBOARD_TOOLS

    def find_tool(self) -> list[str] | None:
        for argv in self.tools:
            if shutil.which(argv[0]):
                return argv
        return None

    def copy(self, text: str) -> bool:
        """Copy ``text``. Returns False when no clipboard tool is usable."""
        argv = self.find_tool()
        if argv is None:
            return False
        try:
            subprocess.run(argv, input=text, text=True, check=True, timeout=COPY_TIMEOUT)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Clipboard tool %s failed: %s", argv[0], e)
            return False
        return True
