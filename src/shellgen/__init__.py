"""shellgen - natural language to shell commands, with a safety gate."""

__version__ = "0.3.0"
