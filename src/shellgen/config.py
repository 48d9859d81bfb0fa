"""Configuration management using TOML + environment variables."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import tomli_w

CONFIG_DIR = Path.home() / ".config" / "shellgen"
CONFIG_FILE = CONFIG_DIR / "config.toml"
LOG_FILE = CONFIG_DIR / "shellgen.log"

TRUE_VALUES = ("true", "1", "yes", "on")


@dataclass
class ModelConfig:
    name: str = "shellcmd"
    host: str = "127.0.0.1:11434"
    timeout: float = 10.0
    explain_timeout: float = 5.0
    explain_lines: int = 10
    auto_serve: bool = True


@dataclass
class HistoryConfig:
    file: str = "~/.shellgen_history"
    max_entries: int = 50
    max_command_length: int = 500
    lock_attempts: int = 30
    lock_delay: float = 0.1

    @property
    def path(self) -> Path:
        return Path(self.file).expanduser()


@dataclass
class DangerConfig:
    disabled_rules: list[str] = field(default_factory=list)
    extra_patterns: dict[str, str] = field(default_factory=dict)


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    file: str = str(LOG_FILE)


@dataclass
class AppConfig:
    model: ModelConfig = field(default_factory=ModelConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    danger: DangerConfig = field(default_factory=DangerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def sections(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "history": self.history,
            "danger": self.danger,
            "logging": self.logging,
        }


def ensure_config_dir() -> None:
    """Create config directory with secure permissions."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    os.chmod(CONFIG_DIR, 0o700)


def _field_types(section: Any) -> dict[str, str]:
    return {f.name: f.type for f in fields(section)}


def _apply_section(target: Any, values: dict[str, Any]) -> None:
    known = _field_types(target)
    for key, value in values.items():
        if key in known:
            setattr(target, key, value)


def load_config() -> AppConfig:
    """Load configuration from TOML file with env var overrides."""
    config = AppConfig()

    if CONFIG_FILE.exists():
        with open(CONFIG_FILE, "rb") as f:
            data = tomllib.load(f)

        for name, section in config.sections().items():
            _apply_section(section, data.get(name, {}))

    # Environment variable overrides
    if env_model := os.environ.get("SHELLGEN_MODEL"):
        config.model.name = env_model
    if env_host := os.environ.get("SHELLGEN_HOST"):
        config.model.host = env_host
    if env_timeout := os.environ.get("SHELLGEN_TIMEOUT"):
        config.model.timeout = float(env_timeout)
    if env_explain_timeout := os.environ.get("SHELLGEN_EXPLAIN_TIMEOUT"):
        config.model.explain_timeout = float(env_explain_timeout)
    if env_auto_serve := os.environ.get("SHELLGEN_AUTO_SERVE"):
        config.model.auto_serve = env_auto_serve.lower() in TRUE_VALUES
    if env_history := os.environ.get("SHELLGEN_HISTORY_FILE"):
        config.history.file = env_history
    if env_max_history := os.environ.get("SHELLGEN_MAX_HISTORY"):
        config.history.max_entries = int(env_max_history)
    if env_max_cmd := os.environ.get("SHELLGEN_MAX_CMD_LENGTH"):
        config.history.max_command_length = int(env_max_cmd)
    if env_log_level := os.environ.get("SHELLGEN_LOG_LEVEL"):
        config.logging.level = env_log_level

    return config


def save_config(config: AppConfig) -> None:
    """Save configuration to TOML file."""
    ensure_config_dir()

    data = {
        "model": {
            "name": config.model.name,
            "host": config.model.host,
            "timeout": config.model.timeout,
            "explain_timeout": config.model.explain_timeout,
            "explain_lines": config.model.explain_lines,
            "auto_serve": config.model.auto_serve,
        },
        "history": {
            "file": config.history.file,
            "max_entries": config.history.max_entries,
            "max_command_length": config.history.max_command_length,
            "lock_attempts": config.history.lock_attempts,
            "lock_delay": config.history.lock_delay,
        },
        "danger": {
            "disabled_rules": config.danger.disabled_rules,
            "extra_patterns": config.danger.extra_patterns,
        },
        "logging": {
            "level": config.logging.level,
            "file": config.logging.file,
        },
    }

    with open(CONFIG_FILE, "wb") as f:
        tomli_w.dump(data, f)

    os.chmod(CONFIG_FILE, 0o600)


def set_value(config: AppConfig, key: str, value: str) -> Any:
    """Set ``section.attr`` from a string, coercing to the current type."""
    parts = key.split(".")
    if len(parts) != 2:
        raise KeyError(f"Key format: section.key (e.g., model.timeout), got {key!r}")

    section_name, attr = parts
    section = config.sections().get(section_name)
    if section is None:
        raise KeyError(f"Unknown section: {section_name}")
    field_type = _field_types(section).get(attr)
    if field_type is None:
        raise KeyError(f"Unknown key: {key}")

    # Type coercion
    current = getattr(section, attr)
    if field_type == "bool":
        typed_value: Any = value.lower() in TRUE_VALUES
    elif field_type == "int":
        typed_value = int(value)
    elif field_type == "float":
        typed_value = float(value)
    elif isinstance(current, list):
        typed_value = [v.strip() for v in value.split(",") if v.strip()]
    elif isinstance(current, dict):
        rule_id, _, pattern = value.partition("=")
        if not rule_id or not pattern:
            raise ValueError(f"Expected id=pattern for {key}")
        typed_value = {**current, rule_id.strip(): pattern}
    else:
        typed_value = value

    setattr(section, attr, typed_value)
    return typed_value
