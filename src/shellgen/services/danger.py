"""Heuristic danger classifier for generated commands.

This is a screen for common irreversible operations, not a security boundary.
Every rule is evaluated independently and all matches are reported.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Protocol

from shellgen.config import DangerConfig

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS: list[tuple[str, str, str]] = [
    ("rm-recursive", r"\brm\s+.*-[a-zA-Z]*[rRf]", "Recursive or forced delete"),
    ("dd-device-write", r"\bdd\s+.*\bof=", "Raw block write with dd"),
    ("mkfs", r"\bmkfs\b", "Filesystem creation"),
    ("fdisk-device", r"\bfdisk\s+(-\S+\s+)*/dev/", "Partition table edit"),
    ("sudo-rm", r"\bsudo\s+(-\S+\s+)*rm\b", "Privileged delete"),
    ("sudo-dd", r"\bsudo\s+(-\S+\s+)*dd\b", "Privileged raw write"),
    ("fork-bomb", r":\s*\(\s*\)\s*\{\s*:\s*\|\s*:\s*&\s*\}", "Fork bomb"),
    (
        "chmod-recursive-777",
        r"\bchmod\s+(-[a-zA-Z]*R[a-zA-Z]*|--recursive)\s+(.*\s)?(0?777|a\+rwx|[ao]\+w)(\s|$)",
        "Recursive world-writable permissions",
    ),
    ("device-redirect", r">\s*/dev/(sd|hd|vd|xvd|nvme|mmcblk|disk)", "Redirect into a raw device"),
]


class DangerRule(Protocol):
    rule_id: str
    description: str

    def matches(self, command: str) -> bool: ...


@dataclass(frozen=True)
class PatternRule:
    """A danger rule backed by a regular expression."""

    rule_id: str
    pattern: re.Pattern[str]
    description: str = ""

    @classmethod
    def compile(cls, rule_id: str, pattern: str, description: str = "") -> PatternRule:
        return cls(rule_id, re.compile(pattern), description or rule_id)

    def matches(self, command: str) -> bool:
        return self.pattern.search(command) is not None


@dataclass(frozen=True)
class DangerVerdict:
    matched: tuple[str, ...] = ()

    @property
    def flagged(self) -> bool:
        return bool(self.matched)


SAFE = DangerVerdict()


def build_rules(config: DangerConfig | None = None) -> list[DangerRule]:
    """Build the ordered rule table: defaults minus disabled, plus extras."""
    disabled = set(config.disabled_rules) if config else set()
    extras = dict(config.extra_patterns) if config else {}

    rules: list[DangerRule] = []
    for rule_id, pattern, description in [*DEFAULT_PATTERNS, *((k, v, "") for k, v in extras.items())]:
        if rule_id in disabled:
            continue
        try:
            rules.append(PatternRule.compile(rule_id, pattern, description))
        except re.error:
            logger.error("Invalid danger pattern %s: %s", rule_id, pattern)
    return rules


class DangerClassifier:
    """Evaluate every rule against a command and collect the matching ids."""

    def __init__(self, rules: Iterable[DangerRule] | None = None) -> None:
        self.rules: list[DangerRule] = list(rules) if rules is not None else build_rules()

    def classify(self, command: str) -> DangerVerdict:
        matched = tuple(rule.rule_id for rule in self.rules if rule.matches(command))
        if not matched:
            return SAFE
        logger.warning("Flagged command: %s (rules: %s)", command, ", ".join(matched))
        return DangerVerdict(matched)

    def describe(self, rule_id: str) -> str:
        for rule in self.rules:
            if rule.rule_id == rule_id:
                return rule.description
        return rule_id
