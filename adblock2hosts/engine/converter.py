"""Adblock rule to hosts entry conversion."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

ADDRESS = "0.0.0.0"

_COMMENT_PATTERN = r"#.*"
# Labels of 1-63 alphanumerics/hyphens without edge hyphens, then an alphabetic TLD.
_DOMAIN_PATTERN = r"(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}"

RULE_PREFIX = "||"
RULE_TERMINATOR = "^"
OPTION_SEPARATOR = "$"


@dataclass(frozen=True, slots=True)
class RawRule:
    """One line of adblock syntax as received from a source."""

    text: str
    source: str


@dataclass(frozen=True, slots=True)
class ConvertedEntry:
    """A validated sinkhole entry."""

    domain: str

    @property
    def line(self) -> str:
        return f"{ADDRESS} {self.domain}"

    def __str__(self) -> str:
        return self.line


@dataclass(frozen=True, slots=True)
class Accepted:
    entry: ConvertedEntry


@dataclass(frozen=True, slots=True)
class Rejected:
    reason: str


Conversion = Union[Accepted, Rejected]

EMPTY = "empty"
UNSUPPORTED_SYNTAX = "unsupported_syntax"
INVALID_DOMAIN = "invalid_domain"


class RuleConverter:
    """Turn ``||domain^`` rules into ``0.0.0.0 domain`` entries.

    The converter is stateless after construction; a single instance can be
    shared freely between threads.
    """

    def __init__(self) -> None:
        self._comment_re = re.compile(_COMMENT_PATTERN)
        self._domain_re = re.compile(_DOMAIN_PATTERN)

    def convert(self, rule: str) -> Conversion:
        text = self._comment_re.sub("", rule, count=1).strip()
        if not text:
            return Rejected(EMPTY)
        if not text.startswith(RULE_PREFIX) or RULE_TERMINATOR not in text:
            return Rejected(UNSUPPORTED_SYNTAX)
        candidate = text[len(RULE_PREFIX):].split(RULE_TERMINATOR, 1)[0]
        candidate = candidate.split(OPTION_SEPARATOR, 1)[0]
        if not self.is_valid_domain(candidate):
            return Rejected(INVALID_DOMAIN)
        return Accepted(ConvertedEntry(candidate))

    def is_valid_domain(self, candidate: str) -> bool:
        return self._domain_re.fullmatch(candidate) is not None


_default_converter = RuleConverter()


def convert(rule: str) -> Conversion:
    """Convert ``rule`` with the process-wide converter."""

    return _default_converter.convert(rule)


def convert_rule(rule: str) -> str | None:
    """Return the rendered hosts line for ``rule`` or ``None`` when rejected."""

    result = _default_converter.convert(rule)
    if isinstance(result, Accepted):
        return result.entry.line
    return None


__all__ = [
    "ADDRESS",
    "Accepted",
    "Conversion",
    "ConvertedEntry",
    "EMPTY",
    "INVALID_DOMAIN",
    "RawRule",
    "Rejected",
    "RuleConverter",
    "UNSUPPORTED_SYNTAX",
    "convert",
    "convert_rule",
]
