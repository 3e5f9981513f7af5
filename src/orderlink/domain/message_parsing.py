"""Deterministic parsing of inbound chat messages.

NO LLM. An ordered list of FieldRule objects, each evaluated independently
against the normalized text. Parsing is total: any input, including empty or
garbage text, yields a ParsedMessage.
Security: NEVER log raw text (PII).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal

HELP_KEYWORD = "help"
ORDER_START_KEYWORDS = ("join", "order", "start")

Command = Literal["help", "order_start"]

# Canonical ids: UUIDs (Postgres) or 24-hex object ids (legacy QR codes)
_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_OBJECT_ID_PATTERN = re.compile(r"^[0-9a-f]{24}$", re.IGNORECASE)

_FIRST_WORD_PATTERN = re.compile(r"[a-z]+")
_WHITESPACE_PATTERN = re.compile(r"\s+")


@dataclass(frozen=True)
class FieldRule:
    """Extract one field from `label: value` or `label=value`.

    Longer aliases are tried first so that TABLEID wins over T.
    """

    name: str
    aliases: tuple[str, ...]
    _pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        ordered = sorted(self.aliases, key=len, reverse=True)
        labels = "|".join(re.escape(a) for a in ordered)
        pattern = re.compile(
            rf"(?<![A-Za-z0-9_])(?:{labels})\s*[:=]\s*([A-Za-z0-9_-]+)",
            re.IGNORECASE,
        )
        object.__setattr__(self, "_pattern", pattern)

    def extract(self, text: str) -> str | None:
        match = self._pattern.search(text)
        return match.group(1) if match else None


DEFAULT_FIELD_RULES: tuple[FieldRule, ...] = (
    FieldRule("table_ref", ("T", "TABLE", "TABLEID", "TABLENO", "TBL")),
    FieldRule("branch_ref", ("B", "BRANCH", "BRANCHID")),
    FieldRule("restaurant_ref", ("R", "REST", "RESTAURANT", "RESTAURANTID")),
)


@dataclass(frozen=True)
class ParsedMessage:
    """Structured hints found in one message. No raw text is kept."""

    command: Command | None = None
    table_ref: str | None = None
    branch_ref: str | None = None
    restaurant_ref: str | None = None

    def has_location_refs(self) -> bool:
        return bool(self.table_ref or self.branch_ref or self.restaurant_ref)


def normalize_text(text: str | None) -> str:
    """Trim and collapse whitespace."""
    if not text:
        return ""
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def is_canonical_id(value: str | None) -> bool:
    if not value:
        return False
    return bool(_UUID_PATTERN.match(value) or _OBJECT_ID_PATTERN.match(value))


def _detect_command(normalized: str) -> Command | None:
    match = _FIRST_WORD_PATTERN.match(normalized.lower())
    if not match:
        return None
    word = match.group(0)
    if word == HELP_KEYWORD:
        return "help"
    if word in ORDER_START_KEYWORDS:
        return "order_start"
    return None


def parse_message(
    text: str | None,
    rules: tuple[FieldRule, ...] = DEFAULT_FIELD_RULES,
) -> ParsedMessage:
    """Parse a raw message into a ParsedMessage. Never raises.

    Examples:
        "JOIN T=12 B=main"  -> order_start, table_ref="12", branch_ref="main"
        "help"              -> help
        "table: A4"         -> table_ref="A4"
    """
    normalized = normalize_text(text)
    if not normalized:
        return ParsedMessage()

    fields = {rule.name: rule.extract(normalized) for rule in rules}
    return ParsedMessage(
        command=_detect_command(normalized),
        table_ref=fields.get("table_ref"),
        branch_ref=fields.get("branch_ref"),
        restaurant_ref=fields.get("restaurant_ref"),
    )
