"""Turn an inbound chat message into an action for the bridge.

Decision order:
1. help keyword            -> ReplyHelp (regardless of other fields)
2. order-start, no refs    -> PromptForCode
3. any location reference  -> IssueBridgeLink (triple may be partial)
4. otherwise               -> Ignore

A human table code is resolved to canonical ids through VenueLookup, scoped by
branch first and then unscoped. Lookup failures degrade the result; they never
abort interpretation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from orderlink.domain.location import LocationTriple
from orderlink.domain.message_parsing import (
    DEFAULT_FIELD_RULES,
    FieldRule,
    ParsedMessage,
    is_canonical_id,
    parse_message,
)
from orderlink.domain.results import BestEffort
from orderlink.domain.venues import TableRecord, VenueLookup
from orderlink.observability.logging import get_logger
from orderlink.observability.redaction import safe_log_context

logger = get_logger(__name__)


@dataclass(frozen=True)
class InboundEvent:
    """One inbound message. Transient: never persisted, never logged raw."""

    sender_id: str
    text: str | None
    channel_number: str | None = None
    message_id: str | None = None


@dataclass(frozen=True)
class ReplyHelp:
    pass


@dataclass(frozen=True)
class PromptForCode:
    pass


@dataclass(frozen=True)
class IssueBridgeLink:
    location: LocationTriple
    sender_phone: str | None
    degraded: tuple[str, ...] = ()


@dataclass(frozen=True)
class Ignore:
    pass


Action = Union[ReplyHelp, PromptForCode, IssueBridgeLink, Ignore]


def find_table_best_effort(
    venues: VenueLookup,
    code: str,
    branch_id: str | None,
) -> BestEffort[TableRecord | None]:
    """Resolve a table code, scoped by branch first, then unscoped."""
    try:
        if branch_id:
            record = venues.find_table(code, branch_id=branch_id)
            if record is not None:
                return BestEffort.ok(record)
        return BestEffort.ok(venues.find_table(code))
    except Exception as e:
        logger.warning(
            "table lookup failed, continuing with parsed fields",
            extra={"extra_fields": safe_log_context(error_type=type(e).__name__)},
        )
        return BestEffort.degrade("table_lookup_failed", None)


def resolve_location(
    parsed: ParsedMessage,
    venues: VenueLookup,
) -> BestEffort[LocationTriple]:
    """Build the location triple, enriching a human table code if possible."""
    location = LocationTriple(
        restaurant_id=parsed.restaurant_ref,
        branch_id=parsed.branch_ref,
        table_id=parsed.table_ref,
    )
    if not parsed.table_ref or is_canonical_id(parsed.table_ref):
        return BestEffort.ok(location)

    found = find_table_best_effort(venues, parsed.table_ref, parsed.branch_ref)
    if found.value is None:
        if found.degraded:
            return BestEffort.degrade(found.reason or "table_lookup_failed", location)
        return BestEffort.ok(location)

    record = found.value
    return BestEffort.ok(
        LocationTriple(
            restaurant_id=record.restaurant_id,
            branch_id=record.branch_id,
            table_id=record.id,
        )
    )


def interpret(
    event: InboundEvent,
    venues: VenueLookup,
    rules: tuple[FieldRule, ...] = DEFAULT_FIELD_RULES,
) -> Action:
    """Decide what to do with one inbound message."""
    parsed = parse_message(event.text, rules)

    if parsed.command == "help":
        return ReplyHelp()

    if not parsed.has_location_refs():
        if parsed.command == "order_start":
            return PromptForCode()
        return Ignore()

    resolved = resolve_location(parsed, venues)
    return IssueBridgeLink(
        location=resolved.value,
        sender_phone=event.sender_id or None,
        degraded=(resolved.reason,) if resolved.reason else (),
    )
