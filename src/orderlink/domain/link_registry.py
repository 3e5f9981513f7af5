"""Ephemeral registry of short codes pointing at bridge credentials.

A code is live while `now - created_at < ttl`. Expiry is checked lazily when a
code is read; there is no background sweep, so an in-memory store only frees
entries on read or on process restart. In one-time mode a code is deleted on
its first successful redemption regardless of remaining TTL.

The store is injected. InMemoryLinkStore keeps no durable state and is only
consistent within a single process; deployments with several instances must
use a shared store (see PostgresLinkStore).
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from orderlink.domain.location import LocationTriple
from orderlink.infra.time import Clock, utc_now
from orderlink.observability.logging import get_logger
from orderlink.observability.redaction import safe_log_context

logger = get_logger(__name__)

# 6 random bytes -> 48 bits -> 8 URL-safe characters
CODE_BYTES = 6
CODE_LENGTH = 8

MAX_CODE_ATTEMPTS = 5


class LinkLookupError(Exception):
    """Base class for failed short-code lookups."""


class CodeUnknown(LinkLookupError):
    """No entry exists for the code (never issued, consumed or swept)."""


class CodeExpired(LinkLookupError):
    """The entry existed but its TTL elapsed; it has been removed."""


@dataclass(frozen=True)
class LinkEntry:
    code: str
    credential: str
    location: LocationTriple
    created_at: datetime


class LinkStore(Protocol):
    """Keyed storage for link entries. Implementations never check expiry."""

    def put(self, code: str, entry: LinkEntry) -> None: ...

    def get(self, code: str) -> LinkEntry | None: ...

    def delete(self, code: str) -> None: ...


class InMemoryLinkStore:
    """Process-local store. Not shared between workers or instances."""

    def __init__(self) -> None:
        self._entries: dict[str, LinkEntry] = {}

    def put(self, code: str, entry: LinkEntry) -> None:
        self._entries[code] = entry

    def get(self, code: str) -> LinkEntry | None:
        return self._entries.get(code)

    def delete(self, code: str) -> None:
        self._entries.pop(code, None)

    def __len__(self) -> int:
        return len(self._entries)


def new_code() -> str:
    """Random URL-safe short code with 48 bits of entropy."""
    return secrets.token_urlsafe(CODE_BYTES)


class LinkRegistry:
    """TTL and one-time semantics on top of a LinkStore."""

    def __init__(
        self,
        store: LinkStore,
        *,
        ttl: timedelta,
        one_time: bool = False,
        clock: Clock = utc_now,
    ) -> None:
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive")
        self.store = store
        self.ttl = ttl
        self.one_time = one_time
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        return int(self.ttl.total_seconds())

    def is_live(self, entry: LinkEntry, now: datetime | None = None) -> bool:
        now = now if now is not None else self._clock()
        return now - entry.created_at < self.ttl

    def create(
        self,
        credential: str,
        location: LocationTriple,
        *,
        created_at: datetime | None = None,
    ) -> LinkEntry:
        """Store credential under a fresh code, stamped created_at (default: now).

        A code that collides with a live entry is redrawn; an expired entry
        under the same code is overwritten.

        Raises:
            RuntimeError: If no free code was found in MAX_CODE_ATTEMPTS draws.
        """
        now = self._clock()
        stamped = created_at if created_at is not None else now
        for attempt in range(MAX_CODE_ATTEMPTS):
            code = new_code()
            existing = self.store.get(code)
            if existing is not None and self.is_live(existing, now):
                logger.warning(
                    "short code collision, redrawing",
                    extra={"extra_fields": safe_log_context(attempt=attempt)},
                )
                continue
            entry = LinkEntry(
                code=code,
                credential=credential,
                location=location,
                created_at=stamped,
            )
            self.store.put(code, entry)
            return entry
        raise RuntimeError("could not allocate a free short code")

    def lookup(self, code: str) -> LinkEntry:
        """Return the live entry for code.

        Raises:
            CodeUnknown: No entry for code.
            CodeExpired: Entry found past its TTL; it is deleted first.
        """
        entry = self.store.get(code)
        if entry is None:
            raise CodeUnknown(code)
        if not self.is_live(entry):
            self.store.delete(code)
            raise CodeExpired(code)
        return entry

    def consume(self, code: str) -> LinkEntry:
        """Lookup for redemption; deletes the entry in one-time mode."""
        entry = self.lookup(code)
        if self.one_time:
            self.store.delete(code)
        return entry

    def delete(self, code: str) -> None:
        self.store.delete(code)
