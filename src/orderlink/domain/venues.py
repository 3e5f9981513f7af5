"""Read-only view of restaurants, branches and tables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class TableRecord:
    """A dining table resolved to canonical ids."""

    id: str
    branch_id: str
    restaurant_id: str
    name: str | None = None


class VenueLookup(Protocol):
    """Lookups against persisted venue records. Any method may raise."""

    def find_table(self, code: str, branch_id: str | None = None) -> TableRecord | None:
        """Find a table by its human-readable code, optionally within a branch."""
        ...

    def restaurant_name(self, restaurant_id: str) -> str | None: ...

    def branch_name(self, branch_id: str) -> str | None: ...
