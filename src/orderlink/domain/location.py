"""Location triple identifying an ordering context."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LocationTriple:
    """(restaurant, branch, table) ids. Each may be absent."""

    restaurant_id: str | None = None
    branch_id: str | None = None
    table_id: str | None = None

    def is_complete(self) -> bool:
        return bool(self.restaurant_id and self.branch_id and self.table_id)

    def as_query(self) -> list[tuple[str, str]]:
        """Query-string pairs in portal order, absent ids omitted."""
        pairs = [
            ("restaurantId", self.restaurant_id),
            ("branchId", self.branch_id),
            ("tableId", self.table_id),
        ]
        return [(k, v) for k, v in pairs if v]

    def as_dict(self) -> dict[str, str | None]:
        return {
            "restaurantId": self.restaurant_id,
            "branchId": self.branch_id,
            "tableId": self.table_id,
        }
