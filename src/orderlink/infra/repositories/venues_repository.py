"""Venue lookups (tables, branches, restaurants) - read only.

Uses raw SQL with psycopg2 (no ORM). Each call opens its own short
transaction; callers treat failures as best-effort.
"""

from __future__ import annotations

from orderlink.domain.venues import TableRecord
from orderlink.infra.db import fetchone, txn


class PostgresVenueLookup:
    def find_table(self, code: str, branch_id: str | None = None) -> TableRecord | None:
        """Match a human table code against table_code or table_name.

        Without branch_id the first match across all branches wins, ordered
        by creation so the answer is stable.
        """
        query = """
            SELECT id, branch_id, restaurant_id, table_name
            FROM dining_tables
            WHERE (lower(table_code) = lower(%s) OR lower(table_name) = lower(%s))
        """
        params: list[str] = [code, code]
        if branch_id:
            query += " AND branch_id::text = %s"
            params.append(branch_id)
        query += " ORDER BY created_at LIMIT 1"

        with txn(readonly=True) as cur:
            row = fetchone(cur, query, params)
        if row is None:
            return None
        return TableRecord(
            id=str(row[0]),
            branch_id=str(row[1]),
            restaurant_id=str(row[2]),
            name=row[3],
        )

    def restaurant_name(self, restaurant_id: str) -> str | None:
        with txn(readonly=True) as cur:
            row = fetchone(
                cur,
                "SELECT name FROM restaurants WHERE id::text = %s",
                (restaurant_id,),
            )
        return row[0] if row else None

    def branch_name(self, branch_id: str) -> str | None:
        with txn(readonly=True) as cur:
            row = fetchone(
                cur,
                "SELECT name FROM branches WHERE id::text = %s",
                (branch_id,),
            )
        return row[0] if row else None
