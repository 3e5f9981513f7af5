"""Postgres-backed LinkStore.

Shared between instances, so codes issued on one instance redeem on another.
Expiry is still decided by LinkRegistry at read time; rows of expired codes
that are never read again stay until an operator purges them.
"""

from __future__ import annotations

from orderlink.domain.link_registry import LinkEntry
from orderlink.domain.location import LocationTriple
from orderlink.infra.db import fetchone, txn


class PostgresLinkStore:
    def put(self, code: str, entry: LinkEntry) -> None:
        with txn() as cur:
            cur.execute(
                """
                INSERT INTO short_links (code, credential, restaurant_id, branch_id, table_id, created_at)
                VALUES (%s, %s, %s, %s, %s, %s)
                ON CONFLICT (code) DO UPDATE SET
                    credential = EXCLUDED.credential,
                    restaurant_id = EXCLUDED.restaurant_id,
                    branch_id = EXCLUDED.branch_id,
                    table_id = EXCLUDED.table_id,
                    created_at = EXCLUDED.created_at
                """,
                (
                    code,
                    entry.credential,
                    entry.location.restaurant_id,
                    entry.location.branch_id,
                    entry.location.table_id,
                    entry.created_at,
                ),
            )

    def get(self, code: str) -> LinkEntry | None:
        with txn() as cur:
            row = fetchone(
                cur,
                """
                SELECT code, credential, restaurant_id, branch_id, table_id, created_at
                FROM short_links
                WHERE code = %s
                """,
                (code,),
            )
        if row is None:
            return None
        return LinkEntry(
            code=row[0],
            credential=row[1],
            location=LocationTriple(
                restaurant_id=row[2],
                branch_id=row[3],
                table_id=row[4],
            ),
            created_at=row[5],
        )

    def delete(self, code: str) -> None:
        with txn() as cur:
            cur.execute("DELETE FROM short_links WHERE code = %s", (code,))
