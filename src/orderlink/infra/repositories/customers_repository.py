"""Customer lookup by phone for identity resolution.

Read only: the guest path of identity resolution never writes here.
"""

from __future__ import annotations

from orderlink.domain.identity import CustomerRecord
from orderlink.infra.db import fetchone, txn


class PostgresCustomerLookup:
    def find_by_phone(
        self,
        phone: str,
        restaurant_id: str | None = None,
    ) -> CustomerRecord | None:
        """Find an active customer by normalized phone.

        When restaurant_id is given only that restaurant's customers match.
        """
        query = """
            SELECT id, phone, name, email
            FROM customers
            WHERE phone = %s AND is_active
        """
        params: list[str] = [phone]
        if restaurant_id:
            query += " AND restaurant_id::text = %s"
            params.append(restaurant_id)
        query += " ORDER BY created_at LIMIT 1"

        with txn(readonly=True) as cur:
            row = fetchone(cur, query, params)
        if row is None:
            return None
        return CustomerRecord(id=str(row[0]), phone=row[1], name=row[2], email=row[3])
