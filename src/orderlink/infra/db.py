"""Database access layer using psycopg2.

The bridge only reads venues and customers and, with LINK_STORE=postgres,
writes short links. Every call runs in its own short transaction:

- get_conn(): connection from DATABASE_URL with a bounded connect timeout
- txn(): commit/rollback context manager, optionally read-only
- fetchone/fetchall: query helpers
"""

import os
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

import psycopg2
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor

# Lookups sit on the webhook path; a dead database must fail fast there
DEFAULT_CONNECT_TIMEOUT = 3
APPLICATION_NAME = "orderlink"


def get_conn() -> PgConnection:
    """Open a connection to DATABASE_URL.

    DB_CONNECT_TIMEOUT (seconds) overrides the default connect timeout.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
        psycopg2.Error: On connection failure.
    """
    dsn = os.environ.get("DATABASE_URL")
    if not dsn:
        raise RuntimeError("DATABASE_URL environment variable not set")
    timeout = int(os.environ.get("DB_CONNECT_TIMEOUT") or DEFAULT_CONNECT_TIMEOUT)
    return psycopg2.connect(
        dsn,
        connect_timeout=timeout,
        application_name=APPLICATION_NAME,
    )


@contextmanager
def txn(conn: PgConnection | None = None, *, readonly: bool = False) -> Iterator[PgCursor]:
    """Run the block in one transaction and yield its cursor.

    Commits on success, rolls back on exception. A connection opened here is
    closed on exit; a caller-supplied one is left open. readonly applies only
    to connections opened here.

    Example:
        with txn(readonly=True) as cur:
            row = fetchone(cur, "SELECT name FROM branches WHERE id::text = %s", (branch_id,))
    """
    owns_conn = conn is None
    if owns_conn:
        conn = get_conn()
        if readonly:
            conn.set_session(readonly=True)

    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        if owns_conn:
            conn.close()


def fetchone(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
) -> tuple[Any, ...] | None:
    cur.execute(query, params)
    return cur.fetchone()


def fetchall(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
) -> list[tuple[Any, ...]]:
    cur.execute(query, params)
    return cur.fetchall()
