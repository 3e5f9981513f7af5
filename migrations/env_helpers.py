"""Database URL helpers for Alembic migrations.

Kept apart from env.py so they can be tested without alembic.context.
"""

from __future__ import annotations

import os
from urllib.parse import quote_plus, urlparse, urlunparse

_DRIVER_PREFIX = "postgresql+psycopg2://"


def _with_driver(url: str) -> str:
    """Rewrite postgres:// and postgresql:// to the psycopg2 dialect."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return _DRIVER_PREFIX + url[len(prefix):]
    return url


def _inject_password(url: str, password: str) -> str:
    parsed = urlparse(url)
    if parsed.password or not parsed.hostname:
        return url
    netloc = f"{quote_plus(parsed.username or '')}:{quote_plus(password)}@{parsed.hostname}"
    if parsed.port:
        netloc += f":{parsed.port}"
    return urlunparse(parsed._replace(netloc=netloc))


def get_database_url() -> str:
    """SQLAlchemy URL built from DATABASE_URL (and DB_PASSWORD if set).

    Raises:
        RuntimeError: If DATABASE_URL is not set or is not a URL.
    """
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    if "://" not in url:
        raise RuntimeError("DATABASE_URL must be a postgresql:// URL")

    url = _with_driver(url)
    db_password = os.environ.get("DB_PASSWORD", "")
    if db_password:
        url = _inject_password(url, db_password)
    return url
