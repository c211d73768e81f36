"""Database helpers for the direct Postgres record backend."""

import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from psycopg2 import extras, pool

from tailorfinder.core.config import get_settings

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_SELECT_PROVIDERS = """
SELECT
    id,
    name,
    description,
    phone,
    email,
    address_line1,
    address_line2,
    city,
    postcode,
    country,
    has_location,
    latitude,
    longitude
FROM {table}
ORDER BY name ASC
"""


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


def fetch_providers(table: str) -> List[Dict[str, Any]]:
    """Read every provider row ordered by name."""
    if not _IDENTIFIER.match(table or ""):
        raise ValueError(f"invalid table name {table!r}")

    with get_connection() as conn:
        with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            cur.execute(_SELECT_PROVIDERS.format(table=table))
            rows = [dict(row) for row in cur.fetchall()]
    logger.debug("Fetched %d provider rows from %s", len(rows), table)
    return rows

