"""
PostgreSQL connections for `EventRepo`.

Only used when `DB_URL` is set; without it the API runs on the in-memory
event store alone.
"""

import psycopg
from settings import settings


def get_conn():
    """New connection per call; `connect_timeout` keeps requests from hanging."""

    return psycopg.connect(settings.db_url, connect_timeout=5)
