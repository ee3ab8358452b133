"""
Key-value stores for the persisted known-representative list.

Only get/set/remove of string values is needed. The memory store backs tests
and deployments without a database; the PostgreSQL store keeps the list
across restarts.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional, Protocol

import psycopg2
from psycopg2 import pool

from core.reps.errors import KeyValueStoreError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class MemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class PostgresKeyValueStore:
    DDL = """
    CREATE TABLE IF NOT EXISTS kv_store (
      key TEXT PRIMARY KEY,
      value TEXT NOT NULL,
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """

    def __init__(self, dsn: str, min_conn: int = 1, max_conn: int = 5):
        if not dsn:
            raise ValueError("DATABASE_URL is not set")
        self._pool = pool.ThreadedConnectionPool(minconn=min_conn, maxconn=max_conn, dsn=dsn)
        logger.info("KV store pool initialized (min=%s max=%s)", min_conn, max_conn)
        self._execute(self.DDL)

    def _execute(self, sql: str, params: tuple = (), fetch: bool = False):
        conn = None
        try:
            conn = self._pool.getconn()
            with conn.cursor() as cur:
                cur.execute(sql, params)
                row = cur.fetchone() if fetch else None
            conn.commit()
            return row
        except psycopg2.Error as e:
            logger.exception("KV store query failed")
            if conn:
                conn.rollback()
            raise KeyValueStoreError(str(e)) from e
        finally:
            if conn:
                self._pool.putconn(conn)

    def get(self, key: str) -> Optional[str]:
        row = self._execute("SELECT value FROM kv_store WHERE key = %s;", (key,), fetch=True)
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        self._execute(
            """
            INSERT INTO kv_store (key, value) VALUES (%s, %s)
            ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = now();
            """,
            (key, value),
        )

    def remove(self, key: str) -> None:
        self._execute("DELETE FROM kv_store WHERE key = %s;", (key,))

    def close(self) -> None:
        try:
            self._pool.closeall()
        except psycopg2.Error:
            logger.exception("Error closing KV store pool")
