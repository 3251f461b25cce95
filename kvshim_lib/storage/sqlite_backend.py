"""SQLite store using the standard library `sqlite3` module.

A single connection is shared by all threads and guarded by a mutex; the
connection runs in autocommit mode so every statement is durable on return.
"""
from __future__ import annotations
import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from kvshim_lib.storage.options import merge_options
from kvshim_lib.storage.sql_backend import SQLOptions, SQLStore

logger = logging.getLogger(__name__)


class SQLiteOptions(SQLOptions):
    # ":memory:" keeps the database in process memory.
    filename: str = "sqlite.db"
    timeout: float = 5.0


class SQLiteStore(SQLStore):
    def __init__(self, options: Optional[SQLiteOptions] = None, **overrides) -> None:
        options = merge_options(SQLiteOptions, options, overrides)
        super().__init__(options.codec)
        table = options.table_name
        self.client = sqlite3.connect(
            options.filename,
            timeout=options.timeout,
            check_same_thread=False,
            isolation_level=None,
        )
        self._lock = threading.Lock()
        self.upsert_sql = f"INSERT INTO {table} (k, v) VALUES (?, ?) ON CONFLICT (k) DO UPDATE SET v = excluded.v"
        self.select_sql = f"SELECT v FROM {table} WHERE k = ?"
        self.delete_sql = f"DELETE FROM {table} WHERE k = ?"
        with self._cursor() as cur:
            cur.execute(f"CREATE TABLE IF NOT EXISTS {table} (k TEXT PRIMARY KEY, v BLOB NOT NULL)")
        logger.debug("SQLiteStore opened %s (table %s)", options.filename, table)

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        with self._lock:
            cur = self.client.cursor()
            try:
                yield cur
            finally:
                cur.close()

    def close(self) -> None:
        with self._lock:
            self.client.close()
        logger.debug("SQLiteStore closed")
