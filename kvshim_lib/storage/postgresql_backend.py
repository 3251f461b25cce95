"""PostgreSQL store using psycopg 3 with a connection pool."""
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from psycopg_pool import ConnectionPool
from pydantic import Field

from kvshim_lib.storage.options import merge_options
from kvshim_lib.storage.sql_backend import SQLOptions, SQLStore

logger = logging.getLogger(__name__)


class PostgreSQLOptions(SQLOptions):
    connection_url: str = "postgresql://postgres@/kvshim"
    # Typical max_connections on a PostgreSQL server is 100.
    max_open_connections: int = Field(default=100, ge=1)
    timeout: float = 30.0


class PostgreSQLStore(SQLStore):
    options_class = PostgreSQLOptions
    # Formatted with the table name.
    create_table_sql = "CREATE TABLE IF NOT EXISTS {table} (k TEXT PRIMARY KEY, v BYTEA NOT NULL)"
    upsert_template = "INSERT INTO {table} (k, v) VALUES (%s, %s) ON CONFLICT (k) DO UPDATE SET v = EXCLUDED.v"

    def __init__(self, options: Optional[PostgreSQLOptions] = None, **overrides) -> None:
        options = merge_options(self.options_class, options, overrides)
        super().__init__(options.codec)
        table = options.table_name
        self.client = ConnectionPool(
            options.connection_url,
            min_size=1,
            max_size=options.max_open_connections,
            timeout=options.timeout,
            open=True,
        )
        self.upsert_sql = self.upsert_template.format(table=table)
        self.select_sql = f"SELECT v FROM {table} WHERE k = %s"
        self.delete_sql = f"DELETE FROM {table} WHERE k = %s"
        try:
            with self._cursor() as cur:
                cur.execute(self.create_table_sql.format(table=table))
        except Exception:
            self.client.close()
            raise
        logger.debug("%s connected (table %s)", type(self).__name__, table)

    @contextmanager
    def _cursor(self) -> Iterator:
        # The pool commits when the connection block exits without error.
        with self.client.connection() as conn:
            with conn.cursor() as cur:
                yield cur

    def close(self) -> None:
        self.client.close()
        logger.debug("%s closed", type(self).__name__)
