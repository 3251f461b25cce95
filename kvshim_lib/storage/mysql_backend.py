"""MySQL store using PyMySQL.

If the configured database does not exist yet (server error 1049) the store
connects without a database, creates it, and reconnects.
"""
from __future__ import annotations
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import pymysql
from pydantic import field_validator

from kvshim_lib.storage.options import merge_options
from kvshim_lib.storage.sql_backend import SQLOptions, SQLStore, check_identifier

logger = logging.getLogger(__name__)

ER_BAD_DB_ERROR = 1049
# Maximum key length in characters, the length of the primary key column.
KEY_LENGTH = 255


class MySQLOptions(SQLOptions):
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "kvshim"
    connect_timeout: float = 10.0

    @field_validator("database")
    @classmethod
    def _check_database(cls, value: str) -> str:
        return check_identifier(value)


class MySQLStore(SQLStore):
    def __init__(self, options: Optional[MySQLOptions] = None, **overrides) -> None:
        options = merge_options(MySQLOptions, options, overrides)
        super().__init__(options.codec)
        self.options = options
        table = options.table_name
        self._lock = threading.Lock()
        self.client = self._connect()
        self.upsert_sql = f"INSERT INTO {table} (k, v) VALUES (%s, %s) ON DUPLICATE KEY UPDATE v = VALUES(v)"
        self.select_sql = f"SELECT v FROM {table} WHERE k = %s"
        self.delete_sql = f"DELETE FROM {table} WHERE k = %s"
        with self._cursor() as cur:
            cur.execute(f"CREATE TABLE IF NOT EXISTS {table} (k VARCHAR({KEY_LENGTH}) PRIMARY KEY, v LONGBLOB NOT NULL)")
        logger.debug("MySQLStore connected to %s:%s/%s", options.host, options.port, options.database)

    def _open(self, database: Optional[str]):
        o = self.options
        return pymysql.connect(
            host=o.host,
            port=o.port,
            user=o.user,
            password=o.password,
            database=database,
            connect_timeout=o.connect_timeout,
            autocommit=True,
        )

    def _connect(self):
        try:
            return self._open(self.options.database)
        except pymysql.err.OperationalError as e:
            if not e.args or e.args[0] != ER_BAD_DB_ERROR:
                raise
        logger.info("Database %s does not exist, creating it", self.options.database)
        tmp = self._open(None)
        try:
            with tmp.cursor() as cur:
                cur.execute(f"CREATE DATABASE IF NOT EXISTS {self.options.database}")
        finally:
            tmp.close()
        return self._open(self.options.database)

    @contextmanager
    def _cursor(self) -> Iterator:
        with self._lock:
            with self.client.cursor() as cur:
                yield cur

    def close(self) -> None:
        with self._lock:
            self.client.close()
        logger.debug("MySQLStore closed")
