"""CockroachDB store.

CockroachDB speaks the PostgreSQL wire protocol, so this is the PostgreSQL
store with CockroachDB's table definition, its native ``UPSERT`` and a
default URL pointing at a local insecure node.
"""
from __future__ import annotations

from kvshim_lib.storage.postgresql_backend import PostgreSQLOptions, PostgreSQLStore


class CockroachDBOptions(PostgreSQLOptions):
    connection_url: str = "postgresql://root@localhost:26257/kvshim?sslmode=disable&application_name=kvshim"


class CockroachDBStore(PostgreSQLStore):
    options_class = CockroachDBOptions
    create_table_sql = "CREATE TABLE IF NOT EXISTS {table} (k STRING PRIMARY KEY, v BYTES NOT NULL, FAMILY kv (k, v))"
    upsert_template = "UPSERT INTO {table} (k, v) VALUES (%s, %s)"
