"""Shared logic for stores backed by a SQL table.

Every SQL store keeps its values in a two-column table ``(k, v)`` with the
key as primary key. Subclasses supply the dialect-specific statements and a
`_cursor()` context manager that yields a DB-API cursor whose statements
are committed when the block exits.
"""
from __future__ import annotations
import re
from abc import abstractmethod
from contextlib import AbstractContextManager
from typing import Any

from pydantic import field_validator

from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.options import StoreOptions

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


def check_identifier(name: str) -> str:
    """Table and database names are spliced into SQL, so only allow plain identifiers."""
    if not _IDENTIFIER.match(name):
        raise ValueError(f"invalid SQL identifier: {name!r}")
    return name


class SQLOptions(StoreOptions):
    table_name: str = "Item"

    @field_validator("table_name")
    @classmethod
    def _check_table_name(cls, value: str) -> str:
        return check_identifier(value)


class SQLStore(BackendStore):
    upsert_sql: str
    select_sql: str
    delete_sql: str

    @abstractmethod
    def _cursor(self) -> AbstractContextManager[Any]: ...

    def _write(self, key: str, data: bytes) -> None:
        with self._cursor() as cur:
            cur.execute(self.upsert_sql, (key, data))

    def _read(self, key: str) -> Lookup[bytes]:
        with self._cursor() as cur:
            cur.execute(self.select_sql, (key,))
            row = cur.fetchone()
        if row is None:
            return MISS
        return Hit(bytes(row[0]))

    def _remove(self, key: str) -> None:
        with self._cursor() as cur:
            cur.execute(self.delete_sql, (key,))
