"""Store that validates its input and otherwise does nothing.

Useful as a stand-in where a store is required but nothing should be
persisted. It cannot tell a stored value apart from a missing one: every
`get` is a miss.
"""
from __future__ import annotations
from typing import Any

from kvshim_lib.storage.base import MISS, Lookup, Store, check_key, check_key_and_value


class NopStore(Store):
    def __init__(self, **_ignored: Any) -> None:
        pass

    def set(self, key: str, value: Any) -> None:
        check_key_and_value(key, value)

    def get(self, key: str, into: Any) -> Lookup:
        check_key_and_value(key, into)
        return MISS

    def delete(self, key: str) -> None:
        check_key(key)

    def close(self) -> None:
        return
