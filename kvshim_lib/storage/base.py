"""Store interface definitions.

Defines the `Store` abstract class every adapter implements, the `Hit` /
`Miss` lookup results returned by `get`, and `BackendStore`, the template
that holds the validation and codec handling shared by all adapters so the
backend modules only translate reads, writes and deletes.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

from kvshim_lib.errors import BackendError, CodecError, InvalidKeyError, InvalidValueError, StoreError
from kvshim_lib.storage.encoding import Codec, resolve_codec

T = TypeVar("T")


@dataclass(frozen=True)
class Hit(Generic[T]):
    """The key exists; `value` holds the decoded value."""

    value: T
    found: bool = field(default=True, init=False)

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Miss:
    """The key does not exist. This is a normal outcome, not an error."""

    found: bool = field(default=False, init=False)
    value: None = field(default=None, init=False)

    def __bool__(self) -> bool:
        return False


MISS = Miss()

Lookup = Union[Hit[T], Miss]


def check_key(key: Any) -> None:
    if not isinstance(key, str) or key == "":
        raise InvalidKeyError()


def check_value(value: Any) -> None:
    if value is None:
        raise InvalidValueError()


def check_key_and_value(key: Any, value: Any) -> None:
    check_key(key)
    check_value(value)


class Store(ABC):
    """Abstract key-value store.

    Keys are non-empty strings. `get` returns `Hit(value)` or `MISS`;
    `delete` succeeds whether or not the key existed. Using a store after
    `close()` is undefined. Stores are context managers.
    """

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store `value` under `key`, overwriting any previous value."""

    @abstractmethod
    def get(self, key: str, into: Any) -> Lookup:
        """Return `Hit(value)` decoded as type `into`, or `MISS`.

        Raises `CodecError` with ``found=True`` when the key exists but its
        value cannot be decoded as `into`.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove `key`. Removing a missing key is not an error."""

    @abstractmethod
    def close(self) -> None:
        """Release backend resources."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class BackendStore(Store):
    """Store implemented on top of a byte-oriented backend.

    Subclasses implement `_write`, `_read` and `_remove`. Exceptions raised
    by those hooks that are not `StoreError`s are re-raised as
    `BackendError` with the original as cause.
    """

    def __init__(self, codec: Codec | str | None = None) -> None:
        self.codec: Codec = resolve_codec(codec)

    def set(self, key: str, value: Any) -> None:
        check_key_and_value(key, value)
        data = self.codec.marshal(value)
        self._call(self._write, key, data)

    def get(self, key: str, into: Any) -> Lookup:
        check_key_and_value(key, into)
        raw = self._call(self._read, key)
        if not raw.found:
            return MISS
        try:
            return Hit(self.codec.unmarshal(raw.value, into))
        except CodecError as e:
            e.found = True
            raise

    def delete(self, key: str) -> None:
        check_key(key)
        self._call(self._remove, key)

    def _call(self, fn, *args):
        try:
            return fn(*args)
        except StoreError:
            raise
        except Exception as e:
            raise BackendError(f"{type(self).__name__}: {type(e).__name__}: {e}", e) from e

    @abstractmethod
    def _write(self, key: str, data: bytes) -> None: ...

    @abstractmethod
    def _read(self, key: str) -> Lookup[bytes]:
        """Return `Hit(bytes)` or `MISS`, mapping the backend's not-found signal."""

    @abstractmethod
    def _remove(self, key: str) -> None: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(codec={self.codec!r})"
