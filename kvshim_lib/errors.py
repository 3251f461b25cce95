"""Exception types raised by kvshim stores and codecs.

All store failures derive from `StoreError` so callers can catch them in one
place. A missing key is never an error: `get` returns `MISS` and `delete`
returns normally.
"""
from __future__ import annotations
from typing import Iterable, List


class StoreError(Exception):
    """Base class for every error raised by a store or codec."""


class InvalidKeyError(StoreError, ValueError):
    """The key is empty or not a string. Raised before any backend call."""

    def __init__(self, message: str = "the key must be a non-empty string") -> None:
        super().__init__(message)


class InvalidValueError(StoreError, ValueError):
    """The value passed to `set` (or the target type passed to `get`) is None."""

    def __init__(self, message: str = "the value must not be None") -> None:
        super().__init__(message)


class CodecError(StoreError):
    """Marshalling or unmarshalling failed.

    `found` is True when the error happened while decoding a value that
    does exist in the backend. Callers that need to tell "key exists but is
    unreadable" apart from "could not encode" should check it.
    """

    def __init__(self, message: str, *, found: bool = False) -> None:
        super().__init__(message)
        self.found = found


class BackendError(StoreError):
    """An error reported by the wrapped client library.

    The original exception is kept as `__cause__` and in `cause`.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class CombinerError(StoreError):
    """One or more stores behind a combiner failed."""

    def __init__(self, errors: Iterable[BaseException]) -> None:
        self.errors: List[BaseException] = list(errors)
        super().__init__(" | ".join(str(e) for e in self.errors) or "combiner: unknown error")
