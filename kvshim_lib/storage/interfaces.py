from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class StoreProtocol(Protocol):
    """Store protocol mirroring `kvshim_lib.storage.base.Store`.

    Implementations should follow the semantics documented on the abstract
    base class in `kvshim_lib.storage.base` (`MISS` for missing keys,
    idempotent delete, `InvalidKeyError`/`InvalidValueError` before any
    backend call).
    """

    def set(self, key: str, value: Any) -> None: ...

    def get(self, key: str, into: Any) -> Any: ...

    def delete(self, key: str) -> None: ...

    def close(self) -> None: ...
