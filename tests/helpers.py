"""Store contract checks shared by the adapter tests.

Usage in tests:
    from tests.helpers import check_store_contract
    check_store_contract(MemoryStore())
"""
import threading
import uuid
from dataclasses import dataclass

import pytest

from kvshim_lib.errors import InvalidKeyError, InvalidValueError
from kvshim_lib.storage.base import MISS, Store


@dataclass
class Foo:
    Bar: str


def check_round_trip(store: Store) -> None:
    key = str(uuid.uuid4())
    store.set(key, Foo(Bar="baz"))
    result = store.get(key, Foo)
    assert result.found is True
    assert result.value == Foo(Bar="baz")

    # overwrite
    store.set(key, Foo(Bar="qux"))
    assert store.get(key, Foo).value == Foo(Bar="qux")


def check_miss(store: Store) -> None:
    result = store.get(str(uuid.uuid4()), Foo)
    assert result is MISS
    assert not result
    assert result.value is None


def check_delete(store: Store) -> None:
    key = str(uuid.uuid4())
    store.set(key, Foo(Bar="baz"))
    store.delete(key)
    assert store.get(key, Foo).found is False
    # deleting a missing key is not an error
    store.delete(key)
    store.delete(str(uuid.uuid4()))


def check_invalid_input(store: Store) -> None:
    with pytest.raises(InvalidKeyError):
        store.set("", Foo(Bar="baz"))
    with pytest.raises(InvalidValueError):
        store.set("k", None)
    with pytest.raises(InvalidKeyError):
        store.get("", Foo)
    with pytest.raises(InvalidValueError):
        store.get("k", None)
    with pytest.raises(InvalidKeyError):
        store.delete("")


def check_concurrency(store: Store, workers: int = 8, per_worker: int = 10) -> None:
    """Concurrent sets and gets on distinct keys leave every value readable."""
    prefix = str(uuid.uuid4())
    errors = []

    def work(n: int) -> None:
        try:
            for i in range(per_worker):
                key = f"{prefix}-{n}-{i}"
                assert not store.get(key, Foo)
                store.set(key, Foo(Bar=key))
                assert store.get(key, Foo).value == Foo(Bar=key)
        except Exception as e:  # collected and asserted on below
            errors.append(e)

    threads = [threading.Thread(target=work, args=(n,)) for n in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []
    for n in range(workers):
        for i in range(per_worker):
            key = f"{prefix}-{n}-{i}"
            assert store.get(key, Foo).value == Foo(Bar=key)


def check_store_contract(store: Store, concurrency: bool = True) -> None:
    check_invalid_input(store)
    check_round_trip(store)
    check_miss(store)
    check_delete(store)
    if concurrency:
        check_concurrency(store)
