import pytest

pytest.importorskip("plyvel")

from kvshim_lib.storage.leveldb_backend import LevelDBStore  # noqa: E402
from tests.helpers import Foo, check_store_contract  # noqa: E402


def test_leveldb_store_contract(tmp_path):
    store = LevelDBStore(path=str(tmp_path / "db"))
    try:
        check_store_contract(store)
    finally:
        store.close()


def test_leveldb_values_survive_reopen(tmp_path):
    path = str(tmp_path / "db")
    with LevelDBStore(path=path, write_sync=True) as store:
        store.set("foo123", Foo(Bar="baz"))
    with LevelDBStore(path=path) as store:
        assert store.get("foo123", Foo).value == Foo(Bar="baz")
        assert store.client.get(b"foo123") == b'{"Bar": "baz"}'
