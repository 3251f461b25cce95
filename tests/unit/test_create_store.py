import pytest
from pydantic import ValidationError

from kvshim_lib.storage import available_stores, create_store, store_class
from kvshim_lib.storage.file_backend import FileStore
from kvshim_lib.storage.memory_backend import MemoryStore
from kvshim_lib.storage.nop_backend import NopStore


def test_available_stores_lists_every_backend():
    names = available_stores()
    for name in ("memory", "file", "sqlite", "redis", "dynamodb", "etcd", "zookeeper", "leveldb", "cockroachdb", "datastore", "firestore"):
        assert name in names
    assert names == sorted(names)


def test_create_memory_store_with_codec_name():
    store = create_store("memory", codec="msgpack")
    assert isinstance(store, MemoryStore)
    assert store.codec.name == "msgpack"


def test_create_store_passes_options(tmp_path):
    store = create_store(" File ", directory=str(tmp_path))
    assert isinstance(store, FileStore)
    assert store.directory == tmp_path


def test_create_nop_store():
    assert isinstance(create_store("nop"), NopStore)


def test_unknown_implementation():
    with pytest.raises(ValueError, match="unknown store implementation"):
        store_class("cassandra")


def test_unknown_option_is_rejected():
    with pytest.raises(ValidationError):
        create_store("memory", no_such_option=1)


def test_unknown_codec_is_rejected():
    with pytest.raises(ValidationError):
        create_store("memory", codec="xml")
