import threading

import pytest
from pydantic import ValidationError

pytest.importorskip("google.cloud.datastore")
pytest.importorskip("google.cloud.firestore")

from kvshim_lib.errors import CodecError
from kvshim_lib.storage import datastore_backend, firestore_backend
from kvshim_lib.storage.datastore_backend import DatastoreStore
from kvshim_lib.storage.firestore_backend import FirestoreStore
from kvshim_lib.storage.gcp import GCPOptions, make_client
from tests.helpers import Foo, check_store_contract


class FakeDatastoreClient:
    def __init__(self):
        self.entities = {}
        self.timeouts = []
        self.lock = threading.Lock()
        self.closed = False

    def key(self, kind, name):
        return (kind, name)

    def put(self, entity, timeout=None):
        self.timeouts.append(timeout)
        with self.lock:
            self.entities[entity.key] = entity

    def get(self, key, timeout=None):
        with self.lock:
            return self.entities.get(key)

    def delete(self, key, timeout=None):
        with self.lock:
            self.entities.pop(key, None)

    def close(self):
        self.closed = True


class FakeSnapshot:
    def __init__(self, data):
        self.exists = data is not None
        self._data = data

    def to_dict(self):
        return self._data


class FakeDocument:
    def __init__(self, collection, doc_id):
        self.collection = collection
        self.id = doc_id

    def set(self, data, timeout=None):
        self.collection.timeouts.append(timeout)
        self.collection.docs[self.id] = dict(data)

    def get(self, timeout=None):
        return FakeSnapshot(self.collection.docs.get(self.id))

    def delete(self, timeout=None):
        self.collection.docs.pop(self.id, None)


class FakeCollection:
    def __init__(self, name):
        self.name = name
        self.docs = {}
        self.timeouts = []

    def document(self, doc_id):
        return FakeDocument(self, doc_id)


class FakeFirestoreClient:
    def __init__(self):
        self.collections = {}
        self.closed = False

    def collection(self, name):
        return self.collections.setdefault(name, FakeCollection(name))

    def close(self):
        self.closed = True


@pytest.fixture
def fake_datastore(monkeypatch):
    fake = FakeDatastoreClient()
    monkeypatch.setattr(datastore_backend, "make_client", lambda client_cls, options: fake)
    return fake


@pytest.fixture
def fake_firestore(monkeypatch):
    fake = FakeFirestoreClient()
    monkeypatch.setattr(firestore_backend, "make_client", lambda client_cls, options: fake)
    return fake


def test_project_id_is_required():
    with pytest.raises(ValidationError):
        GCPOptions()
    with pytest.raises(ValidationError):
        GCPOptions(project_id="")


class FakeClientClass:
    def __init__(self, project=None):
        self.project = project
        self.credentials_file = None

    @classmethod
    def from_service_account_json(cls, path, project=None):
        client = cls(project=project)
        client.credentials_file = path
        return client


def test_make_client_uses_credentials_file_when_given():
    plain = make_client(FakeClientClass, GCPOptions(project_id="p1"))
    assert plain.project == "p1" and plain.credentials_file is None
    keyed = make_client(FakeClientClass, GCPOptions(project_id="p1", credentials_file="/etc/sa.json"))
    assert keyed.project == "p1" and keyed.credentials_file == "/etc/sa.json"


def test_datastore_store_contract(fake_datastore):
    check_store_contract(DatastoreStore(project_id="p1"))


def test_datastore_entity_layout(fake_datastore):
    store = DatastoreStore(project_id="p1", kind="items", timeout=0.5)
    store.set("foo123", Foo(Bar="baz"))
    entity = fake_datastore.entities[("items", "foo123")]
    assert entity["v"] == b'{"Bar": "baz"}'
    assert entity.exclude_from_indexes == {"v"}
    assert fake_datastore.timeouts == [0.5]
    store.close()
    assert fake_datastore.closed


def test_datastore_non_binary_value_is_codec_error(fake_datastore):
    store = DatastoreStore(project_id="p1")
    fake_datastore.entities[("kvshim", "k")] = {"v": "text"}
    with pytest.raises(CodecError) as ei:
        store.get("k", str)
    assert ei.value.found is True


def test_firestore_store_contract(fake_firestore):
    check_store_contract(FirestoreStore(project_id="p1"))


def test_firestore_document_layout(fake_firestore):
    store = FirestoreStore(project_id="p1", collection_name="items", timeout=0.5)
    store.set("foo123", Foo(Bar="baz"))
    collection = fake_firestore.collections["items"]
    assert collection.docs == {"foo123": {"value": b'{"Bar": "baz"}'}}
    assert collection.timeouts == [0.5]
    store.close()
    assert fake_firestore.closed


def test_firestore_document_without_value_is_codec_error(fake_firestore):
    store = FirestoreStore(project_id="p1")
    fake_firestore.collections["kvshim"].docs["k"] = {"other": 1}
    with pytest.raises(CodecError) as ei:
        store.get("k", str)
    assert ei.value.found is True
