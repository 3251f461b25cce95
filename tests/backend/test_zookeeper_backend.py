import pytest
from kazoo.exceptions import NodeExistsError, NoNodeError
from pydantic import ValidationError

from kvshim_lib.storage import zookeeper_backend
from kvshim_lib.storage.zookeeper_backend import ZooKeeperOptions, ZooKeeperStore
from tests.helpers import Foo, check_store_contract


class FakeKazooClient:
    instances = []

    def __init__(self, hosts, timeout):
        self.hosts = hosts
        self.timeout = timeout
        self.nodes = {}
        self.ensured = []
        self.state = "new"
        FakeKazooClient.instances.append(self)

    def start(self, timeout=None):
        self.state = "started"

    def ensure_path(self, path):
        self.ensured.append(path)

    def create(self, path, value):
        if path in self.nodes:
            raise NodeExistsError()
        self.nodes[path] = value

    def set(self, path, value):
        if path not in self.nodes:
            raise NoNodeError()
        self.nodes[path] = value

    def get(self, path):
        if path not in self.nodes:
            raise NoNodeError()
        return self.nodes[path], object()

    def delete(self, path):
        if path not in self.nodes:
            raise NoNodeError()
        del self.nodes[path]

    def stop(self):
        self.state = "stopped"

    def close(self):
        self.state = "closed"


@pytest.fixture
def fake_kazoo(monkeypatch):
    FakeKazooClient.instances = []
    monkeypatch.setattr(zookeeper_backend, "KazooClient", FakeKazooClient)
    return FakeKazooClient


def test_zookeeper_store_contract(fake_kazoo):
    check_store_contract(ZooKeeperStore())


def test_zookeeper_paths_and_lifecycle(fake_kazoo):
    store = ZooKeeperStore(servers=["zk1:2181", "zk2:2181"], path_prefix="/app/kv", timeout=1.0)
    client = fake_kazoo.instances[0]
    assert client.hosts == "zk1:2181,zk2:2181"
    assert client.ensured == ["/app/kv"]
    store.set("foo123", Foo(Bar="baz"))
    store.set("foo123", Foo(Bar="qux"))
    assert client.nodes == {"/app/kv/foo123": b'{"Bar": "qux"}'}
    store.close()
    assert client.state == "closed"


def test_zookeeper_root_prefix_skips_ensure_path(fake_kazoo):
    ZooKeeperStore(path_prefix="/")
    assert fake_kazoo.instances[0].ensured == []


@pytest.mark.parametrize("prefix", ["kvshim/", "/a//b/"])
def test_zookeeper_rejects_invalid_prefix(prefix):
    with pytest.raises(ValidationError):
        ZooKeeperOptions(path_prefix=prefix)


def test_zookeeper_prefix_gets_trailing_slash():
    assert ZooKeeperOptions(path_prefix="/a/b").path_prefix == "/a/b/"
