import pytest

from databricks.labs.nodetree.memory import MemoryStore
from databricks.labs.nodetree.paths import InvalidPath
from databricks.labs.nodetree.store import (
    ANY_VERSION,
    OPEN_ACL_UNSAFE,
    BadVersion,
    CreateMode,
    NodeExists,
    NoNode,
    NotEmpty,
    StoreUnavailable,
)


def _create(store: MemoryStore, path: str, mode: CreateMode = CreateMode.PERSISTENT, data: bytes = b"") -> str:
    return store.create(path, data, OPEN_ACL_UNSAFE, mode)


def test_root_always_exists(store) -> None:
    assert store.exists("/")
    assert store.get_children("/") == []
    assert store.paths() == []


def test_create_requires_parent(store) -> None:
    with pytest.raises(NoNode) as exc_info:
        _create(store, "/a/b")
    assert exc_info.value.path == "/a"


def test_create_existing(store) -> None:
    _create(store, "/a")

    with pytest.raises(NodeExists, match="NodeExists: /a"):
        _create(store, "/a")


def test_create_root(store) -> None:
    with pytest.raises(NodeExists):
        _create(store, "/")


def test_create_validates_path(store) -> None:
    with pytest.raises(InvalidPath):
        _create(store, "/a/")


def test_create_sequential(store) -> None:
    _create(store, "/q")

    assert _create(store, "/q/item-", CreateMode.PERSISTENT_SEQUENTIAL) == "/q/item-0000000000"
    assert _create(store, "/q/", CreateMode.PERSISTENT_SEQUENTIAL) == "/q/0000000001"
    assert _create(store, "/q/item-", CreateMode.EPHEMERAL_SEQUENTIAL) == "/q/item-0000000002"
    assert sorted(store.get_children("/q")) == ["0000000001", "item-0000000000", "item-0000000002"]


def test_sequence_is_kept_per_parent(store) -> None:
    _create(store, "/q1")
    _create(store, "/q2")

    assert _create(store, "/q1/x-", CreateMode.PERSISTENT_SEQUENTIAL) == "/q1/x-0000000000"
    assert _create(store, "/q2/x-", CreateMode.PERSISTENT_SEQUENTIAL) == "/q2/x-0000000000"


def test_delete(store) -> None:
    _create(store, "/a")
    _create(store, "/a/b")

    with pytest.raises(NotEmpty):
        store.delete("/a")
    store.delete("/a/b")
    store.delete("/a", ANY_VERSION)

    assert not store.exists("/a")
    with pytest.raises(NoNode):
        store.delete("/a")


def test_delete_with_version(store) -> None:
    _create(store, "/a", data=b"one")
    assert store.set_data("/a", b"two", version=0) == 1

    with pytest.raises(BadVersion):
        store.delete("/a", 0)
    store.delete("/a", 1)

    assert store.paths() == []


def test_set_data_with_wrong_version(store) -> None:
    _create(store, "/a")

    with pytest.raises(BadVersion):
        store.set_data("/a", b"x", version=3)
    with pytest.raises(NoNode):
        store.set_data("/b", b"x")


def test_get_children_of_missing_node(store) -> None:
    with pytest.raises(NoNode):
        store.get_children("/a")


def test_node_details(store) -> None:
    _create(store, "/a", CreateMode.CONTAINER, b"data")

    assert store.data_of("/a") == b"data"
    assert store.acl_of("/a") == OPEN_ACL_UNSAFE
    assert store.mode_of("/a") == CreateMode.CONTAINER
    with pytest.raises(NoNode):
        store.mode_of("/b")


def test_containers_not_supported() -> None:
    store = MemoryStore(containers=False)

    assert not store.supports_containers()
    with pytest.raises(ValueError, match="container nodes are not supported: /a"):
        _create(store, "/a", CreateMode.CONTAINER)


def test_reap_containers(store) -> None:
    _create(store, "/c", CreateMode.CONTAINER)
    _create(store, "/c/inner", CreateMode.CONTAINER)
    _create(store, "/c/inner/leaf")
    _create(store, "/fresh", CreateMode.CONTAINER)
    _create(store, "/p")
    _create(store, "/p/x")

    assert store.reap_containers() == []

    store.delete("/c/inner/leaf")
    store.delete("/p/x")

    assert store.reap_containers() == ["/c/inner", "/c"]
    # never had children, so it is kept
    assert store.paths() == ["/fresh", "/p"]


def test_closed_store(store) -> None:
    _create(store, "/a")
    store.close()

    with pytest.raises(StoreUnavailable):
        store.exists("/a")
    with pytest.raises(StoreUnavailable):
        store.get_children("/a")
    with pytest.raises(StoreUnavailable):
        store.delete("/a")
    with pytest.raises(StoreUnavailable):
        _create(store, "/b")
    for inspect in (store.data_of, store.acl_of, store.mode_of):
        with pytest.raises(StoreUnavailable):
            inspect("/a")
    with pytest.raises(StoreUnavailable):
        store.set_data("/a", b"x")
    assert store.paths() == ["/a"]


def test_repr(store) -> None:
    _create(store, "/a")

    assert repr(store) == "<MemoryStore with 2 nodes>"
