import pytest

from databricks.labs.nodetree.config import TreeConfig
from databricks.labs.nodetree.namespace import NodeTree
from databricks.labs.nodetree.paths import InvalidPath
from databricks.labs.nodetree.store import (
    OPEN_ACL_UNSAFE,
    READ_ACL_UNSAFE,
    CreateMode,
    NoNode,
    RetriesExhausted,
    StaticAclProvider,
)


def test_without_namespace(store) -> None:
    tree = NodeTree(store)

    assert tree.mkdirs("/a/b") == "/a/b"
    assert store.paths() == ["/a", "/a/b"]
    assert tree.sorted_children("/a") == ["b"]


def test_with_namespace(store) -> None:
    tree = NodeTree(store, TreeConfig(namespace="app"))

    assert tree.mkdirs("/a/b") == "/app/a/b"
    tree.mkdirs("/a/c")
    tree.mkdirs("/x", make_last_node=False)

    assert store.paths() == ["/app", "/app/a", "/app/a/b", "/app/a/c"]
    assert tree.sorted_children("/a") == ["b", "c"]
    assert tree.sorted_children("/") == ["a"]

    tree.delete_children("/a")
    assert store.paths() == ["/app", "/app/a"]
    tree.delete_children("/", delete_self=True)
    assert store.paths() == []


def test_fix_path(store) -> None:
    tree = NodeTree(store, TreeConfig(namespace="/app/"))

    assert tree.fix_path("/a") == "/app/a"
    assert tree.fix_path("/") == "/app"
    with pytest.raises(InvalidPath):
        tree.fix_path("a")
    assert tree.fix_path("/q/", is_sequential=True) == "/app/q"


def test_sorted_children_of_missing_node(store) -> None:
    with pytest.raises(NoNode):
        NodeTree(store, TreeConfig(namespace="app")).sorted_children("/a")


def test_uses_containers(store) -> None:
    NodeTree(store, TreeConfig(use_containers=True)).mkdirs("/a/b")

    assert store.mode_of("/a") == CreateMode.CONTAINER
    assert store.mode_of("/a/b") == CreateMode.CONTAINER


def test_uses_acl_provider(store) -> None:
    NodeTree(store, acl_provider=StaticAclProvider(default=READ_ACL_UNSAFE)).mkdirs("/a")

    assert store.acl_of("/a") == READ_ACL_UNSAFE


def test_max_delete_attempts(racing_store) -> None:
    tree = NodeTree(racing_store, TreeConfig(max_delete_attempts=1))
    tree.mkdirs("/a/x")
    other = racing_store.other_client()
    racing_store.before("delete", "/a", lambda: other.create("/a/y", b"", OPEN_ACL_UNSAFE, CreateMode.PERSISTENT))

    with pytest.raises(RetriesExhausted):
        tree.delete_children("/a", delete_self=True)
    assert racing_store.paths() == ["/a", "/a/y"]


def test_from_file(store, tmp_path) -> None:
    file = tmp_path / "config.yml"
    file.write_text("version: 2\nnamespace: /app\n")

    tree = NodeTree.from_file(store, file)

    assert tree.config == TreeConfig(namespace="/app")
    assert repr(tree) == "<NodeTree /app on <MemoryStore with 1 nodes>>"
