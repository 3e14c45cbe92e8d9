"""A thread-safe, in-process node store with the semantics of a hierarchical coordination service."""

import logging
import threading
from collections.abc import Sequence

from databricks.labs.nodetree.paths import SEQUENTIAL_SUFFIX_DIGITS, path_and_node, validate_path
from databricks.labs.nodetree.store import (
    ANY_VERSION,
    Acl,
    BadVersion,
    CreateMode,
    NodeExists,
    NodeStore,
    NoNode,
    NotEmpty,
    StoreUnavailable,
)

logger = logging.getLogger(__name__)

__all__ = ["MemoryStore"]


class _Node:
    __slots__ = ("data", "acl", "mode", "version", "children", "sequence", "had_children")

    def __init__(self, data: bytes, acl: Sequence[Acl], mode: CreateMode) -> None:
        self.data = data
        self.acl = list(acl)
        self.mode = mode
        self.version = 0
        self.children: set[str] = set()
        # next counter handed out to a sequential child
        self.sequence = 0
        # containers are only reaped after their first child
        self.had_children = False


class MemoryStore(NodeStore):
    """Node store that keeps the whole namespace in a dictionary, guarded by a single lock.

    Creating a node requires its parent, deleting one requires it to be childless, and sequential nodes get a
    zero-padded counter kept per parent. Container nodes are only removed by an explicit :meth:`reap_containers`
    call, the way a server reaps them in the background.
    """

    def __init__(self, *, containers: bool = True) -> None:
        self._lock = threading.RLock()
        self._containers = containers
        self._closed = False
        self._nodes: dict[str, _Node] = {"/": _Node(b"", [], CreateMode.PERSISTENT)}

    def __repr__(self):
        return f"<{self.__class__.__name__} with {len(self._nodes)} nodes>"

    def _check_open(self, path: str) -> None:
        if self._closed:
            raise StoreUnavailable(path, f"store is closed: {path}")

    def close(self) -> None:
        """Simulate a lost session: every primitive called afterwards raises StoreUnavailable."""
        with self._lock:
            self._closed = True

    def supports_containers(self) -> bool:
        return self._containers

    def exists(self, path: str) -> bool:
        with self._lock:
            self._check_open(path)
            return path in self._nodes

    def create(self, path: str, data: bytes, acl: Sequence[Acl], mode: CreateMode) -> str:
        validate_path(path, mode.is_sequential)
        if mode.is_container and not self._containers:
            raise ValueError(f"container nodes are not supported: {path}")
        with self._lock:
            self._check_open(path)
            # a sequential path may end with the separator, so this can't go through path_and_node()
            parent_path = path[: path.rindex("/")] or "/"
            parent = self._nodes.get(parent_path)
            if parent is None:
                raise NoNode(parent_path)
            if mode.is_sequential:
                path = f"{path}{parent.sequence:0{SEQUENTIAL_SUFFIX_DIGITS}d}"
                parent.sequence += 1
            if path in self._nodes:
                raise NodeExists(path)
            self._nodes[path] = _Node(bytes(data), acl, mode)
            parent.children.add(path[path.rindex("/") + 1 :])
            parent.had_children = True
            return path

    def delete(self, path: str, version: int = ANY_VERSION) -> None:
        validate_path(path)
        with self._lock:
            self._check_open(path)
            node = self._nodes.get(path)
            if node is None:
                raise NoNode(path)
            if version != ANY_VERSION and version != node.version:
                raise BadVersion(path)
            if node.children:
                raise NotEmpty(path)
            self._unlink(path)

    def _unlink(self, path: str) -> None:
        del self._nodes[path]
        split = path_and_node(path)
        self._nodes[split.path].children.discard(split.node)

    def get_children(self, path: str) -> list[str]:
        validate_path(path)
        with self._lock:
            self._check_open(path)
            node = self._nodes.get(path)
            if node is None:
                raise NoNode(path)
            return list(node.children)

    def set_data(self, path: str, data: bytes, version: int = ANY_VERSION) -> int:
        """Replace the payload of a node, returning its new version."""
        with self._lock:
            self._check_open(path)
            node = self._nodes.get(path)
            if node is None:
                raise NoNode(path)
            if version != ANY_VERSION and version != node.version:
                raise BadVersion(path)
            node.data = bytes(data)
            node.version += 1
            return node.version

    def data_of(self, path: str) -> bytes:
        with self._lock:
            return self._node(path).data

    def acl_of(self, path: str) -> list[Acl]:
        with self._lock:
            return list(self._node(path).acl)

    def mode_of(self, path: str) -> CreateMode:
        with self._lock:
            return self._node(path).mode

    def _node(self, path: str) -> _Node:
        self._check_open(path)
        node = self._nodes.get(path)
        if node is None:
            raise NoNode(path)
        return node

    def paths(self) -> list[str]:
        """Return the paths of all nodes except the root, sorted. Still answers after :meth:`close`."""
        with self._lock:
            return sorted(p for p in self._nodes if p != "/")

    def reap_containers(self) -> list[str]:
        """Delete the container nodes that had children and have none left, returning their paths."""
        reaped = []
        with self._lock:
            self._check_open("/")
            # deepest first, so that a parent emptied by reaping its child goes in the same sweep
            for path in sorted(self._nodes, key=lambda p: p.count("/"), reverse=True):
                node = self._nodes[path]
                if node.mode.is_container and node.had_children and not node.children:
                    self._unlink(path)
                    reaped.append(path)
        if reaped:
            logger.debug(f"Reaped {len(reaped)} empty containers")
        return reaped
