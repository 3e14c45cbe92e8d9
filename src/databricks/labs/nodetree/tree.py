"""Recursive creation, recursive deletion and ordered listing of nodes in a store that other clients mutate concurrently.

None of these operations lock anything. Each decision is taken on a fresh read from the store, and the races that
can happen between that read and the following write are absorbed: a node created by someone else counts as created,
a node deleted by someone else counts as deleted, and a node that gained children while being deleted is emptied
again.
"""

import logging
import threading
import weakref

from databricks.labs.nodetree._logging_context import SkipLogging, logging_context_params
from databricks.labs.nodetree.paths import SEPARATOR, make_path, validate_path
from databricks.labs.nodetree.store import (
    ANY_VERSION,
    OPEN_ACL_UNSAFE,
    Acl,
    AclProvider,
    CreateMode,
    NodeExists,
    NodeStore,
    NoNode,
    NotEmpty,
    RetriesExhausted,
)

logger = logging.getLogger(__name__)

__all__ = ["container_create_mode", "delete_children", "has_container_support", "mkdirs", "sorted_children"]


class _ContainerSupport:
    """Whether each store can create container nodes, probed once per store and read freely afterwards."""

    def __init__(self):
        self._lock = threading.Lock()
        self._modes: weakref.WeakKeyDictionary[NodeStore, CreateMode] = weakref.WeakKeyDictionary()

    def create_mode(self, store: NodeStore) -> CreateMode:
        mode = self._modes.get(store)
        if mode is not None:
            return mode
        with self._lock:
            mode = self._modes.get(store)
            if mode is None:
                if store.supports_containers():
                    mode = CreateMode.CONTAINER
                else:
                    logger.warning(
                        f"{type(store).__name__} doesn't support container nodes, "
                        f"{CreateMode.PERSISTENT.name} will be used instead"
                    )
                    mode = CreateMode.PERSISTENT
                self._modes[store] = mode
            return mode


_CONTAINER_SUPPORT = _ContainerSupport()


def container_create_mode(store: NodeStore) -> CreateMode:
    """Return CONTAINER if the store supports container nodes, otherwise PERSISTENT."""
    return _CONTAINER_SUPPORT.create_mode(store)


def has_container_support(store: NodeStore) -> bool:
    """Whether `mkdirs(..., as_containers=True)` creates container nodes in this store."""
    return container_create_mode(store) is not CreateMode.PERSISTENT


def _resolve_acl(acl_provider: AclProvider | None, path: str) -> list[Acl]:
    acl = None
    if acl_provider is not None:
        acl = acl_provider.get_acl_for_path(path)
        if acl is None:
            acl = acl_provider.get_default_acl()
    if acl is None:
        acl = OPEN_ACL_UNSAFE
    return acl


@logging_context_params(op="mkdirs")
def mkdirs(
    store: SkipLogging[NodeStore],
    path: str,
    make_last_node: bool = True,
    acl_provider: SkipLogging[AclProvider | None] = None,
    as_containers: bool = False,
) -> None:
    """Make sure every node along the path exists, each created with an empty payload.

    Args:
        store: the store to create the nodes in.
        path: the path to ensure.
        make_last_node: if false, only the ancestors of `path` are created.
        acl_provider: if given, chooses the ACL of each created node; otherwise nodes are open to anyone.
        as_containers: if true, nodes are created as containers when the store supports them.
    Raises:
        InvalidPath: if the path is malformed.
    """
    validate_path(path)

    # Find the deepest existing node, walking from the leaf towards the root. This way the caller does not need read
    # access on ancestors that exist anyway. The root always exists.
    pos = len(path)
    while pos > 0:
        if store.exists(path[:pos]):
            break
        pos = path.rfind(SEPARATOR, 0, pos)

    mode = container_create_mode(store) if as_containers else CreateMode.PERSISTENT
    # Everything below `pos` was missing when probed.
    while pos < len(path):
        pos = path.find(SEPARATOR, pos + 1)
        if pos == -1:
            if not make_last_node:
                break
            pos = len(path)
        sub_path = path[:pos]
        try:
            store.create(sub_path, b"", _resolve_acl(acl_provider, sub_path), mode)
            logger.debug(f"Created {sub_path} as {mode.name}")
        except NodeExists:
            logger.debug(f"{sub_path} was created concurrently, moving on")


@logging_context_params(op="delete_children")
def delete_children(
    store: SkipLogging[NodeStore],
    path: str,
    delete_self: bool = False,
    *,
    max_attempts: int | None = None,
) -> int:
    """Delete every descendant of a node and, optionally, the node itself.

    A node that vanished before we got to it counts as deleted. If the node gains a child after it was emptied, it is
    emptied again, until `max_attempts` is reached (never, by default).

    Returns:
        The number of attempts it took to empty `path`.
    Raises:
        InvalidPath: if the path is malformed.
        RetriesExhausted: if the node still had children after `max_attempts` attempts.
    """
    validate_path(path)
    attempts = 0
    while True:
        attempts += 1
        try:
            children = store.get_children(path)
        except NoNode:
            logger.debug(f"{path} was deleted concurrently")
            return attempts
        for child in children:
            delete_children(store, make_path(path, child), True, max_attempts=max_attempts)
        if not delete_self:
            return attempts
        try:
            store.delete(path, ANY_VERSION)
            logger.debug(f"Deleted {path}")
            return attempts
        except NotEmpty as err:
            if max_attempts is not None and attempts >= max_attempts:
                raise RetriesExhausted(path, attempts) from err
            logger.debug(f"{path} gained children while being deleted, retrying (attempt {attempts})")
        except NoNode:
            logger.debug(f"{path} was deleted concurrently")
            return attempts


def sorted_children(store: NodeStore, path: str) -> list[str]:
    """Return the names of the children of a node, in lexicographic order.

    Sequential node names sort by their counter only because the counter has a fixed width.

    Raises:
        NoNode: if the node does not exist.
    """
    validate_path(path)
    return sorted(store.get_children(path))
