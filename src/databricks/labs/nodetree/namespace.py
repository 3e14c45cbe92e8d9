"""A tree bound to one store, with a namespace prefix and options taken from its configuration."""

import logging
from pathlib import Path

from databricks.labs.nodetree import tree
from databricks.labs.nodetree.config import TreeConfig
from databricks.labs.nodetree.paths import fix_for_namespace
from databricks.labs.nodetree.store import AclProvider, NodeStore

logger = logging.getLogger(__name__)

__all__ = ["NodeTree"]


class NodeTree:
    """Binds a store to a configuration and an optional ACL provider, and applies the configured namespace to every
    path before running the tree operations on it."""

    def __init__(self, store: NodeStore, config: TreeConfig | None = None, acl_provider: AclProvider | None = None):
        self._store = store
        self._config = config or TreeConfig()
        self._acl_provider = acl_provider

    @classmethod
    def from_file(cls, store: NodeStore, file: Path, acl_provider: AclProvider | None = None) -> "NodeTree":
        config = TreeConfig.load(file)
        logger.debug(f"Loaded {file}: {config}")
        return cls(store, config, acl_provider)

    @property
    def config(self) -> TreeConfig:
        return self._config

    def fix_path(self, path: str, is_sequential: bool = False) -> str:
        return fix_for_namespace(self._config.namespace, path, is_sequential)

    def mkdirs(self, path: str, make_last_node: bool = True) -> str:
        """Make sure every node along the namespaced path exists, and return that path."""
        full_path = self.fix_path(path)
        tree.mkdirs(
            self._store,
            full_path,
            make_last_node,
            acl_provider=self._acl_provider,
            as_containers=self._config.use_containers,
        )
        return full_path

    def delete_children(self, path: str, delete_self: bool = False) -> int:
        return tree.delete_children(
            self._store,
            self.fix_path(path),
            delete_self,
            max_attempts=self._config.max_delete_attempts,
        )

    def sorted_children(self, path: str) -> list[str]:
        return tree.sorted_children(self._store, self.fix_path(path))

    def __repr__(self):
        return f"<{self.__class__.__name__} {self._config.namespace or '/'} on {self._store!r}>"
