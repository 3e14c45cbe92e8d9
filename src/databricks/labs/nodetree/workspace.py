"""Node store over the directories of a Databricks Workspace."""

import logging
import posixpath
from collections.abc import Sequence

from databricks.sdk import WorkspaceClient
from databricks.sdk.errors import DatabricksError, NotFound, ResourceAlreadyExists

from databricks.labs.nodetree.store import (
    ANY_VERSION,
    Acl,
    CreateMode,
    NodeExists,
    NodeStore,
    NoNode,
    NotEmpty,
)

logger = logging.getLogger(__name__)

__all__ = ["WorkspaceStore"]


class WorkspaceStore(NodeStore):
    """Experimental node store for Databricks Workspace, where every node is a directory.

    Workspace directories have no payload, version, sequence counter or container mode, so only empty, persistent
    nodes can be created and only unconditional deletes are accepted. Access control is managed through workspace
    permissions rather than per node at creation time, so ACLs are ignored.
    """

    _DIRECTORY_NOT_EMPTY = "DIRECTORY_NOT_EMPTY"

    def __init__(self, ws: WorkspaceClient):
        self._ws = ws

    def __repr__(self):
        return f"<{self.__class__.__name__} for {self._ws.config.host}>"

    def supports_containers(self) -> bool:
        return False

    def exists(self, path: str) -> bool:
        try:
            self._ws.workspace.get_status(path)
            return True
        except NotFound:
            return False

    def create(self, path: str, data: bytes, acl: Sequence[Acl], mode: CreateMode) -> str:
        if mode is not CreateMode.PERSISTENT:
            raise ValueError(f"Workspace directories cannot be created as {mode.name}: {path}")
        if data:
            raise ValueError(f"Workspace directories cannot hold data: {path}")
        if acl:
            logger.debug(f"Ignoring ACL for {path}: {', '.join(str(_) for _ in acl)}")
        try:
            self._ws.workspace.mkdirs(path)
        except ResourceAlreadyExists as e:
            # mkdirs() is a no-op on a directory, so this is some other kind of object
            raise NodeExists(path) from e
        return path

    def delete(self, path: str, version: int = ANY_VERSION) -> None:
        if version != ANY_VERSION:
            raise ValueError(f"Workspace objects are not versioned, cannot delete {path} at version {version}")
        try:
            self._ws.workspace.delete(path, recursive=False)
        except NotFound as e:
            raise NoNode(path) from e
        except DatabricksError as e:
            if e.error_code == self._DIRECTORY_NOT_EMPTY:
                raise NotEmpty(path) from e
            raise

    def get_children(self, path: str) -> list[str]:
        try:
            return [posixpath.basename(info.path) for info in self._ws.workspace.list(path) if info.path]
        except NotFound as e:
            raise NoNode(path) from e
