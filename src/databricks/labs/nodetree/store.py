"""The contract between the tree operations and the remote hierarchical store that owns the nodes."""

import abc
import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

__all__ = [
    "ANY_VERSION",
    "Acl",
    "AclProvider",
    "BadVersion",
    "CreateMode",
    "NoNode",
    "NodeExists",
    "NodeStore",
    "NodeStoreError",
    "NotEmpty",
    "OPEN_ACL_UNSAFE",
    "Perms",
    "READ_ACL_UNSAFE",
    "RetriesExhausted",
    "StaticAclProvider",
    "StoreUnavailable",
]

ANY_VERSION = -1
"""Version that matches any node version on delete."""


class NodeStoreError(Exception):
    """Base class for the outcomes reported by a node store."""

    def __init__(self, path: str, message: str | None = None):
        super().__init__(message or f"{self.__class__.__name__}: {path}")
        self.path = path


class NodeExists(NodeStoreError):
    """The node being created is already there."""


class NoNode(NodeStoreError):
    """The node (or, on create, its parent) does not exist."""


class NotEmpty(NodeStoreError):
    """The node being deleted still has children."""


class BadVersion(NodeStoreError):
    """The node being deleted is not at the expected version."""


class RetriesExhausted(NotEmpty):
    """The node kept gaining children while it was being removed."""

    def __init__(self, path: str, attempts: int):
        super().__init__(path, f"{path} still has children after {attempts} removal attempts")
        self.attempts = attempts


class StoreUnavailable(NodeStoreError):
    """The connection or session to the store is gone. Never absorbed by the tree operations."""


class CreateMode(enum.Enum):
    PERSISTENT = "persistent"
    PERSISTENT_SEQUENTIAL = "persistent_sequential"
    EPHEMERAL = "ephemeral"
    EPHEMERAL_SEQUENTIAL = "ephemeral_sequential"
    CONTAINER = "container"
    CONTAINER_SEQUENTIAL = "container_sequential"

    @property
    def is_sequential(self) -> bool:
        return self.value.endswith("_sequential")

    @property
    def is_ephemeral(self) -> bool:
        return self.value.startswith("ephemeral")

    @property
    def is_container(self) -> bool:
        return self.value.startswith("container")


class Perms(enum.IntFlag):
    READ = 1
    WRITE = 2
    CREATE = 4
    DELETE = 8
    ADMIN = 16
    ALL = READ | WRITE | CREATE | DELETE | ADMIN


@dataclass(frozen=True)
class Acl:
    """A single access-control entry attached to a node when it is created."""

    perms: Perms
    scheme: str
    id: str

    def __str__(self) -> str:
        return f"{self.scheme}:{self.id}:{self.perms!r}"


OPEN_ACL_UNSAFE: list[Acl] = [Acl(Perms.ALL, "world", "anyone")]
READ_ACL_UNSAFE: list[Acl] = [Acl(Perms.READ, "world", "anyone")]


@runtime_checkable
class AclProvider(Protocol):
    """Chooses the ACL for nodes created on the caller's behalf. Either method may return None to defer."""

    def get_acl_for_path(self, path: str) -> list[Acl] | None: ...

    def get_default_acl(self) -> list[Acl] | None: ...


@dataclass
class StaticAclProvider:
    """An ACL provider answering from a fixed default and a table of per-path overrides."""

    default: list[Acl] | None = None
    overrides: Mapping[str, list[Acl]] = field(default_factory=dict)

    def get_acl_for_path(self, path: str) -> list[Acl] | None:
        return self.overrides.get(path)

    def get_default_acl(self) -> list[Acl] | None:
        return self.default


class NodeStore(abc.ABC):
    """The four primitives of a remote hierarchical store, plus its capability probe.

    Implementations translate their native failures into :class:`NodeExists`, :class:`NoNode` and
    :class:`NotEmpty` where the primitive can report them. Connectivity failures are raised as they are.
    """

    @abc.abstractmethod
    def exists(self, path: str) -> bool: ...

    @abc.abstractmethod
    def create(self, path: str, data: bytes, acl: Sequence[Acl], mode: CreateMode) -> str:
        """Create a node and return its actual path, which differs from `path` for sequential modes."""

    @abc.abstractmethod
    def delete(self, path: str, version: int = ANY_VERSION) -> None: ...

    @abc.abstractmethod
    def get_children(self, path: str) -> list[str]:
        """Return the names (not paths) of the direct children of a node, in no particular order."""

    @abc.abstractmethod
    def supports_containers(self) -> bool: ...
