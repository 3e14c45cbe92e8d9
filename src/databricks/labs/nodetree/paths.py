"""Composition, decomposition and validation of node paths.

Node paths are Posix-like: a leading separator, non-empty segments joined by a single separator, and no trailing
separator except for the root. Unlike :module:`posixpath`, nothing here resolves ``.`` or ``..``: such segments are
rejected outright because the remote store treats every segment literally.
"""

import re
from dataclasses import dataclass

SEPARATOR = "/"

# Width of the counter that the store appends to the name of a sequential node.
SEQUENTIAL_SUFFIX_DIGITS = 10

# Control characters, surrogates, private-use and specials are all refused by the store.
_INVALID_CHARS = re.compile(r"[\u0001-\u001f\u007f-\u009f\ud800-\uf8ff\ufff0-\uffff]")

__all__ = [
    "SEPARATOR",
    "SEQUENTIAL_SUFFIX_DIGITS",
    "InvalidPath",
    "PathAndNode",
    "validate_path",
    "node_from_path",
    "path_and_node",
    "split",
    "make_path",
    "fix_for_namespace",
    "extract_sequential_suffix",
]


class InvalidPath(ValueError):
    """Raised when a node path is malformed. Never retried."""

    def __init__(self, path, reason: str):
        super().__init__(f"Invalid path string {path!r}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True)
class PathAndNode:
    """A path split into its parent path and leaf node name."""

    path: str
    """The parent path; the root is its own parent."""

    node: str
    """The leaf name, empty for the root."""


def validate_path(path: str, is_sequential: bool = False) -> str:
    """Validate a node path, returning it unchanged if it is well-formed.

    Args:
        path: the path to check.
        is_sequential: if true, a single trailing separator is permitted because the store is about to append the
            sequence counter to the path.
    Raises:
        InvalidPath: if the path is not a canonical node path.
    """
    if not isinstance(path, str):
        raise InvalidPath(path, "path must be a string")
    if not path:
        raise InvalidPath(path, "path length must be > 0")
    if not path.startswith(SEPARATOR):
        raise InvalidPath(path, f"path must start with {SEPARATOR} character")
    if path == SEPARATOR:
        return path
    if path.endswith(SEPARATOR) and not is_sequential:
        raise InvalidPath(path, f"path must not end with {SEPARATOR} character")
    null_at = path.find("\0")
    if null_at >= 0:
        raise InvalidPath(path, f"null character not allowed @{null_at}")
    invalid = _INVALID_CHARS.search(path)
    if invalid:
        raise InvalidPath(path, f"invalid character @{invalid.start()}")
    segments = path[1:].split(SEPARATOR)
    if is_sequential and path.endswith(SEPARATOR):
        segments.pop()
    for segment in segments:
        if not segment:
            raise InvalidPath(path, "empty node name specified")
        if segment in (".", ".."):
            raise InvalidPath(path, "relative paths not allowed")
    return path


def node_from_path(path: str) -> str:
    """Return the leaf name of a path, i.e. "/one/two/three" gives "three". The root gives ""."""
    validate_path(path)
    i = path.rfind(SEPARATOR)
    if i < 0:
        return path
    return path[i + 1 :]


def path_and_node(path: str) -> PathAndNode:
    """Split a path into parent and leaf, i.e. "/one/two/three" gives ("/one/two", "three")."""
    validate_path(path)
    i = path.rfind(SEPARATOR)
    if i < 0:
        return PathAndNode(path, "")
    if i + 1 >= len(path):
        return PathAndNode(SEPARATOR, "")
    parent = path[:i] if i > 0 else SEPARATOR
    return PathAndNode(parent, path[i + 1 :])


def split(path: str) -> list[str]:
    """Return the segments of a path, without separators. The root has no segments."""
    validate_path(path)
    return [segment for segment in path.split(SEPARATOR) if segment]


def make_path(parent: str | None = None, *children: str | None) -> str:
    """Join a parent and any number of children into a single canonical path.

    Each piece may carry leading, trailing or embedded separators: the leading and trailing ones are dropped, so
    exactly one separator ends up between adjacent pieces. Missing or empty pieces are skipped, and when nothing is
    left the result is the root.

    >>> make_path("/a/", "/b/", "c")
    '/a/b/c'
    """
    pieces = [piece.strip(SEPARATOR) for piece in (parent, *children) if piece]
    return SEPARATOR + SEPARATOR.join(piece for piece in pieces if piece)


def fix_for_namespace(namespace: str | None, path: str, is_sequential: bool = False) -> str:
    """Apply a namespace (which may be None) to a path, which must be valid in its own right."""
    validate_path(path, is_sequential)
    if namespace is not None:
        return make_path(namespace, path)
    return path


def extract_sequential_suffix(path: str) -> str:
    """Return the counter suffix of a sequential node path.

    The path is not checked: this is simply its last ten characters, or the whole path when it is shorter.
    """
    if len(path) > SEQUENTIAL_SUFFIX_DIGITS:
        return path[-SEQUENTIAL_SUFFIX_DIGITS:]
    return path
