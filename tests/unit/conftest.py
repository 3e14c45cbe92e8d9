import threading
from collections.abc import Callable

import pytest

from databricks.labs.nodetree import tree
from databricks.labs.nodetree.logger import install_logger
from databricks.labs.nodetree.memory import MemoryStore
from databricks.labs.nodetree.store import ANY_VERSION

install_logger()


class RacingStore(MemoryStore):
    """A store where another client gets to act right before chosen primitive calls.

    Actions registered for a (primitive, path) pair run one per call, in order, and then the call proceeds normally.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._actions: dict[tuple[str, str], list[Callable[[], object]]] = {}
        self.calls: list[tuple[str, str]] = []

    def before(self, primitive: str, path: str, action: Callable[[], object]) -> None:
        self._actions.setdefault((primitive, path), []).append(action)

    def _race(self, primitive: str, path: str) -> None:
        self.calls.append((primitive, path))
        pending = self._actions.get((primitive, path))
        if pending:
            pending.pop(0)()

    def exists(self, path):
        self._race("exists", path)
        return super().exists(path)

    def create(self, path, data, acl, mode):
        self._race("create", path)
        return super().create(path, data, acl, mode)

    def delete(self, path, version=ANY_VERSION):
        self._race("delete", path)
        return super().delete(path, version)

    def get_children(self, path):
        self._race("get_children", path)
        return super().get_children(path)

    def other_client(self) -> MemoryStore:
        """Return a view of the same namespace that doesn't trigger the registered races."""
        other = MemoryStore.__new__(MemoryStore)
        other.__dict__.update(self.__dict__)
        return other


@pytest.fixture(autouse=True)
def fresh_container_support(monkeypatch):
    monkeypatch.setattr(tree, "_CONTAINER_SUPPORT", tree._ContainerSupport())


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def racing_store() -> RacingStore:
    return RacingStore()


@pytest.fixture
def run_concurrently():
    def inner(fn: Callable[[int], object], n_threads: int = 4, timeout: float = 10.0):
        barrier = threading.Barrier(n_threads)
        results: list[object] = [None] * n_threads
        errors: list[BaseException | None] = [None] * n_threads

        def worker(i: int):
            try:
                barrier.wait(timeout=timeout)
                results[i] = fn(i)
            except Exception as e:  # pylint: disable=broad-exception-caught
                errors[i] = e

        threads = [threading.Thread(target=worker, args=(i,), daemon=True) for i in range(n_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=timeout)
        return results, errors

    return inner
