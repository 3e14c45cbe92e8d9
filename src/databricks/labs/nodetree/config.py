"""Typed configuration for :class:`~databricks.labs.nodetree.namespace.NodeTree`, stored as JSON or YAML."""

import dataclasses
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, ClassVar

logger = logging.getLogger(__name__)

Json = dict[str, Any]

__all__ = ["IllegalState", "SerdeError", "TreeConfig"]


class IllegalState(ValueError):
    pass


class SerdeError(TypeError):
    """Raised when a configuration file doesn't match the expected types."""


@dataclass
class TreeConfig:
    """Settings shared by every operation of a tree.

    The file carries a `version` key; older versions are upgraded by the matching `v{N}_migrate` method.
    """

    __file__: ClassVar[str] = "config.yml"
    __version__: ClassVar[int] = 2

    namespace: str | None = None
    """Path prefix applied to every path given to the tree, if any."""

    use_containers: bool = False
    """Create intermediate nodes as containers, when the store supports them."""

    max_delete_attempts: int | None = None
    """Give up deleting a node that keeps gaining children after this many attempts. Unbounded if not set."""

    @staticmethod
    def v1_migrate(raw: Json) -> Json:
        if "containers" in raw:
            raw["use_containers"] = raw.pop("containers")
        raw["version"] = 2
        return raw

    @classmethod
    def load(cls, file: Path) -> "TreeConfig":
        """Load the configuration from a local `.json` or `.yml` file."""
        with file.open("rb") as f:
            raw = cls._convert_content(file.name, f)
        return cls.from_dict(raw, filename=file.name)

    @classmethod
    def from_dict(cls, raw: Json, *, filename: str | None = None) -> "TreeConfig":
        filename = filename or cls.__file__
        if not isinstance(raw, dict):
            raise SerdeError(f"{filename}: not a dict: {raw}")
        raw = cls._migrate(dict(raw), filename)
        values = {}
        for field in dataclasses.fields(cls):
            if field.name not in raw or raw[field.name] is None:
                continue
            values[field.name] = cls._check_type(field.name, raw[field.name])
        unknown = set(raw) - {field.name for field in dataclasses.fields(cls)}
        if unknown:
            logger.warning(f"{filename}: ignoring unknown keys: {', '.join(sorted(unknown))}")
        return cls(**values)

    def as_dict(self) -> Json:
        return {"version": self.__version__, **dataclasses.asdict(self)}

    def save(self, file: Path) -> None:
        dumpers: dict[str, Callable[[Json], bytes]] = {"json": self._dump_json, "yml": self._dump_yaml}
        extension = file.name.split(".")[-1]
        if extension not in dumpers:
            raise KeyError(f"Unknown extension: {extension}")
        file.write_bytes(dumpers[extension](self.as_dict()))

    @classmethod
    def _check_type(cls, name: str, value: Any) -> Any:
        if name == "namespace":
            if not isinstance(value, str):
                raise SerdeError(f"{name}: not a str: {value}")
            return value
        if name == "use_containers":
            if not isinstance(value, bool):
                raise SerdeError(f"{name}: not a bool: {value}")
            return value
        # bool is an int, but not a meaningful attempt count
        if isinstance(value, bool) or not isinstance(value, int):
            raise SerdeError(f"{name}: not a int: {value}")
        if value < 1:
            raise SerdeError(f"{name}: must be positive: {value}")
        return value

    @classmethod
    def _migrate(cls, raw: Json, filename: str) -> Json:
        actual_version = raw.pop("version", 1)
        while actual_version < cls.__version__:
            migrate = getattr(cls, f"v{actual_version}_migrate", None)
            if not migrate:
                break
            raw = migrate(raw)
            prev_version = actual_version
            actual_version = raw.pop("version", 1)
            if actual_version == prev_version:
                raise IllegalState(f"cannot migrate {filename} from v{prev_version}")
        if actual_version != cls.__version__:
            raise IllegalState(f"expected state version={cls.__version__}, got={actual_version}")
        return raw

    @classmethod
    def _convert_content(cls, filename: str, raw: BinaryIO) -> Json:
        converters: dict[str, Callable[[BinaryIO], Any]] = {
            "json": json.load,
            "yml": cls._load_yaml,
        }
        extension = filename.split(".")[-1]
        if extension not in converters:
            raise KeyError(f"Unknown extension: {extension}")
        return converters[extension](raw)

    @staticmethod
    def _dump_json(as_dict: Json) -> bytes:
        return json.dumps(as_dict, indent=2).encode("utf8")

    @staticmethod
    def _dump_yaml(as_dict: Json) -> bytes:
        try:
            from yaml import dump  # pylint: disable=import-outside-toplevel

            return dump(as_dict).encode("utf8")
        except ImportError as err:
            raise SyntaxError("PyYAML is not installed. Fix: pip install databricks-labs-nodetree[yaml]") from err

    @staticmethod
    def _load_yaml(raw: BinaryIO) -> Json:
        try:
            from yaml import safe_load  # pylint: disable=import-outside-toplevel
        except ImportError as err:
            raise SyntaxError("PyYAML is not installed. Fix: pip install databricks-labs-nodetree[yaml]") from err
        return safe_load(raw)
