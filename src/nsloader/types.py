"""Core immutable data structures used throughout nsloader."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, Final, Union

if TYPE_CHECKING:
    from nsloader.modules.context import UnitContext

NAME_PATTERN: Final = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*(?:\.[A-Za-z_$][A-Za-z0-9_$]*)*$")


class _Unset:
    """Marker for "no value supplied" where ``None`` is a legitimate value."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()

UnitBody = Callable[["UnitContext"], Any]
UnitSource = Union[str, UnitBody]


class ExecutionMode(str, Enum):
    """How fetched units are handed to the host."""

    IMMEDIATE = "immediate"
    QUEUED = "queued"


class Namespace(SimpleNamespace):
    """Intermediate or leaf node of the namespace tree."""


class ModuleExports:
    """Attribute container produced by a module-style unit.

    Once sealed, existing attributes may still be reassigned but new ones
    cannot be added and none can be deleted.
    """

    def __init__(self) -> None:
        object.__setattr__(self, "_sealed", False)

    def seal(self) -> None:
        object.__setattr__(self, "_sealed", True)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def __setattr__(self, name: str, value: Any) -> None:
        if self._sealed and name not in self.__dict__:
            raise AttributeError(f"Cannot add '{name}' to sealed module exports.")
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        if self._sealed:
            raise AttributeError(f"Cannot delete '{name}' from sealed module exports.")
        object.__delattr__(self, name)

    def __repr__(self) -> str:
        names = sorted(key for key in self.__dict__ if key != "_sealed")
        return f"ModuleExports({', '.join(names)})"


@dataclass(frozen=True)
class UnitRecord:
    """Manifest entry for a single loadable unit."""

    location: str
    provides: tuple[str, ...]
    requires: tuple[str, ...]
    is_module: bool = False

    @classmethod
    def build(
        cls,
        location: str,
        provides: Iterable[str],
        requires: Iterable[str],
        is_module: bool = False,
    ) -> UnitRecord:
        """Create a record, dropping repeated names but keeping their order."""

        return cls(
            location=location,
            provides=tuple(dict.fromkeys(provides)),
            requires=tuple(dict.fromkeys(requires)),
            is_module=bool(is_module),
        )


@dataclass(frozen=True)
class DeferredEntry:
    """Fetched unit waiting for the host's readiness trigger."""

    location: str
    source: UnitSource
    request_location: str


def is_valid_name(name: object) -> bool:
    """Return True if ``name`` is a well-formed dotted identifier."""

    return isinstance(name, str) and bool(NAME_PATTERN.match(name))


__all__ = [
    "UNSET",
    "UnitBody",
    "UnitSource",
    "ExecutionMode",
    "Namespace",
    "ModuleExports",
    "UnitRecord",
    "DeferredEntry",
    "is_valid_name",
]
