"""Capabilities handed to a unit body while it executes."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from nsloader.types import ModuleExports


@dataclass(frozen=True, slots=True)
class UnitContext:
    """Gives a unit body access to the loader session that runs it."""

    location: str
    ns: Any
    provide: Callable[..., Any]
    require: Callable[[str], Any]
    get_module: Callable[[str], Any]
    declare_module: Callable[[str], None]
    declare_legacy_alias: Callable[[], None]
    exports: ModuleExports | None = None

    def as_globals(self) -> dict[str, Any]:
        """Return the names injected into a source-text unit's globals."""

        names: dict[str, Any] = {
            "__file__": self.location,
            "ns": self.ns,
            "provide": self.provide,
            "require": self.require,
            "get_module": self.get_module,
            "declare_module": self.declare_module,
            "declare_legacy_alias": self.declare_legacy_alias,
        }
        if self.exports is not None:
            names["exports"] = self.exports
        return names


__all__ = ["UnitContext"]
