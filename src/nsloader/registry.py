"""Namespace tree and module export bookkeeping."""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from typing import Any

from .types import UNSET, Namespace

LOGGER = logging.getLogger(__name__)


class NamespaceRegistry:
    """Track which logical names exist and what they are bound to."""

    def __init__(self, root: Any | None = None) -> None:
        self.root = root if root is not None else Namespace()
        self._implicit: set[str] = set()
        self._modules: dict[str, Any] = {}

    def is_provided(self, name: str) -> bool:
        """Return True if ``name`` is a loaded module or an explicit namespace."""

        if name in self._modules:
            return True
        if name in self._implicit:
            return False
        return self.get_object_by_name(name) is not None

    def is_implicit(self, name: str) -> bool:
        return name in self._implicit

    def is_module(self, name: str) -> bool:
        return name in self._modules

    def get(self, name: str) -> Any | None:
        """Return module exports for ``name`` or the object bound in the tree."""

        if name in self._modules:
            return self._modules[name]
        return self.get_object_by_name(name)

    def get_object_by_name(self, name: str) -> Any | None:
        current = self.root
        for part in name.split("."):
            current = _child(current, part)
            if current is None:
                return None
        return current

    def declare_provided(self, name: str, value: Any = UNSET) -> Any:
        """Build the tree path for ``name`` and return the leaf object.

        Missing ancestors are marked implicit so they do not count as provided.
        Callers check for duplicates before calling this.
        """

        self._implicit.discard(name)
        parent = name
        while "." in parent:
            parent = parent.rsplit(".", 1)[0]
            if self.get_object_by_name(parent) is not None:
                break
            self._implicit.add(parent)
        return self._export_path(name, value)

    def clear_implicit(self, name: str) -> None:
        self._implicit.discard(name)

    def register_module_exports(
        self,
        name: str,
        exports: Any,
        *,
        legacy_alias: bool = False,
    ) -> None:
        self._modules[name] = exports
        if legacy_alias:
            self.declare_provided(name, exports)
        LOGGER.debug("Registered exports for module '%s'", name)

    @property
    def module_names(self) -> list[str]:
        return list(self._modules)

    def _export_path(self, name: str, value: Any) -> Any:
        parts = name.split(".")
        current = self.root
        for index, part in enumerate(parts):
            is_leaf = index == len(parts) - 1
            if is_leaf and value is not UNSET:
                _set_child(current, part, value)
                return value
            existing = _child(current, part)
            if existing is None:
                existing = Namespace()
                _set_child(current, part, existing)
            current = existing
        return current


def _child(node: Any, part: str) -> Any | None:
    if isinstance(node, Mapping):
        return node.get(part)
    return getattr(node, part, None)


def _set_child(node: Any, part: str, value: Any) -> None:
    if isinstance(node, MutableMapping):
        node[part] = value
    else:
        setattr(node, part, value)


__all__ = ["NamespaceRegistry"]
