"""Loader session: name resolution, dependency loading, and unit lifecycle."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from nsloader.deferred import DeferredQueue
from nsloader.errors import (
    DuplicateNamespaceError,
    InvalidModuleNameError,
    ModuleStateError,
    ProvideMismatchError,
    UnresolvedDependencyError,
)
from nsloader.graph import DependencyGraph
from nsloader.hosts import FileSystemHost, UnitHost
from nsloader.manifest import apply_manifest, load_manifest
from nsloader.registry import NamespaceRegistry
from nsloader.scheduler import Scheduler
from nsloader.types import UNSET, ExecutionMode, ModuleExports, UnitRecord, UnitSource, is_valid_name

from .context import UnitContext
from .execution import UnitExecutor

if TYPE_CHECKING:
    from nsloader.config import Config

LOGGER = logging.getLogger(__name__)


class ModuleLoader:
    """Resolve logical names to units and load each unit exactly once.

    All state lives on the instance, so independent loaders never share
    namespaces, manifests, or loaded units.
    """

    def __init__(
        self,
        host: UnitHost,
        *,
        mode: ExecutionMode | None = None,
        seal_module_exports: bool = True,
        strict_provides: bool = False,
        root: Any | None = None,
    ) -> None:
        self.host = host
        self.registry = NamespaceRegistry(root)
        self.graph = DependencyGraph()
        self.executor = UnitExecutor(
            self.registry,
            self._build_context,
            seal_module_exports=seal_module_exports,
        )
        self.deferred = DeferredQueue(self.graph, self.registry, self._run_unit)
        if mode is None:
            mode = (
                ExecutionMode.IMMEDIATE
                if host.supports_immediate_execution
                else ExecutionMode.QUEUED
            )
        self.mode = mode
        self.scheduler = Scheduler(
            self.graph,
            self.registry,
            self.executor,
            host,
            self.deferred,
            self._run_unit,
            mode=mode,
        )
        self._strict_provides = strict_provides
        self._load_order: list[str] = []

    @classmethod
    def from_config(cls, config: Config) -> ModuleLoader:
        """Build a file-system backed loader and apply the configured manifests."""

        host = FileSystemHost(config.base_path, defer=config.execution is ExecutionMode.QUEUED)
        loader = cls(
            host,
            mode=config.execution,
            seal_module_exports=config.seal_module_exports,
            strict_provides=config.strict_provides,
        )
        for manifest_path in config.manifests:
            count = apply_manifest(loader, load_manifest(manifest_path))
            LOGGER.debug("Applied %s unit(s) from %s", count, manifest_path)
        return loader

    def add_dependency(
        self,
        location: str,
        provides: Iterable[str],
        requires: Iterable[str] = (),
        *,
        is_module: bool = False,
    ) -> UnitRecord:
        """Register a unit's manifest metadata."""

        return self.graph.add_unit(location, provides, requires, is_module)

    def provide(self, name: str, value: Any = UNSET) -> Any:
        """Declare ``name`` eagerly and return the object bound to it."""

        if self.executor.in_module_body:
            raise ModuleStateError("provide() cannot be used within a module body.", name=name)
        if not is_valid_name(name):
            raise InvalidModuleNameError(f"Invalid namespace name {name!r}.")
        if self.registry.is_provided(name):
            raise DuplicateNamespaceError(f"Namespace '{name}' already declared.", name=name)
        return self.registry.declare_provided(name, value)

    def require(self, name: str) -> Any | None:
        """Make ``name`` available, loading its unit and requirements if needed.

        Returns the module exports or namespace object when ``name`` was already
        provided, the exports of a module loaded by this call, and ``None`` for
        a legacy name loaded by this call or a unit still waiting in the
        deferred queue.
        """

        if self.deferred:
            self.deferred.try_process(name)
        if self.registry.is_provided(name):
            return self.registry.get(name)

        location = self.graph.location_for(name)
        if location is None:
            LOGGER.error("require() could not find an owning unit for '%s'", name)
            raise UnresolvedDependencyError(f"require() could not find: {name}", name=name)

        self.scheduler.load(location)
        if self.registry.is_module(name):
            return self.registry.get(name)
        return None

    def plan(self, name: str) -> list[str]:
        """Return the locations ``require(name)`` would dispatch, without loading."""

        if self.registry.is_provided(name):
            return []
        location = self.graph.location_for(name)
        if location is None:
            raise UnresolvedDependencyError(f"No unit provides '{name}'.", name=name)
        return self.scheduler.plan(location)

    def get_module(self, name: str) -> Any | None:
        """Return what ``name`` is bound to without loading anything."""

        if not self.registry.is_provided(name):
            return None
        return self.registry.get(name)

    def declare_module(self, name: str) -> None:
        self.executor.declare_module(name)

    def declare_legacy_alias(self) -> None:
        self.executor.declare_legacy_alias()

    def signal_ready(self) -> list[str]:
        """Readiness trigger: run deferred units whose requirements are met."""

        executed = self.deferred.drain()
        if executed:
            LOGGER.debug("Readiness trigger ran %s deferred unit(s)", len(executed))
        return executed

    def is_provided(self, name: str) -> bool:
        return self.registry.is_provided(name)

    @property
    def namespace(self) -> Any:
        return self.registry.root

    @property
    def load_order(self) -> list[str]:
        """Return executed locations in completion order."""
        return list(self._load_order)

    @property
    def pending(self) -> list[str]:
        return self.deferred.pending

    def _run_unit(self, location: str, source: UnitSource) -> None:
        self.executor.run(location, source, is_module=self.graph.is_module_style(location))
        if self._strict_provides:
            self._verify_provides(location)
        self._load_order.append(location)
        LOGGER.info("Loaded unit '%s'", location)

    def _verify_provides(self, location: str) -> None:
        for name in self.graph.provides_of(location):
            if not self.registry.is_provided(name):
                raise ProvideMismatchError(
                    f"Unit '{location}' is listed as providing '{name}' but did not provide it.",
                    name=name,
                    location=location,
                )

    def _build_context(self, location: str, exports: ModuleExports | None) -> UnitContext:
        return UnitContext(
            location=location,
            ns=self.registry.root,
            provide=self.provide,
            require=self.require,
            get_module=self.get_module,
            declare_module=self.declare_module,
            declare_legacy_alias=self.declare_legacy_alias,
            exports=exports,
        )


__all__ = ["ModuleLoader"]
