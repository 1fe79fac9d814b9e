"""Execution of unit bodies and the module declaration state machine."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from types import CodeType
from typing import TYPE_CHECKING, Any

from nsloader.errors import (
    DuplicateNamespaceError,
    InvalidModuleNameError,
    LoaderError,
    MissingModuleDeclarationError,
    ModuleStateError,
    MultipleModuleDeclarationError,
    UnitExecutionError,
)
from nsloader.types import ModuleExports, UnitSource, is_valid_name

if TYPE_CHECKING:
    from nsloader.modules.context import UnitContext
    from nsloader.registry import NamespaceRegistry

LOGGER = logging.getLogger(__name__)

ContextFactory = Callable[[str, "ModuleExports | None"], "UnitContext"]


class ModulePhase(str, Enum):
    """Lifecycle of a single module-style unit body."""

    IDLE = "idle"
    DEFINING = "defining"
    COMMITTED = "committed"
    ABORTED = "aborted"


@dataclass
class ModuleLoaderState:
    """Declaration state of the module body currently running."""

    location: str
    exports: ModuleExports = field(default_factory=ModuleExports)
    module_name: str | None = None
    legacy_alias: bool = False
    phase: ModulePhase = ModulePhase.IDLE


class UnitExecutor:
    """Run module-style and legacy unit bodies against a registry.

    Module bodies run inside a :class:`ModuleLoaderState`. The previous state
    is saved on entry and restored on exit, so a module may require another
    module while it is still defining itself.
    """

    def __init__(
        self,
        registry: NamespaceRegistry,
        context_factory: ContextFactory,
        *,
        seal_module_exports: bool = True,
    ) -> None:
        self._registry = registry
        self._context_factory = context_factory
        self._seal_module_exports = seal_module_exports
        self._state: ModuleLoaderState | None = None
        self.global_scope: dict[str, Any] = {"__builtins__": __builtins__}

    @property
    def state(self) -> ModuleLoaderState | None:
        return self._state

    @property
    def in_module_body(self) -> bool:
        return self._state is not None and self._state.phase is ModulePhase.DEFINING

    @contextmanager
    def defining(self, location: str) -> Iterator[ModuleLoaderState]:
        previous = self._state
        state = ModuleLoaderState(location=location, phase=ModulePhase.DEFINING)
        self._state = state
        try:
            yield state
        finally:
            self._state = previous

    @contextmanager
    def suspended(self) -> Iterator[None]:
        """Hide the active module state while unrelated units are dispatched."""

        previous = self._state
        self._state = None
        try:
            yield
        finally:
            self._state = previous

    def declare_module(self, name: str) -> None:
        state = self._state
        if state is None or state.phase is not ModulePhase.DEFINING:
            raise ModuleStateError(
                "declare_module() may only be called from a module-style unit body.",
                name=name if isinstance(name, str) else None,
            )
        if state.module_name is not None:
            raise MultipleModuleDeclarationError(
                f"Unit '{state.location}' already declared module '{state.module_name}'; "
                f"cannot also declare {name!r}.",
                name=state.module_name,
                location=state.location,
            )
        if not is_valid_name(name):
            raise InvalidModuleNameError(
                f"Invalid module name {name!r} in unit '{state.location}'.",
                location=state.location,
            )
        if self._registry.is_provided(name):
            raise DuplicateNamespaceError(
                f"Namespace '{name}' already declared (unit '{state.location}').",
                name=name,
                location=state.location,
            )
        state.module_name = name

    def declare_legacy_alias(self) -> None:
        state = self._state
        if state is None or state.phase is not ModulePhase.DEFINING:
            raise ModuleStateError(
                "declare_legacy_alias() may only be called from a module-style unit body."
            )
        if state.module_name is None:
            raise ModuleStateError(
                "declare_module() must be called before declare_legacy_alias().",
                location=state.location,
            )
        state.legacy_alias = True

    def run(self, location: str, source: UnitSource, *, is_module: bool) -> Any:
        if is_module:
            return self.run_module(location, source)
        self.run_legacy(location, source)
        return None

    def run_module(self, location: str, source: UnitSource) -> Any:
        """Run a module body and register its exports. Returns the exports."""

        with self.defining(location) as state:
            try:
                exports = self._invoke_module(state, source)
                if state.module_name is None:
                    raise MissingModuleDeclarationError(
                        f"Module unit '{location}' did not call declare_module().",
                        location=location,
                    )
            except LoaderError:
                state.phase = ModulePhase.ABORTED
                raise
            except Exception as exc:
                state.phase = ModulePhase.ABORTED
                raise UnitExecutionError(
                    f"Unit '{location}' failed: {exc}", location=location, cause=exc
                ) from exc
            self._commit(state, exports)
        return exports

    def run_legacy(self, location: str, source: UnitSource) -> None:
        with self.suspended():
            context = self._context_factory(location, None)
            try:
                if callable(source):
                    source(context)
                else:
                    code = _compile(source, location)
                    self.global_scope.update(context.as_globals())
                    exec(code, self.global_scope)
            except LoaderError:
                raise
            except Exception as exc:
                raise UnitExecutionError(
                    f"Unit '{location}' failed: {exc}", location=location, cause=exc
                ) from exc

    def _invoke_module(self, state: ModuleLoaderState, source: UnitSource) -> Any:
        context = self._context_factory(state.location, state.exports)
        if callable(source):
            result = source(context)
            return state.exports if result is None else result

        code = _compile(source, state.location)
        namespace: dict[str, Any] = {
            "__builtins__": __builtins__,
            "__name__": state.location,
        }
        namespace.update(context.as_globals())
        exec(code, namespace)
        result = namespace.get("exports")
        return state.exports if result is None else result

    def _commit(self, state: ModuleLoaderState, exports: Any) -> None:
        name = state.module_name
        assert name is not None
        if not state.legacy_alias and self._seal_module_exports:
            if isinstance(exports, ModuleExports):
                exports.seal()
        self._registry.clear_implicit(name)
        self._registry.register_module_exports(name, exports, legacy_alias=state.legacy_alias)
        state.phase = ModulePhase.COMMITTED
        LOGGER.debug("Module '%s' committed from '%s'", name, state.location)


def _compile(source: str, location: str) -> CodeType:
    try:
        return compile(source, location, "exec")
    except SyntaxError as exc:
        raise UnitExecutionError(
            f"Syntax error in {location}: {exc.msg} (line {exc.lineno})",
            location=location,
            cause=exc,
        ) from exc


__all__ = ["ModuleLoaderState", "ModulePhase", "UnitExecutor"]
