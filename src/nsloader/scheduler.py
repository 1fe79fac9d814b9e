"""Depth-first load ordering and dispatch of units to the host."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

from .errors import UndefinedDependencyError
from .types import ExecutionMode, UnitSource

if TYPE_CHECKING:
    from .deferred import DeferredQueue
    from .graph import DependencyGraph
    from .hosts import UnitHost
    from .modules.execution import UnitExecutor
    from .registry import NamespaceRegistry

LOGGER = logging.getLogger(__name__)

Runner = Callable[[str, UnitSource], None]


class Color(Enum):
    WHITE = 0
    GRAY = 1
    BLACK = 2


class Visit(str, Enum):
    """Outcome of visiting one location during a traversal."""

    SCHEDULED = "scheduled"
    WRITTEN = "written"
    CYCLE = "cycle"


class Scheduler:
    """Linearise a unit's transitive requirements and hand them to the host.

    Ordering is post-order DFS from the requested location, so requirements
    precede the units that need them. Within a cycle the order is best-effort:
    a gray location is skipped and the cycle is left for execution order to
    sort out.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        registry: NamespaceRegistry,
        executor: UnitExecutor,
        host: UnitHost,
        deferred: DeferredQueue,
        runner: Runner,
        *,
        mode: ExecutionMode = ExecutionMode.IMMEDIATE,
    ) -> None:
        self._graph = graph
        self._registry = registry
        self._executor = executor
        self._host = host
        self._deferred = deferred
        self._runner = runner
        self.mode = mode

    def plan(self, location: str) -> list[str]:
        """Return the locations that loading ``location`` would dispatch."""

        order: list[str] = []
        self._visit(location, {}, order)
        return order

    def load(self, location: str) -> list[str]:
        """Plan, mark written and dispatch. Returns the dispatched locations."""

        order = self.plan(location)
        if not order:
            return order
        # Marked before dispatch so nested requires never schedule these again.
        self._graph.mark_written(order)
        LOGGER.debug("Load order for '%s': %s", location, order)
        with self._executor.suspended():
            for path in order:
                self._dispatch(path)
        return order

    def _visit(self, location: str, colors: dict[str, Color], order: list[str]) -> Visit:
        if self._graph.is_written(location):
            return Visit.WRITTEN
        color = colors.get(location, Color.WHITE)
        if color is Color.GRAY:
            return Visit.CYCLE
        if color is Color.BLACK:
            return Visit.SCHEDULED

        colors[location] = Color.GRAY
        for name in self._graph.requirements_of(location):
            if self._registry.is_provided(name):
                continue
            owner = self._graph.location_for(name)
            if owner is None:
                raise UndefinedDependencyError(
                    f"Unit '{location}' requires '{name}', which no unit provides.",
                    name=name,
                    location=location,
                )
            if self._visit(owner, colors, order) is Visit.CYCLE:
                LOGGER.debug(
                    "Requirement '%s' of '%s' closes a cycle through '%s'; "
                    "leaving it to execution order",
                    name,
                    location,
                    owner,
                )
        colors[location] = Color.BLACK
        order.append(location)
        return Visit.SCHEDULED

    def _dispatch(self, location: str) -> None:
        request_location = self._host.resolve(location)
        source = self._host.fetch_source(location)
        if self.mode is ExecutionMode.QUEUED:
            self._deferred.enqueue(location, source, request_location)
            return

        def execute() -> None:
            self._runner(location, source)

        if not self._host.execute_immediate(location, execute):
            self._deferred.enqueue(location, source, request_location)


__all__ = ["Color", "Scheduler", "Visit"]
