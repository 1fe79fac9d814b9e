"""Queue for fetched units that the host could not run straight away."""

from __future__ import annotations

import logging
from collections.abc import Callable

from .graph import DependencyGraph
from .registry import NamespaceRegistry
from .types import DeferredEntry, UnitSource

LOGGER = logging.getLogger(__name__)

Runner = Callable[[str, UnitSource], None]


class DeferredQueue:
    """Hold fetched units until their requirements and a readiness trigger allow them to run."""

    def __init__(
        self,
        graph: DependencyGraph,
        registry: NamespaceRegistry,
        runner: Runner,
    ) -> None:
        self._graph = graph
        self._registry = registry
        self._runner = runner
        self._entries: dict[str, DeferredEntry] = {}

    def enqueue(self, location: str, source: UnitSource, request_location: str | None = None) -> None:
        if location in self._entries:
            LOGGER.debug("Unit '%s' is already deferred", location)
            return
        self._entries[location] = DeferredEntry(
            location=location,
            source=source,
            request_location=request_location or location,
        )
        LOGGER.debug("Deferred unit '%s'", location)

    def is_deferred(self, name: str) -> bool:
        location = self._graph.location_for(name)
        return location is not None and location in self._entries

    def is_ready(self, name: str) -> bool:
        """Return True if ``name``'s deferred unit could run right now."""

        location = self._graph.location_for(name)
        if location is None or location not in self._entries:
            return False
        return self._location_ready(location, set())

    def try_process(self, name: str) -> bool:
        """Run ``name``'s deferred unit if it is ready. Returns whether it ran."""

        location = self._graph.location_for(name)
        if location is None:
            return False
        return self._process_location(location)

    def drain(self) -> list[str]:
        """Process each currently queued entry once, keeping those not yet ready."""

        snapshot = list(self._entries)
        for location in snapshot:
            self._process_location(location)
        executed = [location for location in snapshot if location not in self._entries]
        if self._entries:
            LOGGER.debug("Units still deferred after drain: %s", sorted(self._entries))
        return executed

    @property
    def pending(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, location: object) -> bool:
        return location in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def _process_location(self, location: str) -> bool:
        if location not in self._entries:
            return False
        if not self._location_ready(location, set()):
            return False
        entry = self._entries.pop(location)
        for name in self._graph.requirements_of(location):
            owner = self._graph.location_for(name)
            if owner in self._entries and not self._registry.is_provided(name):
                self._process_location(owner)
        LOGGER.debug("Running deferred unit '%s'", entry.request_location)
        self._runner(entry.location, entry.source)
        return True

    def _location_ready(self, location: str, seen: set[str]) -> bool:
        seen.add(location)
        for name in self._graph.requirements_of(location):
            if self._registry.is_provided(name):
                continue
            owner = self._graph.location_for(name)
            if owner is None or owner not in self._entries:
                return False
            if owner in seen:
                continue
            if not self._location_ready(owner, seen):
                return False
        return True


__all__ = ["DeferredQueue"]
