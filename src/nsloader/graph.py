"""Manifest index mapping logical names to unit locations."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from .errors import DuplicateNamespaceError, DuplicateUnitError
from .types import UnitRecord

LOGGER = logging.getLogger(__name__)


class DependencyGraph:
    """Store unit records and the session-wide ``written`` set."""

    def __init__(self) -> None:
        self._records: dict[str, UnitRecord] = {}
        self._name_to_location: dict[str, str] = {}
        self._written: set[str] = set()

    def add_unit(
        self,
        location: str,
        provides: Iterable[str],
        requires: Iterable[str],
        is_module: bool = False,
    ) -> UnitRecord:
        """Record a unit's provides/requires. Conflicting bindings are rejected."""

        record = UnitRecord.build(location, provides, requires, is_module)
        existing = self._records.get(location)
        if existing is not None:
            if existing == record:
                return existing
            raise DuplicateUnitError(
                f"Unit '{location}' is already registered with different metadata.",
                location=location,
            )

        for name in record.provides:
            owner = self._name_to_location.get(name)
            if owner is not None and owner != location:
                raise DuplicateNamespaceError(
                    f"Namespace '{name}' is provided by both '{owner}' and '{location}'.",
                    name=name,
                    location=location,
                )

        self._records[location] = record
        for name in record.provides:
            self._name_to_location[name] = location
        LOGGER.debug(
            "Added unit '%s' (provides=%s, requires=%s, module=%s)",
            location,
            list(record.provides),
            list(record.requires),
            record.is_module,
        )
        return record

    def location_for(self, name: str) -> str | None:
        return self._name_to_location.get(name)

    def record(self, location: str) -> UnitRecord | None:
        return self._records.get(location)

    def requirements_of(self, location: str) -> tuple[str, ...]:
        record = self._records.get(location)
        return record.requires if record else ()

    def provides_of(self, location: str) -> tuple[str, ...]:
        record = self._records.get(location)
        return record.provides if record else ()

    def is_module_style(self, location: str) -> bool:
        record = self._records.get(location)
        return bool(record and record.is_module)

    def is_written(self, location: str) -> bool:
        return location in self._written

    def mark_written(self, locations: Iterable[str]) -> None:
        self._written.update(locations)

    @property
    def written(self) -> frozenset[str]:
        return frozenset(self._written)

    def __contains__(self, location: object) -> bool:
        return location in self._records

    def __iter__(self) -> Iterator[UnitRecord]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)


__all__ = ["DependencyGraph"]
