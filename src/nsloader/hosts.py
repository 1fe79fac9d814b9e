"""Hosts that fetch unit source and run execution closures for the loader."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from .errors import FetchError
from .types import UnitSource

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class UnitHost(Protocol):
    """Interface the loader uses to reach the execution environment."""

    @property
    def supports_immediate_execution(self) -> bool:
        """Return False when fetched units must wait for a readiness trigger."""

    def resolve(self, location: str) -> str:
        """Return the host-specific address for a manifest location."""

    def fetch_source(self, location: str) -> UnitSource:
        """Return the unit's source text or body callable, raising FetchError."""

    def execute_immediate(self, location: str, closure: Callable[[], None]) -> bool:
        """Run ``closure`` now and return True, or return False to defer it."""


class BaseHost:
    """Shared behaviour for the bundled hosts."""

    def __init__(self, *, defer: bool = False) -> None:
        self.defer = defer
        self.fetched: list[str] = []

    @property
    def supports_immediate_execution(self) -> bool:
        return not self.defer

    def resolve(self, location: str) -> str:
        return location

    def fetch_source(self, location: str) -> UnitSource:
        raise NotImplementedError

    def execute_immediate(self, location: str, closure: Callable[[], None]) -> bool:
        if self.defer:
            return False
        closure()
        return True


class FileSystemHost(BaseHost):
    """Read unit sources from files below a base directory."""

    def __init__(
        self,
        base_path: Path | str,
        *,
        defer: bool = False,
        encoding: str = "utf-8",
    ) -> None:
        super().__init__(defer=defer)
        self.base_path = Path(base_path).expanduser()
        self.encoding = encoding

    def resolve(self, location: str) -> str:
        return str(self.base_path / location)

    def fetch_source(self, location: str) -> str:
        path = Path(self.resolve(location))
        try:
            text = path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            reason = getattr(exc, "strerror", None) or exc
            raise FetchError(
                f"Cannot read unit '{location}' from {path}: {reason}",
                location=location,
            ) from exc
        self.fetched.append(location)
        LOGGER.debug("Fetched unit '%s' from %s", location, path)
        return text


class MemoryHost(BaseHost):
    """Serve unit sources or body callables from an in-memory mapping."""

    def __init__(
        self,
        units: Mapping[str, UnitSource] | None = None,
        *,
        defer: bool = False,
    ) -> None:
        super().__init__(defer=defer)
        self._units: dict[str, UnitSource] = dict(units or {})

    def add(self, location: str, source: UnitSource) -> None:
        self._units[location] = source

    def fetch_source(self, location: str) -> UnitSource:
        try:
            source = self._units[location]
        except KeyError as exc:
            raise FetchError(f"No source registered for unit '{location}'.", location=location) from exc
        self.fetched.append(location)
        return source


__all__ = ["UnitHost", "BaseHost", "FileSystemHost", "MemoryHost"]
