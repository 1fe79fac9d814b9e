"""Error taxonomy raised by the loader."""

from __future__ import annotations


class LoaderError(RuntimeError):
    """Base class for failures that abort a ``require`` call."""

    def __init__(
        self,
        message: str,
        *,
        name: str | None = None,
        location: str | None = None,
    ) -> None:
        super().__init__(message)
        self.name = name
        self.location = location


class DuplicateNamespaceError(LoaderError):
    """Raised when a logical name is provided twice."""


class DuplicateUnitError(LoaderError):
    """Raised when a location is registered twice with different metadata."""


class InvalidModuleNameError(LoaderError):
    """Raised when a declared module name is malformed."""


class MultipleModuleDeclarationError(LoaderError):
    """Raised when a module body declares more than one name."""


class MissingModuleDeclarationError(LoaderError):
    """Raised when a module body completes without declaring a name."""


class ModuleStateError(LoaderError):
    """Raised when a module-only operation is used outside a module body."""


class UnresolvedDependencyError(LoaderError):
    """Raised when a requested name has no owning unit."""


class UndefinedDependencyError(LoaderError):
    """Raised when a transitive requirement has no owning unit."""


class ProvideMismatchError(UndefinedDependencyError):
    """Raised when a unit does not provide a name its manifest entry claims."""


class FetchError(LoaderError):
    """Raised when the host cannot retrieve a unit's source."""


class UnitExecutionError(LoaderError):
    """Raised when a unit body fails to compile or run."""

    def __init__(
        self,
        message: str,
        *,
        location: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, location=location)
        self.cause = cause


__all__ = [
    "LoaderError",
    "DuplicateNamespaceError",
    "DuplicateUnitError",
    "InvalidModuleNameError",
    "MultipleModuleDeclarationError",
    "MissingModuleDeclarationError",
    "ModuleStateError",
    "UnresolvedDependencyError",
    "UndefinedDependencyError",
    "ProvideMismatchError",
    "FetchError",
    "UnitExecutionError",
]
