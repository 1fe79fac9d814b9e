"""nsloader package initialisation."""

from importlib import metadata

from .errors import (
    DuplicateNamespaceError,
    FetchError,
    LoaderError,
    MissingModuleDeclarationError,
    UndefinedDependencyError,
    UnresolvedDependencyError,
)
from .hosts import FileSystemHost, MemoryHost, UnitHost
from .modules import ModuleLoader, UnitContext
from .types import ExecutionMode


def _discover_version() -> str:
    """Return the installed package version, falling back to dev marker."""
    try:
        return metadata.version("nsloader")
    except metadata.PackageNotFoundError:  # pragma: no cover - occurs in source checkouts
        return "0.0.0"


__all__ = [
    "__version__",
    "DuplicateNamespaceError",
    "ExecutionMode",
    "FetchError",
    "FileSystemHost",
    "LoaderError",
    "MemoryHost",
    "MissingModuleDeclarationError",
    "ModuleLoader",
    "UndefinedDependencyError",
    "UnitContext",
    "UnitHost",
    "UnresolvedDependencyError",
]
__version__ = _discover_version()
