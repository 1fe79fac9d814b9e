"""Unit execution primitives and the loader session."""

from __future__ import annotations

from .context import UnitContext
from .execution import ModuleLoaderState, ModulePhase, UnitExecutor
from .loader import ModuleLoader

__all__ = ["ModuleLoader", "ModuleLoaderState", "ModulePhase", "UnitContext", "UnitExecutor"]
