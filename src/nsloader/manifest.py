"""Dependency manifest reading, scanning, and rendering."""

from __future__ import annotations

import ast
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from nsloader.modules.loader import ModuleLoader

LOGGER = logging.getLogger(__name__)

_DECLARING_CALLS = frozenset({"provide", "require", "declare_module"})


class ManifestError(ValueError):
    """Raised when a manifest file is malformed."""


@dataclass(frozen=True)
class ManifestEntry:
    """One row of the dependency manifest."""

    path: str
    provides: tuple[str, ...] = ()
    requires: tuple[str, ...] = ()
    module: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "provides": list(self.provides),
            "requires": list(self.requires),
            "module": self.module,
        }


def load_manifest(path: Path | str) -> list[ManifestEntry]:
    """Read manifest entries from a YAML file."""

    manifest_path = Path(path).expanduser()
    try:
        with manifest_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle)
    except OSError as exc:
        raise ManifestError(f"Cannot read manifest {manifest_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ManifestError(f"Invalid YAML in manifest {manifest_path}: {exc}") from exc
    return parse_manifest(raw, source=str(manifest_path))


def parse_manifest(raw: Any, *, source: str = "<manifest>") -> list[ManifestEntry]:
    if raw is None:
        return []
    if isinstance(raw, dict):
        raw = raw.get("units", [])
    if not isinstance(raw, list):
        raise ManifestError(f"{source}: manifest must be a list of units.")

    entries: list[ManifestEntry] = []
    for idx, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            raise ManifestError(f"{source}: units[{idx}] must be a mapping.")
        path = item.get("path")
        if not isinstance(path, str) or not path:
            raise ManifestError(f"{source}: units[{idx}] requires a 'path'.")
        module = item.get("module", False)
        if not isinstance(module, bool):
            raise ManifestError(f"{source}: units[{idx}].module must be true or false.")
        entries.append(
            ManifestEntry(
                path=path,
                provides=_name_list(item.get("provides"), f"{source}: units[{idx}].provides"),
                requires=_name_list(item.get("requires"), f"{source}: units[{idx}].requires"),
                module=module,
            )
        )
    return entries


def apply_manifest(loader: ModuleLoader, entries: Iterable[ManifestEntry]) -> int:
    """Register each entry with ``loader``. Returns the number of entries."""

    count = 0
    for entry in entries:
        loader.add_dependency(entry.path, entry.provides, entry.requires, is_module=entry.module)
        count += 1
    return count


def scan_units(base_path: Path | str) -> list[ManifestEntry]:
    """Build manifest entries from the ``*.py`` units below ``base_path``."""

    base = Path(base_path).expanduser()
    entries: list[ManifestEntry] = []
    for path in sorted(base.rglob("*.py")):
        location = path.relative_to(base).as_posix()
        entry = scan_source(path.read_text(encoding="utf-8"), location)
        if entry.provides:
            entries.append(entry)
        else:
            LOGGER.debug("Skipping %s: it provides no names", location)
    return entries


def scan_source(source: str, location: str) -> ManifestEntry:
    """Collect literal provide/require/declare_module calls from unit source."""

    try:
        tree = ast.parse(source, filename=location)
    except SyntaxError as exc:
        raise ManifestError(f"Syntax error in {location}: {exc.msg} (line {exc.lineno})") from exc

    provides: list[str] = []
    requires: list[str] = []
    module = False
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call) or not node.args:
            continue
        func_name = _call_name(node.func)
        if func_name not in _DECLARING_CALLS:
            continue
        first = node.args[0]
        if not isinstance(first, ast.Constant) or not isinstance(first.value, str):
            continue
        if func_name == "require":
            requires.append(first.value)
        else:
            provides.append(first.value)
            module = module or func_name == "declare_module"

    provided = set(provides)
    return ManifestEntry(
        path=location,
        provides=tuple(dict.fromkeys(provides)),
        requires=tuple(name for name in dict.fromkeys(requires) if name not in provided),
        module=module,
    )


def dump_manifest(entries: Iterable[ManifestEntry]) -> str:
    return yaml.safe_dump(
        {"units": [entry.as_dict() for entry in entries]},
        sort_keys=False,
        default_flow_style=None,
    )


def _call_name(func: ast.expr) -> str | None:
    if isinstance(func, ast.Name):
        return func.id
    if isinstance(func, ast.Attribute):
        return func.attr
    return None


def _name_list(value: Any, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ManifestError(f"{field_name} must be a list of names.")
    return tuple(value)


__all__ = [
    "ManifestEntry",
    "ManifestError",
    "apply_manifest",
    "dump_manifest",
    "load_manifest",
    "parse_manifest",
    "scan_source",
    "scan_units",
]
