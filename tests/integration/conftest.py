from __future__ import annotations

import textwrap
from dataclasses import dataclass
from pathlib import Path

import pytest

UNITS: dict[str, str] = {
    "lib/strings.py": """
        util = provide("app.strings")

        def shout(text):
            return text.upper() + "!"

        util.shout = shout
    """,
    "lib/greeter.py": """
        declare_module("app.greeter")
        strings = require("app.strings")

        def greet(name):
            return strings.shout(f"hello {name}")

        exports.greet = greet
    """,
    "app/main.py": """
        declare_module("app.main")
        declare_legacy_alias()
        greeter = require("app.greeter")
        exports.banner = greeter.greet("world")
    """,
}

MANIFEST = """
units:
  - path: lib/strings.py
    provides: [app.strings]
  - path: lib/greeter.py
    provides: [app.greeter]
    requires: [app.strings]
    module: true
  - path: app/main.py
    provides: [app.main]
    requires: [app.greeter]
    module: true
"""


@dataclass(frozen=True)
class UnitTree:
    """On-disk unit sources plus a config pointing at them."""

    root: Path
    base_path: Path
    manifest: Path
    config: Path


def write_units(base_path: Path, units: dict[str, str]) -> None:
    for location, source in units.items():
        target = base_path / location
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(textwrap.dedent(source).lstrip(), encoding="utf-8")


def write_config(root: Path, *, execution: str = "auto", extra: str = "") -> Path:
    config = root / "config.yaml"
    config.write_text(
        "\n".join(
            [
                f"root_dir: {root / 'state'}",
                "base_path: units",
                "manifests:",
                "  - deps.yaml",
                f"execution: {execution}",
                extra,
                "",
            ]
        ),
        encoding="utf-8",
    )
    return config


@pytest.fixture()
def unit_tree(tmp_path: Path) -> UnitTree:
    base_path = tmp_path / "units"
    write_units(base_path, UNITS)
    manifest = tmp_path / "deps.yaml"
    manifest.write_text(MANIFEST, encoding="utf-8")
    config = write_config(tmp_path)
    return UnitTree(root=tmp_path, base_path=base_path, manifest=manifest, config=config)
