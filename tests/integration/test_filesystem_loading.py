from __future__ import annotations

import pytest

from nsloader.config import load_config
from nsloader.errors import FetchError, UnitExecutionError
from nsloader.manifest import load_manifest, scan_units
from nsloader.modules import ModuleLoader
from nsloader.types import ExecutionMode
from tests.integration.conftest import UnitTree, write_config, write_units


def test_loads_units_from_disk(unit_tree: UnitTree) -> None:
    loader = ModuleLoader.from_config(load_config(unit_tree.config))

    exports = loader.require("app.main")

    assert exports.banner == "HELLO WORLD!"
    assert loader.load_order == ["lib/strings.py", "lib/greeter.py", "app/main.py"]
    assert loader.namespace.app.main is exports
    assert loader.namespace.app.strings.shout("x") == "X!"
    assert loader.get_module("app.greeter").greet("you") == "HELLO YOU!"
    assert loader.registry.is_implicit("app")


def test_second_request_reuses_loaded_units(unit_tree: UnitTree) -> None:
    loader = ModuleLoader.from_config(load_config(unit_tree.config))

    greeter = loader.require("app.greeter")
    loader.require("app.main")

    assert loader.require("app.greeter") is greeter
    assert loader.host.fetched == ["lib/strings.py", "lib/greeter.py", "app/main.py"]


def test_queued_execution_waits_for_trigger(unit_tree: UnitTree) -> None:
    config_path = write_config(unit_tree.root, execution="queued")
    loader = ModuleLoader.from_config(load_config(config_path))

    assert loader.mode is ExecutionMode.QUEUED
    assert loader.require("app.main") is None
    assert loader.load_order == []
    assert loader.pending == ["lib/strings.py", "lib/greeter.py", "app/main.py"]

    executed = loader.signal_ready()

    assert executed == ["lib/strings.py", "lib/greeter.py", "app/main.py"]
    assert loader.require("app.main").banner == "HELLO WORLD!"


def test_scanned_manifest_matches_handwritten_one(unit_tree: UnitTree) -> None:
    scanned = {entry.path: entry for entry in scan_units(unit_tree.base_path)}
    written = {entry.path: entry for entry in load_manifest(unit_tree.manifest)}

    assert scanned == written


def test_missing_unit_file_is_fetch_error(unit_tree: UnitTree) -> None:
    (unit_tree.base_path / "lib" / "strings.py").unlink()
    loader = ModuleLoader.from_config(load_config(unit_tree.config))

    with pytest.raises(FetchError, match="lib/strings.py"):
        loader.require("app.main")
    assert loader.load_order == []


def test_failing_unit_body_aborts_request(unit_tree: UnitTree) -> None:
    write_units(
        unit_tree.base_path,
        {"lib/greeter.py": "declare_module('app.greeter')\nraise RuntimeError('bad greeter')\n"},
    )
    loader = ModuleLoader.from_config(load_config(unit_tree.config))

    with pytest.raises(UnitExecutionError, match="bad greeter"):
        loader.require("app.main")
    assert loader.load_order == ["lib/strings.py"]
    assert not loader.is_provided("app.greeter")
    assert not loader.is_provided("app.main")
