from __future__ import annotations

import logging

import pytest

from nsloader.errors import (
    DuplicateNamespaceError,
    InvalidModuleNameError,
    ProvideMismatchError,
    UnresolvedDependencyError,
)
from nsloader.hosts import MemoryHost
from nsloader.modules import ModuleLoader


class CountingHost(MemoryHost):
    def __init__(self, units) -> None:
        super().__init__(units)
        self.executed: list[str] = []

    def execute_immediate(self, location, closure) -> bool:
        self.executed.append(location)
        return super().execute_immediate(location, closure)


def _provider(*names: str):
    def body(ctx) -> None:
        for name in names:
            ctx.provide(name)

    return body


def test_dependency_executes_before_dependent() -> None:
    host = CountingHost({"p1.py": _provider("ns.a"), "p2.py": _provider("ns.b")})
    loader = ModuleLoader(host)
    loader.add_dependency("p1.py", ["ns.a"], [])
    loader.add_dependency("p2.py", ["ns.b"], ["ns.a"])

    result = loader.require("ns.b")

    assert result is None
    assert host.executed == ["p1.py", "p2.py"]
    assert loader.load_order == ["p1.py", "p2.py"]
    assert loader.is_provided("ns.a")
    assert loader.is_provided("ns.b")


def test_repeated_require_returns_same_object_and_executes_once() -> None:
    host = CountingHost({"a.py": _provider("ns.a")})
    loader = ModuleLoader(host)
    loader.add_dependency("a.py", ["ns.a"], [])

    loader.require("ns.a")
    first = loader.require("ns.a")
    second = loader.require("ns.a")

    assert first is second
    assert first is loader.namespace.ns.a
    assert host.executed == ["a.py"]


def test_shared_dependency_written_once_across_requests() -> None:
    host = CountingHost(
        {
            "base.py": _provider("lib.base"),
            "one.py": _provider("lib.one"),
            "two.py": _provider("lib.two"),
        }
    )
    loader = ModuleLoader(host)
    loader.add_dependency("base.py", ["lib.base"], [])
    loader.add_dependency("one.py", ["lib.one"], ["lib.base"])
    loader.add_dependency("two.py", ["lib.two"], ["lib.base"])

    loader.require("lib.one")
    loader.require("lib.two")

    assert host.executed == ["base.py", "one.py", "two.py"]
    assert host.fetched.count("base.py") == 1


def test_cycle_dispatches_each_unit_once() -> None:
    host = CountingHost({"x.py": _provider("cyc.x"), "y.py": _provider("cyc.y")})
    loader = ModuleLoader(host)
    loader.add_dependency("x.py", ["cyc.x"], ["cyc.y"])
    loader.add_dependency("y.py", ["cyc.y"], ["cyc.x"])

    loader.require("cyc.x")
    loader.require("cyc.y")

    assert sorted(host.executed) == ["x.py", "y.py"]
    assert len(host.executed) == 2


def test_cyclic_modules_see_each_other_through_require() -> None:
    def x(ctx):
        ctx.declare_module("cyc.x")
        ctx.exports.y = ctx.require("cyc.y")

    def y(ctx):
        ctx.declare_module("cyc.y")
        ctx.exports.name = "y"

    loader = ModuleLoader(MemoryHost({"x.py": x, "y.py": y}))
    loader.add_dependency("x.py", ["cyc.x"], ["cyc.y"], is_module=True)
    loader.add_dependency("y.py", ["cyc.y"], ["cyc.x"], is_module=True)

    exports = loader.require("cyc.x")

    assert exports.y.name == "y"
    assert loader.load_order == ["y.py", "x.py"]


def test_duplicate_provider_rejected_at_registration() -> None:
    loader = ModuleLoader(MemoryHost())
    loader.add_dependency("one.py", ["dup.name"], [])

    with pytest.raises(DuplicateNamespaceError):
        loader.add_dependency("two.py", ["dup.name"], [])


def test_second_provide_call_rejected() -> None:
    loader = ModuleLoader(MemoryHost())
    loader.provide("eager.name")

    with pytest.raises(DuplicateNamespaceError, match="eager.name"):
        loader.provide("eager.name")


def test_provide_rejects_malformed_names() -> None:
    loader = ModuleLoader(MemoryHost())

    with pytest.raises(InvalidModuleNameError):
        loader.provide("not valid")


def test_provide_with_value_binds_value() -> None:
    loader = ModuleLoader(MemoryHost())

    loader.provide("settings.retries", 3)

    assert loader.require("settings.retries") == 3
    assert loader.get_module("settings.retries") == 3


def test_unresolved_top_level_request(caplog: pytest.LogCaptureFixture) -> None:
    loader = ModuleLoader(MemoryHost())

    with caplog.at_level(logging.ERROR, logger="nsloader.modules.loader"):
        with pytest.raises(UnresolvedDependencyError, match="nowhere.to.be.found") as excinfo:
            loader.require("nowhere.to.be.found")

    assert excinfo.value.name == "nowhere.to.be.found"
    assert "nowhere.to.be.found" in caplog.text


def test_get_module_never_loads() -> None:
    host = CountingHost({"a.py": _provider("ns.a")})
    loader = ModuleLoader(host)
    loader.add_dependency("a.py", ["ns.a"], [])

    assert loader.get_module("ns.a") is None
    assert host.executed == []


def test_plan_does_not_mark_written() -> None:
    host = CountingHost({"a.py": _provider("ns.a")})
    loader = ModuleLoader(host)
    loader.add_dependency("a.py", ["ns.a"], [])

    assert loader.plan("ns.a") == ["a.py"]
    assert not loader.graph.is_written("a.py")
    loader.require("ns.a")
    assert loader.plan("ns.a") == []


def test_manifest_is_trusted_by_default() -> None:
    loader = ModuleLoader(MemoryHost({"liar.py": _provider("ns.other")}))
    loader.add_dependency("liar.py", ["ns.claimed"], [])

    assert loader.require("ns.claimed") is None
    assert not loader.is_provided("ns.claimed")


def test_strict_provides_detects_manifest_mismatch() -> None:
    loader = ModuleLoader(MemoryHost({"liar.py": _provider("ns.other")}), strict_provides=True)
    loader.add_dependency("liar.py", ["ns.claimed"], [])

    with pytest.raises(ProvideMismatchError) as excinfo:
        loader.require("ns.claimed")

    assert excinfo.value.name == "ns.claimed"
    assert excinfo.value.location == "liar.py"


def test_loaders_are_independent() -> None:
    first = ModuleLoader(MemoryHost({"a.py": _provider("ns.a")}))
    second = ModuleLoader(MemoryHost({"a.py": _provider("ns.a")}))
    for loader in (first, second):
        loader.add_dependency("a.py", ["ns.a"], [])

    first.require("ns.a")

    assert first.is_provided("ns.a")
    assert not second.is_provided("ns.a")
    assert not second.graph.is_written("a.py")


def test_legacy_source_shares_global_scope() -> None:
    host = MemoryHost(
        {
            "first.py": "provide('app.first')\nSHARED = 'from first'\n",
            "second.py": "util = provide('app.second')\nutil.copied = SHARED\n",
        }
    )
    loader = ModuleLoader(host)
    loader.add_dependency("first.py", ["app.first"], [])
    loader.add_dependency("second.py", ["app.second"], ["app.first"])

    loader.require("app.second")

    assert loader.namespace.app.second.copied == "from first"
