from __future__ import annotations

from nsloader.registry import NamespaceRegistry
from nsloader.types import Namespace


def test_declare_provided_builds_path_and_marks_ancestors_implicit() -> None:
    registry = NamespaceRegistry()

    leaf = registry.declare_provided("a.b.c")

    assert isinstance(leaf, Namespace)
    assert registry.root.a.b.c is leaf
    assert registry.is_provided("a.b.c")
    assert registry.is_implicit("a")
    assert registry.is_implicit("a.b")
    assert not registry.is_provided("a")
    assert not registry.is_provided("a.b")


def test_implicit_parent_can_later_be_declared() -> None:
    registry = NamespaceRegistry()
    registry.declare_provided("a.b.c")
    intermediate = registry.root.a.b

    result = registry.declare_provided("a.b")

    assert result is intermediate
    assert registry.is_provided("a.b")
    assert not registry.is_implicit("a.b")
    assert registry.is_implicit("a")


def test_declaring_child_of_existing_namespace_stops_marking_ancestors() -> None:
    registry = NamespaceRegistry()
    registry.declare_provided("app")
    registry.declare_provided("app.ui.widgets")

    assert registry.is_provided("app")
    assert registry.is_implicit("app.ui")
    assert not registry.is_implicit("app")


def test_declare_provided_with_value_sets_leaf() -> None:
    registry = NamespaceRegistry()

    registry.declare_provided("config.timeout", 30)

    assert registry.get("config.timeout") == 30
    assert registry.is_provided("config.timeout")


def test_none_value_is_not_provided() -> None:
    registry = NamespaceRegistry()
    registry.declare_provided("maybe.value", None)

    assert not registry.is_provided("maybe.value")


def test_module_exports_are_separate_from_tree() -> None:
    registry = NamespaceRegistry()
    exports = {"answer": 42}

    registry.register_module_exports("mod.core", exports)

    assert registry.is_provided("mod.core")
    assert registry.is_module("mod.core")
    assert registry.get("mod.core") is exports
    assert registry.get_object_by_name("mod.core") is None


def test_module_exports_with_legacy_alias_populate_tree() -> None:
    registry = NamespaceRegistry()
    exports = Namespace(value=1)

    registry.register_module_exports("mod.core", exports, legacy_alias=True)

    assert registry.get_object_by_name("mod.core") is exports
    assert registry.is_implicit("mod")


def test_tree_walk_supports_mapping_root() -> None:
    root: dict[str, object] = {}
    registry = NamespaceRegistry(root)

    registry.declare_provided("pkg.mod", "value")

    assert isinstance(root["pkg"], Namespace)
    assert registry.get_object_by_name("pkg.mod") == "value"
    assert registry.get_object_by_name("pkg.missing") is None
