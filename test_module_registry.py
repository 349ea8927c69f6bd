"""
Tests for module namespaces and lazy member resolution
"""

import types

import pytest

from pyclassic.core.events import EventType
from pyclassic.core.exceptions import (
    BadNameError,
    DuplicateDeclarationError,
    KindMismatchError,
    LoadError,
    NamingConflictError,
    NamingConventionError,
    NotRegisteredError,
    UnknownMemberError,
)
from pyclassic.core.module_registry import format_tree, is_module, list_module


def test_create_module(runtime):
    """Test module creation"""
    seen = []
    runtime.add_callback(EventType.MODULE_INIT, seen.append)

    geometry = runtime.module("geometry")

    assert is_module(geometry)
    assert geometry.name() == "geometry"
    assert repr(geometry) == "classic.module<geometry>"
    assert runtime.get_module("geometry") is geometry
    assert seen == ["geometry"]


def test_module_name_validation(runtime):
    with pytest.raises(BadNameError):
        runtime.module(None)
    with pytest.raises(BadNameError):
        runtime.module(5)
    with pytest.raises(NamingConventionError):
        runtime.module("Geometry")
    with pytest.raises(NamingConventionError):
        runtime.module("geometry.Solids")


def test_declared_class_is_lazy(runtime, loader):
    """Test that a declared class is loaded on first access only"""
    loader.factories["geometry.Point"] = lambda: runtime.define_class("geometry.Point")
    geometry = runtime.module("geometry")
    geometry.declare_class("Point")

    assert loader.calls == {}

    point = geometry.Point
    assert point.name() == "geometry.Point"
    assert geometry.Point is point
    assert loader.calls == {"geometry.Point": 1}


def test_declared_class_already_registered(runtime, loader):
    Line = runtime.define_class("geometry.Line")
    geometry = runtime.module("geometry")
    geometry.declare_class("Line")

    assert geometry.Line is Line
    assert loader.calls == {}


def test_duplicate_declarations(runtime):
    geometry = runtime.module("geometry")
    geometry.declare_class("Point")
    geometry.declare_function("distance")

    with pytest.raises(DuplicateDeclarationError):
        geometry.declare_class("Point")
    with pytest.raises(DuplicateDeclarationError):
        geometry.declare_function("distance")
    with pytest.raises(DuplicateDeclarationError):
        geometry.declare_submodule("distance")


def test_declaration_validation(runtime):
    geometry = runtime.module("geometry")

    with pytest.raises(BadNameError):
        geometry.declare_class(None)
    with pytest.raises(BadNameError):
        geometry.declare_function(7)
    with pytest.raises(NamingConventionError):
        geometry.declare_class("point")
    with pytest.raises(NamingConventionError):
        geometry.declare_function("ComputeArea")
    with pytest.raises(NamingConventionError):
        geometry.declare_submodule("Solids")
    with pytest.raises(NamingConflictError):
        geometry.declare_function("classes")


def test_naming_convention_can_be_disabled(lenient_runtime):
    geometry = lenient_runtime.module("Geometry")
    geometry.declare_class("point")
    geometry.declare_function("ComputeArea")


def test_undeclared_member(runtime):
    geometry = runtime.module("geometry")

    with pytest.raises(UnknownMemberError) as exc_info:
        geometry.missing
    assert exc_info.value.member == "missing"
    assert not hasattr(geometry, "missing")


def test_declared_submodule(runtime, loader):
    geometry = runtime.module("geometry")
    solids = runtime.module("geometry.solids")
    geometry.declare_submodule("solids")

    assert geometry.solids is solids
    assert loader.calls == {}


def test_submodule_loaded_on_demand(runtime, loader):
    def load_module():
        runtime.module("geometry.curves")
        return types.ModuleType("geometry.curves")

    loader.factories["geometry.curves"] = load_module
    geometry = runtime.module("geometry")
    geometry.declare_submodule("curves")

    assert geometry.curves is runtime.get_module("geometry.curves")
    assert loader.calls == {"geometry.curves": 1}


def test_declared_function(runtime, loader):
    """Test lazy resolution of module functions"""
    loader.factories["geometry.distance"] = lambda: (lambda a, b: abs(a - b))
    area_module = types.ModuleType("geometry.area")
    area_module.area = lambda w, h: w * h
    loader.factories["geometry.area"] = lambda: area_module

    geometry = runtime.module("geometry")
    geometry.declare_function("distance")
    geometry.declare_function("area")

    assert geometry.distance(1, 4) == 3
    assert geometry.area(2, 3) == 6
    assert geometry.distance(0, 1) == 1
    assert loader.calls == {"geometry.distance": 1, "geometry.area": 1}


def test_kind_mismatch(runtime, loader):
    loader.factories["geometry.Point"] = lambda: (lambda: None)
    loader.factories["geometry.distance"] = lambda: "not a function"
    loader.factories["geometry.solids"] = lambda: 42

    geometry = runtime.module("geometry")
    geometry.declare_class("Point")
    geometry.declare_function("distance")
    geometry.declare_submodule("solids")

    with pytest.raises(KindMismatchError):
        geometry.Point
    with pytest.raises(KindMismatchError):
        geometry.distance
    with pytest.raises(KindMismatchError):
        geometry.solids


def test_declared_member_fails_to_load(runtime):
    geometry = runtime.module("geometry")
    geometry.declare_function("missing_function")

    with pytest.raises(LoadError) as exc_info:
        geometry.missing_function
    assert exc_info.value.name == "geometry.missing_function"
    assert exc_info.value.class_name is None

    geometry.declare_submodule("missing_module")
    with pytest.raises(LoadError) as exc_info:
        geometry.missing_module
    assert exc_info.value.name == "geometry.missing_module"
    assert exc_info.value.details["name"] == "geometry.missing_module"


def test_assignment(runtime):
    """Test data and function assignment"""
    geometry = runtime.module("geometry")
    geometry.VERSION = "1.0"
    geometry.VERSION = "1.1"

    def helper():
        return "help"

    geometry.helper = helper

    assert geometry.VERSION == "1.1"
    assert geometry.helper() == "help"
    assert [name for name, _ in geometry.functions()] == ["helper"]

    geometry.helper = lambda: "replaced"
    assert geometry.helper() == "replaced"
    assert [name for name, _ in geometry.functions()] == ["helper"]

    with pytest.raises(NamingConflictError):
        geometry.name = "shadowed"
    assert geometry.name() == "geometry"


def test_assignment_to_declared_member(runtime):
    geometry = runtime.module("geometry")
    geometry.declare_class("Point")

    with pytest.raises(NamingConflictError):
        geometry.Point = "data"


def test_resolved_member_can_be_reassigned(runtime, loader):
    loader.factories["geometry.distance"] = lambda: (lambda a, b: abs(a - b))
    geometry = runtime.module("geometry")
    geometry.declare_function("distance")

    with pytest.raises(NamingConflictError):
        geometry.distance = lambda a, b: 0
    assert geometry.distance(1, 4) == 3

    geometry.distance = lambda a, b: 0
    assert geometry.distance(1, 4) == 0
    assert [name for name, _ in geometry.functions()] == ["distance"]


def test_declare_assigned_name(runtime):
    geometry = runtime.module("geometry")
    geometry.helper = lambda: "help"
    geometry.VERSION = "1.0"

    with pytest.raises(DuplicateDeclarationError):
        geometry.declare_function("helper")
    with pytest.raises(DuplicateDeclarationError):
        geometry.declare_submodule("VERSION")


def test_member_iteration(runtime, loader):
    """Test that iteration resolves lazily and can be restarted"""
    loader.factories["zoo.Lion"] = lambda: runtime.define_class("zoo.Lion")
    loader.factories["zoo.Tiger"] = lambda: runtime.define_class("zoo.Tiger")
    zoo = runtime.module("zoo")
    zoo.declare_class("Lion")
    zoo.declare_class("Tiger")

    classes = zoo.classes()
    assert len(classes) == 2
    assert loader.calls == {}

    iterator = iter(classes)
    name, lion = next(iterator)
    assert name == "Lion"
    assert lion.name() == "zoo.Lion"
    assert loader.calls == {"zoo.Lion": 1}

    assert [name for name, _ in classes] == ["Lion", "Tiger"]
    assert [name for name, _ in classes] == ["Lion", "Tiger"]
    assert loader.calls == {"zoo.Lion": 1, "zoo.Tiger": 1}
    assert list(zoo.submodules()) == []


def test_declaration_events(runtime):
    seen = []
    runtime.add_callback(EventType.MODULE_DECLARE_CLASS, lambda module, name: seen.append(("class", name)))
    runtime.add_callback(EventType.MODULE_DECLARE_SUBMODULE, lambda module, name: seen.append(("submodule", name)))
    runtime.add_callback(EventType.MODULE_DECLARE_FUNCTION, lambda module, name: seen.append(("function", name)))

    zoo = runtime.module("zoo")
    zoo.declare_class("Lion")
    zoo.declare_submodule("birds")
    zoo.declare_function("feed")

    assert seen == [("class", "Lion"), ("submodule", "birds"), ("function", "feed")]


def test_observer_failure_aborts_declaration(runtime):
    def reject(module, name):
        raise RuntimeError("rejected")

    runtime.add_callback(EventType.MODULE_DECLARE_CLASS, reject)
    zoo = runtime.module("zoo")

    with pytest.raises(RuntimeError):
        zoo.declare_class("Lion")
    assert len(zoo.classes()) == 0
    assert not hasattr(zoo, "Lion")


def test_deregister_module(runtime):
    runtime.module("zoo")
    assert runtime.modules.is_registered("zoo")

    runtime.modules.deregister("zoo")
    assert not runtime.modules.is_registered("zoo")
    with pytest.raises(NotRegisteredError):
        runtime.modules.deregister("zoo")

    runtime.module("aquarium")
    runtime.modules.deregister_all()
    assert runtime.modules.names() == []


def test_format_tree(runtime, capsys):
    """Test recursive listing of a module"""
    runtime.define_class("zoo.Lion")
    runtime.define_class("zoo.birds.Parrot")
    zoo = runtime.module("zoo")
    birds = runtime.module("zoo.birds")
    birds.declare_class("Parrot")
    zoo.declare_submodule("birds")
    zoo.declare_class("Lion")
    zoo.feed = lambda: None

    expected = [
        "classic.module<zoo>",
        "|  classic.module<zoo.birds>",
        "|  |  classic.class<zoo.birds.Parrot>",
        "|  classic.class<zoo.Lion>",
        "|  function<zoo.feed>",
    ]
    assert format_tree(zoo) == expected

    list_module(zoo)
    assert capsys.readouterr().out == "\n".join(expected) + "\n"
