"""
Tests for the process-wide functions exposed by the pyclassic package
"""

import pytest

import pyclassic as classic


@pytest.fixture(autouse=True)
def clean_runtime():
    yield
    classic.runtime.reset()


def test_define_and_instantiate():
    Greeter = classic.define_class("facade.Greeter")

    @Greeter.method
    def __init__(self, name):
        self.name = name

    @Greeter.method
    def greet(self):
        return f"hello {self.name}"

    greeter = Greeter("ada")
    assert greeter.greet() == "hello ada"
    assert classic.get_class("facade.Greeter") is Greeter
    assert classic.is_class(Greeter)
    assert classic.is_object(greeter)


def test_strict_and_callbacks():
    names = []
    classic.add_callback(classic.EventType.CLASS_INIT, names.append)
    Box = classic.define_class("facade.Box")
    box = Box()
    classic.strict(box)

    assert names == ["facade.Box"]
    with pytest.raises(classic.exceptions.StrictnessViolationError):
        box.contents = 1


def test_modules():
    tools = classic.module("facade_tools")
    tools.declare_class("Hammer")
    classic.define_class("facade_tools.Hammer")

    assert classic.is_module(tools)
    assert classic.get_module("facade_tools") is tools
    assert tools.Hammer is classic.get_class("facade_tools.Hammer")


def test_deregistration():
    classic.define_class("facade.Temp")
    classic.deregister_class("facade.Temp")
    assert not classic.runtime.classes.is_registered("facade.Temp")

    classic.define_class("facade.One")
    classic.deregister_all_classes()
    assert classic.runtime.classes.names() == []
