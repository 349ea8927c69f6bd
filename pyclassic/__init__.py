"""
pyclassic - runtime class metamodel

Named classes with single inheritance, mixins, required and final methods,
static methods, operator hooks, strict objects, a class registry, lazily
resolving module namespaces and lifecycle callbacks.

Usage:
    import pyclassic as classic

    Point = classic.define_class("geometry.Point")

    @Point.method
    def __init__(self, x, y):
        self.x = x
        self.y = y

    p = Point(1, 2)
"""

from typing import Any, Callable

from .core.logging import setup_logging
from .core.events import EventType
from .core.instance import is_object, raw_get, raw_set, strict
from .core.class_base import ClassDescriptor, is_class
from .core.module_registry import ModuleNamespace, format_tree, is_module, list_module
from .core.runtime import ClassicRuntime
from .core import exceptions

# Global runtime instance
runtime = ClassicRuntime()


def define_class(name: str, parent: Any = None) -> ClassDescriptor:
    """Create a class, or return the already-registered class of the same name."""
    return runtime.define_class(name, parent)


def module(name: str) -> ModuleNamespace:
    """Create a module namespace."""
    return runtime.module(name)


def get_module(name: str) -> ModuleNamespace:
    return runtime.get_module(name)


def get_class(name: str) -> ClassDescriptor:
    """Find a class by name, loading it if it is not registered yet."""
    return runtime.get_class(name)


def deregister_class(name: str) -> None:
    runtime.deregister_class(name)


def deregister_all_classes() -> None:
    runtime.deregister_all_classes()


def add_callback(event: Any, func: Callable[..., Any]) -> None:
    """Register a callback for one of the EventType events."""
    runtime.add_callback(event, func)


__all__ = [
    "runtime",
    "setup_logging",
    "EventType",
    "ClassicRuntime",
    "define_class",
    "module",
    "get_module",
    "get_class",
    "deregister_class",
    "deregister_all_classes",
    "add_callback",
    "strict",
    "is_class",
    "is_object",
    "is_module",
    "list_module",
    "format_tree",
    "raw_get",
    "raw_set",
    "exceptions",
]
