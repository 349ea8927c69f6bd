"""
Core class metamodel: descriptors, objects, registries and events
"""

from .logging import setup_logging, get_logger
from .events import EventRegistry, EventType
from .loader import NameLoader, ImportLoader
from .instance import ClassicObject, OPERATOR_HOOKS, is_object, is_strict, raw_get, raw_set, strict
from .class_base import CLASS_BUILTINS, ClassDescriptor, StaticMethods, SuperView, is_class
from .class_registry import ClassRegistry, RegistryStats
from .module_registry import ModuleNamespace, ModuleRegistry, format_tree, is_module, list_module
from .serialization import ObjectSerializer, SerializedObject
from .runtime import ClassicRuntime

__all__ = [
    "setup_logging",
    "get_logger",
    "EventRegistry",
    "EventType",
    "NameLoader",
    "ImportLoader",
    "ClassicObject",
    "OPERATOR_HOOKS",
    "is_object",
    "is_strict",
    "raw_get",
    "raw_set",
    "strict",
    "CLASS_BUILTINS",
    "ClassDescriptor",
    "StaticMethods",
    "SuperView",
    "is_class",
    "ClassRegistry",
    "RegistryStats",
    "ModuleNamespace",
    "ModuleRegistry",
    "format_tree",
    "is_module",
    "list_module",
    "ObjectSerializer",
    "SerializedObject",
    "ClassicRuntime",
]
