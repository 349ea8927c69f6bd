"""
Classic Runtime
Flow: Settings → EventRegistry → ClassRegistry → ModuleRegistry → ObjectSerializer

Bundles every piece of registry state into one object. The package keeps a
process-wide default instance; tests build their own.
"""

from typing import Any, Callable, Optional

from pyclassic.config.settings import Settings, get_settings

from .logging import get_logger
from .class_base import ClassDescriptor
from .class_registry import ClassRegistry
from .events import EventRegistry
from .loader import NameLoader
from .module_registry import ModuleNamespace, ModuleRegistry
from .serialization import ObjectSerializer

logger = get_logger(__name__)


class ClassicRuntime:
    """
    Explicit runtime state: events, classes, modules and serialization.

    Usage:
        runtime = ClassicRuntime()
        Point = runtime.define_class("geometry.Point")
    """

    def __init__(self, loader: Optional[NameLoader] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.events = EventRegistry()
        self.classes = ClassRegistry(loader=loader, events=self.events)
        self.modules = ModuleRegistry(
            self.classes,
            events=self.events,
            enforce_naming=self.settings.ENFORCE_NAMING_CONVENTION,
        )
        self.serializer = ObjectSerializer(self.classes, events=self.events)
        logger.debug("Runtime initialized", enforce_naming=self.settings.ENFORCE_NAMING_CONVENTION)

    def define_class(self, name: str, parent: Any = None) -> ClassDescriptor:
        return self.classes.declare(name, parent)

    def module(self, name: str) -> ModuleNamespace:
        return self.modules.create(name)

    def get_module(self, name: str) -> ModuleNamespace:
        return self.modules.get(name)

    def get_class(self, name: str) -> ClassDescriptor:
        return self.classes.get(name)

    def deregister_class(self, name: str) -> None:
        self.classes.deregister(name)

    def deregister_all_classes(self) -> None:
        self.classes.deregister_all()

    def add_callback(self, event: Any, func: Callable[..., Any]) -> None:
        self.events.add_callback(event, func)

    def reset(self) -> None:
        """Drop all classes, modules and callbacks."""
        self.classes.deregister_all()
        self.modules.deregister_all()
        self.events.clear()
        logger.info("Runtime reset")
