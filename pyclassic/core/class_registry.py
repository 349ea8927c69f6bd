"""
Class Registry - Main Registry System
Flow: Declaration → Registration → Lookup → (Loader on miss) → Deregistration
"""

from datetime import datetime, timezone
from types import ModuleType
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .logging import get_logger
from .class_base import ClassDescriptor, is_class
from .events import EventRegistry, EventType
from .exceptions import (
    BadNameError,
    ClassNameError,
    DuplicateClassError,
    DuplicateDefinitionError,
    KindMismatchError,
    LoadError,
    MismatchedNameError,
    NotRegisteredError,
)
from .loader import ImportLoader, NameLoader

logger = get_logger(__name__)


class RegistryStats(BaseModel):
    """Class registry statistics."""
    total_classes: int = Field(..., description="Total registered classes")
    class_names: List[str] = Field(..., description="Registered class names, sorted")
    loaded_names: List[str] = Field(..., description="Names resolved through the loader")
    abstract_classes: List[str] = Field(..., description="Registered classes with unimplemented required methods")
    last_registration_time: Optional[str] = Field(default=None, description="Last registration timestamp")


class ClassRegistry:
    """
    Process-wide map from class name to ClassDescriptor.

    Registry Architecture:
    - Registered classes: name → descriptor, one descriptor identity per name
    - Loader cache: names resolved through the NameLoader, so it runs once per name
    - EventRegistry: lifecycle notifications for classes created here

    Core Process:
    1. declare() → Create and register a class, or return the existing one
    2. register() → Validate and record a descriptor under its own name
    3. get() → Registered descriptor, else load it by name
    4. deregister() / deregister_all() → Teardown for test isolation

    Responsibilities:
    - Keep one descriptor per name (redeclaration merges into it)
    - Resolve parents and mixins given by name
    - Report registry statistics
    """

    def __init__(self, loader: Optional[NameLoader] = None, events: Optional[EventRegistry] = None):
        """Initialize class registry."""
        self._classes: Dict[str, ClassDescriptor] = {}
        self._loaded: Dict[str, ClassDescriptor] = {}
        self.loader: NameLoader = loader if loader is not None else ImportLoader()
        self.events: EventRegistry = events if events is not None else EventRegistry()

        self.logger = logger.bind(registry_id="class_registry")
        self._last_registration_time: Optional[datetime] = None

    def declare(self, name: str, parent: Any = None) -> ClassDescriptor:
        """
        Declare a class, creating it on first declaration.

        Redeclaring a registered name returns the existing descriptor, so a
        class definition can be evaluated again: identical methods are
        accepted, new members merge in, conflicting methods are rejected.

        Args:
            name: Fully-qualified class name
            parent: Parent class, parent class name, or None

        Returns:
            ClassDescriptor: The class to define members on
        """
        if name is None:
            raise ClassNameError("must provide a class name!")
        if not isinstance(name, str):
            raise ClassNameError("class name should be a string!", value=name)

        existing = self._classes.get(name)
        if existing is None:
            klass = ClassDescriptor(name, parent, registry=self, events=self.events)
            self.register(name, klass)
            return klass

        if parent is not None:
            if isinstance(parent, str):
                parent = self.get(parent)
            if parent is not existing.parent():
                raise DuplicateDefinitionError(
                    f"You are defining a version of class {name} which conflicts with a "
                    "previously-defined version. (The parent class is different.)",
                    class_name=name)

        existing._redeclare()
        self.logger.debug("Class redeclared", class_name=name)
        return existing

    def register(self, name: str, klass: ClassDescriptor) -> None:
        """
        Register a class under its own name.

        Args:
            name: Class name; must match the descriptor's name
            klass: Class descriptor to register
        """
        if not isinstance(name, str):
            raise BadNameError("Expected class name to be a string.", value=name)
        if not is_class(klass):
            raise TypeError("Trying to register class that was not correctly formed.")
        if name != klass.name():
            raise MismatchedNameError(
                "Trying to register a class with a name other than its assigned name.",
                class_name=name)
        registered = self._classes.get(name)
        if registered is not None and registered is not klass:
            raise DuplicateClassError(
                f"A class with the name '{name}' has already been registered.", class_name=name)

        self._classes[name] = klass
        self._last_registration_time = datetime.now(timezone.utc)
        self.logger.info("Class registered", class_name=name,
                         parent=klass.parent().name() if klass.parent() else None)

    def get(self, name: str) -> ClassDescriptor:
        """
        Find a class by name, loading it if necessary.

        Lookup Flow:
        1. Registered classes
        2. Classes already resolved through the loader
        3. NameLoader → validate → cache

        Raises:
            LoadError: The loader could not find the name
            KindMismatchError: The name resolved to something that is not a class
        """
        if not isinstance(name, str):
            raise BadNameError("get() expected string as first argument.", value=name)

        klass = self._classes.get(name)
        if klass is not None:
            return klass
        klass = self._loaded.get(name)
        if klass is not None:
            self.logger.debug("Loader cache hit", class_name=name)
            return klass
        return self._load_class(name)

    def _load_class(self, name: str) -> ClassDescriptor:
        value, ok = self.loader.load(name)
        if not ok:
            raise LoadError(f"Cannot load class {name}", class_name=name)

        # Importing a module usually registers the class as a side effect.
        if isinstance(value, ModuleType):
            value = self._classes.get(name, value)
        if not is_class(value):
            raise KindMismatchError(f"Loaded {name} but it is not a class", name=name, expected_kind="class")

        if value.name() != name:
            self.events.notify(EventType.CLASS_REQUIRE_NAME_MISMATCH, value.name(), name)
            self.logger.warning("Class loaded under mismatched name",
                                actual_name=value.name(), requested_name=name)
        self._loaded[name] = value
        self.logger.info("Class loaded", class_name=name)
        return value

    def is_registered(self, name: str) -> bool:
        """Check if a class name is registered."""
        return name in self._classes

    def names(self) -> List[str]:
        """Get list of all registered class names."""
        return list(self._classes.keys())

    def deregister(self, name: str) -> None:
        """
        Remove a class from the registry. Mainly useful for testing.

        Raises:
            NotRegisteredError: No class is registered under the name
        """
        if not isinstance(name, str):
            raise BadNameError("deregister() expected string as first argument", value=name)
        if name not in self._classes:
            raise NotRegisteredError(
                f"Cannot deregister class '{name}' because it has not been registered", class_name=name)
        del self._classes[name]
        self._loaded.pop(name, None)
        self.logger.info("Class deregistered", class_name=name)

    def deregister_all(self) -> None:
        """Empty the registry and the loader cache. Mainly useful for testing."""
        self._classes.clear()
        self._loaded.clear()
        self.logger.info("All classes deregistered")

    def stats(self) -> RegistryStats:
        """Get registry statistics."""
        return RegistryStats(
            total_classes=len(self._classes),
            class_names=sorted(self._classes),
            loaded_names=sorted(self._loaded),
            abstract_classes=sorted(name for name, klass in self._classes.items() if klass.abstract()),
            last_registration_time=(self._last_registration_time.isoformat()
                                    if self._last_registration_time else None),
        )
