"""
Module Namespace System
Flow: create() → declare members → first access resolves and caches → iteration forces resolution

Modules declare the classes, submodules and functions they contain without
loading them. A declared member is loaded the first time it is accessed and
cached from then on, which keeps large modules cheap to import.
"""

import re
from types import ModuleType
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pyclassic.config.settings import get_settings

from .logging import get_logger
from .class_base import is_class, is_function
from .class_registry import ClassRegistry
from .events import EventRegistry, EventType
from .exceptions import (
    BadNameError,
    DuplicateDeclarationError,
    KindMismatchError,
    LoadError,
    NamingConflictError,
    NamingConventionError,
    NotRegisteredError,
    UnknownMemberError,
)
from .loader import NameLoader

logger = get_logger(__name__)

CLASS_NAME_PATTERN = re.compile(r"^[A-Z][A-Za-z0-9]*$")
MODULE_NAME_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*$")

SUBMODULE = "submodule"
CLASS = "class"
FUNCTION = "function"

_DECLARE_EVENTS = {
    SUBMODULE: EventType.MODULE_DECLARE_SUBMODULE,
    CLASS: EventType.MODULE_DECLARE_CLASS,
    FUNCTION: EventType.MODULE_DECLARE_FUNCTION,
}


class NamespaceMembers:
    """
    Lazy, restartable sequence of (name, value) pairs for one member category.

    Each iteration walks the names known at the time it starts (declared
    members, plus assigned functions) and resolves every member as it is
    consumed.
    """

    def __init__(self, namespace: "ModuleNamespace", kind: str):
        self._namespace = namespace
        self._kind = kind

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        names = self._namespace._member_names(self._kind)
        for name in names:
            yield name, getattr(self._namespace, name)

    def __len__(self) -> int:
        return len(self._namespace._member_names(self._kind))

    def __repr__(self) -> str:
        return f"<{self._kind} members of {self._namespace.name()}>"


class ModuleNamespace:
    """
    A named container of lazily-resolved classes, submodules and functions.

    Access Flow:
    1. Built-in namespace operations (defined on this type)
    2. Cached bindings and plain data
    3. Declared submodule → module registry, then the loader
    4. Declared class → class registry, then the loader
    5. Declared function → the loader
    6. Anything else → UnknownMemberError
    """

    __slots__ = ("_name", "_submodules", "_classes", "_functions", "_assigned", "_cache", "_registry", "_logger")

    def __init__(self, name: str, registry: "ModuleRegistry"):
        registry.events.notify(EventType.MODULE_INIT, name)
        init = object.__setattr__
        init(self, "_name", name)
        init(self, "_submodules", {})
        init(self, "_classes", {})
        init(self, "_functions", {})
        init(self, "_assigned", {})
        init(self, "_cache", {})
        init(self, "_registry", registry)
        init(self, "_logger", logger.bind(module_name=name))

    def name(self) -> str:
        """Return this module's fully-qualified name."""
        return self._name

    def _declared(self, kind: str) -> Dict[str, bool]:
        if kind == SUBMODULE:
            return self._submodules
        if kind == CLASS:
            return self._classes
        return self._functions

    def _member_names(self, kind: str) -> List[str]:
        names = list(self._declared(kind))
        if kind == FUNCTION:
            names.extend(name for name in self._assigned if name not in self._functions)
        return names

    # Declarations

    def declare_submodule(self, name: str) -> None:
        """Declare that this module contains a submodule with the given name."""
        self._declare(name, SUBMODULE)

    def declare_class(self, name: str) -> None:
        """Declare that this module contains a class with the given name."""
        self._declare(name, CLASS)

    def declare_function(self, name: str) -> None:
        """Declare that this module contains a function with the given name."""
        self._declare(name, FUNCTION)

    def _declare(self, name: str, kind: str) -> None:
        if name is None:
            raise BadNameError(f"{kind.capitalize()} name is missing.")
        if not isinstance(name, str):
            raise BadNameError(f"{kind.capitalize()} name must be a string.", value=name)
        if name in self._declared(kind):
            raise DuplicateDeclarationError(
                f"Already declared {kind} {name}.", module_name=self._name, member=name)
        for other in (SUBMODULE, CLASS, FUNCTION):
            if other != kind and name in self._declared(other):
                raise DuplicateDeclarationError(
                    f"Cannot declare {kind} {name}: it is already declared as a {other}.",
                    module_name=self._name, member=name)
        if name in self._cache:
            raise DuplicateDeclarationError(
                f"Cannot declare {kind} {name}: a value of that name was already assigned.",
                module_name=self._name, member=name)
        if name in MODULE_BUILTINS:
            raise NamingConflictError(
                f"Member name '{name}' clashes with the general classic module function of the same name.",
                member=name)
        self._registry.check_naming_convention(name, kind)

        self._registry.events.notify(_DECLARE_EVENTS[kind], self, name)
        self._declared(kind)[name] = True
        self._logger.debug("Member declared", kind=kind, member=name)

    # Member access

    def __getattr__(self, key: str) -> Any:
        try:
            cache = object.__getattribute__(self, "_cache")
        except AttributeError:
            raise AttributeError(key) from None
        if key in cache:
            return cache[key]

        full_name = f"{self._name}.{key}"
        if key in self._submodules:
            value = self._registry.resolve_submodule(full_name)
        elif key in self._classes:
            value = self._registry.class_registry.get(full_name)
        elif key in self._functions:
            value = self._registry.resolve_function(full_name, key)
        elif key.startswith("__") and key.endswith("__"):
            raise AttributeError(key)
        else:
            raise UnknownMemberError(
                f"Module {self._name} does not contain '{key}'.", module_name=self._name, member=key)

        cache[key] = value
        self._logger.debug("Member resolved", member=key)
        return value

    def __setattr__(self, key: str, value: Any) -> None:
        if key in MODULE_BUILTINS:
            raise NamingConflictError(
                f"Member name '{key}' clashes with the general classic module function of the same name.",
                member=key)
        # Declared members are protected until they have been resolved.
        if key not in self._cache:
            for kind in (FUNCTION, SUBMODULE, CLASS):
                if key in self._declared(kind):
                    raise NamingConflictError(f"Overwriting {kind} {key} in module {self._name}", member=key)

        # Functions are recorded as module functions; anything else is plain data.
        if is_function(value):
            if key not in self._functions:
                self._assigned[key] = True
        else:
            self._assigned.pop(key, None)
        self._cache[key] = value

    # Iteration

    def submodules(self) -> NamespaceMembers:
        """Iterate over (name, submodule) pairs."""
        return NamespaceMembers(self, SUBMODULE)

    def classes(self) -> NamespaceMembers:
        """Iterate over (name, class) pairs."""
        return NamespaceMembers(self, CLASS)

    def functions(self) -> NamespaceMembers:
        """Iterate over (name, function) pairs."""
        return NamespaceMembers(self, FUNCTION)

    def list(self) -> None:
        """Print the contents of this module; see list_module()."""
        list_module(self)

    def __repr__(self) -> str:
        return f"classic.module<{self._name}>"


MODULE_BUILTINS = frozenset(name for name in vars(ModuleNamespace) if not name.startswith("__"))


class ModuleRegistry:
    """
    Registry of module namespaces by fully-qualified name.

    Registry Architecture:
    - Modules: name → ModuleNamespace (the table a loaded module lands in)
    - ClassRegistry: resolves declared classes
    - NameLoader: resolves declared submodules and functions not yet created

    Core Process:
    1. create() → Validate the name, build the namespace, record it
    2. resolve_submodule() / resolve_function() → On-demand loading for namespaces
    3. deregister() / deregister_all() → Teardown for test isolation
    """

    def __init__(
        self,
        class_registry: ClassRegistry,
        loader: Optional[NameLoader] = None,
        events: Optional[EventRegistry] = None,
        enforce_naming: Optional[bool] = None,
    ):
        """Initialize module registry."""
        self._modules: Dict[str, ModuleNamespace] = {}
        self.class_registry = class_registry
        self.loader: NameLoader = loader if loader is not None else class_registry.loader
        self.events: EventRegistry = events if events is not None else class_registry.events
        if enforce_naming is None:
            enforce_naming = get_settings().ENFORCE_NAMING_CONVENTION
        self.enforce_naming = enforce_naming

        self.logger = logger.bind(registry_id="module_registry")

    def check_naming_convention(self, name: str, kind: str) -> None:
        """
        Validate a member name against the naming convention.

        Classes are UpperCamelCase; modules, submodules and functions are
        lower_case_with_underscores.
        """
        if not self.enforce_naming:
            return
        pattern = CLASS_NAME_PATTERN if kind == CLASS else MODULE_NAME_PATTERN
        if not pattern.match(name):
            style = "UpperCamelCase" if kind == CLASS else "lower_case_with_underscores"
            raise NamingConventionError(f"{kind.capitalize()} name '{name}' should be {style}.",
                                        name=name, kind=kind)

    def create(self, name: str) -> ModuleNamespace:
        """
        Create a module.

        Args:
            name: The full, dotted name of the module

        Returns:
            ModuleNamespace: The new module
        """
        if name is None:
            raise BadNameError("Module name is missing.")
        if not isinstance(name, str):
            raise BadNameError("Expected module name to be a string.", value=name)
        for segment in name.split("."):
            self.check_naming_convention(segment, "module")

        namespace = ModuleNamespace(name, self)
        if name in self._modules:
            self.logger.info("Module replaced", module_name=name)
        self._modules[name] = namespace
        self.logger.info("Module created", module_name=name)
        return namespace

    def get(self, name: str) -> ModuleNamespace:
        """Find a module by name, loading it if necessary."""
        if not isinstance(name, str):
            raise BadNameError("get() expected string as first argument.", value=name)
        namespace = self._modules.get(name)
        if namespace is not None:
            return namespace
        return self.resolve_submodule(name)

    def resolve_submodule(self, full_name: str) -> ModuleNamespace:
        """Resolve a module namespace by name: registered modules first, then the loader."""
        namespace = self._modules.get(full_name)
        if namespace is not None:
            return namespace

        value, ok = self.loader.load(full_name)
        if not ok:
            raise LoadError(f"Cannot load module {full_name}", name=full_name)
        # Importing a module file usually creates the namespace as a side effect.
        if isinstance(value, ModuleType):
            value = self._modules.get(full_name, value)
        if not isinstance(value, ModuleNamespace):
            raise KindMismatchError(f"{full_name} is not a module", name=full_name, expected_kind=SUBMODULE)
        self.logger.info("Module loaded", module_name=full_name)
        return value

    def resolve_function(self, full_name: str, key: str) -> Any:
        """Resolve a module function by name through the loader."""
        value, ok = self.loader.load(full_name)
        if not ok:
            raise LoadError(f"Cannot load function {full_name}", name=full_name)
        # A function may live in a module file of the same name.
        if isinstance(value, ModuleType):
            value = getattr(value, key, None)
        if not callable(value) or is_class(value) or isinstance(value, ModuleNamespace):
            raise KindMismatchError(f"{full_name} is not a function", name=full_name, expected_kind=FUNCTION)
        self.logger.info("Module function loaded", function_name=full_name)
        return value

    def is_registered(self, name: str) -> bool:
        return name in self._modules

    def names(self) -> List[str]:
        return list(self._modules.keys())

    def deregister(self, name: str) -> None:
        """Remove a module from the registry. Mainly useful for testing."""
        if name not in self._modules:
            raise NotRegisteredError(
                f"Cannot deregister module '{name}' because it has not been registered", class_name=name)
        del self._modules[name]
        self.logger.info("Module deregistered", module_name=name)

    def deregister_all(self) -> None:
        self._modules.clear()
        self.logger.info("All modules deregistered")


def is_module(value: Any) -> bool:
    """Check whether a value is a classic module."""
    return isinstance(value, ModuleNamespace)


def format_tree(obj: Any, level: int = 0) -> List[str]:
    """
    Render the contents of a module recursively, one line per entry.

    Resolves every declared member on the way down.
    """
    indent = "|  " * level
    lines = [f"{indent}{obj!r}"]
    if is_module(obj):
        for _, submodule in obj.submodules():
            lines.extend(format_tree(submodule, level + 1))
        for _, klass in obj.classes():
            lines.extend(format_tree(klass, level + 1))
        for name, _ in obj.functions():
            lines.append(f"{'|  ' * (level + 1)}function<{obj.name()}.{name}>")
    return lines


def list_module(obj: Any, level: int = 0) -> None:
    """Print the contents of a module recursively."""
    print("\n".join(format_tree(obj, level)))
