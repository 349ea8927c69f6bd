"""
Classic Object System
Flow: Descriptor → Allocate object → Resolve names through the method table → Optional strict mode

A classic object is a plain record bound to one ClassDescriptor. Everything
it can do comes from that descriptor's merged method table.
"""

from types import MethodType
from typing import Any, Callable, Dict, FrozenSet, Optional

from .logging import get_logger
from .exceptions import NamingConflictError, StrictnessViolationError

logger = get_logger(__name__)

# Operator hooks a class may define. Closed set; the object type dispatches
# each one to the class's method table.
OPERATOR_HOOKS: FrozenSet[str] = frozenset({
    "__add__",
    "__sub__",
    "__mul__",
    "__truediv__",
    "__pow__",
    "__neg__",
    "__eq__",
    "__call__",
    "__str__",
    "__len__",
})

# Catch-all hooks: reads of unresolved names, writes of new names.
GETATTR_HOOK = "__getattr__"
SETATTR_HOOK = "__setattr__"

# Serialization hooks looked up by the serializer.
GETSTATE_HOOK = "__getstate__"
SETSTATE_HOOK = "__setstate__"

RESERVED_HOOKS: FrozenSet[str] = OPERATOR_HOOKS | {GETATTR_HOOK, SETATTR_HOOK, GETSTATE_HOOK, SETSTATE_HOOK}

# Operations available on every classic object. They resolve before anything
# in the method table, so classes may not define methods with these names.
OBJECT_BUILTINS: FrozenSet[str] = frozenset({"get_class", "class_is"})


def _is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


class ClassicObject:
    """
    Instance of a classic class.

    Resolution order for attribute reads:
    1. Object built-ins and operator hooks (defined on this type)
    2. Instance fields
    3. The class's merged method table (bound to the object)
    4. The class's __getattr__ hook, if defined
    5. None, the absence signal (dunder lookups get AttributeError instead)

    Strict objects raise StrictnessViolationError for any name that was not
    resolvable when strict() was called, before any catch-all hook runs.
    """

    __slots__ = ("__klass", "__fields", "__strict_names")

    def __init__(self, klass):
        object.__setattr__(self, "_ClassicObject__klass", klass)
        object.__setattr__(self, "_ClassicObject__fields", {})
        object.__setattr__(self, "_ClassicObject__strict_names", None)

    # Object built-ins

    def get_class(self):
        """Return the class this object was created from."""
        return self.__klass

    def class_is(self, other) -> bool:
        """Check whether this object's class is exactly `other`."""
        return self.__klass is other

    # Name resolution

    def __getattr__(self, name: str) -> Any:
        try:
            klass = object.__getattribute__(self, "_ClassicObject__klass")
            fields = object.__getattribute__(self, "_ClassicObject__fields")
            strict_names = object.__getattribute__(self, "_ClassicObject__strict_names")
        except AttributeError:
            # Object is not initialized yet (e.g. mid-copy).
            raise AttributeError(name) from None

        if name in fields:
            return fields[name]

        if strict_names is not None and name not in strict_names:
            raise StrictnessViolationError(
                f"Strictness violation: cannot access '{name}' on object of type {klass.name()}",
                key=name,
                class_name=klass.name(),
            )

        methods = klass._methods
        method = methods.get(name)
        if method is not None:
            return MethodType(method, self)

        hook = methods.get(GETATTR_HOOK)
        if hook is not None:
            return hook(self, name)

        if _is_dunder(name):
            raise AttributeError(name)
        return None

    def __setattr__(self, name: str, value: Any) -> None:
        klass = self.__klass
        fields = self.__fields
        if name in fields:
            fields[name] = value
            return

        if name in OBJECT_BUILTINS:
            raise NamingConflictError(
                f"Cannot set field '{name}' on object of type {klass.name()}: "
                "it clashes with a method available on all classic objects.",
                class_name=klass.name(),
                member=name,
            )

        strict_names = self.__strict_names
        if strict_names is not None and name not in strict_names:
            raise StrictnessViolationError(
                f"Strictness violation: object of type {klass.name()} was made strict, "
                f"but you are trying to add an attribute called {name} to it.",
                key=name,
                class_name=klass.name(),
            )

        hook = klass._methods.get(SETATTR_HOOK)
        if hook is not None:
            hook(self, name, value)
            return
        fields[name] = value

    def __delattr__(self, name: str) -> None:
        fields = self.__fields
        if name not in fields:
            raise AttributeError(name)
        del fields[name]

    def __dir__(self):
        return sorted(set(self.__fields) | set(self.__klass._methods) | OBJECT_BUILTINS)

    # Operator hooks

    def __hook(self, name: str) -> Optional[Callable[..., Any]]:
        return self.__klass._methods.get(name)

    def __binary(self, name: str, other: Any) -> Any:
        hook = self.__hook(name)
        if hook is None:
            return NotImplemented
        return hook(self, other)

    def __add__(self, other):
        return self.__binary("__add__", other)

    def __sub__(self, other):
        return self.__binary("__sub__", other)

    def __mul__(self, other):
        return self.__binary("__mul__", other)

    def __truediv__(self, other):
        return self.__binary("__truediv__", other)

    def __pow__(self, other):
        return self.__binary("__pow__", other)

    def __neg__(self):
        hook = self.__hook("__neg__")
        if hook is None:
            raise TypeError(f"bad operand type for unary -: '{self.__klass.name()}'")
        return hook(self)

    def __eq__(self, other):
        hook = self.__hook("__eq__")
        if hook is None:
            return self is other
        return hook(self, other)

    __hash__ = object.__hash__

    def __call__(self, *args, **kwargs):
        hook = self.__hook("__call__")
        if hook is None:
            raise TypeError(f"object of class {self.__klass.name()} is not callable")
        return hook(self, *args, **kwargs)

    def __len__(self):
        hook = self.__hook("__len__")
        if hook is None:
            raise TypeError(f"object of class {self.__klass.name()} has no len()")
        return hook(self)

    def __bool__(self):
        hook = self.__hook("__len__")
        if hook is None:
            return True
        return bool(hook(self))

    def __str__(self):
        hook = self.__hook("__str__")
        if hook is None:
            return repr(self)
        return hook(self)

    def __repr__(self):
        return f"[object of class {self.__klass.name()}]"


# Raw access, bypassing hooks and strictness. For use inside __getattr__ /
# __setattr__ hooks and by serializers.

def raw_get(obj: ClassicObject, name: str, default: Any = None) -> Any:
    return object.__getattribute__(obj, "_ClassicObject__fields").get(name, default)


def raw_set(obj: ClassicObject, name: str, value: Any) -> None:
    object.__getattribute__(obj, "_ClassicObject__fields")[name] = value


def fields_of(obj: ClassicObject) -> Dict[str, Any]:
    """Get a copy of the object's instance fields."""
    return dict(object.__getattribute__(obj, "_ClassicObject__fields"))


def class_name_of(obj: ClassicObject) -> str:
    """Get the name of the class an object was created from."""
    return object.__getattribute__(obj, "_ClassicObject__klass").name()


def find_hook(klass, name: str) -> Optional[Callable[..., Any]]:
    """Look up a hook (e.g. __getstate__) in a class's method table."""
    return klass._methods.get(name)


def is_object(value: Any) -> bool:
    """Check whether a value is an instance of a classic class."""
    return isinstance(value, ClassicObject)


def create_object(klass) -> ClassicObject:
    """Allocate an object bound to `klass` without running any constructor."""
    return ClassicObject(klass)


def strict(obj: ClassicObject) -> None:
    """
    Make an object strict.

    Any later read or write of a name that is not resolvable right now
    raises StrictnessViolationError. Other objects of the same class are
    unaffected.

    Args:
        obj: An instance of a classic class
    """
    if not isinstance(obj, ClassicObject):
        raise TypeError("strict() only works on classic objects")
    klass = object.__getattribute__(obj, "_ClassicObject__klass")
    fields = object.__getattribute__(obj, "_ClassicObject__fields")
    names = frozenset(fields) | frozenset(klass._methods) | OBJECT_BUILTINS
    object.__setattr__(obj, "_ClassicObject__strict_names", names)
    logger.debug("Object made strict", class_name=klass.name(), names=len(names))


def is_strict(obj: ClassicObject) -> bool:
    return object.__getattribute__(obj, "_ClassicObject__strict_names") is not None
