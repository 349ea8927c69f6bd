"""
Class Descriptor System for pyclassic
Flow: Class declaration → Inheritance copy-down → Member definition → Instantiation

A ClassDescriptor is the runtime record of one named class: its merged
method table, required and final method sets, class attributes, static
methods and optional parent. Parent methods are copied into the child when
the child is created; later changes to the parent never reach the child.
"""

import functools
import hashlib
from types import BuiltinFunctionType, CodeType, FunctionType, MethodType
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Set

from pyclassic.config.settings import get_settings

from .logging import get_logger
from .events import EventType
from .exceptions import (
    AbstractInstantiationError,
    BadNameError,
    ClassNameError,
    ConstructorNamingError,
    FinalityViolationError,
    ImmutableViewError,
    MethodConflictError,
    NamingConflictError,
    NoParentError,
    NoSuchSuperMethodError,
    ParentTypeError,
    UnknownMemberError,
    UnknownMethodError,
    DuplicateDefinitionError,
)
from .instance import OBJECT_BUILTINS, ClassicObject, create_object, find_hook

logger = get_logger(__name__)

# Common misspellings of the constructor name.
CONSTRUCTOR_TYPOS: FrozenSet[str] = frozenset({"init", "_init", "__init", "_init_", "__init_", "_init__"})

# Name of the static-method namespace; forbidden as a member name.
STATIC = "static"


def is_function(value: Any) -> bool:
    """Check whether a value is a plain function (as opposed to data or a callable object)."""
    return isinstance(value, (FunctionType, BuiltinFunctionType, MethodType, functools.partial))


def _code_signature(code: CodeType) -> tuple:
    consts = []
    for const in code.co_consts:
        if isinstance(const, CodeType):
            consts.append(_code_signature(const))
        elif isinstance(const, frozenset):
            consts.append(tuple(sorted(repr(c) for c in const)))
        else:
            consts.append(const)
    return (code.co_code, tuple(consts), code.co_names, code.co_varnames,
            code.co_freevars, code.co_cellvars)


def same_body(first: Callable[..., Any], second: Callable[..., Any]) -> bool:
    """
    Compare two functions by their compiled bodies.

    Functions compiled from the same source compare equal even when they are
    distinct objects, which is what re-evaluating a class definition produces.
    """
    if first is second:
        return True
    first_code = getattr(first, "__code__", None)
    second_code = getattr(second, "__code__", None)
    if first_code is None or second_code is None:
        return first == second
    return _code_signature(first_code) == _code_signature(second_code)


def _fingerprint(value: Any) -> str:
    code = getattr(value, "__code__", None)
    if code is not None:
        return repr(_code_signature(code))
    return repr(value)


class StaticMethods:
    """
    Namespace for defining a class's static methods.

    Usage:
        Klass.static.helper = lambda x: x + 1

        @Klass.static
        def other(x):
            ...
    """

    __slots__ = ("__klass",)

    def __init__(self, klass: "ClassDescriptor"):
        object.__setattr__(self, "_StaticMethods__klass", klass)

    def __call__(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        self.__klass.define_static_method(fn.__name__, fn)
        return fn

    def __setattr__(self, name: str, fn: Callable[..., Any]) -> None:
        self.__klass.define_static_method(name, fn)

    def __getattr__(self, name: str) -> Callable[..., Any]:
        statics = self.__klass._statics
        if name in statics:
            return statics[name]
        raise UnknownMemberError(
            f"{self.__klass.name()} has no static method '{name}'.", member=name)

    def __contains__(self, name: str) -> bool:
        return name in self.__klass._statics

    def __iter__(self):
        return iter(dict(self.__klass._statics))

    def __repr__(self) -> str:
        return f"classic.static<{self.__klass.name()}>"


class SuperView:
    """
    Read-only view over a parent class's methods.

    Every name missing from the parent's method table, dunders included,
    raises NoSuchSuperMethodError.

    Each entry is the parent's plain function, so the instance has to be
    passed explicitly:

        Child.super().get_x(self)
    """

    __slots__ = ("__parent", "__methods")

    def __init__(self, parent: "ClassDescriptor"):
        object.__setattr__(self, "_SuperView__parent", parent)
        object.__setattr__(self, "_SuperView__methods", dict(parent._methods))

    def __getattribute__(self, name: str) -> Any:
        methods = object.__getattribute__(self, "_SuperView__methods")
        if name in methods:
            return methods[name]
        if name == "__class__":
            return object.__getattribute__(self, name)
        parent = object.__getattribute__(self, "_SuperView__parent")
        raise NoSuchSuperMethodError(
            f"Trying to call method '{name}' via super(), but the parent class "
            f"({parent.name()}) has no such method.",
            parent_name=parent.name(),
            method=name,
        )

    def __setattr__(self, name: str, value: Any) -> None:
        raise ImmutableViewError("Trying to assign to a value via super(), but this is not allowed!")

    def __delattr__(self, name: str) -> None:
        raise ImmutableViewError("Trying to delete a value via super(), but this is not allowed!")

    def __contains__(self, name: str) -> bool:
        return name in object.__getattribute__(self, "_SuperView__methods")

    def __repr__(self) -> str:
        parent = object.__getattribute__(self, "_SuperView__parent")
        return f"classic.super<{parent.name()}>"


class ClassDescriptor:
    """
    Runtime record of a classic class.

    Class Lifecycle:
    1. __init__() → Name/parent validation and inheritance copy-down
    2. define_method() / set_class_attribute() / static → Class body definition
    3. must_have() / final() / include() → Structural constraints and mixins
    4. instantiate() → Required-method check, allocation, constructor call

    Member Kinds:
    - Methods: shared by all instances, bound on access through an object
    - Class attributes: non-function values read as Klass.name
    - Static methods: functions without an implicit instance argument
    A name is at most one of {class attribute, static method, built-in}.

    Error Handling:
    Every check runs before any write, so a failed definition leaves the
    descriptor unchanged.
    """

    __slots__ = (
        "_name",
        "_parent",
        "_methods",
        "_own",
        "_previous",
        "_required",
        "_final",
        "_attributes",
        "_statics",
        "_static_view",
        "_mixins",
        "_registry",
        "_events",
        "_logger",
    )

    def __init__(self, name: str, parent: Any = None, *, registry=None, events=None):
        """Create a class, copying down everything inherited from `parent`."""
        if name is None:
            raise ClassNameError("Missing option when creating class: 'name'.")
        if not isinstance(name, str):
            raise ClassNameError("Expected class name to be a string.", value=name)

        # Parent classes may be given directly or by registered name.
        if isinstance(parent, str):
            if registry is None:
                raise ParentTypeError(
                    f"Parent '{parent}' was given by name, but no class registry is available to resolve it.",
                    parent=parent)
            parent = registry.get(parent)
        if parent is not None and not isinstance(parent, ClassDescriptor):
            raise ParentTypeError("expected parent to be either a string or a classic class", parent=parent)

        if events is None and registry is not None:
            events = registry.events

        methods: Dict[str, Callable[..., Any]] = {}
        required: List[str] = []
        final: Set[str] = set()
        if parent is not None:
            methods.update(parent._methods)
            required.extend(parent._required)
            final.update(parent._final)

        init = object.__setattr__
        init(self, "_name", name)
        init(self, "_parent", parent)
        init(self, "_methods", methods)
        init(self, "_own", set())
        init(self, "_previous", None)
        init(self, "_required", required)
        init(self, "_final", final)
        init(self, "_attributes", {})
        init(self, "_statics", {})
        init(self, "_static_view", StaticMethods(self))
        init(self, "_mixins", [])
        init(self, "_registry", registry)
        init(self, "_events", events)
        init(self, "_logger", logger.bind(class_name=name))

        self._notify(EventType.CLASS_INIT, name)
        self._logger.debug("Class initialized", parent=parent.name() if parent else None,
                           inherited_methods=len(methods))

    def _notify(self, event: EventType, *args: Any) -> None:
        if self._events is not None:
            self._events.notify(event, *args)

    # Identity and hierarchy

    def name(self) -> str:
        """Return the fully-qualified name of the class."""
        return self._name

    def parent(self) -> Optional["ClassDescriptor"]:
        """Return the parent class, or None."""
        return self._parent

    def is_class_of(self, obj: Any) -> bool:
        """Check whether `obj` is an instance of exactly this class (no inheritance walk)."""
        return isinstance(obj, ClassicObject) and obj.get_class() is self

    def is_subclass_of(self, klass: "ClassDescriptor") -> bool:
        """Check whether `klass` is this class or one of its ancestors."""
        current = self
        while current is not None:
            if current is klass:
                return True
            current = current._parent
        return False

    def super(self) -> SuperView:
        """
        Return a read-only view of the parent's methods.

        Parent methods are called with the instance passed explicitly:

            Child.super().method(self, *args)

        Raises:
            NoParentError: The class has no parent
        """
        if self._parent is None:
            raise NoParentError(f"super() called, but {self._name} has no parent!", class_name=self._name)
        return SuperView(self._parent)

    # Member definition

    def define_method(self, name: str, fn: Callable[..., Any]) -> None:
        """
        Define (or override an inherited) instance method.

        Definition Flow:
        1. Reject constructor typos and object built-in names
        2. Redeclared class: identical re-definition of an earlier method → no-op
        3. Reject methods marked final here or in the parent
        4. Redeclared class: reject a differently-implemented earlier method
        5. Notify observers, then install

        Within a single declaration an own method may simply be overridden.

        Args:
            name: Method name
            fn: Function taking the instance as its first argument
        """
        if not isinstance(name, str):
            raise BadNameError("define_method() expects a string method name.", value=name)
        if not is_function(fn):
            raise TypeError(f"define_method() expects a function for '{name}', got {type(fn).__name__}.")

        constructor = get_settings().CONSTRUCTOR_NAME
        if name in CONSTRUCTOR_TYPOS and name != constructor:
            raise ConstructorNamingError(f"did you mean {constructor}?", class_name=self._name, member=name)
        if name in OBJECT_BUILTINS:
            raise NamingConflictError(
                f"A naming conflict was detected in {self._name}: '{name}' is available on all "
                "classic objects and cannot be redefined.",
                class_name=self._name, member=name)

        previous = self._previous.get(name) if self._previous is not None else None
        if previous is not None and same_body(previous, fn):
            self._logger.debug("Identical method redefinition ignored", method=name)
            return

        parent = self._parent
        if name in self._final or (parent is not None and parent.method_is_final(name)):
            raise FinalityViolationError(
                f"Attempted to define method '{name}' in class '{self._name}', but '{name}' is marked as final.",
                class_name=self._name, member=name)

        if previous is not None:
            raise DuplicateDefinitionError(
                f"You are defining a version of class {self._name} which conflicts with a "
                f"previously-defined version. (Method {name} is defined differently in the two versions.)",
                class_name=self._name, member=name)

        self._notify(EventType.CLASS_DEFINE_METHOD, self, name, fn)
        self._methods[name] = fn
        self._own.add(name)
        self._logger.debug("Method defined", method=name)

    def _redeclare(self) -> None:
        """
        Start a new declaration of this class.

        Own methods defined so far must come back with identical bodies;
        methods added from here on are new and merge in.
        """
        object.__setattr__(self, "_previous", {name: self._methods[name] for name in self._own})
        self._logger.debug("Class redeclared", methods=len(self._own))

    def method(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        """Decorator form of define_method(), using the function's name."""
        self.define_method(fn.__name__, fn)
        return fn

    def set_class_attribute(self, name: str, value: Any) -> None:
        """Set a class attribute, shared by every instance of this class."""
        if not isinstance(name, str):
            raise BadNameError("set_class_attribute() expects a string attribute name.", value=name)
        if name == STATIC:
            raise NamingConflictError(
                f"Defining a class attribute called 'static' in {self._name} is forbidden "
                "because it causes ambiguity.", class_name=self._name, member=name)
        if name in self._statics:
            raise NamingConflictError(
                f"A naming conflict was detected in {self._name}: you are trying to set a class "
                f"attribute '{name}' that has the same name as an existing static method.",
                class_name=self._name, member=name)
        if name in CLASS_BUILTINS:
            raise NamingConflictError(
                f"A naming conflict was detected in {self._name}: you are trying to set a class "
                f"attribute '{name}' that has the same name as one of the methods that are "
                "available on all class objects.", class_name=self._name, member=name)

        self._notify(EventType.CLASS_SET_ATTRIBUTE, self, name, value)
        self._attributes[name] = value

    def define_static_method(self, name: str, fn: Callable[..., Any]) -> None:
        """Define a static method: called as Klass.name(...) with no implicit argument."""
        if not isinstance(name, str):
            raise BadNameError("define_static_method() expects a string method name.", value=name)
        if name == STATIC:
            raise NamingConflictError(
                f"Defining a static method called 'static' in {self._name} is forbidden "
                "because it causes ambiguity.", class_name=self._name, member=name)
        if name in self._attributes:
            raise NamingConflictError(
                f"A naming conflict was detected in {self._name}: you are trying to define a static "
                f"method '{name}' that has the same name as an existing class attribute.",
                class_name=self._name, member=name)
        if name in CLASS_BUILTINS:
            raise NamingConflictError(
                f"A naming conflict was detected in {self._name}: you are trying to define a static "
                f"method '{name}' that has the same name as one of the methods that are available "
                "on all class objects.", class_name=self._name, member=name)
        if not callable(fn):
            raise TypeError(f"Static method '{name}' must be callable.")

        self._statics[name] = fn
        self._logger.debug("Static method defined", method=name)

    @property
    def static(self) -> StaticMethods:
        """Namespace for defining and reading static methods."""
        return self._static_view

    def __setattr__(self, name: str, value: Any) -> None:
        # Functions become instance methods; anything else is a class attribute.
        if is_function(value):
            self.define_method(name, value)
        else:
            self.set_class_attribute(name, value)

    def __getattr__(self, name: str) -> Any:
        try:
            statics = object.__getattribute__(self, "_statics")
            attributes = object.__getattribute__(self, "_attributes")
        except AttributeError:
            raise AttributeError(name) from None
        if name in statics:
            return statics[name]
        if name in attributes:
            return attributes[name]
        if name.startswith("__") and name.endswith("__"):
            raise AttributeError(name)
        raise UnknownMemberError(
            f"{name} is neither a static method, a class attribute, nor a global class method.",
            member=name)

    # Structural constraints

    def must_have(self, method_name: str) -> None:
        """
        Require a method to be implemented before this class (or any subclass,
        or any class including it) can be instantiated.
        """
        if not isinstance(method_name, str):
            raise BadNameError(
                f"must_have() expects a string argument, but got {type(method_name).__name__}.",
                value=method_name)
        if method_name not in self._required:
            self._required.append(method_name)

    def final(self, method_name: str) -> None:
        """Mark an already-defined method as final for this class, its subclasses and its includers."""
        if not isinstance(method_name, str):
            raise BadNameError(
                f"final() expects a string argument, but got {type(method_name).__name__}.",
                value=method_name)
        if method_name not in self._methods:
            raise UnknownMethodError(
                f"attempted to mark method '{method_name}' as final, but no method of that "
                "name has been declared yet.", class_name=self._name, member=method_name)
        self._final.add(method_name)

    def method_is_final(self, method_name: str) -> bool:
        """Check whether a method name is marked final."""
        if not isinstance(method_name, str):
            raise BadNameError("method_is_final() expects a string argument.", value=method_name)
        return method_name in self._final

    def include(self, klass: Any) -> None:
        """
        Copy a mixin's methods and constraints into this class.

        Mixin Flow:
        1. Resolve the mixin (class or registered name)
        2. Fail on any method name already present here (first writer wins)
        3. Copy methods; union required and final sets

        Including a class does not make this class a subclass of it.
        """
        if isinstance(klass, str):
            if self._registry is None:
                raise TypeError(f"Cannot include '{klass}' by name without a class registry.")
            klass = self._registry.get(klass)
        if not isinstance(klass, ClassDescriptor):
            raise TypeError("invalid class include")
        if any(mixin is klass for mixin in self._mixins):
            self._logger.debug("Mixin already included", mixin=klass.name())
            return

        for name in klass._methods:
            if name in self._methods:
                raise MethodConflictError(
                    f"method conflict: trying to include {name}() from {klass.name()}, "
                    "but a method of that name already exists.",
                    class_name=self._name, member=name)

        self._methods.update(klass._methods)
        for name in klass._required:
            if name not in self._required:
                self._required.append(name)
        self._final.update(klass._final)
        self._mixins.append(klass)
        self._logger.debug("Mixin included", mixin=klass.name(), methods=len(klass._methods))

    # Reflection

    def methods(self) -> Dict[str, Callable[..., Any]]:
        """Get the public methods (no leading underscore) of this class."""
        return {name: fn for name, fn in self._methods.items() if not name.startswith("_")}

    def all_methods(self) -> Dict[str, Callable[..., Any]]:
        """Get every method of this class, including private ones and hooks."""
        return dict(self._methods)

    def class_attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    def static_methods(self) -> Dict[str, Callable[..., Any]]:
        return dict(self._statics)

    def required_methods(self) -> List[str]:
        return list(self._required)

    def final_methods(self) -> FrozenSet[str]:
        return frozenset(self._final)

    def hook(self, name: str) -> Optional[Callable[..., Any]]:
        """Look up a hook method (e.g. __getstate__) in this class's method table."""
        return find_hook(self, name)

    def abstract(self) -> bool:
        """Check whether any required method is still unimplemented."""
        return any(name not in self._methods for name in self._required)

    def hash(self) -> str:
        """
        Get a digest that corresponds to the content of the class definition.

        Functions contribute their compiled bodies, so two definitions built
        from the same source hash equally.
        """
        digest = hashlib.sha256(self._name.encode("utf-8"))
        for name in sorted(self._methods):
            digest.update(f"method:{name}:{_fingerprint(self._methods[name])}".encode("utf-8"))
        for name in sorted(self._statics):
            digest.update(f"static:{name}:{_fingerprint(self._statics[name])}".encode("utf-8"))
        for name in sorted(self._attributes):
            digest.update(f"attribute:{name}:{self._attributes[name]!r}".encode("utf-8"))
        return digest.hexdigest()

    # Instantiation

    def instantiate(self, *args: Any, **kwargs: Any) -> ClassicObject:
        """
        Create an instance of this class.

        Instantiation Flow:
        1. Verify every required method is implemented
        2. Allocate an object bound to this class
        3. Call the constructor, if defined, with the object and the arguments
        4. Return the object

        Raises:
            AbstractInstantiationError: A required method is missing
        """
        for method_name in self._required:
            if method_name not in self._methods:
                raise AbstractInstantiationError(
                    f"You cannot instantiate {self._name} since {method_name}() is marked as "
                    "*must_have*, yet has not been implemented.",
                    class_name=self._name, method=method_name)

        obj = create_object(self)
        constructor = self._methods.get(get_settings().CONSTRUCTOR_NAME)
        if constructor is not None:
            constructor(obj, *args, **kwargs)
        return obj

    def __call__(self, *args: Any, **kwargs: Any) -> ClassicObject:
        return self.instantiate(*args, **kwargs)

    def __repr__(self) -> str:
        return f"classic.class<{self._name}>"


# Names every class object answers to; class attributes and static methods
# may not reuse them.
CLASS_BUILTINS: FrozenSet[str] = frozenset(
    name for name in vars(ClassDescriptor) if not name.startswith("__")
) | {STATIC}


def is_class(value: Any) -> bool:
    """Check whether a value is a classic class."""
    return isinstance(value, ClassDescriptor)
