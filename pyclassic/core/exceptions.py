"""
Exception classes for pyclassic
Flow: Check fails → Classify → Debug log → Raise to immediate caller

Every operation checks before it writes, so a raised error never leaves a
registry, descriptor or namespace half-updated.
"""

from typing import Any, Dict, Optional

from .logging import get_logger

logger = get_logger(__name__)


class ClassicError(Exception):
    """
    Base exception class for pyclassic.

    Exception Handling Flow:
    1. error_occurred() → Capture error details and context
    2. classify_error() → Stable error code per subclass
    3. log_error() → Record the error at debug level
    4. propagate() → Raised synchronously to the immediate caller

    Features:
    - Structured error context
    - Stable error codes
    - Detailed error messages
    """

    error_code_default = "CLASSIC_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize base exception."""
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.error_code_default
        self.details = details or {}

        # Log the exception
        logger.debug(
            "pyclassic exception raised",
            error_type=self.__class__.__name__,
            message=message,
            error_code=self.error_code,
            details=self.details,
        )

    def __str__(self) -> str:
        return self.message


# Naming errors

class ClassNameError(ClassicError, TypeError):
    """Class name is missing or not a string."""

    error_code_default = "CLASS_NAME_ERROR"

    def __init__(self, message: str, value: Any = None):
        super().__init__(message, details={"invalid_value": repr(value)})
        self.value = value


class BadNameError(ClassicError, TypeError):
    """A name argument (registry key, method name, member name) is not a string."""

    error_code_default = "BAD_NAME"

    def __init__(self, message: str, value: Any = None):
        super().__init__(message, details={"invalid_value": repr(value)})
        self.value = value


class NamingConventionError(ClassicError, ValueError):
    """
    Naming convention violation in the module system.

    Classes are UpperCamelCase; modules, submodules and functions are
    lower_case_with_underscores.
    """

    error_code_default = "NAMING_CONVENTION"

    def __init__(self, message: str, name: str, kind: str):
        super().__init__(message, details={"name": name, "kind": kind})
        self.name = name
        self.kind = kind


# Inheritance errors

class ParentTypeError(ClassicError, TypeError):
    """Parent is neither a class, a registered class name, nor omitted."""

    error_code_default = "PARENT_TYPE"

    def __init__(self, message: str, parent: Any = None):
        super().__init__(message, details={"parent_type": type(parent).__name__})
        self.parent = parent


class UnknownClassError(ClassicError, LookupError):
    """
    A class could not be found.

    Lookup Flow:
    1. Registry lookup misses
    2. Name loader is consulted
    3. Loader fails → raise with the requested name
    """

    error_code_default = "UNKNOWN_CLASS"

    def __init__(self, message: str, class_name: Optional[str] = None, error_code: Optional[str] = None):
        details = {}
        if class_name:
            details["class_name"] = class_name
        super().__init__(message, error_code=error_code, details=details)
        self.class_name = class_name


class LoadError(UnknownClassError):
    """The name loader failed, or produced something unusable."""

    error_code_default = "LOAD_ERROR"

    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        class_name: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message, class_name=class_name, error_code=error_code)
        self.name = name or class_name
        if self.name:
            self.details["name"] = self.name


class KindMismatchError(LoadError):
    """A resolved value does not match the category it was declared as."""

    error_code_default = "KIND_MISMATCH"

    def __init__(self, message: str, name: str, expected_kind: str):
        super().__init__(message, name=name)
        self.details["expected_kind"] = expected_kind
        self.expected_kind = expected_kind


class NoParentError(ClassicError, LookupError):
    """super() was requested on a class without a parent."""

    error_code_default = "NO_PARENT"

    def __init__(self, message: str, class_name: str):
        super().__init__(message, details={"class_name": class_name})
        self.class_name = class_name


# Class definition errors

class ClassDefinitionError(ClassicError):
    """
    Base for errors raised while defining a class body.

    Definition Error Flow:
    1. Member definition requested
    2. Structural constraint check fails
    3. Nothing is written to the descriptor
    4. Caller fixes the definition
    """

    error_code_default = "CLASS_DEFINITION_ERROR"

    def __init__(self, message: str, class_name: Optional[str] = None, member: Optional[str] = None):
        details = {}
        if class_name:
            details["class_name"] = class_name
        if member:
            details["member"] = member
        super().__init__(message, details=details)
        self.class_name = class_name
        self.member = member


class NamingConflictError(ClassDefinitionError):
    """A name is claimed by two kinds of member (attribute, static, built-in)."""

    error_code_default = "NAMING_CONFLICT"


class ConstructorNamingError(ClassDefinitionError):
    """A method name looks like a misspelled constructor."""

    error_code_default = "CONSTRUCTOR_NAMING"


class FinalityViolationError(ClassDefinitionError):
    """Attempt to redefine a method marked final."""

    error_code_default = "FINALITY_VIOLATION"


class UnknownMethodError(ClassDefinitionError):
    """final() was called for a method that has not been defined."""

    error_code_default = "UNKNOWN_METHOD"


class MethodConflictError(ClassDefinitionError):
    """A mixin provides a method that already exists in the including class."""

    error_code_default = "METHOD_CONFLICT"


class DuplicateDefinitionError(ClassDefinitionError):
    """A redeclared class conflicts with its previously-defined version."""

    error_code_default = "DUPLICATE_DEFINITION"


# Object errors

class AbstractInstantiationError(ClassicError, TypeError):
    """Instantiation of a class with an unimplemented required method."""

    error_code_default = "ABSTRACT_INSTANTIATION"

    def __init__(self, message: str, class_name: str, method: str):
        super().__init__(message, details={"class_name": class_name, "method": method})
        self.class_name = class_name
        self.method = method


class StrictnessViolationError(ClassicError, AttributeError):
    """Read or write of a name not resolvable when the object was made strict."""

    error_code_default = "STRICTNESS_VIOLATION"

    def __init__(self, message: str, key: str, class_name: str):
        super().__init__(message, details={"key": key, "class_name": class_name})
        self.key = key
        self.class_name = class_name


# Registry errors

class RegistryError(ClassicError):
    """Base for class registry misuse."""

    error_code_default = "REGISTRY_ERROR"

    def __init__(self, message: str, class_name: Optional[str] = None):
        details = {}
        if class_name:
            details["class_name"] = class_name
        super().__init__(message, details=details)
        self.class_name = class_name


class DuplicateClassError(RegistryError):
    error_code_default = "DUPLICATE_CLASS"


class MismatchedNameError(RegistryError):
    error_code_default = "MISMATCHED_NAME"


class NotRegisteredError(RegistryError, LookupError):
    error_code_default = "NOT_REGISTERED"


# Namespace errors

class NamespaceError(ClassicError):
    """
    Base for module namespace misuse.

    Namespace Error Flow:
    1. Declaration or access requested on a module
    2. Category or membership check fails
    3. Declared sets and cache stay unchanged
    """

    error_code_default = "NAMESPACE_ERROR"

    def __init__(self, message: str, module_name: Optional[str] = None, member: Optional[str] = None):
        details = {}
        if module_name:
            details["module_name"] = module_name
        if member:
            details["member"] = member
        super().__init__(message, details=details)
        self.module_name = module_name
        self.member = member


class DuplicateDeclarationError(NamespaceError):
    error_code_default = "DUPLICATE_DECLARATION"


class UnknownMemberError(NamespaceError, AttributeError):
    """Access to a name that is neither declared, stored nor built in."""

    error_code_default = "UNKNOWN_MEMBER"


# Parent-dispatch view errors

class NoSuchSuperMethodError(ClassicError, AttributeError):
    error_code_default = "NO_SUCH_SUPER_METHOD"

    def __init__(self, message: str, parent_name: str, method: str):
        super().__init__(message, details={"parent_name": parent_name, "method": method})
        self.parent_name = parent_name
        self.method = method


class ImmutableViewError(ClassicError, AttributeError):
    error_code_default = "IMMUTABLE_VIEW"


# Event errors

class UnknownEventError(ClassicError, ValueError):
    error_code_default = "UNKNOWN_EVENT"

    def __init__(self, message: str, event: Any = None):
        super().__init__(message, details={"event": repr(event)})
        self.event = event


# Serialization errors

class SerializationError(ClassicError, ValueError):
    """An object could not be dumped or restored."""

    error_code_default = "SERIALIZATION_ERROR"

    def __init__(self, message: str, class_name: Optional[str] = None):
        details = {}
        if class_name:
            details["class_name"] = class_name
        super().__init__(message, details=details)
        self.class_name = class_name
