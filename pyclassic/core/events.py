"""
Event Registry - lifecycle notifications for classes, modules and serialization
Flow: add_callback() → operation passes its checks → notify() → callbacks in order
"""

from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, List

from .logging import get_logger
from .exceptions import UnknownEventError

logger = get_logger(__name__)


class EventType(str, Enum):
    """Lifecycle events observers can hook into."""
    # A new class is initialized. Callback gets the class name.
    CLASS_INIT = "class_init"
    # An attribute is set in a class. Callback gets the class, name and value.
    CLASS_SET_ATTRIBUTE = "class_set_attribute"
    # A method is defined in a class. Callback gets the class, name and function.
    CLASS_DEFINE_METHOD = "class_define_method"
    # A new module is initialized. Callback gets the module name.
    MODULE_INIT = "module_init"
    # A class/submodule/function is declared in a module. Callback gets the
    # module and the member name.
    MODULE_DECLARE_CLASS = "module_declare_class"
    MODULE_DECLARE_SUBMODULE = "module_declare_submodule"
    MODULE_DECLARE_FUNCTION = "module_declare_function"
    # Serialization support is enabled. Callback gets nothing.
    SERIALIZATION_ENABLED = "serialization_enabled"
    # A class was loaded whose name differs from the name it was requested
    # under. Callback gets the actual name and the requested name.
    CLASS_REQUIRE_NAME_MISMATCH = "class_require_name_mismatch"


class EventRegistry:
    """
    Registry of lifecycle callbacks.

    Callbacks are invoked synchronously, in registration order, on the
    caller's thread. A failing callback propagates and aborts the operation
    that triggered it; operations notify after their checks and before
    their writes.
    """

    def __init__(self):
        self._callbacks: Dict[EventType, List[Callable[..., Any]]] = defaultdict(list)
        self.logger = logger.bind(registry_id="event_registry")

    @staticmethod
    def _coerce(event: Any) -> EventType:
        if isinstance(event, EventType):
            return event
        try:
            return EventType(event)
        except ValueError:
            raise UnknownEventError(f"{event!r} is not a valid classic event!", event=event) from None

    def add_callback(self, event: Any, func: Callable[..., Any]) -> None:
        """
        Register a callback for an event.

        Args:
            event: An EventType member, or its string value
            func: Callback; the arguments it gets depend on the event
        """
        event = self._coerce(event)
        if not callable(func):
            raise TypeError("add_callback() requires a callback function as its second argument.")
        self._callbacks[event].append(func)
        self.logger.debug("Callback registered", event_type=event.value,
                          callback=getattr(func, "__qualname__", repr(func)))

    def callbacks(self, event: Any) -> List[Callable[..., Any]]:
        """Get the callbacks registered for an event, in order."""
        return list(self._callbacks.get(self._coerce(event), []))

    def notify(self, event: Any, *args: Any) -> None:
        """Call every callback registered for the event with the given arguments."""
        event = self._coerce(event)
        for callback in self._callbacks.get(event, ()):
            callback(*args)

    def clear(self) -> None:
        """Drop all callbacks. Only used to isolate tests."""
        self._callbacks.clear()
        self.logger.info("Event registry cleared")
