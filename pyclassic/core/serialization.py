"""
Object Serialization
Flow: enable() → dump(obj) → SerializedObject → JSON → load() → object without constructor call

Classes control their own state with two optional hooks:
- __getstate__(self) returns the value to store instead of the fields
- __setstate__(self, state) restores an object created without its constructor
"""

from typing import Any, Dict, Set, Union

from pydantic import BaseModel, Field

from .logging import get_logger
from .class_registry import ClassRegistry
from .events import EventRegistry, EventType
from .exceptions import SerializationError
from .instance import (
    GETSTATE_HOOK,
    SETSTATE_HOOK,
    ClassicObject,
    class_name_of,
    create_object,
    fields_of,
    find_hook,
    is_object,
    raw_set,
)

logger = get_logger(__name__)

# Key marking a nested classic object inside serialized state.
OBJECT_MARKER = "__classic_object__"


class SerializedObject(BaseModel):
    """Serialized form of a classic object."""
    class_name: str = Field(..., description="Fully-qualified name of the object's class")
    state: Any = Field(default=None, description="Field mapping, or the value returned by __getstate__")
    hooked: bool = Field(default=False, description="Whether state came from a __getstate__ hook")


class ObjectSerializer:
    """
    Dumps and restores classic objects.

    Serialization Process:
    1. dump() → hook state or plain fields, nested objects dumped recursively
    2. dumps() → JSON through the pydantic model
    3. loads() / load() → resolve the class by name, allocate, restore state

    Restored objects never run their constructor.
    """

    def __init__(self, class_registry: ClassRegistry, events: EventRegistry = None):
        self.class_registry = class_registry
        self.events = events if events is not None else class_registry.events
        self.enabled = False
        # ids of the objects on the current dump path
        self._dumping: Set[int] = set()
        self.logger = logger.bind(registry_id="object_serializer")

    def enable(self) -> None:
        """Enable serialization. Observers are notified the first time only."""
        if self.enabled:
            return
        self.events.notify(EventType.SERIALIZATION_ENABLED)
        self.enabled = True
        self.logger.info("Serialization enabled")

    def _check_enabled(self) -> None:
        if not self.enabled:
            raise SerializationError("Serialization is not enabled; call enable() first.")

    def dump(self, obj: ClassicObject) -> SerializedObject:
        """
        Convert a classic object into a SerializedObject.

        Args:
            obj: Instance of a classic class

        Returns:
            SerializedObject: Class name and encoded state
        """
        self._check_enabled()
        if not is_object(obj):
            raise TypeError(f"dump() expects a classic object, got {type(obj).__name__}.")

        class_name = class_name_of(obj)
        if id(obj) in self._dumping:
            raise SerializationError(
                f"Cannot serialize object of class {class_name}: it refers back to itself "
                "through its state.",
                class_name=class_name)

        self._dumping.add(id(obj))
        try:
            hook = find_hook(obj.get_class(), GETSTATE_HOOK)
            if hook is not None:
                state = hook(obj)
            else:
                state = fields_of(obj)
            encoded = self._encode(state)
        finally:
            self._dumping.discard(id(obj))

        self.logger.debug("Object dumped", class_name=class_name, hooked=hook is not None)
        return SerializedObject(class_name=class_name, state=encoded, hooked=hook is not None)

    def load(self, record: Union[SerializedObject, Dict[str, Any]]) -> ClassicObject:
        """
        Restore a classic object from its serialized form.

        Restore Process:
        1. Resolve the class by name (registry, then loader)
        2. Allocate the object without running the constructor
        3. __setstate__(state) if the class defines it, else repopulate fields
        """
        self._check_enabled()
        if not isinstance(record, SerializedObject):
            record = SerializedObject.model_validate(record)

        klass = self.class_registry.get(record.class_name)
        obj = create_object(klass)
        state = self._decode(record.state)

        hook = find_hook(klass, SETSTATE_HOOK)
        if hook is not None:
            hook(obj, state)
        elif isinstance(state, dict):
            for name, value in state.items():
                raw_set(obj, name, value)
        else:
            raise SerializationError(
                f"Cannot restore object of class {record.class_name}: state is not a field "
                "mapping and the class defines no __setstate__.",
                class_name=record.class_name)

        self.logger.debug("Object loaded", class_name=record.class_name)
        return obj

    def dumps(self, obj: ClassicObject) -> str:
        """Serialize a classic object to a JSON string."""
        return self.dump(obj).model_dump_json()

    def loads(self, data: Union[str, bytes]) -> ClassicObject:
        """Restore a classic object from a JSON string."""
        self._check_enabled()
        return self.load(SerializedObject.model_validate_json(data))

    def _encode(self, value: Any) -> Any:
        if is_object(value):
            return {OBJECT_MARKER: self.dump(value).model_dump()}
        if isinstance(value, dict):
            return {key: self._encode(item) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._encode(item) for item in value]
        return value

    def _decode(self, value: Any) -> Any:
        if isinstance(value, dict):
            if len(value) == 1 and OBJECT_MARKER in value:
                return self.load(SerializedObject.model_validate(value[OBJECT_MARKER]))
            return {key: self._decode(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self._decode(item) for item in value]
        return value
