"""
Name Loader Module
Flow: Dotted name → Module import → Attribute fallback → (value, success)
"""

import importlib
from typing import Any, List, Protocol, Tuple, runtime_checkable

from .logging import get_logger


logger = get_logger(__name__)


@runtime_checkable
class NameLoader(Protocol):
    """
    Contract for the external name loader.

    A total function from a dotted name to ``(value, success)``. Registries
    cache what it returns, so it runs at most once per name until the
    cached state is cleared.
    """

    def load(self, name: str) -> Tuple[Any, bool]:
        ...


class ImportLoader:
    """
    Resolves dotted names through the Python import system.

    Loading Process:
    1. import_module(name) → the name is itself a module
    2. import_module(parent) → getattr(last segment) for names that live inside a module
    3. Missing modules → (None, False); errors raised while executing a module propagate

    Responsibilities:
    - Dynamic module loading with importlib
    - Attribute extraction for module members
    - Error tracking for failed loads
    """

    def __init__(self):
        self.logger = logger.bind(module="name_loader")
        self._load_errors: List[str] = []

    def load(self, name: str) -> Tuple[Any, bool]:
        """
        Load the object registered under a dotted name.

        Args:
            name: Fully-qualified dotted name

        Returns:
            Tuple[Any, bool]: Loaded value and whether loading succeeded
        """
        module = self._import(name)
        if module is not None:
            self.logger.debug("Module loaded", name=name)
            return module, True

        module_name, _, attribute = name.rpartition(".")
        if module_name:
            parent = self._import(module_name)
            if parent is not None and hasattr(parent, attribute):
                self.logger.debug("Module attribute loaded", module=module_name, attribute=attribute)
                return getattr(parent, attribute), True

        error_msg = f"No module or module attribute named '{name}'"
        self._load_errors.append(error_msg)
        self.logger.warning("Name load failed", name=name)
        return None, False

    def _import(self, module_name: str):
        try:
            return importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            # Only swallow "this module does not exist"; a missing import
            # inside an existing module is a real error.
            missing = e.name or ""
            if module_name == missing or module_name.startswith(missing + "."):
                return None
            raise

    def get_load_errors(self) -> List[str]:
        """Get list of errors encountered while loading."""
        return self._load_errors.copy()

    def clear_errors(self) -> None:
        """Clear the error list."""
        self._load_errors.clear()
