"""
Shared fixtures: every test gets its own runtime and an in-memory loader.
"""

from typing import Any, Callable, Dict, Optional, Tuple

import pytest

from pyclassic.config.settings import Settings
from pyclassic.core.runtime import ClassicRuntime


class CountingLoader:
    """Name loader backed by factories; records how often each name was requested."""

    def __init__(self, factories: Optional[Dict[str, Callable[[], Any]]] = None):
        self.factories: Dict[str, Callable[[], Any]] = dict(factories or {})
        self.calls: Dict[str, int] = {}

    def load(self, name: str) -> Tuple[Any, bool]:
        self.calls[name] = self.calls.get(name, 0) + 1
        factory = self.factories.get(name)
        if factory is None:
            return None, False
        return factory(), True


@pytest.fixture
def loader():
    return CountingLoader()


@pytest.fixture
def runtime(loader):
    return ClassicRuntime(loader=loader, settings=Settings(ENFORCE_NAMING_CONVENTION=True))


@pytest.fixture
def lenient_runtime(loader):
    return ClassicRuntime(loader=loader, settings=Settings(ENFORCE_NAMING_CONVENTION=False))
