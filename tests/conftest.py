"""
Shared pytest fixtures and configuration for Ripple tests.
"""

import pytest

from ripple import Registry, RippleConfig, _reset_default_registry
from ripple.tracking import DependencyCollector


@pytest.fixture(autouse=True)
def reset_global_state():
    """Reset the default registry and collector before each test to prevent state leakage."""
    _reset_default_registry()
    DependencyCollector._reset_state()
    yield
    DependencyCollector._reset_state()


@pytest.fixture
def registry():
    """Provide a fresh Registry with a short debounce window."""
    return Registry(RippleConfig(debounce=0.01))


@pytest.fixture
def recorder():
    """Callback that appends every event it receives to ``recorder.events``."""

    class Recorder:
        def __init__(self):
            self.events = []

        def __call__(self, event):
            self.events.append(event)

        @property
        def paths(self):
            return [event.path for event in self.events]

    return Recorder()
