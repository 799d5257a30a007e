"""
Ripple - Deep Reactive State
============================

Wrap any nested structure of dicts, lists, dataclasses and namespaces in a
transparent surrogate that behaves like the original for reads and writes,
and additionally:

- notifies watchers of every mutation, with the full path from the watched
  value down to the mutated field
- lets memoized functions discover at run time which fields they read, so
  their cached result is invalidated exactly when one of those fields changes

```python
from ripple import memoize, watch, wrap

state = wrap({"l1": {"l2": "x"}})
watch(state, lambda event: print(event.kind, event.path, event.value))

state["test"] = {}          # set ('test',) {}
state["test"]["t"] = "10"   # set ('test', 't') 10
```
"""

from typing import Any, Callable, Optional

from .bus import Bus, Forwarder
from .config import RippleConfig
from .errors import (
    CollectorError,
    ForeignSurrogateError,
    NotCompositeError,
    NotObservableError,
    ReactiveError,
    StaleDependencyError,
)
from .events import MISSING, WILDCARD, ChangeEvent, EventKind, InvalidationEvent
from .pipe import is_piped, pipe, unpipe
from .proxy import ReactiveBase, ReactiveDict, ReactiveList, ReactiveObject, is_composite
from .registry import Registry, _reset_default_registry, get_default_registry
from .tracking import DependencyCollector
from .tracking.memo import Memoized, memoize, memoized


def wrap(value: Any) -> Any:
    """Return the observed surrogate of ``value`` (idempotent)."""
    return get_default_registry().wrap(value)


def unwrap(value: Any) -> Any:
    """Return the raw value behind a surrogate."""
    return get_default_registry().unwrap(value)


def is_reactive(value: Any) -> bool:
    return get_default_registry().is_reactive(value)


def watch(target: Any, callback: Callable[[Any], None], kind: str = WILDCARD) -> Callable[[Any], None]:
    """Call ``callback(event)`` for every ``kind`` event on ``target`` or below it."""
    return get_default_registry().watch(target, callback, kind)


def unwatch(target: Any, callback: Callable[[Any], None], kind: Optional[str] = None) -> int:
    """Remove ``callback`` from ``target``; every registration when ``kind`` is omitted."""
    return get_default_registry().unwatch(target, callback, kind)


def watching(target: Any, kind: str = WILDCARD) -> Callable[[Callable], Callable]:
    """
    Decorator form of ``watch``.

    Example:
        ```python
        @watching(state)
        def log_change(event):
            print(event.path, event.value)
        ```
    """

    def decorate(callback: Callable[[Any], None]) -> Callable[[Any], None]:
        return watch(target, callback, kind)

    return decorate


__all__ = [
    # Core API
    "wrap",
    "unwrap",
    "is_reactive",
    "is_composite",
    "watch",
    "unwatch",
    "watching",
    "memoize",
    "memoized",
    # Building blocks
    "Registry",
    "RippleConfig",
    "Bus",
    "Forwarder",
    "pipe",
    "unpipe",
    "is_piped",
    "DependencyCollector",
    "Memoized",
    "get_default_registry",
    # Surrogates
    "ReactiveBase",
    "ReactiveDict",
    "ReactiveList",
    "ReactiveObject",
    # Events
    "ChangeEvent",
    "InvalidationEvent",
    "EventKind",
    "MISSING",
    "WILDCARD",
    # Exceptions
    "ReactiveError",
    "NotCompositeError",
    "NotObservableError",
    "StaleDependencyError",
    "ForeignSurrogateError",
    "CollectorError",
    # Testing utilities (internal use)
    "_reset_default_registry",
]
