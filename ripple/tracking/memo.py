"""
Ripple Memoized - Dependency-Tracked Functions
==============================================

``Memoized`` wraps an ordinary function. Each time it computes, it opens a
collection session, runs the function, and afterwards subscribes to exactly
the observed fields the function touched. When any of them changes, the
paired signal bus emits a single ``InvalidationEvent`` once the debounce
window has passed, and the cached result is marked dirty.

Protocol of one computation:

1. detach from the dependencies of the previous computation
2. open a collection session
3. call the wrapped function
4. close the session (also when the function raises) and cache the result
5. subscribe to every bus recorded in the session

Nested memoized calls compose: whatever an inner memoized function depends on
(whether it recomputed or served its cache) is merged into the session of the
memoized function calling it.

Example:
    ```python
    state = wrap({"a": {"value": 1}, "b": 0})
    signal, total = memoize(lambda: state["a"]["value"] * 2)

    signal.on("change", lambda event: print("stale"))
    total()                     # 2
    state["b"] = 1              # unrelated, nothing happens
    state["a"]["value"] = 5     # "stale" after the debounce window
    ```
"""

import functools
import logging
import threading
import weakref
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..bus import Bus
from ..events import MISSING, WILDCARD, ChangeEvent, EventKind, InvalidationEvent
from .collector import Dependencies, DependencyCollector
from .debounce import Debouncer


class _DependencyListener:
    """
    Subscription of one ``Memoized`` on one dependency bus.

    Holds the memoized function weakly and unsubscribes itself once it is
    collected, so dropping a memoized function releases its subscriptions.
    """

    __slots__ = ("_memo", "_bus", "__weakref__")

    def __init__(self, memo: "Memoized", bus: Bus) -> None:
        self._memo = weakref.ref(memo, self._release)
        self._bus = weakref.ref(bus)

    def _release(self, _ref: Any = None) -> None:
        bus = self._bus()
        if bus is not None:
            bus.off(WILDCARD, self)

    def __call__(self, event: Any) -> None:
        memo = self._memo()
        bus = self._bus()
        if memo is None or bus is None:
            self._release()
            return
        memo._on_change(bus, event)


class Memoized:
    """
    A function whose dependencies on observed state are discovered at run time.

    Attributes:
        signal: Bus emitting one ``InvalidationEvent`` (kind ``change``) each
            time the cached result goes stale.
        use_cache: When true, calls with the same arguments return the cached
            result until it goes stale.
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        *,
        use_cache: bool = False,
        debounce: float = 0.01,
    ) -> None:
        self._fn = fn
        functools.update_wrapper(self, fn)
        self.use_cache = use_cache
        self.signal = Bus(f"memo:{getattr(fn, '__qualname__', repr(fn))}")
        self._lock = threading.RLock()
        self._debouncer = Debouncer(debounce, self._fire)
        self._dependencies = Dependencies()
        self._listeners: Dict[Bus, _DependencyListener] = {}
        self._pending: List[ChangeEvent] = []
        self._dirty = True
        self._result: Any = MISSING
        self._call_key: Optional[Tuple[tuple, dict]] = None

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def cached(self) -> Any:
        """The last computed result, or ``MISSING``."""
        return self._result

    @property
    def dependencies(self) -> Tuple[Bus, ...]:
        return self._dependencies.buses

    @property
    def debounce(self) -> float:
        return self._debouncer.delay

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            if self.use_cache and self._is_fresh_for(args, kwargs):
                DependencyCollector.merge(self._dependencies)
                return self._result

        self._detach()
        dependencies = Dependencies()
        try:
            with DependencyCollector.session(dependencies):
                result = self._fn(*args, **kwargs)
        except BaseException:
            with self._lock:
                self._dirty = True
                self._result = MISSING
                self._call_key = None
            raise
        finally:
            self._attach(dependencies)
            DependencyCollector.merge(dependencies)

        with self._lock:
            self._result = result
            self._call_key = (args, kwargs)
            self._dirty = False
        logging.debug(
            f"computed {self.signal.name} with {len(dependencies)} dependencies"
        )
        return result

    def _is_fresh_for(self, args: tuple, kwargs: dict) -> bool:
        if self._dirty or self._result is MISSING or self._call_key is None:
            return False
        try:
            return bool(self._call_key == (args, kwargs))
        except (TypeError, ValueError):
            return False

    def _attach(self, dependencies: Dependencies) -> None:
        with self._lock:
            self._dependencies = dependencies
            for bus in dependencies.buses:
                listener = _DependencyListener(self, bus)
                self._listeners[bus] = listener
                bus.on(WILDCARD, listener)

    def _detach(self) -> None:
        with self._lock:
            for listener in self._listeners.values():
                listener._release()
            self._listeners = {}
            self._dependencies = Dependencies()
            self._pending = []
        self._debouncer.cancel()

    def _on_change(self, bus: Bus, event: Any) -> None:
        if not self._dependencies.matches(bus, event):
            return
        with self._lock:
            if self._dirty:
                return
            self._pending.append(event)
        self._debouncer.trigger()

    def _fire(self) -> None:
        with self._lock:
            if self._dirty:
                self._pending = []
                return
            self._dirty = True
            causes = tuple(self._pending)
            self._pending = []

        logging.debug(f"invalidated {self.signal.name} after {len(causes)} changes")
        self.signal.trigger(EventKind.CHANGE, InvalidationEvent(causes))

    def flush(self) -> bool:
        """Emit a pending invalidation now instead of waiting for the timer."""
        return self._debouncer.flush()

    def invalidate(self) -> None:
        """Mark the cache stale and emit the signal immediately."""
        self._debouncer.cancel()
        self._fire()

    def dispose(self) -> None:
        """Stop listening to every dependency; the signal will not fire again."""
        self._detach()
        with self._lock:
            self._dirty = True
            self._result = MISSING
            self._call_key = None

    def __repr__(self) -> str:
        state = "dirty" if self._dirty else "clean"
        return f"Memoized({self.signal.name!r}, {state}, dependencies={len(self._dependencies)})"


def memoize(
    fn: Callable[..., Any],
    *,
    use_cache: Optional[bool] = None,
    debounce: Optional[float] = None,
    registry: Any = None,
) -> Tuple[Bus, Memoized]:
    """
    Wrap ``fn`` with dependency tracking.

    Args:
        fn: The function to wrap.
        use_cache: Return the cached result while it is clean. Defaults to the
            registry's configuration.
        debounce: Seconds to wait after the last dependency change before
            emitting the invalidation. Defaults to the registry's
            configuration.
        registry: Registry whose configuration supplies the defaults; the
            default registry when omitted.

    Returns:
        ``(signal, memoized)``: the invalidation bus and the wrapped callable.
    """
    if registry is None:
        from ..registry import get_default_registry

        registry = get_default_registry()
    return registry.memoize(fn, use_cache=use_cache, debounce=debounce)


def memoized(
    fn: Optional[Callable[..., Any]] = None,
    *,
    use_cache: Optional[bool] = None,
    debounce: Optional[float] = None,
    registry: Any = None,
):
    """
    Decorator form of ``memoize`` returning only the ``Memoized`` callable;
    its ``signal`` attribute is the invalidation bus.

    Example:
        ```python
        @memoized(use_cache=True)
        def visible_todos():
            return [t for t in todos if not t["done"]]

        visible_todos.signal.on("change", rerender)
        ```
    """

    def decorate(func: Callable[..., Any]) -> Memoized:
        _, wrapped = memoize(
            func, use_cache=use_cache, debounce=debounce, registry=registry
        )
        return wrapped

    if fn is not None:
        return decorate(fn)
    return decorate
