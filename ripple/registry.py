"""
Ripple Registry - Raw Value / Surrogate Identity Map
====================================================

The registry guarantees that every raw composite value has at most one
surrogate (and therefore one bus) at a time, so wrapping is idempotent and
identity-preserving: ``wrap(wrap(x)) is wrap(x)``.

Ownership
---------

Plain ``dict`` and ``list`` objects cannot be weakly referenced, so entries
are keyed by ``id(raw)`` and hold only a weak reference to the surrogate. The
surrogate in turn holds its raw value (which keeps the ``id`` from being
reused) and its bus. Each pipe holds the child's surrogate, so a value stays
observed for as long as its surrogate is reachable from the caller or from an
observed parent. When a surrogate is collected its entry disappears; wrapping
the same raw value again later yields a fresh surrogate with a fresh bus.

Registries are independent: storing a surrogate produced by one registry into
a value observed by another raises ``ForeignSurrogateError``.
"""

import logging
import threading
import weakref
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from .bus import Bus
from .config import RippleConfig
from .errors import ForeignSurrogateError, NotCompositeError, NotObservableError
from .events import WILDCARD
from .pipe import is_piped, pipe, unpipe
from .proxy import ReactiveBase, is_composite, surrogate_type


class Registry:
    """
    Identity map from raw values to their surrogates.

    Example:
        ```python
        registry = Registry()
        raw = {"a": {"b": 1}}
        state = registry.wrap(raw)

        assert registry.wrap(raw) is state
        assert registry.unwrap(state) is raw
        ```
    """

    def __init__(self, config: Optional[RippleConfig] = None) -> None:
        self.config = config or RippleConfig()
        self._entries: Dict[int, weakref.ref] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def wrap(self, value: Any) -> Any:
        """
        Return the surrogate for ``value``, creating it on first use.

        Nested composites already present in ``value`` are wrapped and piped
        eagerly, so a watcher on the result hears about changes made through
        any surrogate of the tree.

        Raises:
            NotCompositeError: ``value`` is not a dict, list, dataclass
                instance or namespace.
            ForeignSurrogateError: ``value`` is a surrogate of another registry.
        """
        if isinstance(value, ReactiveBase):
            self._check_owner(value)
            return value
        if not is_composite(value):
            raise NotCompositeError(value)
        return self._wrap(value)

    def unwrap(self, value: Any) -> Any:
        """
        Return the raw value behind a surrogate of this registry.

        Raises:
            NotObservableError: ``value`` was not produced by this registry.
        """
        if isinstance(value, ReactiveBase) and value._ripple_registry is self:
            return value._ripple_raw
        raise NotObservableError(value)

    def is_reactive(self, value: Any) -> bool:
        return isinstance(value, ReactiveBase) and value._ripple_registry is self

    def lookup(self, raw: Any) -> Optional[ReactiveBase]:
        """Return the live surrogate of ``raw``, or ``None``."""
        ref = self._entries.get(id(raw))
        surrogate = ref() if ref is not None else None
        if surrogate is not None and surrogate._ripple_raw is raw:
            return surrogate
        return None

    def bus_of(self, target: Any) -> Bus:
        """
        Return the bus of an observed value, given its surrogate or raw value.

        Raises:
            NotObservableError: ``target`` is not observed by this registry.
        """
        if isinstance(target, ReactiveBase):
            if target._ripple_registry is not self:
                raise NotObservableError(target)
            return target._ripple_bus
        surrogate = self.lookup(target) if is_composite(target) else None
        if surrogate is None:
            raise NotObservableError(target)
        return surrogate._ripple_bus

    def watch(
        self, target: Any, callback: Callable[[Any], None], kind: str = WILDCARD
    ) -> Callable[[Any], None]:
        """Call ``callback(event)`` for every ``kind`` event on ``target`` or below it."""
        return self.bus_of(target).on(kind, callback)

    def unwatch(
        self, target: Any, callback: Callable[[Any], None], kind: Optional[str] = None
    ) -> int:
        """
        Remove ``callback`` from ``target``.

        With ``kind`` given, one registration under that kind is removed;
        without it, every registration under every kind is. Returns how many
        registrations were removed.
        """
        bus = self.bus_of(target)
        if kind is None:
            return bus.off_all(callback)
        return int(bus.off(kind, callback))

    def memoize(
        self,
        fn: Callable[..., Any],
        *,
        use_cache: Optional[bool] = None,
        debounce: Optional[float] = None,
    ):
        """Wrap ``fn`` with dependency tracking; returns ``(signal, memoized)``."""
        from .tracking.memo import Memoized

        memoized = Memoized(
            fn,
            use_cache=self.config.use_cache if use_cache is None else use_cache,
            debounce=self.config.debounce if debounce is None else debounce,
        )
        return memoized.signal, memoized

    def __len__(self) -> int:
        return sum(1 for ref in list(self._entries.values()) if ref() is not None)

    def __repr__(self) -> str:
        return f"Registry(entries={len(self)}, config={self.config!r})"

    # ------------------------------------------------------------------
    # Internal wiring used by surrogates
    # ------------------------------------------------------------------

    def _check_owner(self, surrogate: ReactiveBase) -> None:
        if surrogate._ripple_registry is not self:
            raise ForeignSurrogateError(
                f"{type(surrogate).__name__} belongs to a different registry"
            )

    def _wrap(self, raw: Any) -> ReactiveBase:
        if isinstance(raw, ReactiveBase):
            self._check_owner(raw)
            return raw

        with self._lock:
            existing = self.lookup(raw)
            if existing is not None:
                return existing

            cls = surrogate_type(raw)
            surrogate = cls._create(raw, self)
            key = id(raw)
            self._entries[key] = weakref.ref(surrogate, self._forget(key))

        # Registered before descending so cyclic data terminates.
        for name, child in cls._fields_of(raw):
            if isinstance(child, ReactiveBase):
                self._check_owner(child)
                cls._replace_field(raw, name, child._ripple_raw)
                child = child._ripple_raw
            if is_composite(child):
                self._attach(surrogate, name, child)

        logging.debug(f"wrapped {surrogate._ripple_bus!r}")
        return surrogate

    def _forget(self, key: int) -> Callable[[weakref.ref], None]:
        registry_ref = weakref.ref(self)

        def forget(ref: weakref.ref) -> None:
            registry = registry_ref()
            if registry is not None and registry._entries.get(key) is ref:
                del registry._entries[key]

        return forget

    def _attach(self, parent: ReactiveBase, name: Hashable, raw: Any) -> ReactiveBase:
        """Ensure ``raw`` is wrapped and piped into ``parent`` at ``name``."""
        child = self._wrap(raw)
        if not is_piped(parent._ripple_bus, child._ripple_bus, name):
            pipe(parent._ripple_bus, child._ripple_bus, name, anchor=child)
        return child

    def _release(self, parent: ReactiveBase, name: Hashable, raw: Any) -> None:
        """Remove the pipe of ``raw`` from ``parent`` at ``name``, if there is one."""
        child = self.lookup(raw)
        if child is not None and is_piped(parent._ripple_bus, child._ripple_bus, name):
            unpipe(parent._ripple_bus, child._ripple_bus, name)

    def _adopt(self, value: Any) -> Tuple[Any, Optional[ReactiveBase]]:
        """
        Resolve a value about to be stored to its raw form.

        Returns the raw value and, for composites, its surrogate. Callers hold
        on to the surrogate until the store is piped so it is not rebuilt.
        """
        if isinstance(value, ReactiveBase):
            self._check_owner(value)
            return value._ripple_raw, value
        if is_composite(value):
            return value, self._wrap(value)
        return value, None

    def _reveal(self, value: Any) -> Any:
        """Surrogate for composites, the value itself otherwise. Never pipes."""
        if is_composite(value):
            return self._wrap(value)
        return value

    def _reset(self) -> None:
        with self._lock:
            self._entries.clear()


_default_registry: Optional[Registry] = None


def get_default_registry() -> Registry:
    """The process-wide registry behind the module-level API."""
    global _default_registry
    if _default_registry is None:
        _default_registry = Registry(RippleConfig.from_env())
    return _default_registry


def _reset_default_registry() -> None:
    """Reset the default registry for testing."""
    global _default_registry
    _default_registry = None
