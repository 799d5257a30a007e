"""
Ripple Surrogates - Shared Interception Core
============================================

A surrogate stands in for one raw composite value. It owns that value's bus
and funnels every read, write and delete through the three traps defined
here, which the concrete surrogate types (``ReactiveDict``, ``ReactiveList``,
``ReactiveObject``) call from their container protocol methods.

Read trap
    Returns the stored value, substituting the surrogate for composite values
    (wrapping and piping them on first sight). While a dependency collection
    session is open it also emits a ``get`` event.

Write trap
    Resolves surrogates to their raw value and wraps fresh composites, skips
    writes that would not change anything, performs the underlying store,
    moves the pipe from the old value to the new one and emits ``set``.

Delete trap
    Performs the underlying delete, removes the old value's pipe and emits
    ``delete``.

Events are only emitted after the underlying operation succeeded; host
errors (``KeyError``, ``IndexError``, ``AttributeError``, frozen dataclasses)
propagate before anything is emitted.
"""

from dataclasses import is_dataclass
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, Hashable, Iterator, Tuple

from ..bus import Bus
from ..events import MISSING, ChangeEvent, EventKind
from ..tracking.collector import DependencyCollector

if TYPE_CHECKING:
    from ..registry import Registry


def is_composite(value: Any) -> bool:
    """Whether ``value`` can be observed (dict, list, dataclass instance, namespace)."""
    if isinstance(value, (dict, list, SimpleNamespace, ReactiveBase)):
        return True
    return is_dataclass(value) and not isinstance(value, type)


def same_value(old: Any, new: Any) -> bool:
    """
    Whether storing ``new`` over ``old`` is a no-op.

    Composites compare by identity. Atomic values compare by type and
    equality, so re-storing an equal string or number is also a no-op.
    """
    if old is new:
        return True
    if old is MISSING or new is MISSING:
        return False
    if is_composite(old) or is_composite(new):
        return False
    if type(old) is not type(new):
        return False
    try:
        return bool(old == new)
    except (TypeError, ValueError):
        # Ambiguous comparisons (array-likes) count as a change.
        return False


class ReactiveBase:
    """Base class for all surrogates."""

    __slots__ = ("_ripple_raw", "_ripple_bus", "_ripple_registry", "__weakref__")

    _indexed = False

    def __init__(self, *args, **kwargs):
        raise TypeError(
            f"{type(self).__name__} instances are created by ripple.wrap(), not directly"
        )

    @classmethod
    def _create(cls, raw: Any, registry: "Registry") -> "ReactiveBase":
        self = object.__new__(cls)
        bus = Bus(f"{type(raw).__name__}@{id(raw):#x}", indexed=cls._indexed)
        object.__setattr__(self, "_ripple_raw", raw)
        object.__setattr__(self, "_ripple_bus", bus)
        object.__setattr__(self, "_ripple_registry", registry)
        return self

    @classmethod
    def _fields_of(cls, raw: Any) -> Iterator[Tuple[Hashable, Any]]:
        raise NotImplementedError

    @classmethod
    def _replace_field(cls, raw: Any, name: Hashable, value: Any) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Traps
    # ------------------------------------------------------------------

    def _track(self, name: Hashable, value: Any = MISSING) -> None:
        if DependencyCollector.is_active():
            self._ripple_bus.trigger(
                EventKind.GET, ChangeEvent((name,), value, value, EventKind.GET)
            )

    def _track_whole(self) -> None:
        if DependencyCollector.is_active():
            self._ripple_bus.trigger(EventKind.GET, ChangeEvent((), kind=EventKind.GET))

    def _read(self, name: Hashable, value: Any) -> Any:
        self._track(name, value)
        if is_composite(value):
            return self._ripple_registry._attach(self, name, value)
        return value

    def _prepare(self, value: Any) -> Tuple[Any, Any]:
        """Raw form of ``value`` plus, for composites, the surrogate to hold until piped."""
        return self._ripple_registry._adopt(value)

    def _stored(self, name: Hashable, old: Any, new: Any) -> None:
        registry = self._ripple_registry
        if is_composite(old):
            registry._release(self, name, old)
        if is_composite(new):
            registry._attach(self, name, new)
        self._ripple_bus.trigger(
            EventKind.SET, ChangeEvent((name,), new, old, EventKind.SET)
        )

    def _deleted(self, name: Hashable, old: Any) -> None:
        if is_composite(old):
            self._ripple_registry._release(self, name, old)
        self._ripple_bus.trigger(
            EventKind.DELETE, ChangeEvent((name,), MISSING, old, EventKind.DELETE)
        )

    def _raw_of(self, other: Any) -> Any:
        if isinstance(other, ReactiveBase):
            return other._ripple_raw
        return other

    # ------------------------------------------------------------------
    # Transparent behaviour
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        self._track_whole()
        return self._ripple_raw == self._raw_of(other)

    def __ne__(self, other: object) -> bool:
        return not self == other

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        self._track_whole()
        return f"{type(self).__name__}({self._ripple_raw!r})"

    def __reduce__(self):
        raise TypeError(
            f"cannot pickle {type(self).__name__}; pickle ripple.unwrap(value) instead"
        )
