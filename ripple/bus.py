"""
Ripple Bus - Per-Value Event Dispatch
=====================================

Every observed raw value owns exactly one ``Bus``. A bus keeps an ordered list
of subscribers per event kind plus a wildcard list, and dispatches events to
them synchronously on the caller's stack.

Dispatch Order
--------------

For an event of kind ``K``:

1. subscribers registered for ``K``, in registration order
2. wildcard (``"*"``) subscribers, in registration order

Wildcard subscribers receive every change kind (``set``, ``delete``,
``change``) but never ``get``. Read events only exist while a dependency
collection session is active and are delivered to subscribers that asked for
``get`` explicitly.

Every call to ``trigger`` also reports the bus to the active
``DependencyCollector`` session, which is how memoized functions discover
what they read.

Forwarding
----------

``Forwarder`` is the callback a pipe installs on a child bus (see
``ripple.pipe``). The bus recognises forwarders during dispatch and threads
the current propagation chain through them, so a bus reached twice by the same
originating event (cyclic data) is skipped rather than recursed into.
"""

import weakref
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional, Tuple, Union

from .events import WILDCARD, ChangeEvent, EventKind
from .tracking.collector import DependencyCollector

KindLike = Union[EventKind, str]


def _normalize_kind(kind: KindLike) -> Union[EventKind, str]:
    if kind == WILDCARD:
        return WILDCARD
    try:
        return EventKind(kind)
    except ValueError:
        raise ValueError(
            f"unknown event kind {kind!r}; expected one of "
            f"{[k.value for k in EventKind] + [WILDCARD]}"
        ) from None


class Forwarder:
    """
    Re-emits a child bus's change events on a parent bus with ``name``
    prepended to the event path.

    The parent bus is held weakly: a pipe never keeps a parent alive.
    """

    __slots__ = ("_parent", "name", "child", "anchor", "__weakref__")

    def __init__(self, parent: "Bus", name: Hashable, child: "Bus", anchor: Any = None):
        self._parent = weakref.ref(parent)
        self.name = name
        self.child = child
        # The child's surrogate, kept alive for as long as the pipe exists.
        self.anchor = anchor

    @property
    def parent(self) -> Optional["Bus"]:
        return self._parent()

    def forward(self, kind: EventKind, event: ChangeEvent, chain: Tuple["Bus", ...]) -> None:
        parent = self._parent()
        if parent is None:
            return
        parent._dispatch(kind, event.with_prefix(self.name), chain)

    def __call__(self, event: ChangeEvent) -> None:
        self.forward(event.kind, event, ())

    def __repr__(self) -> str:
        return f"Forwarder({self.name!r}: {self.child!r} -> {self.parent!r})"


class Bus:
    """
    Event dispatcher owned by a single observed value.

    Example:
        ```python
        bus = Bus("demo")
        bus.on("set", lambda event: print("set", event.path))
        bus.on("*", lambda event: print(event.kind, event.path))
        bus.trigger("set", ChangeEvent(("a",), 1))
        # set ('a',)
        # set ('a',)
        ```
    """

    def __init__(self, name: Optional[str] = None, *, indexed: bool = False) -> None:
        self.name = name or f"bus@{id(self):#x}"
        # Whether fields are positional indexes (structural mutations move them).
        self.indexed = indexed
        self._subscribers: Dict[Union[EventKind, str], List[Callable]] = {}
        # field -> {child bus -> forwarder}, maintained by ripple.pipe
        self._pipes: Dict[Hashable, Dict["Bus", Forwarder]] = {}

    def on(self, kind: KindLike, callback: Callable[[Any], None]) -> Callable[[Any], None]:
        """Register ``callback`` for ``kind``; the same callback may register repeatedly."""
        if not callable(callback):
            raise TypeError(f"callback must be callable, got {type(callback).__name__}")
        key = _normalize_kind(kind)
        self._subscribers.setdefault(key, []).append(callback)
        return callback

    def off(self, kind: KindLike, callback: Callable[[Any], None]) -> bool:
        """Remove one registration of ``callback`` for ``kind``. Returns whether one existed."""
        key = _normalize_kind(kind)
        callbacks = self._subscribers.get(key)
        if not callbacks:
            return False
        for index, registered in enumerate(callbacks):
            if registered is callback or registered == callback:
                del callbacks[index]
                if not callbacks:
                    del self._subscribers[key]
                return True
        return False

    def off_all(self, callback: Callable[[Any], None]) -> int:
        """Remove every registration of ``callback`` under any kind."""
        removed = 0
        for key in list(self._subscribers):
            while self.off(key, callback):
                removed += 1
        return removed

    def subscribers(self, kind: KindLike) -> Tuple[Callable, ...]:
        return tuple(self._subscribers.get(_normalize_kind(kind), ()))

    def trigger(self, kind: KindLike, event: Any) -> None:
        """Dispatch ``event`` as a fresh propagation starting at this bus."""
        self._dispatch(_normalize_kind(kind), event, ())

    def _dispatch(self, kind: EventKind, event: Any, chain: Tuple["Bus", ...]) -> None:
        DependencyCollector.record(self, event)

        if self in chain:
            # Cyclic data: this bus already saw the originating event.
            return
        chain = chain + (self,)

        callbacks = list(self._subscribers.get(kind, ()))
        if kind is not EventKind.GET:
            callbacks.extend(self._subscribers.get(WILDCARD, ()))

        for callback in callbacks:
            if isinstance(callback, Forwarder):
                callback.forward(kind, event, chain)
            else:
                callback(event)

    def pipes(self) -> Iterator[Tuple[Hashable, "Bus"]]:
        for name, children in self._pipes.items():
            for child in children:
                yield name, child

    def __len__(self) -> int:
        return sum(len(callbacks) for callbacks in self._subscribers.values())

    def __bool__(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Bus({self.name!r})"
