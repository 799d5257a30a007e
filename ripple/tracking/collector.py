"""
Ripple DependencyCollector - Read Tracking Side Channel
=======================================================

While a collection session is open, every bus that dispatches an event
reports itself (and the field the event concerns) here. A memoized function
opens a session around its own body and so learns, without any cooperation
from the code it calls, exactly which fields of which values it touched.

Sessions nest: the collector keeps a stack per thread, and a session only
ever records into the innermost frame. A nested memoized call merges what it
collected into the enclosing frame once it is done, so outer functions depend
on everything their inner functions depend on.
"""

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Hashable, Iterator, List, Optional, Set, Tuple

from ..errors import CollectorError
from ..events import EventKind

if TYPE_CHECKING:
    from ..bus import Bus


class _AnyField:
    def __repr__(self) -> str:
        return "ANY_FIELD"


# Recorded for whole-value reads (len, iteration, repr): any field matters.
ANY_FIELD: Any = _AnyField()


class Dependencies:
    """Ordered set of buses, each with the set of fields read from it."""

    def __init__(self) -> None:
        self._fields: Dict["Bus", Set[Hashable]] = {}

    def add(self, bus: "Bus", name: Hashable = ANY_FIELD) -> None:
        self._fields.setdefault(bus, set()).add(name)

    def update(self, other: "Dependencies") -> None:
        for bus, names in other._fields.items():
            self._fields.setdefault(bus, set()).update(names)

    @property
    def buses(self) -> Tuple["Bus", ...]:
        return tuple(self._fields)

    def fields(self, bus: "Bus") -> frozenset:
        return frozenset(self._fields.get(bus, ()))

    def matches(self, bus: "Bus", event: Any) -> bool:
        """Whether a change ``event`` delivered on ``bus`` affects a recorded read."""
        names = self._fields.get(bus)
        if not names:
            return False
        if ANY_FIELD in names:
            return True
        path = getattr(event, "path", ())
        if not path:
            return True
        head = path[0]
        if bus.indexed and head == "length":
            # Structural list mutations can move every index.
            return True
        try:
            if head not in names:
                return False
        except TypeError:
            return False
        if len(path) > 1 and self._reads_below(bus, head):
            # Forwarded from a child that was read itself; its listener decides.
            return False
        return True

    def _reads_below(self, bus: "Bus", name: Hashable) -> bool:
        children = bus._pipes.get(name)
        return bool(children) and any(child in self._fields for child in children)

    def __contains__(self, bus: object) -> bool:
        return bus in self._fields

    def __iter__(self) -> Iterator["Bus"]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        inner = ", ".join(
            f"{bus.name}: {sorted(map(repr, names))}" for bus, names in self._fields.items()
        )
        return f"Dependencies({inner})"


class DependencyCollector:
    """Process-wide, per-thread stack of open collection sessions."""

    _local = threading.local()

    @classmethod
    def _get_stack(cls) -> List[Dependencies]:
        if not hasattr(cls._local, "stack"):
            cls._local.stack = []
        return cls._local.stack

    @classmethod
    def is_active(cls) -> bool:
        return bool(cls._get_stack())

    @classmethod
    def depth(cls) -> int:
        return len(cls._get_stack())

    @classmethod
    def current(cls) -> Optional[Dependencies]:
        stack = cls._get_stack()
        return stack[-1] if stack else None

    @classmethod
    def record(cls, bus: "Bus", event: Any) -> None:
        stack = cls._get_stack()
        if not stack:
            return
        path = getattr(event, "path", ())
        kind = getattr(event, "kind", None)
        if path:
            stack[-1].add(bus, path[0])
        elif kind is EventKind.GET:
            stack[-1].add(bus, ANY_FIELD)

    @classmethod
    def merge(cls, dependencies: Dependencies) -> None:
        """Fold ``dependencies`` into the innermost open session, if any."""
        stack = cls._get_stack()
        if stack and stack[-1] is not dependencies:
            stack[-1].update(dependencies)

    @classmethod
    @contextmanager
    def session(cls, dependencies: Optional[Dependencies] = None) -> Iterator[Dependencies]:
        """
        Open a collection session; closed on every exit path.

        Raises:
            CollectorError: The session stack was popped out of order by
                someone else while this session was open.
        """
        if dependencies is None:
            dependencies = Dependencies()
        stack = cls._get_stack()
        stack.append(dependencies)
        try:
            yield dependencies
        finally:
            if stack and stack[-1] is dependencies:
                stack.pop()
            else:
                # Drop the frame wherever it ended up so tracking stays usable.
                stack[:] = [frame for frame in stack if frame is not dependencies]
                raise CollectorError("dependency collection sessions closed out of order")

    @classmethod
    def _reset_state(cls) -> None:
        """Reset the collector state for testing."""
        cls._local.__dict__.clear()
