"""
Ripple ReactiveList - Observed Sequences
========================================

Surrogate for ``list`` values. Indexes are the observed fields.

Single-index assignment goes through the write trap and reports the index.
Structural mutations (``append``, ``extend``, ``insert``, ``pop``,
``remove``, ``clear``, ``sort``, ``reverse``, ``del``, slice assignment,
``+=``, ``*=``) run the raw list's own method and then report one aggregate
event:

    ChangeEvent(path=("length",), value=<new length>, old_value=<old length>)

only if the length changed. Individual index changes made by a structural
mutation are not reported; ``sort`` and ``reverse`` therefore emit nothing.
Pipes of composite elements are moved to their new indexes afterwards.
"""

import operator
import sys
from collections.abc import MutableSequence
from typing import Any, Callable, Hashable, Iterable, Iterator, List, Optional, Tuple

from ..events import MISSING, ChangeEvent, EventKind
from .base import ReactiveBase, is_composite, same_value

LENGTH = "length"


class ReactiveList(ReactiveBase, MutableSequence):
    """
    Observed ``list``.

    Example:
        ```python
        todos = wrap([])
        watch(todos, lambda event: print(event.path, event.old_value, event.value))
        todos.append({"title": "write docs"})   # ('length',) 0 1
        todos[0]["title"] = "ship it"           # (0, 'title') write docs ship it
        ```
    """

    __slots__ = ()

    _indexed = True

    @classmethod
    def _fields_of(cls, raw: list) -> Iterator[Tuple[Hashable, Any]]:
        return iter(list(enumerate(raw)))

    @classmethod
    def _replace_field(cls, raw: list, name: Hashable, value: Any) -> None:
        raw[name] = value

    def _position(self, index: Any) -> int:
        position = operator.index(index)
        length = len(self._ripple_raw)
        if position < 0:
            position += length
        if not 0 <= position < length:
            raise IndexError("list index out of range")
        return position

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def __getitem__(self, index: Any) -> Any:
        raw = self._ripple_raw
        if isinstance(index, slice):
            self._track_whole()
            return [self._read(i, raw[i]) for i in range(*index.indices(len(raw)))]
        try:
            position = self._position(index)
        except IndexError:
            self._track_whole()
            raise
        return self._read(position, raw[position])

    def __len__(self) -> int:
        self._track_whole()
        return len(self._ripple_raw)

    def __iter__(self) -> Iterator[Any]:
        self._track_whole()
        for position, value in enumerate(self._ripple_raw):
            yield self._read(position, value)

    def __reversed__(self) -> Iterator[Any]:
        self._track_whole()
        raw = self._ripple_raw
        for position in range(len(raw) - 1, -1, -1):
            yield self._read(position, raw[position])

    def __contains__(self, value: object) -> bool:
        self._track_whole()
        return self._raw_of(value) in self._ripple_raw

    def index(self, value: Any, start: int = 0, stop: int = sys.maxsize) -> int:
        self._track_whole()
        return self._ripple_raw.index(self._raw_of(value), start, stop)

    def count(self, value: Any) -> int:
        self._track_whole()
        return self._ripple_raw.count(self._raw_of(value))

    def copy(self) -> list:
        """Shallow copy of the raw list (not observed)."""
        self._track_whole()
        return list(self._ripple_raw)

    def __add__(self, other: Any) -> list:
        self._track_whole()
        return self._ripple_raw + self._raw_of(other)

    def __radd__(self, other: Any) -> list:
        self._track_whole()
        return self._raw_of(other) + self._ripple_raw

    def __mul__(self, count: int) -> list:
        self._track_whole()
        return self._ripple_raw * count

    __rmul__ = __mul__

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            prepared = [self._prepare(item) for item in value]
            self._mutate(self._ripple_raw.__setitem__, index, [raw for raw, _ in prepared])
            return

        position = self._position(index)
        value, anchor = self._prepare(value)
        raw = self._ripple_raw
        old = raw[position]
        if same_value(old, value):
            return
        raw[position] = value
        self._stored(position, old, value)

    def __delitem__(self, index: Any) -> None:
        self._mutate(self._ripple_raw.__delitem__, index)

    def insert(self, index: int, value: Any) -> None:
        value, anchor = self._prepare(value)
        self._mutate(self._ripple_raw.insert, index, value)

    def append(self, value: Any) -> None:
        value, anchor = self._prepare(value)
        self._mutate(self._ripple_raw.append, value)

    def extend(self, values: Iterable[Any]) -> None:
        prepared = [self._prepare(item) for item in values]
        self._mutate(self._ripple_raw.extend, [raw for raw, _ in prepared])

    def pop(self, index: int = -1) -> Any:
        removed = self._mutate(self._ripple_raw.pop, index)
        return self._ripple_registry._reveal(removed)

    def remove(self, value: Any) -> None:
        self._mutate(self._ripple_raw.remove, self._raw_of(value))

    def clear(self) -> None:
        self._mutate(self._ripple_raw.clear)

    def reverse(self) -> None:
        self._mutate(self._ripple_raw.reverse)

    def sort(self, *, key: Optional[Callable[[Any], Any]] = None, reverse: bool = False) -> None:
        """Sort in place. ``key`` receives raw elements."""
        self._mutate(self._ripple_raw.sort, key=key, reverse=reverse)

    def __iadd__(self, values: Iterable[Any]) -> "ReactiveList":
        self.extend(values)
        return self

    def __imul__(self, count: int) -> "ReactiveList":
        self._mutate(self._ripple_raw.__imul__, count)
        return self

    def _mutate(self, operation: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        raw = self._ripple_raw
        before = list(raw)
        try:
            result = operation(*args, **kwargs)
        finally:
            self._repipe(before)

        if len(before) != len(raw):
            self._ripple_bus.trigger(
                EventKind.SET,
                ChangeEvent((LENGTH,), len(raw), len(before), EventKind.SET),
            )
        return result

    def _repipe(self, before: List[Any]) -> None:
        raw = self._ripple_raw
        registry = self._ripple_registry
        released = []
        for position in range(max(len(before), len(raw))):
            old = before[position] if position < len(before) else MISSING
            new = raw[position] if position < len(raw) else MISSING
            if old is new:
                continue
            if is_composite(new):
                registry._attach(self, position, new)
            if is_composite(old):
                released.append((position, old))
        # Attach first so elements that merely moved keep their surrogate.
        for position, old in released:
            registry._release(self, position, old)
