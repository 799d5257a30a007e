"""
Ripple Events - Change Event Types
==================================

Events delivered to bus subscribers. A ``ChangeEvent`` always carries raw
values (never surrogates) and the path from the bus that delivered it down to
the mutated field.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Hashable, Tuple

WILDCARD = "*"


class _Missing:
    """Sentinel type for an absent field value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Missing, ())


MISSING: Any = _Missing()


class EventKind(str, Enum):
    """Kinds of events a bus can carry."""

    SET = "set"
    DELETE = "delete"
    GET = "get"
    CHANGE = "change"

    @property
    def is_change(self) -> bool:
        return self is not EventKind.GET

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ChangeEvent:
    """
    A single field mutation (or, for ``GET``, a single field read).

    Attributes:
        path: Field names from the receiving bus down to the mutation site.
        value: The new raw value, or ``MISSING`` after a delete.
        old_value: The previous raw value, or ``MISSING`` for a new field.
        kind: ``EventKind.SET``, ``EventKind.DELETE`` or ``EventKind.GET``.
    """

    path: Tuple[Hashable, ...]
    value: Any = MISSING
    old_value: Any = MISSING
    kind: EventKind = EventKind.SET

    @property
    def is_delete(self) -> bool:
        return self.kind is EventKind.DELETE

    @property
    def head(self) -> Any:
        """The first path element, i.e. the field of the receiving value."""
        return self.path[0] if self.path else MISSING

    def with_prefix(self, name: Hashable) -> "ChangeEvent":
        return replace(self, path=(name,) + self.path)


@dataclass(frozen=True)
class InvalidationEvent:
    """Emitted once by a memoized function's signal when its cache goes stale."""

    causes: Tuple[ChangeEvent, ...] = field(default=())
    kind: EventKind = EventKind.CHANGE

    @property
    def path(self) -> Tuple[Hashable, ...]:
        return ()
