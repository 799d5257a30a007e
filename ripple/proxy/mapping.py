"""
Ripple ReactiveDict - Observed Mappings
=======================================

Surrogate for ``dict`` values. Keys are the observed fields.

Every mutating ``MutableMapping`` mixin method (``pop``, ``popitem``,
``setdefault``, ``update``, ``clear``) is built on ``__setitem__`` and
``__delitem__``, so each key it touches produces its own event. ``|`` returns
a plain ``dict``; ``|=`` goes through ``update``.

A ``defaultdict`` that fills in a missing key on read reports the insertion
as a ``set`` event before the read returns.
"""

from collections.abc import Mapping, MutableMapping
from typing import Any, Hashable, Iterator, Tuple

from ..events import MISSING
from .base import ReactiveBase, same_value


class ReactiveDict(ReactiveBase, MutableMapping):
    """
    Observed ``dict``.

    Example:
        ```python
        state = wrap({"user": {"name": "Ada"}})
        watch(state, lambda event: print(event.path, event.value))
        state["user"]["name"] = "Grace"   # ('user', 'name') Grace
        ```
    """

    __slots__ = ()

    @classmethod
    def _fields_of(cls, raw: dict) -> Iterator[Tuple[Hashable, Any]]:
        return iter(list(raw.items()))

    @classmethod
    def _replace_field(cls, raw: dict, name: Hashable, value: Any) -> None:
        raw[name] = value

    def __getitem__(self, key: Hashable) -> Any:
        raw = self._ripple_raw
        # dict subclasses with __missing__ (defaultdict) may insert on read.
        inserting = type(raw) is not dict and key not in raw
        try:
            value = raw[key]
        except KeyError:
            self._track(key)
            raise
        if inserting and key in raw:
            self._stored(key, MISSING, value)
        return self._read(key, value)

    def get(self, key: Hashable, default: Any = None) -> Any:
        if key in self._ripple_raw:
            return self[key]
        self._track(key)
        return default

    def setdefault(self, key: Hashable, default: Any = None) -> Any:
        if key not in self._ripple_raw:
            self[key] = default
        return self[key]

    def __setitem__(self, key: Hashable, value: Any) -> None:
        value, anchor = self._prepare(value)
        raw = self._ripple_raw
        old = raw.get(key, MISSING)
        if same_value(old, value):
            return
        raw[key] = value
        self._stored(key, old, value)

    def __delitem__(self, key: Hashable) -> None:
        raw = self._ripple_raw
        old = raw[key]
        del raw[key]
        self._deleted(key, old)

    def __contains__(self, key: object) -> bool:
        self._track(key)
        return key in self._ripple_raw

    def __iter__(self) -> Iterator[Hashable]:
        self._track_whole()
        return iter(self._ripple_raw)

    def __len__(self) -> int:
        self._track_whole()
        return len(self._ripple_raw)

    def copy(self) -> dict:
        """Shallow copy of the raw mapping (not observed)."""
        self._track_whole()
        return self._ripple_raw.copy()

    def __or__(self, other: Any) -> dict:
        if not isinstance(other, Mapping):
            return NotImplemented
        self._track_whole()
        merged = self._ripple_raw.copy()
        merged.update(self._raw_of(other))
        return merged

    def __ror__(self, other: Any) -> dict:
        if not isinstance(other, Mapping):
            return NotImplemented
        self._track_whole()
        merged = dict(other)
        merged.update(self._ripple_raw)
        return merged

    def __ior__(self, other: Any) -> "ReactiveDict":
        self.update(other)
        return self
