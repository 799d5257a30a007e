"""
Ripple ReactiveObject - Observed Attribute Containers
=====================================================

Surrogate for dataclass instances and ``types.SimpleNamespace`` objects.
Attributes are the observed fields, so nested state reads naturally:

    settings = wrap(SimpleNamespace(theme=SimpleNamespace(mode="light")))
    settings.theme.mode = "dark"    # path ('theme', 'mode')

Methods looked up through the surrogate are the raw object's bound methods;
mutations they perform bypass interception. Attribute names starting with
``_ripple_`` are reserved for the surrogate itself.
"""

from dataclasses import fields, is_dataclass
from typing import Any, Hashable, Iterator, List, Tuple

from ..events import MISSING
from .base import ReactiveBase, same_value

_RESERVED = "_ripple_"


class ReactiveObject(ReactiveBase):
    """Observed dataclass instance or namespace."""

    __slots__ = ()

    @classmethod
    def _fields_of(cls, raw: Any) -> Iterator[Tuple[Hashable, Any]]:
        items: List[Tuple[Hashable, Any]] = list(getattr(raw, "__dict__", {}).items())
        if is_dataclass(raw):
            seen = {name for name, _ in items}
            for spec in fields(raw):
                if spec.name in seen:
                    continue
                value = getattr(raw, spec.name, MISSING)
                if value is not MISSING:
                    items.append((spec.name, value))
        return iter(items)

    @classmethod
    def _replace_field(cls, raw: Any, name: Hashable, value: Any) -> None:
        setattr(raw, name, value)

    def __getattr__(self, name: str) -> Any:
        if name.startswith(_RESERVED):
            raise AttributeError(name)
        try:
            value = getattr(self._ripple_raw, name)
        except AttributeError:
            self._track(name)
            raise
        return self._read(name, value)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith(_RESERVED):
            raise AttributeError(f"attribute names starting with {_RESERVED!r} are reserved")
        value, anchor = self._prepare(value)
        raw = self._ripple_raw
        old = getattr(raw, name, MISSING)
        if same_value(old, value):
            return
        setattr(raw, name, value)
        self._stored(name, old, value)

    def __delattr__(self, name: str) -> None:
        if name.startswith(_RESERVED):
            raise AttributeError(f"attribute names starting with {_RESERVED!r} are reserved")
        raw = self._ripple_raw
        old = getattr(raw, name)
        delattr(raw, name)
        self._deleted(name, old)

    def __dir__(self) -> List[str]:
        return dir(self._ripple_raw)
