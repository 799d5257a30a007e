"""
Ripple Surrogates
=================

Transparent stand-ins for observed values, one type per composite family.
"""

from typing import Any, Type

from .attrs import ReactiveObject
from .base import ReactiveBase, is_composite, same_value
from .mapping import ReactiveDict
from .sequence import LENGTH, ReactiveList


def surrogate_type(raw: Any) -> Type[ReactiveBase]:
    """Pick the surrogate class for a raw composite value."""
    if isinstance(raw, dict):
        return ReactiveDict
    if isinstance(raw, list):
        return ReactiveList
    return ReactiveObject


__all__ = [
    "LENGTH",
    "ReactiveBase",
    "ReactiveDict",
    "ReactiveList",
    "ReactiveObject",
    "is_composite",
    "same_value",
    "surrogate_type",
]
