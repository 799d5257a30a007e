"""
Ripple Pipes - Parent/Child Event Propagation
=============================================

A pipe makes a parent bus hear everything that happens on a child bus, with
the field name under which the child is stored prepended to the path. A
mutation three levels down therefore reaches the root as a single event whose
path runs from the root to the mutated field.

Pipes are recorded per ``(parent bus, field)`` and per child bus, so
``unpipe`` removes exactly the forwarder that was installed for that child,
even when the same field has since been piped to another value or the same
child sits under several fields of the parent.
"""

import logging
from typing import Any, Hashable, Optional

from .bus import Bus, Forwarder
from .errors import StaleDependencyError
from .events import WILDCARD


def pipe(parent: Bus, child: Bus, name: Hashable, anchor: Any = None) -> Forwarder:
    """
    Forward ``child``'s change events to ``parent`` under ``name``.

    Piping the same child under the same name twice returns the existing
    forwarder instead of installing a second one.

    Args:
        parent: The bus of the value holding the child.
        child: The bus of the value stored at ``name``.
        name: Field name (dict key, list index or attribute name).
        anchor: Object kept alive for the lifetime of the pipe, normally the
            child's surrogate.

    Returns:
        The installed forwarder.
    """
    children = parent._pipes.setdefault(name, {})
    existing = children.get(child)
    if existing is not None:
        return existing

    forwarder = Forwarder(parent, name, child, anchor)
    child.on(WILDCARD, forwarder)
    children[child] = forwarder
    logging.debug(f"piped {child!r} into {parent!r} at {name!r}")
    return forwarder


def unpipe(parent: Bus, child: Bus, name: Hashable) -> Forwarder:
    """
    Remove the forwarder installed by ``pipe(parent, child, name)``.

    Raises:
        StaleDependencyError: No such pipe was ever recorded.
    """
    children = parent._pipes.get(name)
    forwarder: Optional[Forwarder] = children.pop(child, None) if children else None
    if forwarder is None:
        raise StaleDependencyError(
            f"no pipe from {child!r} into {parent!r} at {name!r}"
        )
    if not children:
        del parent._pipes[name]

    child.off(WILDCARD, forwarder)
    forwarder.anchor = None
    logging.debug(f"unpiped {child!r} from {parent!r} at {name!r}")
    return forwarder


def is_piped(parent: Bus, child: Bus, name: Hashable) -> bool:
    children = parent._pipes.get(name)
    return bool(children) and child in children
