"""
Ripple Errors - Exception Taxonomy
==================================

Every error raised by the engine derives from ``ReactiveError``. Most also
derive from the built-in exception a caller would naturally expect, so code
written against plain Python semantics keeps working (``wrap(1)`` raises a
``TypeError``, for instance).

Errors raised by the underlying containers themselves (``KeyError`` on a
missing key, ``IndexError`` on a bad index, ``FrozenInstanceError`` on a
frozen dataclass) are never translated; they propagate unchanged and no
change event is emitted.
"""


class ReactiveError(Exception):
    """Base class for all Ripple errors."""

    pass


class NotCompositeError(ReactiveError, TypeError):
    """Raised when ``wrap`` receives an atomic value."""

    def __init__(self, value):
        self.value = value
        super().__init__(
            f"cannot observe value of type {type(value).__name__!r}: "
            "only dicts, lists, dataclass instances and namespaces are composite"
        )


class NotObservableError(ReactiveError, LookupError):
    """Raised when a value was never produced by ``wrap`` on this registry."""

    def __init__(self, value):
        self.value = value
        super().__init__(
            f"{type(value).__name__} object at {id(value):#x} is not observed by this registry"
        )


class StaleDependencyError(ReactiveError, RuntimeError):
    """Raised when unpiping a field that has no recorded forwarding callback.

    This signals a broken internal invariant rather than a recoverable
    condition.
    """

    pass


class ForeignSurrogateError(ReactiveError, ValueError):
    """Raised when a surrogate owned by another registry is stored."""

    pass


class CollectorError(ReactiveError, RuntimeError):
    """Raised when the dependency collection stack is closed out of order."""

    pass
