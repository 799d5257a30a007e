"""
Ripple configuration.

RippleConfig holds the defaults a registry hands to the memoization layer.
It is frozen after creation; build a new one to change settings.
"""

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class RippleConfig:
    """Configuration for a Ripple registry.

    Attributes:
        debounce: Seconds a memoized function waits after the last dependency
            change before emitting its invalidation signal.
        use_cache: Whether memoized functions return their cached result
            while it is still clean instead of recomputing on every call.
    """

    debounce: float = 0.01
    use_cache: bool = False

    def __post_init__(self) -> None:
        if self.debounce < 0:
            raise ValueError(f"debounce must be >= 0, got {self.debounce!r}")

    @classmethod
    def from_env(cls, environ=None) -> "RippleConfig":
        """Build a config from ``RIPPLE_DEBOUNCE`` and ``RIPPLE_USE_CACHE``."""
        environ = os.environ if environ is None else environ
        kwargs = {}

        raw_debounce = environ.get("RIPPLE_DEBOUNCE")
        if raw_debounce is not None:
            try:
                kwargs["debounce"] = float(raw_debounce)
            except ValueError:
                raise ValueError(
                    f"RIPPLE_DEBOUNCE must be a number of seconds, got {raw_debounce!r}"
                ) from None

        raw_cache = environ.get("RIPPLE_USE_CACHE")
        if raw_cache is not None:
            lowered = raw_cache.strip().lower()
            if lowered in _TRUTHY:
                kwargs["use_cache"] = True
            elif lowered in _FALSY:
                kwargs["use_cache"] = False
            else:
                raise ValueError(
                    f"RIPPLE_USE_CACHE must be a boolean flag, got {raw_cache!r}"
                )

        return cls(**kwargs)
