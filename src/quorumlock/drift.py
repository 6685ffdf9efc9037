"""
Clock drift compensation.

A lock is only safe while every granting node still holds the key. The
holder cannot observe node clocks, so it subtracts the time spent
acquiring and a drift margin from the TTL to get a conservative validity
window.
"""

DRIFT_FLOOR_MS = 2
"""1 ms of expiry precision at the node plus 1 ms minimum drift for small TTLs."""

DEFAULT_CLOCK_DRIFT_FACTOR = 0.01


def clock_drift_ms(ttl_ms: float, clock_drift_factor: float = DEFAULT_CLOCK_DRIFT_FACTOR) -> float:
    """
    Drift margin for a lock with the given TTL.

    Example:
        >>> clock_drift_ms(1000)
        12.0
    """
    return ttl_ms * clock_drift_factor + DRIFT_FLOOR_MS


def validity_ms(
    ttl_ms: float,
    elapsed_ms: float,
    clock_drift_factor: float = DEFAULT_CLOCK_DRIFT_FACTOR,
) -> float:
    """
    Remaining validity after an acquisition that took ``elapsed_ms``.

    The result may be zero or negative, which means the lock must be
    treated as not acquired even if a majority granted it.
    """
    return ttl_ms - elapsed_ms - clock_drift_ms(ttl_ms, clock_drift_factor)


__all__ = [
    "DEFAULT_CLOCK_DRIFT_FACTOR",
    "DRIFT_FLOOR_MS",
    "clock_drift_ms",
    "validity_ms",
]
