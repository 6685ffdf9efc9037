"""
Standard span attributes for quorumlock.

These constants keep span attribute names consistent between the lock
manager, the node set and any application code that wants to correlate
its own spans with lock activity.

Example:
    >>> from quorumlock.observability.attributes import ATTR_LOCK_RESOURCE
    >>>
    >>> with tracer.span("quorumlock.acquire", {ATTR_LOCK_RESOURCE: "orders:42"}):
    ...     pass
"""

# =============================================================================
# Lock Attributes
# =============================================================================

ATTR_LOCK_RESOURCE = "quorumlock.lock.resource"
"""Name of the resource being locked."""

ATTR_LOCK_TTL_MS = "quorumlock.lock.ttl_ms"
"""Requested TTL in milliseconds (integer)."""

ATTR_LOCK_ACQUIRED = "quorumlock.lock.acquired"
"""Whether the lock was acquired (boolean)."""

ATTR_LOCK_VALIDITY_MS = "quorumlock.lock.validity_ms"
"""Computed validity window in milliseconds (float)."""

# =============================================================================
# Quorum Attributes
# =============================================================================

ATTR_NODE_COUNT = "quorumlock.quorum.node_count"
"""Number of configured nodes (integer)."""

ATTR_QUORUM = "quorumlock.quorum.required"
"""Number of grants required for a majority (integer)."""

ATTR_GRANTED = "quorumlock.quorum.granted"
"""Number of nodes that granted the lock in an attempt (integer)."""

ATTR_NODE_FAILURES = "quorumlock.quorum.node_failures"
"""Number of nodes that failed during an operation (integer)."""

# =============================================================================
# Retry Attributes
# =============================================================================

ATTR_ATTEMPT = "quorumlock.retry.attempt"
"""1-based attempt number within one acquire call (integer)."""

ATTR_RETRY_COUNT = "quorumlock.retry.count"
"""Maximum number of attempts for an acquire call (integer)."""

ATTR_ELAPSED_MS = "quorumlock.retry.elapsed_ms"
"""Wall time spent contacting nodes in one attempt (float)."""


__all__ = [
    "ATTR_LOCK_RESOURCE",
    "ATTR_LOCK_TTL_MS",
    "ATTR_LOCK_ACQUIRED",
    "ATTR_LOCK_VALIDITY_MS",
    "ATTR_NODE_COUNT",
    "ATTR_QUORUM",
    "ATTR_GRANTED",
    "ATTR_NODE_FAILURES",
    "ATTR_ATTEMPT",
    "ATTR_RETRY_COUNT",
    "ATTR_ELAPSED_MS",
]
