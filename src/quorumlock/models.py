"""
Value objects produced by the lock manager.

- LockHandle: proof of a successful acquisition, consumed by release
- AttemptResult: outcome of one round of set-if-absent calls
- NodeFailure: a node that errored instead of answering
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from quorumlock.exceptions import NodeConnectionError, NodeError

TOKEN_BYTES = 20


def generate_token() -> str:
    """
    Generate a lock token.

    Tokens are 160 random bits, hex encoded. They are never reused across
    attempts, and they are the only credential that authorizes a release,
    so collisions between processes must be negligible without any
    coordination.
    """
    return secrets.token_hex(TOKEN_BYTES)


@dataclass(frozen=True)
class LockHandle:
    """
    A lock held on a majority of nodes.

    ``validity_ms`` is computed once at acquisition time and is never
    refreshed. It is advisory: the nodes only enforce the TTL they were
    given, so the holder should finish its critical section well within
    ``validity_ms`` of ``acquired_at``.

    Attributes:
        resource: Name of the locked resource (the key on each node)
        token: Random value stored under the key; authorizes release
        validity_ms: Remaining validity when the lock was acquired
        acquired_at: When the acquisition completed (UTC)
    """

    resource: str
    token: str
    validity_ms: float
    acquired_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource": self.resource,
            "token": self.token,
            "validity_ms": self.validity_ms,
            "acquired_at": self.acquired_at.isoformat(),
        }


@dataclass(frozen=True)
class NodeFailure:
    """
    A node that raised instead of answering during a lock operation.

    Attributes:
        node: Address of the node
        operation: "connect", "set_if_absent" or "compare_and_delete"
        error: The node error that was caught
    """

    node: str
    operation: str
    error: NodeError

    @property
    def is_connection_error(self) -> bool:
        """True if the node could not be reached or authenticated."""
        return isinstance(self.error, NodeConnectionError)


@dataclass(frozen=True)
class AttemptResult:
    """
    Outcome of a single acquisition round.

    Attributes:
        attempt: 1-based attempt number within the acquire call
        token: Token written during this attempt
        granted: Number of nodes that accepted set-if-absent
        quorum: Number of grants required
        node_count: Number of nodes contacted
        elapsed_ms: Time spent contacting the nodes
        drift_ms: Drift margin subtracted from the TTL
        validity_ms: ttl - elapsed_ms - drift_ms
        failures: Nodes that errored (counted as not granting)
    """

    attempt: int
    token: str
    granted: int
    quorum: int
    node_count: int
    elapsed_ms: float
    drift_ms: float
    validity_ms: float
    failures: tuple[NodeFailure, ...] = ()

    @property
    def succeeded(self) -> bool:
        """True if a majority granted and validity time remains."""
        return self.granted >= self.quorum and self.validity_ms > 0

    @property
    def declined(self) -> int:
        """Nodes that answered but did not grant (key already held)."""
        return self.node_count - self.granted - len(self.failures)


__all__ = [
    "AttemptResult",
    "LockHandle",
    "NodeFailure",
    "TOKEN_BYTES",
    "generate_token",
]
