"""
quorumlock - Distributed locks agreed by a majority of independent nodes.

This library provides:
- QuorumLockManager: acquire/release across N nodes with a majority quorum,
  clock drift compensated validity and jittered retries
- Token-checked release that never deletes another holder's lock
- Redis and in-memory node backends behind a small NodeClient interface
- Optional OpenTelemetry tracing
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("quorumlock-py")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

from quorumlock.config import LockManagerConfig, NodeConfig
from quorumlock.drift import clock_drift_ms, validity_ms
from quorumlock.exceptions import (
    InvalidHandleError,
    LockNotAcquiredError,
    NodeConnectionError,
    NodeError,
    NodeOperationError,
    QuorumLockError,
)
from quorumlock.manager import LockManagerStats, NodeErrorCallback, QuorumLockManager
from quorumlock.models import AttemptResult, LockHandle, NodeFailure, generate_token
from quorumlock.nodes import (
    REDIS_AVAILABLE,
    InMemoryNode,
    NodeClient,
    NodeSet,
    RedisNodeClient,
    RedisNotAvailableError,
)
from quorumlock.quorum import has_quorum, majority_threshold
from quorumlock.retry import RetryScheduler, calculate_jittered_delay

__all__ = [
    "__version__",
    # Manager
    "QuorumLockManager",
    "LockManagerStats",
    "NodeErrorCallback",
    # Configuration
    "LockManagerConfig",
    "NodeConfig",
    # Results
    "LockHandle",
    "AttemptResult",
    "NodeFailure",
    "generate_token",
    # Algorithm helpers
    "majority_threshold",
    "has_quorum",
    "clock_drift_ms",
    "validity_ms",
    "RetryScheduler",
    "calculate_jittered_delay",
    # Nodes
    "NodeClient",
    "NodeSet",
    "InMemoryNode",
    "RedisNodeClient",
    "REDIS_AVAILABLE",
    # Exceptions
    "QuorumLockError",
    "NodeError",
    "NodeConnectionError",
    "NodeOperationError",
    "InvalidHandleError",
    "LockNotAcquiredError",
    "RedisNotAvailableError",
]
