"""
Lock node clients.

The lock manager talks to storage nodes only through the NodeClient
interface. Two backends ship with the library:

- RedisNodeClient: one Redis server per node (requires ``redis``)
- InMemoryNode: single-process fake for tests and local development
"""

from quorumlock.nodes.interface import NodeClient
from quorumlock.nodes.memory import InMemoryNode
from quorumlock.nodes.node_set import ClientFactory, NodeSet
from quorumlock.nodes.redis import (
    REDIS_AVAILABLE,
    RELEASE_SCRIPT,
    RedisNodeClient,
    RedisNotAvailableError,
)

__all__ = [
    "ClientFactory",
    "InMemoryNode",
    "NodeClient",
    "NodeSet",
    "REDIS_AVAILABLE",
    "RELEASE_SCRIPT",
    "RedisNodeClient",
    "RedisNotAvailableError",
]
