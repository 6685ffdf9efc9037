"""Redis node client.

Implements the two lock primitives on a single Redis server:

- set-if-absent: ``SET key token NX PX ttl``
- compare-and-delete: a Lua script, so the ownership check and the
  deletion run as one atomic step on the server

Example:
    >>> from quorumlock.config import NodeConfig
    >>> from quorumlock.nodes.redis import RedisNodeClient
    >>>
    >>> client = RedisNodeClient(NodeConfig(host="localhost"))
    >>> await client.connect()
    >>> await client.try_set_if_absent("orders:42", token, 10_000)
    True
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from quorumlock.config import NodeConfig
from quorumlock.exceptions import NodeConnectionError, NodeOperationError
from quorumlock.nodes.interface import NodeClient

if TYPE_CHECKING:
    from redis.commands.core import AsyncScript

# Optional Redis import - fail gracefully if not installed
try:
    import redis.asyncio as aioredis
    from redis.asyncio import Redis
    from redis.exceptions import RedisError

    REDIS_AVAILABLE = True
except ImportError:
    REDIS_AVAILABLE = False
    aioredis = None  # type: ignore[assignment]
    Redis = None  # type: ignore[assignment, misc]
    RedisError = Exception  # type: ignore[assignment, misc]

logger = logging.getLogger(__name__)

RELEASE_SCRIPT = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return redis.call("DEL", KEYS[1])
else
    return 0
end
"""


class RedisNotAvailableError(ImportError):
    """Raised when redis package is not installed."""

    def __init__(self) -> None:
        super().__init__(
            "Redis package is not installed. Install it with: pip install quorumlock-py[redis]"
        )


class RedisNodeClient(NodeClient):
    """
    Lock node backed by one Redis server.

    The client owns a single ``redis.asyncio.Redis`` connection pool. It
    connects when ``connect()`` is called and reconnects on the next
    operation if that first connection failed.

    Args:
        node: Connection parameters for the server

    Raises:
        RedisNotAvailableError: If the redis package is not installed
    """

    def __init__(self, node: NodeConfig) -> None:
        if not REDIS_AVAILABLE:
            raise RedisNotAvailableError()

        self._node = node
        self._redis: Redis | None = None
        self._release_script: AsyncScript | None = None
        self._connect_lock = asyncio.Lock()

    @property
    def address(self) -> str:
        return self._node.address

    @property
    def timeout(self) -> float:
        return self._node.timeout

    @property
    def node(self) -> NodeConfig:
        """Get the node configuration."""
        return self._node

    @property
    def is_connected(self) -> bool:
        """Check if a connection has been established."""
        return self._redis is not None

    async def connect(self) -> None:
        """
        Connect and authenticate, then verify the server with PING.

        Raises:
            NodeConnectionError: If the server is unreachable or rejects
                the credentials
        """
        async with self._connect_lock:
            if self._redis is not None:
                return

            client = aioredis.Redis(**self._connection_kwargs())
            try:
                await client.ping()
            except (RedisError, OSError) as e:
                await self._discard(client)
                raise NodeConnectionError(self.address, f"connection failed: {e}") from e
            except BaseException:
                # Cancelled or timed out by the caller: drop the half-open pool.
                await self._discard(client)
                raise

            self._redis = client
            self._release_script = client.register_script(RELEASE_SCRIPT)
        logger.debug("Connected to lock node", extra={"node": self.address})

    async def close(self) -> None:
        """Close the connection pool."""
        client = self._redis
        self._redis = None
        self._release_script = None
        if client is not None:
            await client.aclose()
            logger.debug("Disconnected from lock node", extra={"node": self.address})

    async def try_set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        client = await self._ensure_connected()
        try:
            result = await client.set(key, value, nx=True, px=int(ttl_ms))
        except (RedisError, OSError) as e:
            raise NodeOperationError(self.address, "set_if_absent", str(e)) from e
        return bool(result)

    async def try_compare_and_delete(self, key: str, expected_value: str) -> bool:
        await self._ensure_connected()
        assert self._release_script is not None
        try:
            deleted = await self._release_script(keys=[key], args=[expected_value])
        except (RedisError, OSError) as e:
            raise NodeOperationError(self.address, "compare_and_delete", str(e)) from e
        return int(deleted) == 1

    async def _ensure_connected(self) -> Redis:
        if self._redis is None:
            await self.connect()
        assert self._redis is not None
        return self._redis

    def _connection_kwargs(self) -> dict[str, Any]:
        node = self._node
        kwargs: dict[str, Any] = {
            "host": node.host,
            "port": node.port,
            "db": node.db,
            "socket_timeout": node.timeout,
            "socket_connect_timeout": node.timeout,
            "decode_responses": True,
        }
        if node.password is not None:
            kwargs["password"] = node.password.get_secret_value()
        if node.username is not None:
            kwargs["username"] = node.username
        if node.ssl:
            kwargs["ssl"] = True
        kwargs.update(node.options)
        return kwargs

    async def _discard(self, client: Redis) -> None:
        try:
            await client.aclose()
        except (RedisError, OSError) as e:
            logger.debug(
                "Error closing failed lock node connection",
                extra={"node": self.address, "error": str(e)},
            )


__all__ = [
    "REDIS_AVAILABLE",
    "RELEASE_SCRIPT",
    "RedisNodeClient",
    "RedisNotAvailableError",
]
