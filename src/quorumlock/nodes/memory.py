"""In-memory lock node.

A single-process stand-in for a storage node, honoring key expiry. Share
one ``InMemoryNode`` between several lock managers to simulate competing
processes talking to the same server.

Suitable for tests and local development. The node can also be told to
fail or to respond slowly, which makes quorum and timing behavior easy to
exercise.
"""

import asyncio
import time
from collections.abc import Callable

from quorumlock.exceptions import NodeConnectionError, NodeOperationError
from quorumlock.nodes.interface import NodeClient


class InMemoryNode(NodeClient):
    """
    In-memory lock node with TTL expiry.

    Example:
        >>> nodes = [InMemoryNode(f"mem-{i}") for i in range(5)]
        >>> manager = QuorumLockManager(nodes)
        >>> handle = await manager.acquire("orders:42", ttl=1000)

    Fault injection:
        - ``available = False`` makes every call raise NodeConnectionError
        - ``fail_operations = True`` makes lock calls raise NodeOperationError
        - ``latency`` delays every call by that many seconds
    """

    def __init__(
        self,
        name: str = "memory",
        *,
        latency: float = 0.0,
        timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the node.

        Args:
            name: Address reported in diagnostics
            latency: Seconds to wait before answering each call
            timeout: Per-operation bound the lock manager should apply
            clock: Monotonic clock in seconds, used for key expiry
        """
        self._name = name
        self._timeout = timeout
        self._clock = clock
        self._keys: dict[str, tuple[str, float]] = {}
        self.latency = latency
        self.available = True
        self.fail_operations = False
        self.connect_calls = 0
        self.close_calls = 0

    @property
    def address(self) -> str:
        return self._name

    @property
    def timeout(self) -> float | None:
        return self._timeout

    async def connect(self) -> None:
        self.connect_calls += 1
        if not self.available:
            raise NodeConnectionError(self.address, "node unavailable")

    async def close(self) -> None:
        self.close_calls += 1

    async def try_set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        await self._before_call("set_if_absent")
        now = self._clock()
        if self._live_value(key, now) is not None:
            return False
        self._keys[key] = (value, now + ttl_ms / 1000)
        return True

    async def try_compare_and_delete(self, key: str, expected_value: str) -> bool:
        await self._before_call("compare_and_delete")
        if self._live_value(key, self._clock()) != expected_value:
            return False
        del self._keys[key]
        return True

    def get(self, key: str) -> str | None:
        """Return the live value stored under ``key``, if any."""
        return self._live_value(key, self._clock())

    def set(self, key: str, value: str, ttl_ms: int) -> None:
        """Store ``key`` unconditionally, as another holder would."""
        self._keys[key] = (value, self._clock() + ttl_ms / 1000)

    def clear(self) -> None:
        """Drop every key."""
        self._keys.clear()

    def _live_value(self, key: str, now: float) -> str | None:
        entry = self._keys.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if now >= expires_at:
            del self._keys[key]
            return None
        return value

    async def _before_call(self, operation: str) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)
        if not self.available:
            raise NodeConnectionError(self.address, "node unavailable")
        if self.fail_operations:
            raise NodeOperationError(self.address, operation, "injected failure")


__all__ = ["InMemoryNode"]
