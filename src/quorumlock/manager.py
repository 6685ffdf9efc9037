"""
Quorum lock manager.

Acquires a lock by writing a random token under the resource key on every
node with set-if-absent and an expiry. The lock is held when a majority of
nodes granted the write and enough of the TTL remains after subtracting
the time spent and a clock drift margin. Otherwise the token is removed
from every node again and the attempt is retried after a random pause.

Releasing deletes the key on every node, but only where it still holds
the handle's token, so an expired lock that has since been taken by
another process is never released by mistake.

Usage:
    >>> manager = QuorumLockManager(
    ...     [NodeConfig(host="redis-a"), NodeConfig(host="redis-b"), NodeConfig(host="redis-c")],
    ... )
    >>> async with manager:
    ...     handle = await manager.acquire("orders:42", ttl=10_000)
    ...     if handle is not None:
    ...         try:
    ...             await process_order()
    ...         finally:
    ...             await manager.release(handle)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import aclosing, asynccontextmanager
from dataclasses import dataclass, replace
from types import TracebackType
from typing import Any

from quorumlock.config import LockManagerConfig, NodeConfig
from quorumlock.drift import clock_drift_ms, validity_ms
from quorumlock.exceptions import InvalidHandleError, LockNotAcquiredError
from quorumlock.models import AttemptResult, LockHandle, NodeFailure, generate_token
from quorumlock.nodes.interface import NodeClient
from quorumlock.nodes.node_set import ClientFactory, NodeSet, to_node_failure
from quorumlock.observability import Tracer, create_tracer
from quorumlock.observability.attributes import (
    ATTR_ATTEMPT,
    ATTR_ELAPSED_MS,
    ATTR_GRANTED,
    ATTR_LOCK_ACQUIRED,
    ATTR_LOCK_RESOURCE,
    ATTR_LOCK_TTL_MS,
    ATTR_LOCK_VALIDITY_MS,
    ATTR_NODE_COUNT,
    ATTR_NODE_FAILURES,
    ATTR_QUORUM,
    ATTR_RETRY_COUNT,
)
from quorumlock.quorum import majority_threshold
from quorumlock.retry import RetryScheduler

logger = logging.getLogger(__name__)

SET_IF_ABSENT = "set_if_absent"
COMPARE_AND_DELETE = "compare_and_delete"

NodeErrorCallback = Callable[[NodeFailure], Awaitable[None] | None]
"""Sync or async callback invoked for every node failure."""


@dataclass
class LockManagerStats:
    """
    Counters for lock manager activity.

    Attributes:
        attempts: Acquisition rounds run across all acquire calls
        acquired: Acquire calls that returned a handle
        not_acquired: Acquire calls that exhausted their attempts
        releases: Release calls
        node_failures: Node errors observed (connect, lock and release)
    """

    attempts: int = 0
    acquired: int = 0
    not_acquired: int = 0
    releases: int = 0
    node_failures: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert stats to dictionary for serialization."""
        return {
            "attempts": self.attempts,
            "acquired": self.acquired,
            "not_acquired": self.not_acquired,
            "releases": self.releases,
            "node_failures": self.node_failures,
        }


class QuorumLockManager:
    """
    Distributed lock over a majority of independent nodes.

    The manager owns its NodeSet. Clients are created once, on ``open()``
    or on first use, and live until ``close()``. Prefer the async context
    manager form so the connections are always released.

    A node that errors or times out never aborts an attempt: it simply
    does not count as a grant. Such failures are logged and passed to the
    optional ``on_node_error`` callback, which is useful for alerting even
    when the lock was still acquired. Keep the callback quick; it runs
    before acquire returns.

    Concurrency:
        Use a manager from a single event loop. Concurrent acquire and
        release calls on that loop are safe.

    Example:
        >>> nodes = [NodeConfig(host=h) for h in ("redis-a", "redis-b", "redis-c")]
        >>> async with QuorumLockManager(nodes, retry_count=5) as manager:
        ...     async with manager.lock("reports:daily", ttl=30_000) as handle:
        ...         await build_report(deadline_ms=handle.validity_ms)
    """

    def __init__(
        self,
        nodes: Sequence[NodeConfig | NodeClient],
        *,
        config: LockManagerConfig | None = None,
        retry_delay_ms: float | None = None,
        retry_count: int | None = None,
        clock_drift_factor: float | None = None,
        client_factory: ClientFactory | None = None,
        tracer: Tracer | None = None,
        on_node_error: NodeErrorCallback | None = None,
    ) -> None:
        """
        Initialize the lock manager.

        Args:
            nodes: Node descriptors or ready clients (at least one)
            config: Algorithm settings. Defaults to LockManagerConfig().
            retry_delay_ms: Overrides config.retry_delay_ms
            retry_count: Overrides config.retry_count
            clock_drift_factor: Overrides config.clock_drift_factor
            client_factory: Builds clients for NodeConfig items
                (default: RedisNodeClient)
            tracer: Optional custom Tracer instance. If not provided, one is
                created based on config.enable_tracing.
            on_node_error: Called with a NodeFailure whenever a node errors

        Raises:
            ValueError: If no nodes are given or a setting is invalid
        """
        overrides: dict[str, Any] = {
            name: value
            for name, value in (
                ("retry_delay_ms", retry_delay_ms),
                ("retry_count", retry_count),
                ("clock_drift_factor", clock_drift_factor),
            )
            if value is not None
        }
        base_config = config or LockManagerConfig()
        self._config = replace(base_config, **overrides) if overrides else base_config

        self._nodes = NodeSet(nodes, client_factory=client_factory)
        self._quorum = majority_threshold(len(self._nodes))
        self._tracer = tracer or create_tracer(__name__, self._config.enable_tracing)
        self._on_node_error = on_node_error
        self._stats = LockManagerStats()
        self._last_attempt: AttemptResult | None = None

    @property
    def config(self) -> LockManagerConfig:
        """Get the effective configuration."""
        return self._config

    @property
    def nodes(self) -> NodeSet:
        """Get the node set."""
        return self._nodes

    @property
    def node_count(self) -> int:
        """Number of configured nodes."""
        return len(self._nodes)

    @property
    def quorum(self) -> int:
        """Number of grants needed to hold a lock."""
        return self._quorum

    @property
    def stats(self) -> LockManagerStats:
        """Get activity counters."""
        return self._stats

    @property
    def last_attempt(self) -> AttemptResult | None:
        """Outcome of the most recent acquisition round, for diagnostics."""
        return self._last_attempt

    async def open(self) -> None:
        """
        Connect to every node.

        Unreachable nodes are reported through logging and ``on_node_error``;
        they do not make open() fail, because a minority of missing nodes
        must not prevent locking. Calling open() again does nothing.
        """
        if self._nodes.is_open:
            return
        failures = await self._nodes.open()
        await self._report_failures(failures)

    async def close(self) -> None:
        """Close every node connection."""
        await self._nodes.close()

    async def __aenter__(self) -> QuorumLockManager:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def acquire(self, resource: str, ttl: int) -> LockHandle | None:
        """
        Try to lock ``resource`` for ``ttl`` milliseconds.

        Runs up to ``retry_count`` attempts. Each attempt uses a fresh
        token and contacts every node. Failed attempts remove their token
        from every node before the next one starts.

        Args:
            resource: Lock key (non-empty)
            ttl: Lock lifetime in milliseconds (> 0)

        Returns:
            A LockHandle whose validity_ms is > 0, or None if no attempt
            reached a quorum with validity time left

        Raises:
            ValueError: If resource or ttl is invalid
        """
        self._validate_request(resource, ttl)
        await self.open()
        clients = self._nodes.clients
        scheduler = RetryScheduler(self._config.retry_count, self._config.retry_delay_ms)

        with self._tracer.span(
            "quorumlock.acquire",
            {
                ATTR_LOCK_RESOURCE: resource,
                ATTR_LOCK_TTL_MS: ttl,
                ATTR_NODE_COUNT: len(clients),
                ATTR_QUORUM: self._quorum,
                ATTR_RETRY_COUNT: self._config.retry_count,
            },
        ) as span:
            async with aclosing(scheduler.attempts()) as attempts:
                async for attempt in attempts:
                    token = generate_token()
                    try:
                        result = await self._attempt(clients, resource, token, ttl, attempt)
                    except asyncio.CancelledError:
                        await self._release_on_all_nodes(clients, resource, token)
                        raise

                    if result.succeeded:
                        self._stats.acquired += 1
                        if span:
                            span.set_attribute(ATTR_LOCK_ACQUIRED, True)
                            span.set_attribute(ATTR_LOCK_VALIDITY_MS, result.validity_ms)
                        logger.info(
                            "Acquired lock: resource=%s, granted=%d/%d, validity_ms=%.1f",
                            resource,
                            result.granted,
                            result.node_count,
                            result.validity_ms,
                        )
                        return LockHandle(
                            resource=resource,
                            token=token,
                            validity_ms=result.validity_ms,
                        )

                    await self._release_on_all_nodes(clients, resource, token)
                    logger.debug(
                        "Lock attempt failed",
                        extra={
                            "resource": resource,
                            "attempt": attempt,
                            "granted": result.granted,
                            "quorum": result.quorum,
                            "validity_ms": result.validity_ms,
                            "node_failures": len(result.failures),
                        },
                    )

                self._stats.not_acquired += 1
                if span:
                    span.set_attribute(ATTR_LOCK_ACQUIRED, False)
                logger.info(
                    "Could not acquire lock: resource=%s, attempts=%d",
                    resource,
                    self._config.retry_count,
                )
                return None

    async def release(self, handle: LockHandle) -> None:
        """
        Release a lock on every node, best effort.

        Only keys that still hold the handle's token are deleted. Node
        errors are logged and reported to ``on_node_error`` but never
        raised, and releasing the same handle twice is harmless.

        Args:
            handle: Handle returned by acquire()

        Raises:
            InvalidHandleError: If the handle is malformed
        """
        self._validate_handle(handle)
        await self.open()
        clients = self._nodes.clients

        with self._tracer.span(
            "quorumlock.release",
            {
                ATTR_LOCK_RESOURCE: handle.resource,
                ATTR_NODE_COUNT: len(clients),
            },
        ):
            deleted = await self._release_on_all_nodes(clients, handle.resource, handle.token)

        self._stats.releases += 1
        logger.info(
            "Released lock: resource=%s, deleted_on=%d/%d",
            handle.resource,
            deleted,
            len(clients),
        )

    @asynccontextmanager
    async def lock(self, resource: str, ttl: int) -> AsyncIterator[LockHandle]:
        """
        Hold a lock for the duration of an ``async with`` block.

        Args:
            resource: Lock key (non-empty)
            ttl: Lock lifetime in milliseconds (> 0)

        Yields:
            The LockHandle

        Raises:
            LockNotAcquiredError: If the lock could not be acquired

        Example:
            >>> async with manager.lock("orders:42", ttl=5_000) as handle:
            ...     await process_order()
        """
        handle = await self.acquire(resource, ttl)
        if handle is None:
            raise LockNotAcquiredError(resource, attempts=self._config.retry_count)
        try:
            yield handle
        finally:
            await self.release(handle)

    async def _attempt(
        self,
        clients: Sequence[NodeClient],
        resource: str,
        token: str,
        ttl: int,
        attempt: int,
    ) -> AttemptResult:
        """Run one round of set-if-absent on every node and judge it."""
        with self._tracer.span(
            "quorumlock.attempt",
            {ATTR_LOCK_RESOURCE: resource, ATTR_ATTEMPT: attempt},
        ) as span:
            start = time.monotonic()
            outcomes = await asyncio.gather(
                *(
                    self._call_node(
                        client,
                        SET_IF_ABSENT,
                        client.try_set_if_absent(resource, token, ttl),
                    )
                    for client in clients
                )
            )
            failures = tuple(outcome for outcome in outcomes if isinstance(outcome, NodeFailure))
            # Callback time is spent while the keys are live, so it counts
            # against validity.
            await self._report_failures(failures)
            elapsed_ms = (time.monotonic() - start) * 1000

            factor = self._config.clock_drift_factor
            result = AttemptResult(
                attempt=attempt,
                token=token,
                granted=sum(1 for outcome in outcomes if outcome is True),
                quorum=self._quorum,
                node_count=len(clients),
                elapsed_ms=elapsed_ms,
                drift_ms=clock_drift_ms(ttl, factor),
                validity_ms=validity_ms(ttl, elapsed_ms, factor),
                failures=failures,
            )
            self._last_attempt = result
            self._stats.attempts += 1

            if span:
                span.set_attribute(ATTR_GRANTED, result.granted)
                span.set_attribute(ATTR_NODE_FAILURES, len(failures))
                span.set_attribute(ATTR_ELAPSED_MS, elapsed_ms)

        return result

    async def _release_on_all_nodes(
        self,
        clients: Sequence[NodeClient],
        resource: str,
        token: str,
    ) -> int:
        """Compare-and-delete on every node. Returns how many keys were deleted."""
        outcomes = await asyncio.gather(
            *(
                self._call_node(
                    client,
                    COMPARE_AND_DELETE,
                    client.try_compare_and_delete(resource, token),
                )
                for client in clients
            )
        )
        await self._report_failures(
            [outcome for outcome in outcomes if isinstance(outcome, NodeFailure)]
        )
        return sum(1 for outcome in outcomes if outcome is True)

    async def _call_node(
        self,
        client: NodeClient,
        operation: str,
        call: Awaitable[bool],
    ) -> bool | NodeFailure:
        """Await one node call, turning any error or timeout into a NodeFailure."""
        try:
            return bool(await asyncio.wait_for(call, timeout=client.timeout))
        except Exception as e:
            failure = to_node_failure(client.address, operation, e)
            logger.warning(
                "Lock node %s failed: node=%s, error=%s",
                operation,
                client.address,
                failure.error,
                extra={
                    "node": client.address,
                    "operation": operation,
                    "error_type": type(e).__name__,
                },
            )
            return failure

    async def _report_failures(self, failures: Sequence[NodeFailure]) -> None:
        for failure in failures:
            self._stats.node_failures += 1
            if self._on_node_error is None:
                continue
            try:
                result = self._on_node_error(failure)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    f"Error in node error callback: {e}",
                    extra={
                        "node": failure.node,
                        "operation": failure.operation,
                    },
                )

    @staticmethod
    def _validate_request(resource: str, ttl: int) -> None:
        if not isinstance(resource, str) or not resource:
            raise ValueError(f"resource must be a non-empty string, got {resource!r}.")
        if (
            isinstance(ttl, bool)
            or not isinstance(ttl, int | float)
            or not math.isfinite(ttl)
            or ttl < 1
        ):
            raise ValueError(f"ttl must be a positive number of milliseconds, got {ttl!r}.")

    @staticmethod
    def _validate_handle(handle: LockHandle) -> None:
        if not isinstance(handle, LockHandle):
            raise InvalidHandleError(f"expected LockHandle, got {type(handle).__name__}")
        if not isinstance(handle.resource, str) or not handle.resource:
            raise InvalidHandleError("resource must be a non-empty string")
        if not isinstance(handle.token, str) or not handle.token:
            raise InvalidHandleError("token must be a non-empty string")

    def __repr__(self) -> str:
        return (
            f"QuorumLockManager(nodes={self._nodes.addresses!r}, quorum={self._quorum}, "
            f"retry_count={self._config.retry_count})"
        )


__all__ = [
    "LockManagerStats",
    "NodeErrorCallback",
    "QuorumLockManager",
]
