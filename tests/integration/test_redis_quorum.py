"""
Integration tests for the quorum lock against real Redis servers.

These tests verify:
- Acquire writes the same token on every node with a PX expiry
- Release only deletes keys holding the handle's token
- Contending managers exclude each other
- An unreachable minority does not prevent locking
"""

from __future__ import annotations

from typing import Any

import pytest

from quorumlock import NodeConfig, QuorumLockManager
from quorumlock.observability import NullTracer

from .conftest import skip_if_no_redis_infra

pytestmark = [
    pytest.mark.integration,
    pytest.mark.redis,
    skip_if_no_redis_infra,
]


def make_manager(nodes: list[NodeConfig], **kwargs: Any) -> QuorumLockManager:
    kwargs.setdefault("retry_delay_ms", 20)
    kwargs.setdefault("retry_count", 3)
    return QuorumLockManager(nodes, tracer=NullTracer(), **kwargs)


class TestRedisQuorumLock:
    """Lock lifecycle against three Redis servers."""

    async def test_acquire_and_release(
        self,
        redis_nodes: list[NodeConfig],
        redis_clients: list[Any],
    ):
        async with make_manager(redis_nodes) as manager:
            handle = await manager.acquire("it:orders", ttl=5000)

            assert handle is not None
            assert 0 < handle.validity_ms < 5000
            for client in redis_clients:
                assert await client.get("it:orders") == handle.token
                assert 0 < await client.pttl("it:orders") <= 5000

            await manager.release(handle)

            for client in redis_clients:
                assert await client.get("it:orders") is None

    async def test_contending_managers_exclude_each_other(
        self,
        redis_nodes: list[NodeConfig],
        redis_clients: list[Any],
    ):
        async with (
            make_manager(redis_nodes) as first,
            make_manager(redis_nodes, retry_count=1) as second,
        ):
            handle = await first.acquire("it:jobs", ttl=5000)
            assert handle is not None

            assert await second.acquire("it:jobs", ttl=5000) is None

            await first.release(handle)
            assert await second.acquire("it:jobs", ttl=5000) is not None

    async def test_release_keeps_foreign_token(
        self,
        redis_nodes: list[NodeConfig],
        redis_clients: list[Any],
    ):
        async with make_manager(redis_nodes) as manager:
            handle = await manager.acquire("it:reports", ttl=5000)
            assert handle is not None
            for client in redis_clients:
                await client.set("it:reports", "new-owner", px=5000)

            await manager.release(handle)

            for client in redis_clients:
                assert await client.get("it:reports") == "new-owner"

    async def test_unreachable_minority(
        self,
        redis_nodes: list[NodeConfig],
        redis_clients: list[Any],
    ):
        dead = NodeConfig(host="127.0.0.1", port=1, timeout=0.05)
        failures: list[Any] = []

        async with make_manager([*redis_nodes[:2], dead], on_node_error=failures.append) as manager:
            handle = await manager.acquire("it:minority", ttl=5000)

            assert handle is not None
            assert {failure.node for failure in failures} == {"127.0.0.1:1"}
            await manager.release(handle)
