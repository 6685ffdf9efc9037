"""
Shared pytest fixtures for integration tests.

This module starts three independent Redis servers with testcontainers so
the quorum algorithm runs against real SET NX PX and Lua semantics.

If testcontainers or Docker is not available, tests are automatically skipped.
"""

from __future__ import annotations

import subprocess
from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest

from quorumlock import REDIS_AVAILABLE, NodeConfig

REDIS_NODE_COUNT = 3


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for integration tests."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (may require docker)"
    )
    config.addinivalue_line("markers", "redis: marks tests that require Redis")


# ============================================================================
# Testcontainers Detection
# ============================================================================

TESTCONTAINERS_AVAILABLE = False

try:
    from testcontainers.redis import RedisContainer

    TESTCONTAINERS_AVAILABLE = True
except ImportError:
    RedisContainer = None  # type: ignore[assignment, misc]


def is_docker_available() -> bool:
    """Check if Docker is available for running containers."""
    try:
        result = subprocess.run(
            ["docker", "info"],
            capture_output=True,
            timeout=5,
        )
        return result.returncode == 0
    except (subprocess.TimeoutExpired, OSError):
        return False


DOCKER_AVAILABLE = is_docker_available()


# ============================================================================
# Skip Conditions
# ============================================================================

skip_if_no_redis_infra = pytest.mark.skipif(
    not (TESTCONTAINERS_AVAILABLE and DOCKER_AVAILABLE and REDIS_AVAILABLE),
    reason="Redis test infrastructure not available",
)


# ============================================================================
# Redis Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def redis_containers() -> Generator[list[Any], None, None]:
    """
    Provide independent Redis containers for integration tests.

    Containers are shared across all tests in the session for efficiency.
    """
    if not (TESTCONTAINERS_AVAILABLE and DOCKER_AVAILABLE):
        pytest.skip("Redis testcontainer not available")

    containers = []
    try:
        for _ in range(REDIS_NODE_COUNT):
            container = RedisContainer("redis:7")
            container.start()
            containers.append(container)
        yield containers
    finally:
        for container in containers:
            container.stop()


@pytest.fixture(scope="session")
def redis_nodes(redis_containers: list[Any]) -> list[NodeConfig]:
    """Node configurations pointing at the containers."""
    return [
        NodeConfig(
            host=container.get_container_host_ip(),
            port=int(container.get_exposed_port(6379)),
            timeout=1.0,
        )
        for container in redis_containers
    ]


@pytest.fixture
async def redis_clients(redis_nodes: list[NodeConfig]) -> AsyncGenerator[list[Any], None]:
    """
    Provide one raw async Redis client per node.

    Flushes every server before and after each test for isolation.
    """
    try:
        import redis.asyncio as redis
    except ImportError:
        pytest.skip("redis package not installed")

    clients = [
        redis.Redis(host=node.host, port=node.port, decode_responses=True)
        for node in redis_nodes
    ]
    for client in clients:
        await client.flushall()

    yield clients

    for client in clients:
        await client.flushall()
        await client.aclose()
