"""
Shared pytest fixtures for the quorumlock tests.

This module provides:
- In-memory node fixtures (memory_nodes, five_nodes)
- Lock manager fixtures (manager, make_manager)
- A MockTracer fixture for span assertions
- A recorder for node error callbacks
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest

from quorumlock import InMemoryNode, NodeFailure, QuorumLockManager
from quorumlock.observability import MockTracer

# ============================================================================
# Node Fixtures
# ============================================================================


@pytest.fixture
def memory_nodes() -> list[InMemoryNode]:
    """Three independent in-memory nodes."""
    return [InMemoryNode(f"mem-{i}") for i in range(3)]


@pytest.fixture
def five_nodes() -> list[InMemoryNode]:
    """Five independent in-memory nodes."""
    return [InMemoryNode(f"mem-{i}") for i in range(5)]


# ============================================================================
# Observability Fixtures
# ============================================================================


@pytest.fixture
def mock_tracer() -> MockTracer:
    """A tracer that records span names and attributes."""
    return MockTracer()


class FailureRecorder:
    """Collects NodeFailure objects passed to an on_node_error callback."""

    def __init__(self) -> None:
        self.failures: list[NodeFailure] = []

    def __call__(self, failure: NodeFailure) -> None:
        self.failures.append(failure)

    @property
    def nodes(self) -> list[str]:
        return [failure.node for failure in self.failures]


@pytest.fixture
def failure_recorder() -> FailureRecorder:
    """Synchronous node error callback that records every failure."""
    return FailureRecorder()


# ============================================================================
# Manager Fixtures
# ============================================================================


@pytest.fixture
async def make_manager() -> AsyncGenerator[Callable[..., QuorumLockManager], None]:
    """
    Factory for lock managers with fast retries and tracing disabled.

    Every manager created through the factory is closed after the test.
    """
    created: list[QuorumLockManager] = []

    def factory(nodes: list[Any], **kwargs: Any) -> QuorumLockManager:
        kwargs.setdefault("retry_delay_ms", 5)
        kwargs.setdefault("retry_count", 3)
        if "config" not in kwargs and "tracer" not in kwargs:
            kwargs["tracer"] = MockTracer()
        manager = QuorumLockManager(nodes, **kwargs)
        created.append(manager)
        return manager

    yield factory

    for manager in created:
        await manager.close()


@pytest.fixture
def manager(
    make_manager: Callable[..., QuorumLockManager],
    memory_nodes: list[InMemoryNode],
) -> QuorumLockManager:
    """A lock manager over three in-memory nodes."""
    return make_manager(memory_nodes)
