"""
The set of nodes a lock manager votes across.

A NodeSet turns node descriptors into live clients exactly once and keeps
them for its whole lifetime. Opening is idempotent and guarded by a lock,
so concurrent acquisitions on one event loop never create duplicate
connections. Closing releases every client; the set can be reopened
afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from types import TracebackType

from quorumlock.config import NodeConfig
from quorumlock.exceptions import NodeConnectionError, NodeError, NodeOperationError
from quorumlock.models import NodeFailure
from quorumlock.nodes.interface import NodeClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[NodeConfig], NodeClient]
"""Builds a client for one node descriptor."""

CONNECT = "connect"


def _default_client_factory(node: NodeConfig) -> NodeClient:
    from quorumlock.nodes.redis import RedisNodeClient

    return RedisNodeClient(node)


def to_node_failure(address: str, operation: str, error: BaseException) -> NodeFailure:
    """
    Normalize anything a node call raised into a NodeFailure.

    Node errors are kept as they are. Timeouts and unexpected exceptions
    are wrapped so callers only ever see the NodeError taxonomy.
    """
    node_error: NodeError
    if isinstance(error, NodeError):
        node_error = error
    elif operation == CONNECT:
        reason = "timed out" if isinstance(error, TimeoutError) else str(error)
        node_error = NodeConnectionError(address, f"connection failed: {reason}")
        node_error.__cause__ = error
    else:
        reason = "timed out" if isinstance(error, TimeoutError) else str(error)
        node_error = NodeOperationError(address, operation, reason)
        node_error.__cause__ = error
    return NodeFailure(node=address, operation=operation, error=node_error)


class NodeSet:
    """
    Lazily materialized, explicitly scoped collection of node clients.

    Items of ``nodes`` may be NodeConfig descriptors, which are turned into
    clients by ``client_factory`` when the set opens, or ready NodeClient
    instances, which are used as given. Either way the set owns the
    clients and closes them in ``close()``.

    Example:
        >>> async with NodeSet([NodeConfig(host="a"), NodeConfig(host="b")]) as nodes:
        ...     for client in nodes.clients:
        ...         ...
    """

    def __init__(
        self,
        nodes: Sequence[NodeConfig | NodeClient],
        client_factory: ClientFactory | None = None,
    ) -> None:
        """
        Initialize the node set.

        Args:
            nodes: Node descriptors or clients (at least one)
            client_factory: Builds a client for a NodeConfig. Defaults to
                RedisNodeClient.

        Raises:
            ValueError: If no nodes are given
            TypeError: If an item is neither a NodeConfig nor a NodeClient
        """
        if not nodes:
            raise ValueError("At least one node is required.")
        for node in nodes:
            if not isinstance(node, NodeConfig | NodeClient):
                raise TypeError(
                    f"nodes must contain NodeConfig or NodeClient instances, "
                    f"got {type(node).__name__}"
                )

        self._specs: tuple[NodeConfig | NodeClient, ...] = tuple(nodes)
        self._client_factory = client_factory or _default_client_factory
        self._clients: tuple[NodeClient, ...] | None = None
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._specs)

    @property
    def is_open(self) -> bool:
        """Check if clients have been materialized."""
        return self._clients is not None

    @property
    def addresses(self) -> list[str]:
        """Addresses of all configured nodes, in configuration order."""
        return [spec.address for spec in self._specs]

    @property
    def clients(self) -> tuple[NodeClient, ...]:
        """
        Get the live clients.

        Raises:
            RuntimeError: If the set has not been opened
        """
        if self._clients is None:
            raise RuntimeError("NodeSet is not open. Call open() first.")
        return self._clients

    async def open(self) -> list[NodeFailure]:
        """
        Materialize and connect every client, once.

        Nodes that fail to connect stay in the set; their clients retry
        on the next operation. Calling open() on an open set does nothing.

        Returns:
            One NodeFailure per node that could not connect
        """
        async with self._lock:
            if self._clients is not None:
                return []

            clients = tuple(self._materialize(spec) for spec in self._specs)
            results = await asyncio.gather(*(self._connect(client) for client in clients))
            self._clients = clients

        failures = [failure for failure in results if failure is not None]
        logger.info(
            "Opened lock node set",
            extra={
                "node_count": len(clients),
                "connected": len(clients) - len(failures),
                "failed_nodes": [failure.node for failure in failures],
            },
        )
        return failures

    async def close(self) -> None:
        """Close every client. Errors while closing are logged, not raised."""
        async with self._lock:
            clients = self._clients
            self._clients = None

        if not clients:
            return

        results = await asyncio.gather(
            *(client.close() for client in clients),
            return_exceptions=True,
        )
        for client, result in zip(clients, results, strict=True):
            if isinstance(result, Exception):
                logger.warning(
                    "Error closing lock node: node=%s, error=%s",
                    client.address,
                    result,
                )
        logger.debug("Closed lock node set", extra={"node_count": len(clients)})

    async def __aenter__(self) -> NodeSet:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _materialize(self, spec: NodeConfig | NodeClient) -> NodeClient:
        if isinstance(spec, NodeClient):
            return spec
        return self._client_factory(spec)

    @staticmethod
    async def _connect(client: NodeClient) -> NodeFailure | None:
        try:
            await asyncio.wait_for(client.connect(), timeout=client.timeout)
        except Exception as e:
            failure = to_node_failure(client.address, CONNECT, e)
            logger.warning(
                "Lock node connection failed: node=%s, error=%s",
                client.address,
                failure.error,
            )
            return failure
        return None

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"NodeSet({self.addresses!r}, {state})"


__all__ = ["ClientFactory", "NodeSet", "to_node_failure"]
