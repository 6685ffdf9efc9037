"""Node client interface.

A node client is the only thing the lock manager needs from a storage
backend: two atomic operations on a single node. Any store that can
implement them (Redis, an in-memory fake, something else) can take part
in a quorum.
"""

from abc import ABC, abstractmethod


class NodeClient(ABC):
    """
    Abstract client for one lock node.

    Implementations must make both operations atomic at the node. They
    should raise ``NodeConnectionError`` when the node cannot be reached
    or authenticated and ``NodeOperationError`` when a call fails on an
    established connection. Declining to grant is not an error: it is a
    False return value.

    Example:
        >>> class MyNodeClient(NodeClient):
        ...     @property
        ...     def address(self) -> str:
        ...         return "my-store:1"
        ...
        ...     async def try_set_if_absent(self, key, value, ttl_ms):
        ...         ...
        ...
        ...     async def try_compare_and_delete(self, key, expected_value):
        ...         ...
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Identify the node in logs and diagnostics."""
        pass

    @property
    def timeout(self) -> float | None:
        """
        Seconds allowed for one operation on this node.

        The lock manager bounds every call with this value. None means
        the manager does not add its own bound.
        """
        return None

    async def connect(self) -> None:  # noqa: B027 - optional hook
        """
        Establish the connection to the node.

        Called once by the node set when it opens. Clients that connect
        lazily or need no connection can rely on this default.

        Raises:
            NodeConnectionError: If the node cannot be reached or authenticated
        """

    async def close(self) -> None:  # noqa: B027 - optional hook
        """Release the connection to the node."""

    @abstractmethod
    async def try_set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        """
        Set ``key`` to ``value`` with a TTL, only if ``key`` does not exist.

        Args:
            key: Lock key (the resource name)
            value: Lock token
            ttl_ms: Expiry in milliseconds

        Returns:
            True if the key was set, False if it already existed

        Raises:
            NodeConnectionError: If the node is unreachable
            NodeOperationError: If the call fails
        """
        pass

    @abstractmethod
    async def try_compare_and_delete(self, key: str, expected_value: str) -> bool:
        """
        Delete ``key`` only if its value equals ``expected_value``.

        The comparison and the deletion must be one indivisible operation
        at the node, so a key that expires or changes owner in between is
        never deleted.

        Returns:
            True if the key was deleted, False otherwise

        Raises:
            NodeConnectionError: If the node is unreachable
            NodeOperationError: If the call fails
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address!r})"


__all__ = ["NodeClient"]
