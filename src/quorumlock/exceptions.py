"""Library exceptions for the quorumlock package."""


class QuorumLockError(Exception):
    """Base exception for quorumlock library."""

    pass


class NodeError(QuorumLockError):
    """
    Raised when a single storage node misbehaves.

    Node errors never abort an acquisition attempt: the lock manager
    catches them per node and counts the node as not granting.

    Attributes:
        node: Address of the node ("host:port" or a backend-specific name)
    """

    def __init__(self, node: str, message: str) -> None:
        self.node = node
        super().__init__(f"Node {node}: {message}")


class NodeConnectionError(NodeError):
    """Raised when a node connection cannot be established or authenticated."""

    pass


class NodeOperationError(NodeError):
    """
    Raised when a connected node fails during a lock operation.

    Attributes:
        node: Address of the node
        operation: Name of the failed operation ("set_if_absent" or
            "compare_and_delete")
    """

    def __init__(self, node: str, operation: str, message: str) -> None:
        self.operation = operation
        super().__init__(node, f"{operation} failed: {message}")


class InvalidHandleError(QuorumLockError, ValueError):
    """Raised when release is called with a malformed lock handle."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid lock handle: {reason}")


class LockNotAcquiredError(QuorumLockError):
    """
    Raised by ``QuorumLockManager.lock()`` when no quorum was reached.

    ``acquire()`` itself returns None in that case; this exception only
    exists for the context manager form, which has no way to yield
    "nothing".

    Attributes:
        resource: The resource that could not be locked
        attempts: Number of attempts made
    """

    def __init__(self, resource: str, attempts: int) -> None:
        self.resource = resource
        self.attempts = attempts
        super().__init__(f"Failed to acquire lock '{resource}' after {attempts} attempt(s)")
