"""Majority threshold for a set of independent lock nodes."""


def majority_threshold(node_count: int) -> int:
    """
    Number of grants needed to hold a lock across ``node_count`` nodes.

    Args:
        node_count: Number of configured nodes (must be >= 1)

    Returns:
        ``floor(node_count / 2) + 1``

    Raises:
        ValueError: If node_count is less than 1

    Example:
        >>> [majority_threshold(n) for n in (1, 2, 3, 4, 5, 7)]
        [1, 2, 2, 3, 3, 4]
    """
    if node_count < 1:
        raise ValueError(f"node_count must be >= 1, got {node_count}.")
    return node_count // 2 + 1


def has_quorum(granted: int, node_count: int) -> bool:
    """Return True if ``granted`` nodes form a majority of ``node_count``."""
    return granted >= majority_threshold(node_count)


__all__ = ["majority_threshold", "has_quorum"]
