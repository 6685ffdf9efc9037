"""Unit tests for the majority threshold."""

import pytest

from quorumlock.quorum import has_quorum, majority_threshold


class TestMajorityThreshold:
    """Tests for majority_threshold()."""

    @pytest.mark.parametrize(
        ("node_count", "expected"),
        [(1, 1), (2, 2), (3, 2), (4, 3), (5, 3), (6, 4), (7, 4)],
    )
    def test_floor_half_plus_one(self, node_count: int, expected: int):
        """Threshold is floor(N/2) + 1."""
        assert majority_threshold(node_count) == expected

    def test_threshold_is_strict_majority(self):
        """Two disjoint groups can never both reach the threshold."""
        for node_count in range(1, 20):
            quorum = majority_threshold(node_count)
            assert 2 * quorum > node_count
            assert quorum <= node_count

    @pytest.mark.parametrize("node_count", [0, -1])
    def test_rejects_empty_node_set(self, node_count: int):
        """Fewer than one node is a configuration error."""
        with pytest.raises(ValueError, match="node_count must be >= 1"):
            majority_threshold(node_count)


class TestHasQuorum:
    """Tests for has_quorum()."""

    def test_majority_granted(self):
        assert has_quorum(3, 5) is True
        assert has_quorum(5, 5) is True

    def test_minority_granted(self):
        assert has_quorum(2, 5) is False
        assert has_quorum(0, 1) is False

    def test_even_split_is_not_quorum(self):
        """Half of an even node count is not a majority."""
        assert has_quorum(2, 4) is False
        assert has_quorum(3, 4) is True
