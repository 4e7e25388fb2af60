"""Tests for anchor placement and chord admissibility."""

from __future__ import annotations

import numpy as np
import pytest

from stringart import ConfigurationError, generate_anchors
from stringart.anchors import (
    admissible_chords,
    admissible_partners,
    circular_distance,
    is_admissible,
)


class TestCircleAnchors:
    def test_first_anchor_is_at_the_top(self):
        anchors = generate_anchors(8, 20)
        assert tuple(anchors[0]) == (10.0, 0.0)

    def test_indices_go_clockwise(self):
        anchors = generate_anchors(8, 20)
        assert tuple(anchors[1]) == (17.0, 3.0)
        assert tuple(anchors[2]) == (20.0, 10.0)
        assert tuple(anchors[4]) == (10.0, 20.0)
        assert tuple(anchors[6]) == (0.0, 10.0)

    def test_default_layout_has_distinct_anchors(self):
        anchors = generate_anchors(271, 300)
        assert anchors.shape == (271, 2)
        assert len(np.unique(anchors, axis=0)) == 271

    def test_anchors_lie_on_the_circle(self):
        anchors = generate_anchors(64, 100)
        r = np.hypot(anchors[:, 0] - 50, anchors[:, 1] - 50)
        assert np.all(np.abs(r - 50) <= 1.0)

    def test_overlapping_anchors_rejected(self):
        with pytest.raises(ConfigurationError):
            generate_anchors(100, 4)

    def test_too_few_anchors(self):
        with pytest.raises(ConfigurationError):
            generate_anchors(1, 20)


class TestSquareAnchors:
    def test_edges_clockwise_from_top_left(self):
        anchors = generate_anchors(8, 20, "square")
        expected = [(0, 0), (10, 0), (20, 0), (20, 10),
                    (20, 20), (10, 20), (0, 20), (0, 10)]
        assert [tuple(p) for p in anchors] == expected

    def test_needs_multiple_of_four(self):
        with pytest.raises(ConfigurationError):
            generate_anchors(10, 20, "square")

    def test_unknown_shape(self):
        with pytest.raises(ConfigurationError):
            generate_anchors(8, 20, "hexagon")


class TestAdmissibility:
    def test_circular_distance_wraps(self):
        assert circular_distance(0, 7, 8) == 1
        assert circular_distance(7, 0, 8) == 1
        assert circular_distance(1, 5, 8) == 4
        assert circular_distance(2, 2, 8) == 0

    def test_same_anchor_never_admissible(self):
        assert not is_admissible(3, 3, 8, 0)

    def test_neighbours_excluded(self):
        assert not is_admissible(0, 2, 30, 2)
        assert not is_admissible(0, 28, 30, 2)
        assert is_admissible(0, 3, 30, 2)

    def test_all_pairs_when_no_separation(self):
        pairs = admissible_chords(8, 0)
        assert len(pairs) == 28
        assert pairs == sorted(pairs)
        assert all(i < j for i, j in pairs)

    def test_neighbour_pairs_dropped(self):
        assert len(admissible_chords(8, 1)) == 20

    def test_partners(self):
        assert admissible_partners(0, 8, 2) == [3, 4, 5]
