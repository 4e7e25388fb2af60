"""Tests for chord masks."""

from __future__ import annotations

import numpy as np
import pytest

from stringart import ChordRasterizer, admissible_chords, point_profile
from stringart.grid import disk_mask
from stringart.rasterizer import MAX_DARKNESS, line_distance


class TestProfile:
    def test_centre_line_is_capped(self):
        assert point_profile(0.0) == pytest.approx(0.05)
        assert point_profile(0.5) == pytest.approx(0.05)

    def test_soft_edge(self):
        assert point_profile(0.58) == pytest.approx(0.02)
        assert point_profile(-0.58) == pytest.approx(0.02)

    def test_far_pixels_untouched(self):
        assert point_profile(0.6) == 0.0
        assert point_profile(3.0) == 0.0


class TestLineDistance:
    def test_vertical_line(self):
        xs = np.array([[0.0, 5.0, 7.5]])
        ys = np.array([[3.0]])
        d = line_distance((5, 0), (5, 20), xs, ys)
        assert np.allclose(d, [[5.0, 0.0, 2.5]])

    def test_diagonal_line(self):
        d = line_distance((0, 0), (10, 10), np.array([[1.0]]), np.array([[0.0]]))
        assert d[0, 0] == pytest.approx(np.sqrt(0.5))

    def test_coincident_endpoints(self):
        d = line_distance((2, 2), (2, 2), np.array([[5.0]]), np.array([[6.0]]))
        assert d[0, 0] == pytest.approx(5.0)


class TestChordRasterizer:
    def test_vertical_chord_is_finite_and_full_strength(self, tiny_anchors):
        r = ChordRasterizer(tiny_anchors, 20)
        mask = r.mask(0, 4)  # (10, 0) -> (10, 20)
        assert np.all(np.isfinite(mask))
        assert np.all(mask[:, 9] == MAX_DARKNESS)
        assert np.all(mask[:, 10] == MAX_DARKNESS)
        assert np.all(mask[:, 8] == 0.0)
        assert np.all(mask[:, 11] == 0.0)

    def test_horizontal_chord(self, tiny_anchors):
        mask = ChordRasterizer(tiny_anchors, 20).mask(2, 6)
        assert np.all(mask[9, :] == MAX_DARKNESS)
        assert np.all(mask[12, :] == 0.0)

    def test_coincident_anchors_do_not_blow_up(self):
        anchors = np.array([[5.0, 5.0], [5.0, 5.0]])
        mask = ChordRasterizer(anchors, 12, crop_to_circle=False).mask(0, 1)
        assert np.all(np.isfinite(mask))
        assert mask.max() <= MAX_DARKNESS

    def test_ceiling_for_every_chord(self, tiny_anchors):
        r = ChordRasterizer(tiny_anchors, 20)
        for i, j in admissible_chords(8, 0):
            mask = r.mask(i, j)
            assert mask.min() >= 0.0
            assert mask.max() <= MAX_DARKNESS

    def test_nothing_outside_the_disk(self, tiny_anchors):
        mask = ChordRasterizer(tiny_anchors, 20).mask(1, 5)
        assert np.all(mask[~disk_mask(20)] == 0.0)

    def test_square_region_is_not_cropped(self):
        from stringart import generate_anchors

        anchors = generate_anchors(8, 20, "square")
        mask = ChordRasterizer(anchors, 20, crop_to_circle=False).mask(0, 4)  # corner to corner
        assert mask[0, 0] == MAX_DARKNESS
        assert mask[19, 19] == MAX_DARKNESS

    def test_symmetric_in_endpoints(self, tiny_anchors):
        r = ChordRasterizer(tiny_anchors, 20)
        assert np.array_equal(r.mask(1, 6), r.mask(6, 1))

    def test_cache_reuses_read_only_masks(self, tiny_anchors):
        r = ChordRasterizer(tiny_anchors, 20, cache=True)
        a = r.mask(1, 6)
        b = r.mask(6, 1)
        assert a is b
        assert not a.flags.writeable
        assert r.cached_masks == 1

    def test_no_cache_by_default(self, tiny_anchors):
        r = ChordRasterizer(tiny_anchors, 20)
        r.mask(1, 6)
        assert r.cached_masks == 0
