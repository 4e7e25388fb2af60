from typing import Dict, Tuple

import numpy as np

from .grid import pixel_centers, disk_mask

# A chord darkens pixels within ~0.6px of its centre line, by at most 0.05,
# so the greedy loop has to layer many chords to build up a dark area.
LINE_REACH = 0.6
MAX_DARKNESS = 0.05


def point_profile(distance):
    """Darkness added to a pixel at the given distance from the chord."""
    return np.clip(LINE_REACH - np.abs(distance), 0.0, MAX_DARKNESS)


def line_distance(p1, p2, xs, ys) -> np.ndarray:
    """
    Perpendicular distance from the points (xs, ys) to the infinite line
    through p1 and p2. Vertical lines are fine; coincident endpoints give the
    distance to the point.
    """
    x1, y1 = float(p1[0]), float(p1[1])
    x2, y2 = float(p2[0]), float(p2[1])
    dx = x2 - x1
    dy = y2 - y1
    length = np.hypot(dx, dy)
    if length == 0.0:
        return np.hypot(xs - x1, ys - y1)
    return np.abs(dy * xs - dx * ys + x2 * y1 - y2 * x1) / length


class ChordRasterizer:
    """
    Produces the darkness mask of the chord between two anchors.

    Masks are O(size^2) to build. With cache=True they are kept for the whole
    run, which only makes sense for small anchor counts.
    """

    def __init__(self, anchors: np.ndarray, size: int,
                 crop_to_circle: bool = True, cache: bool = False):
        self.anchors = np.asarray(anchors, dtype=np.float64)
        self.size = size
        self.crop_to_circle = crop_to_circle
        self.xs, self.ys = pixel_centers(size)
        self.inside = disk_mask(size) if crop_to_circle else None
        self._cache: Dict[Tuple[int, int], np.ndarray] = {} if cache else None

    @classmethod
    def from_config(cls, anchors: np.ndarray, config) -> "ChordRasterizer":
        return cls(anchors, config.size,
                   crop_to_circle=config.crop_to_circle,
                   cache=config.cache_masks)

    def mask(self, i: int, j: int) -> np.ndarray:
        if self._cache is None:
            return self._build(i, j)
        key = (i, j) if i < j else (j, i)
        m = self._cache.get(key)
        if m is None:
            m = self._build(*key)
            m.setflags(write=False)
            self._cache[key] = m
        return m

    def _build(self, i: int, j: int) -> np.ndarray:
        d = line_distance(self.anchors[i], self.anchors[j], self.xs, self.ys)
        m = point_profile(d)
        if self.inside is not None:
            m[~self.inside] = 0.0
        return m

    @property
    def cached_masks(self) -> int:
        return 0 if self._cache is None else len(self._cache)
