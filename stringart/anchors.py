from typing import List, Tuple

import numpy as np

from .config import ConfigurationError


def generate_anchors(num_anchors: int, size: int, shape: str = "circle") -> np.ndarray:
    """
    Places the anchors ("screws") on the boundary of the working region.

    Returns an (N, 2) float array of (x, y) pixel coordinates. Anchor 0 is at
    the top and indices increase clockwise on screen.
    """
    if num_anchors < 2:
        raise ConfigurationError(f"need at least 2 anchors, got {num_anchors}")

    if shape == "circle":
        half = size / 2.0
        angles = np.linspace(0, 2 * np.pi, num_anchors, endpoint=False)
        xs = np.round(half + half * np.sin(angles))
        ys = np.round(half - half * np.cos(angles))
        anchors = np.column_stack([xs, ys])
    elif shape == "square":
        if num_anchors % 4 != 0:
            raise ConfigurationError(
                f"square layout needs a multiple of 4 anchors, got {num_anchors}"
            )
        per_side = num_anchors // 4
        t = np.arange(per_side) * (size / per_side)
        zeros = np.zeros(per_side)
        full = np.full(per_side, float(size))
        anchors = np.concatenate([
            np.column_stack([t, zeros]),            # top, left -> right
            np.column_stack([full, t]),             # right, top -> bottom
            np.column_stack([size - t, full]),      # bottom, right -> left
            np.column_stack([zeros, size - t]),     # left, bottom -> top
        ])
        anchors = np.round(anchors)
    else:
        raise ConfigurationError(f"unknown anchor shape {shape!r}")

    if len(np.unique(anchors, axis=0)) != num_anchors:
        raise ConfigurationError(
            f"{num_anchors} anchors do not fit on a {size}px boundary without overlapping"
        )
    return anchors


def circular_distance(i: int, j: int, num_anchors: int) -> int:
    d = abs(i - j) % num_anchors
    return min(d, num_anchors - d)


def is_admissible(i: int, j: int, num_anchors: int, min_separation: int) -> bool:
    return i != j and circular_distance(i, j, num_anchors) > min_separation


def admissible_partners(anchor: int, num_anchors: int, min_separation: int) -> List[int]:
    return [j for j in range(num_anchors)
            if is_admissible(anchor, j, num_anchors, min_separation)]


def admissible_chords(num_anchors: int, min_separation: int) -> List[Tuple[int, int]]:
    """All admissible pairs (i, j) with i < j, in lexicographic order."""
    return [(i, j)
            for i in range(num_anchors)
            for j in range(i + 1, num_anchors)
            if is_admissible(i, j, num_anchors, min_separation)]
