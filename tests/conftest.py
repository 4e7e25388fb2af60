"""Shared test fixtures."""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest
from skimage import io

from stringart import StringArtConfig, generate_anchors
from stringart.grid import disk_mask


def inscribed_square_target(size: int) -> np.ndarray:
    """Black square inscribed in the disk, white elsewhere."""
    target = np.zeros((size, size))
    half = size / 2.0
    side = int(size / np.sqrt(2))
    lo = int(round(half - side / 2))
    target[lo:lo + side, lo:lo + side] = 1.0
    target[~disk_mask(size)] = 0.0
    return target


def striped_target(size: int) -> np.ndarray:
    """Diagonal gray stripes inside the disk; no two chords score alike."""
    ys, xs = np.mgrid[0:size, 0:size]
    target = ((3 * xs + 7 * ys) % 11) / 10.0
    target[~disk_mask(size)] = 0.0
    return target


@pytest.fixture
def tiny_config() -> StringArtConfig:
    return StringArtConfig(size=20, num_anchors=8, min_separation=0, max_chords=30)


@pytest.fixture
def tiny_anchors(tiny_config):
    return generate_anchors(tiny_config.num_anchors, tiny_config.size, tiny_config.shape)


@pytest.fixture
def square_target() -> np.ndarray:
    return inscribed_square_target(20)


@pytest.fixture
def jpeg_path(tmp_path):
    """A small grayscale JPEG: dark disk on a light background."""
    yy, xx = np.mgrid[0:40, 0:40]
    img = np.full((40, 40), 230, dtype=np.uint8)
    img[(xx - 20) ** 2 + (yy - 20) ** 2 < 100] = 20
    path = tmp_path / "input.jpg"
    io.imsave(str(path), img, check_contrast=False)
    return path
