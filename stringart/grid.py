import numpy as np


def pixel_centers(size: int):
    """
    Returns (xs, ys) broadcastable coordinate arrays of the pixel centres.
    xs has shape (1, size), ys has shape (size, 1).
    """
    c = np.arange(size, dtype=np.float64) + 0.5
    return c[np.newaxis, :], c[:, np.newaxis]


def disk_mask(size: int) -> np.ndarray:
    """True for every pixel whose centre lies inside the inscribed disk."""
    xs, ys = pixel_centers(size)
    half = size / 2.0
    return (xs - half) ** 2 + (ys - half) ** 2 <= half * half


def to_pixels(grid: np.ndarray) -> np.ndarray:
    """
    Darkness grid -> 8-bit grayscale image (white background).
    Ink level is round(min(v, 1) * 255); stored value is 255 - ink.
    """
    ink = np.rint(np.clip(grid, 0.0, 1.0) * 255.0).astype(np.uint8)
    return 255 - ink
