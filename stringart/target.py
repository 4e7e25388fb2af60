import numpy as np
from skimage import io, color, transform, util

from .grid import disk_mask


def to_grayscale(img: np.ndarray) -> np.ndarray:
    """
    Any decoded image -> 2D float brightness in [0, 1] (1 = white).
    Integer images are scaled by their dtype range, not by their content.
    """
    img = util.img_as_float(img)
    if img.ndim == 3 and img.shape[2] == 2:  # gray + alpha
        img = img[:, :, 0]
    if img.ndim == 3:
        if img.shape[2] == 4:  # RGBA
            img = color.rgba2rgb(img)
        img = color.rgb2gray(img)
    return np.clip(img.astype(np.float64), 0.0, 1.0)


def prepare_target(img: np.ndarray, size: int, crop_to_circle: bool = True) -> np.ndarray:
    """
    Builds the target darkness grid: nearest-neighbour resize to size x size,
    grayscale, brightness b -> darkness 1 - b, and zero darkness outside the
    inscribed disk when cropping to a circle.
    """
    gray = to_grayscale(img)
    gray = transform.resize(gray, (size, size), order=0,
                            anti_aliasing=False, preserve_range=True)
    target = 1.0 - np.clip(gray, 0.0, 1.0)
    if crop_to_circle:
        target[~disk_mask(size)] = 0.0
    target.setflags(write=False)
    return target


def load_target(path, config) -> np.ndarray:
    """Reads the image at path and prepares it for the given run config."""
    img = io.imread(path)
    return prepare_target(img, config.size, crop_to_circle=config.crop_to_circle)
