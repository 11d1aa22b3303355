"""
Feature extraction for the k-nearest-neighbor image classifiers.

Three fixed configurations are used:

- ``edge``: nine border statistics (mean, variance, min per channel)
- ``coarse``: 112x112 forced-square resize sampled every 2 px (9408 values)
- ``fine``: 224x224 forced-square resize, every pixel (150528 values)

The configuration used to train a model must be reused verbatim at
inference time, so every persisted model records its ``FeatureMode``.
"""
from enum import Enum
from typing import List, Tuple

import numpy as np

from catalog_vision.services.imaging import read_pixel, resize_exact


class FeatureMode(str, Enum):
    """Named feature vector configurations."""
    EDGE = "edge"
    COARSE = "coarse"
    FINE = "fine"


# (target_size, stride) for the grid modes
GRID_SETTINGS = {
    FeatureMode.COARSE: (112, 2),
    FeatureMode.FINE: (224, 1),
}

EDGE_FEATURE_LENGTH = 9


def feature_length(mode: FeatureMode) -> int:
    """Length of the vector produced by a feature mode."""
    mode = FeatureMode(mode)
    if mode == FeatureMode.EDGE:
        return EDGE_FEATURE_LENGTH
    target_size, stride = GRID_SETTINGS[mode]
    cells = len(range(0, target_size, stride))
    return cells * cells * 3


def border_sampling_steps(width: int, height: int) -> Tuple[int, int]:
    """
    Pixel step along horizontal and vertical borders.
    
    The number of samples per edge is ``clamp(width / 20, 10, 50)``; both
    steps are derived from it and floored at 1 so tiny images still yield
    at least one sample per edge.
    """
    sample_size = min(50, max(10, int(width / 20)))
    x_step = max(1, int(width / sample_size))
    y_step = max(1, int(height / sample_size))
    return x_step, y_step


def sample_border_pixels(img_rgb: np.ndarray) -> List[Tuple[float, float, float]]:
    """
    Collect RGB samples along the top, bottom, left and right borders.
    
    Unreadable pixels are skipped.
    """
    height, width = img_rgb.shape[:2]
    x_step, y_step = border_sampling_steps(width, height)
    
    coords = []
    coords.extend((x, 0) for x in range(0, width, x_step))
    coords.extend((x, height - 1) for x in range(0, width, x_step))
    coords.extend((0, y) for y in range(0, height, y_step))
    coords.extend((width - 1, y) for y in range(0, height, y_step))
    
    pixels = []
    for x, y in coords:
        pixel = read_pixel(img_rgb, x, y)
        if pixel is not None:
            pixels.append(pixel)
    return pixels


def extract_edge_features(img_rgb: np.ndarray) -> np.ndarray:
    """
    Border color statistics.
    
    Returns:
        ``[mean_r, mean_g, mean_b, var_r, var_g, var_b, min_r, min_g, min_b]``,
        or nine zeros when no border pixel could be read
    """
    pixels = sample_border_pixels(img_rgb)
    if not pixels:
        return np.zeros(EDGE_FEATURE_LENGTH, dtype=np.float64)
    
    arr = np.asarray(pixels, dtype=np.float64)
    means = arr.mean(axis=0)
    variances = ((arr - means) ** 2).mean(axis=0)
    minimums = arr.min(axis=0)
    return np.concatenate([means, variances, minimums])


def extract_grid_features(img_rgb: np.ndarray, target_size: int, stride: int) -> np.ndarray:
    """
    Downsampled pixel grid.
    
    The image is forced to ``target_size x target_size`` and walked in
    row-major order every ``stride`` pixels, appending R, G, B for each
    visited coordinate. Cells that cannot be read contribute zeros so the
    vector length never changes.
    
    Args:
        img_rgb: RGB image array
        target_size: Side of the square resize
        stride: Step between sampled pixels in the resized grid
        
    Returns:
        float32 vector of length ``ceil(target_size / stride) ** 2 * 3``
    """
    cells = len(range(0, target_size, stride))
    grid = np.zeros((cells, cells, 3), dtype=np.float32)
    
    resized = resize_exact(img_rgb, target_size, target_size)
    if resized.ndim == 3 and resized.shape[2] >= 3:
        sampled = resized[::stride, ::stride, :3]
        rows = min(cells, sampled.shape[0])
        cols = min(cells, sampled.shape[1])
        grid[:rows, :cols] = sampled[:rows, :cols]
    
    return grid.reshape(-1)


def extract_features(img_rgb: np.ndarray, mode: FeatureMode) -> np.ndarray:
    """Extract the feature vector for a named configuration."""
    mode = FeatureMode(mode)
    if mode == FeatureMode.EDGE:
        return extract_edge_features(img_rgb)
    target_size, stride = GRID_SETTINGS[mode]
    return extract_grid_features(img_rgb, target_size, stride)
