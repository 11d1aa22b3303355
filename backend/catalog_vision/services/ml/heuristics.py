"""
Variance-based classifiers that need no trained model.

Thresholds are empirical values tuned on the production catalog.
"""
from typing import List, Tuple

import numpy as np

from catalog_vision.config import config
from catalog_vision.services.features import sample_border_pixels
from catalog_vision.services.imaging import read_pixel, scale_to_width
from catalog_vision.services.variance import color_variance

MIN_SIDE = 10
HEURISTIC_WIDTH = 200
HEURISTIC_STEP = 10
# Bounds the raster of very narrow images upscaled to HEURISTIC_WIDTH
HEURISTIC_MAX_HEIGHT = 5 * HEURISTIC_WIDTH
CENTER_MARGIN = 0.2


def detect_neutral_background(img_rgb: np.ndarray) -> bool:
    """A photo has a neutral background when its border is nearly uniform."""
    height, width = img_rgb.shape[:2]
    if width < MIN_SIDE or height < MIN_SIDE:
        return False
    
    edge_pixels = sample_border_pixels(img_rgb)
    if not edge_pixels:
        return False
    
    return color_variance(edge_pixels) < config.NEUTRAL_BACKGROUND_MAX_VARIANCE


def _read_all(img_rgb: np.ndarray, coords) -> List[Tuple[float, float, float]]:
    pixels = []
    for x, y in coords:
        pixel = read_pixel(img_rgb, x, y)
        if pixel is not None:
            pixels.append(pixel)
    return pixels


def product_only_variances(img_rgb: np.ndarray) -> Tuple[float, float]:
    """
    Color variance of the central region and of the border.
    
    The image is scaled to a fixed width (height capped at
    ``HEURISTIC_MAX_HEIGHT``), the center excludes a margin of 20% of that
    width on every side, and both regions are sampled every 10 px.
    
    Returns:
        (center_variance, edge_variance); zeros when a region has no samples
    """
    resized = scale_to_width(img_rgb, HEURISTIC_WIDTH, max_height=HEURISTIC_MAX_HEIGHT)
    height, width = resized.shape[:2]
    margin = int(width * CENTER_MARGIN)
    
    center = _read_all(resized, (
        (x, y)
        for x in range(margin, width - margin, HEURISTIC_STEP)
        for y in range(margin, height - margin, HEURISTIC_STEP)
    ))
    
    border_coords = []
    for x in range(0, width, HEURISTIC_STEP):
        border_coords.extend([(x, 0), (x, height - 1)])
    for y in range(0, height, HEURISTIC_STEP):
        border_coords.extend([(0, y), (width - 1, y)])
    edges = _read_all(resized, border_coords)
    
    if not center or not edges:
        return 0.0, 0.0
    return color_variance(center), color_variance(edges)


def heuristic_product_only(img_rgb: np.ndarray) -> bool:
    """
    Busy center on a plain border means a packshot of the product alone.
    """
    height, width = img_rgb.shape[:2]
    if width < MIN_SIDE or height < MIN_SIDE:
        return False
    
    center_variance, edge_variance = product_only_variances(img_rgb)
    return (
        center_variance > config.PRODUCT_ONLY_MIN_CENTER_VARIANCE
        and edge_variance < config.PRODUCT_ONLY_MAX_EDGE_VARIANCE
    )
