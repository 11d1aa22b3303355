"""
Dominant garment color detection.

Downscales the photo to a width of 150 px (narrower photos are kept as
they are), samples its central region, drops near-black and
near-white pixels, buckets the rest on a 16-level grid per channel and
reports the mean of the most populated bucket's original values.
"""
from typing import Dict, Optional, Tuple

import numpy as np
from loguru import logger

from catalog_vision.config import config
from catalog_vision.services.colors.conversion import rgb_to_hex
from catalog_vision.services.imaging import scale_to_width


def sample_center_region(img_rgb: np.ndarray) -> np.ndarray:
    """
    Pixels of the central region (``DOMINANT_REGION`` of each side) at the sampling stride.
    
    Returns:
        (N, 3) int array of RGB values
    """
    height, width = img_rgb.shape[:2]
    margin = (1.0 - config.DOMINANT_REGION) / 2
    x0, x1 = int(width * margin), int(width * (1.0 - margin))
    y0, y1 = int(height * margin), int(height * (1.0 - margin))
    
    stride = config.DOMINANT_STRIDE
    region = img_rgb[y0:y1:stride, x0:x1:stride, :3]
    return region.reshape(-1, 3).astype(np.int64)


def find_dominant_color(pixels: np.ndarray) -> Optional[Tuple[int, int, int]]:
    """
    Most frequent quantized color, reported as the mean of its members.
    
    Args:
        pixels: (N, 3) RGB values
        
    Returns:
        (r, g, b) or None when every pixel is filtered out
    """
    if len(pixels) == 0:
        return None
    
    luma = pixels.sum(axis=1) / 3.0
    keep = (luma >= config.DOMINANT_MIN_LUMA) & (luma <= config.DOMINANT_MAX_LUMA)
    kept = pixels[keep]
    if len(kept) == 0:
        return None
    
    quantum = config.DOMINANT_QUANTUM
    buckets: Dict[Tuple[int, int, int], list] = {}
    for pixel, key in zip(kept, (kept // quantum) * quantum):
        bucket = buckets.setdefault(tuple(int(v) for v in key), [0, 0, 0, 0])
        bucket[0] += 1
        bucket[1] += int(pixel[0])
        bucket[2] += int(pixel[1])
        bucket[3] += int(pixel[2])
    
    # First bucket reaching the highest count wins
    best = None
    for bucket in buckets.values():
        if best is None or bucket[0] > best[0]:
            best = bucket
    
    count = best[0]
    return best[1] // count, best[2] // count, best[3] // count


def detect_dominant_color(img_rgb: np.ndarray) -> Optional[str]:
    """
    Dominant color of the garment as a lower-case ``#rrggbb`` string.
    
    Returns:
        Hex string, or None when no pixel survives filtering
    """
    resized = scale_to_width(img_rgb, config.DOMINANT_WIDTH, enlarge=False)
    pixels = sample_center_region(resized)
    rgb = find_dominant_color(pixels)
    if rgb is None:
        logger.debug("No pixel survived dominant color filtering")
        return None
    return rgb_to_hex(rgb)
