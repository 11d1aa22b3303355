"""
Color variance helpers shared by the heuristic classifiers.
"""
from typing import Sequence

import numpy as np


def variance(values: Sequence[float]) -> float:
    """Population variance (divides by n); 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    arr = np.asarray(values, dtype=np.float64)
    return float(np.mean((arr - arr.mean()) ** 2))


def color_variance(pixels: Sequence[Sequence[float]]) -> float:
    """
    Mean of the per-channel population variance over R, G and B.
    
    Args:
        pixels: Sequence of (r, g, b) samples
        
    Returns:
        Average channel variance, 0.0 when no pixels are given
    """
    if len(pixels) == 0:
        return 0.0
    arr = np.asarray(pixels, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] < 3:
        return 0.0
    return (variance(arr[:, 0]) + variance(arr[:, 1]) + variance(arr[:, 2])) / 3
