"""
Color space conversion helpers.
"""
import math
import re
from typing import Optional, Sequence, Tuple

HEX_RE = re.compile(r"#?([0-9A-Fa-f]{6})")


def hex_to_rgb(hex_color: str) -> Optional[Tuple[int, int, int]]:
    """
    Parse a 6-digit hex color, with or without leading ``#``.
    
    Returns:
        (r, g, b) tuple, or None for malformed input
    """
    if not isinstance(hex_color, str):
        return None
    match = HEX_RE.fullmatch(hex_color)
    if not match:
        return None
    digits = match.group(1)
    return tuple(int(digits[i:i+2], 16) for i in (0, 2, 4))


def rgb_to_hex(rgb: Sequence[float]) -> str:
    """Convert an RGB triple to a lower-case ``#rrggbb`` string, clamping to 0-255."""
    r, g, b = [min(255, max(0, int(c))) for c in rgb[:3]]
    return f"#{r:02x}{g:02x}{b:02x}"


def rgb_to_hsv(rgb: Sequence[float]) -> Tuple[float, float, float]:
    """
    Convert 8-bit RGB to HSV.
    
    Returns:
        (hue in [0, 360), saturation in [0, 1], value in [0, 1])
    """
    r, g, b = rgb[0] / 255.0, rgb[1] / 255.0, rgb[2] / 255.0
    
    c_max = max(r, g, b)
    c_min = min(r, g, b)
    delta = c_max - c_min
    
    v = c_max
    s = 0.0 if c_max == 0 else delta / c_max
    
    h = 0.0
    if delta != 0:
        if c_max == r:
            h = 60 * math.fmod((g - b) / delta, 6)
        elif c_max == g:
            h = 60 * (((b - r) / delta) + 2)
        else:
            h = 60 * (((r - g) / delta) + 4)
    
    if h < 0:
        h += 360
    
    return h, s, v
