"""
Primary color matching.

Maps an arbitrary hex color to the closest catalog primary color using a
hue-weighted HSV distance, so that light, dark, pastel and saturated
variants of one hue family land on the same primary color.
"""
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from catalog_vision.config import config
from catalog_vision.services.colors.conversion import hex_to_rgb, rgb_to_hsv


@dataclass(frozen=True)
class PrimaryColor:
    """A catalog color. Sub-colors point at a root color through ``parent_id``."""
    name: str
    hex_code: Optional[str] = None
    id: Optional[str] = None
    parent_id: Optional[str] = None
    manufacturer_id: Optional[str] = None
    
    @property
    def is_root(self) -> bool:
        return self.parent_id is None


def hsv_distance(hsv1: Tuple[float, float, float], hsv2: Tuple[float, float, float]) -> float:
    """
    Weighted distance between two HSV colors.
    
    Two low-saturation colors (grays, white, black) are compared on value
    only. Otherwise hue difference is taken on the circle, normalized by
    180 and weighted 6x against saturation and value.
    """
    h1, s1, v1 = hsv1
    h2, s2, v2 = hsv2
    
    if s1 < config.LOW_SATURATION and s2 < config.LOW_SATURATION:
        return abs(v1 - v2)
    
    h_diff = abs(h1 - h2)
    if h_diff > 180:
        h_diff = 360 - h_diff
    h_diff /= 180.0
    s_diff = abs(s1 - s2)
    v_diff = abs(v1 - v2)
    
    return math.sqrt(
        config.HUE_WEIGHT * h_diff * h_diff +
        config.SATURATION_WEIGHT * s_diff * s_diff +
        config.VALUE_WEIGHT * v_diff * v_diff
    )


def color_distance(hex1: str, hex2: str) -> Optional[float]:
    """HSV distance between two hex colors, None if either is malformed."""
    rgb1 = hex_to_rgb(hex1)
    rgb2 = hex_to_rgb(hex2)
    if rgb1 is None or rgb2 is None:
        return None
    return hsv_distance(rgb_to_hsv(rgb1), rgb_to_hsv(rgb2))


def closest_primary_color(
    hex_color: str,
    candidates: Iterable[PrimaryColor]
) -> Tuple[Optional[PrimaryColor], Optional[float]]:
    """
    Closest candidate and its distance.
    
    Candidates without a hex code (or with a malformed one) are ignored.
    Ties keep the first candidate encountered.
    
    Returns:
        (color, distance), or (None, None) when the input is malformed or
        no candidate is usable
    """
    rgb = hex_to_rgb(hex_color)
    if rgb is None:
        logger.debug(f"Malformed hex color for matching: {hex_color!r}")
        return None, None
    target_hsv = rgb_to_hsv(rgb)
    
    best: Optional[PrimaryColor] = None
    best_distance = math.inf
    for candidate in candidates:
        if not candidate.hex_code:
            continue
        candidate_rgb = hex_to_rgb(candidate.hex_code)
        if candidate_rgb is None:
            continue
        
        distance = hsv_distance(target_hsv, rgb_to_hsv(candidate_rgb))
        if distance < best_distance:
            best_distance = distance
            best = candidate
    
    if best is None:
        return None, None
    return best, best_distance


def find_closest_primary_color(hex_color: str, candidates: Iterable[PrimaryColor]) -> Optional[PrimaryColor]:
    """Closest primary color to ``hex_color``, or None."""
    color, _ = closest_primary_color(hex_color, candidates)
    return color


def variant_sku(product_sku: str, color: PrimaryColor) -> str:
    """SKU of the color variant created for a detected color: ``<sku>-<ABC>``."""
    return f"{product_sku}-{color.name[:3].upper()}"


class ColorCatalog:
    """
    Owning id -> color mapping for a primary color tree.
    
    Sub-colors without their own hex code inherit the parent's, which lets
    manufacturer-specific names take part in matching.
    """
    
    def __init__(self, colors: Sequence[PrimaryColor]):
        self._colors: Dict[str, PrimaryColor] = {}
        self._order: List[PrimaryColor] = []
        for color in colors:
            if color.id is not None:
                self._colors[color.id] = color
            self._order.append(color)
    
    def __len__(self) -> int:
        return len(self._order)
    
    def get(self, color_id: str) -> Optional[PrimaryColor]:
        return self._colors.get(color_id)
    
    def parent_of(self, color: PrimaryColor) -> Optional[PrimaryColor]:
        if color.parent_id is None:
            return None
        return self._colors.get(color.parent_id)
    
    def roots(self) -> List[PrimaryColor]:
        return [color for color in self._order if color.is_root]
    
    def children_of(self, color: PrimaryColor) -> List[PrimaryColor]:
        return [c for c in self._order if c.parent_id is not None and c.parent_id == color.id]
    
    def effective_hex(self, color: PrimaryColor) -> Optional[str]:
        """Own hex code, else the parent's (one level up only)."""
        if color.hex_code:
            return color.hex_code
        parent = self.parent_of(color)
        if parent is not None:
            return parent.hex_code
        return None
    
    def full_name(self, color: PrimaryColor) -> str:
        parent = self.parent_of(color)
        if parent is not None:
            return f"{parent.name} {color.name}"
        return color.name
    
    def resolved(self, colors: Optional[Iterable[PrimaryColor]] = None) -> List[PrimaryColor]:
        """Colors with their effective hex code filled in, in catalog order."""
        source = self._order if colors is None else colors
        result = []
        for color in source:
            hex_code = self.effective_hex(color)
            if hex_code != color.hex_code:
                color = PrimaryColor(
                    name=color.name,
                    hex_code=hex_code,
                    id=color.id,
                    parent_id=color.parent_id,
                    manufacturer_id=color.manufacturer_id,
                )
            result.append(color)
        return result
    
    def closest(self, hex_color: str) -> Tuple[Optional[PrimaryColor], Optional[float]]:
        """Closest color over the whole catalog, inherited hex codes included."""
        return closest_primary_color(hex_color, self.resolved())
    
    def closest_root(self, hex_color: str) -> Tuple[Optional[PrimaryColor], Optional[float]]:
        """Closest root color and its distance; used when creating color variants from a detection."""
        roots = self.roots()
        if not roots:
            logger.warning("No root primary colors available for matching")
            return None, None
        return closest_primary_color(hex_color, roots)
