"""
Catalog Vision

Image classification and color matching for the product catalog:
feature extraction, k-nearest-neighbor training and inference,
heuristic fallbacks and HSV-weighted primary color matching.
"""

__version__ = "1.0.0"
