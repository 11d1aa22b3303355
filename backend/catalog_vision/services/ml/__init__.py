"""
Catalog Vision ML Module

k-nearest-neighbor training and inference for the position,
neutral-background and product-only image classifiers, with class
balancing and heuristic fallbacks for classifiers without a model.
"""
