"""
Catalog Vision Colors Module

Provides dominant color detection for product photos and HSV-weighted
matching of arbitrary colors against the catalog's primary colors.
"""
