"""
Error types raised by the analysis and training pipeline.
"""


class CatalogVisionError(Exception):
    """Base class for catalog vision errors."""


class EmptyDatasetError(CatalogVisionError):
    """Training was requested with zero usable samples."""


class FeatureLengthMismatch(CatalogVisionError):
    """A feature vector does not match the length a model or dataset expects."""

    def __init__(self, expected: int, actual: int, context: str = "model"):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Feature length mismatch for {context}: expected {expected}, got {actual}"
        )


class DecodeFailure(CatalogVisionError):
    """Image bytes could not be decoded into a raster."""


class TrainingLayoutError(CatalogVisionError):
    """The training image directory is missing or unusable."""
