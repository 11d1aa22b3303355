"""
Catalog Vision Configuration
Manages environment variables and defaults for analysis and training services.
"""
import os
from pathlib import Path


class Config:
    """Configuration class for catalog vision services."""
    
    # Storage locations
    MODEL_DIR: str = os.environ.get("CATALOG_VISION_MODEL_DIR", "storage/models")
    TRAINING_DIR: str = os.environ.get("CATALOG_VISION_TRAINING_DIR", "storage/training/images")
    
    # Logging
    LOG_LEVEL: str = os.environ.get("CATALOG_VISION_LOG_LEVEL", "INFO")
    
    # Upload limits
    MAX_FILE_MB: int = int(os.environ.get("CATALOG_VISION_MAX_FILE_MB", "20"))
    
    # Training defaults
    TEST_RATIO: float = float(os.environ.get("CATALOG_VISION_TEST_RATIO", "0.2"))
    KNN_NEIGHBORS: int = int(os.environ.get("CATALOG_VISION_KNN_NEIGHBORS", "5"))
    BALANCE_MIN_TARGET: int = int(os.environ.get("CATALOG_VISION_BALANCE_MIN_TARGET", "50"))
    RANDOM_SEED: int = int(os.environ.get("CATALOG_VISION_RANDOM_SEED", "42"))
    FEATURE_WORKERS: int = int(os.environ.get("CATALOG_VISION_FEATURE_WORKERS", "1"))
    
    # Empirical thresholds, kept as measured on the production catalog
    NEUTRAL_BACKGROUND_MAX_VARIANCE: float = 500.0
    PRODUCT_ONLY_MIN_CENTER_VARIANCE: float = 1000.0
    PRODUCT_ONLY_MAX_EDGE_VARIANCE: float = 800.0
    
    # Color matching
    LOW_SATURATION: float = 0.2
    HUE_WEIGHT: float = 6.0
    SATURATION_WEIGHT: float = 1.0
    VALUE_WEIGHT: float = 1.0
    
    # Dominant color sampling
    DOMINANT_WIDTH: int = 150
    DOMINANT_REGION: float = 0.30
    DOMINANT_STRIDE: int = 2
    DOMINANT_MIN_LUMA: float = 10.0
    DOMINANT_MAX_LUMA: float = 245.0
    DOMINANT_QUANTUM: int = 16
    
    # Model artifacts, one per classifier kind
    MODEL_FILENAMES = {
        "position": "position-classifier.joblib",
        "background": "background-classifier.joblib",
        "product-only": "product-only-classifier.joblib",
    }
    
    # Supported training image formats
    SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
    SUPPORTED_MIME_TYPES = ["image/jpeg", "image/png", "image/webp"]
    
    @classmethod
    def model_path(cls, kind: str, model_dir: str = None) -> Path:
        """Resolve the artifact path for a classifier kind."""
        return Path(model_dir or cls.MODEL_DIR) / cls.MODEL_FILENAMES[kind]
    
    @classmethod
    def validate_test_ratio(cls, ratio: float) -> bool:
        """Validate train/test split ratio."""
        return 0.0 <= ratio < 1.0
    
    @classmethod
    def validate_workers(cls, workers: int) -> bool:
        """Validate feature extraction worker count."""
        return workers >= 1


# Global config instance
config = Config()
