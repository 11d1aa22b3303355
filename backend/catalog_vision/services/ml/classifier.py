"""
Inference wrapper around persisted KNN models.

Each ImageClassifier loads its artifact lazily on first use and keeps it
for the lifetime of the process. When no artifact exists the classifier
stays absent and every prediction returns ``MODEL_ABSENT`` so callers can
fall back to a heuristic.
"""
from enum import Enum
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np
from loguru import logger

from catalog_vision.services.errors import FeatureLengthMismatch
from catalog_vision.services.features import FeatureMode, extract_features, feature_length
from catalog_vision.services.ml.trainer import TrainedModel, load_model

LEGACY_SIDE_LABELS = frozenset({"Left", "Right", "Lateral Left", "Lateral Right"})


class ModelAbsent:
    """Sentinel returned when a classifier has no persisted model."""
    
    _instance = None
    
    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance
    
    def __bool__(self) -> bool:
        return False
    
    def __repr__(self) -> str:
        return "MODEL_ABSENT"


MODEL_ABSENT = ModelAbsent()


class ClassifierState(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    ABSENT = "absent"


def remap_legacy_position(label: str) -> str:
    """Fold the pre-migration lateral labels into ``Side``."""
    if label in LEGACY_SIDE_LABELS:
        return "Side"
    return label


class ImageClassifier:
    """
    Lazily loaded KNN classifier for one task.
    
    Args:
        name: Classifier kind ("position", "background", "product-only")
        model_path: Location of the persisted artifact
        feature_mode: Feature configuration the model must have been trained with
        remap_legacy: Fold legacy lateral position labels into "Side"
    """
    
    def __init__(
        self,
        name: str,
        model_path: Union[str, Path],
        feature_mode: FeatureMode,
        remap_legacy: bool = False
    ):
        self.name = name
        self.model_path = Path(model_path)
        self.feature_mode = FeatureMode(feature_mode)
        self.remap_legacy = remap_legacy
        self._model: Optional[TrainedModel] = None
        self._state = ClassifierState.UNLOADED
        self._lock = Lock()
    
    @property
    def state(self) -> ClassifierState:
        return self._state
    
    def _ensure_loaded(self) -> Optional[TrainedModel]:
        with self._lock:
            if self._state == ClassifierState.UNLOADED:
                if not self.model_path.exists():
                    logger.info(f"No model for '{self.name}' at {self.model_path}, using fallback")
                    self._state = ClassifierState.ABSENT
                else:
                    model = load_model(self.model_path)
                    if model.feature_mode != self.feature_mode:
                        raise FeatureLengthMismatch(
                            feature_length(self.feature_mode),
                            model.feature_length,
                            context=f"classifier '{self.name}' (model trained with '{model.feature_mode.value}' features)"
                        )
                    self._model = model
                    self._state = ClassifierState.LOADED
                    logger.info(f"Loaded '{self.name}' model: {model.num_samples} samples, k={model.k}")
            return self._model
    
    def is_available(self) -> bool:
        """Whether a persisted model exists and loaded."""
        return self._ensure_loaded() is not None
    
    def predict(self, features: Union[np.ndarray, Sequence[float]]) -> Union[str, ModelAbsent]:
        """
        Predict a label for one feature vector.
        
        Returns:
            Label string, or ``MODEL_ABSENT`` when no model is persisted
            
        Raises:
            FeatureLengthMismatch: If the vector length differs from the model's
        """
        model = self._ensure_loaded()
        if model is None:
            return MODEL_ABSENT
        
        label = model.predict(features)
        if self.remap_legacy:
            label = remap_legacy_position(label)
        return label
    
    def predict_image(self, img_rgb: np.ndarray) -> Union[str, ModelAbsent]:
        """Extract this classifier's features from an image and predict."""
        if self._ensure_loaded() is None:
            return MODEL_ABSENT
        return self.predict(extract_features(img_rgb, self.feature_mode))
    
    def status(self) -> Dict[str, Any]:
        """Snapshot of the classifier state for reporting."""
        status = {
            "name": self.name,
            "state": self._state.value,
            "model_path": str(self.model_path),
            "feature_mode": self.feature_mode.value,
            "feature_length": feature_length(self.feature_mode),
        }
        if self._model is not None:
            status["num_samples"] = self._model.num_samples
            status["k"] = self._model.k
            status["classes"] = self._model.classes
        return status
