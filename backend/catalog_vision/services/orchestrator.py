"""
Catalog Vision Analysis Orchestrator
Produces the combined analysis of one product photo.
"""
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from catalog_vision.config import config
from catalog_vision.services.colors.dominant import detect_dominant_color
from catalog_vision.services.errors import FeatureLengthMismatch
from catalog_vision.services.features import FeatureMode
from catalog_vision.services.imaging import decode_image_bytes
from catalog_vision.services.ml.classifier import MODEL_ABSENT, ImageClassifier
from catalog_vision.services.ml.dataset import TRAINING_LAYOUTS, ClassifierKind
from catalog_vision.services.ml.heuristics import detect_neutral_background, heuristic_product_only
from catalog_vision.utils.ids import generate_run_id
from catalog_vision.utils.logging import get_logger
from catalog_vision.utils.metrics import get_metrics


@dataclass(frozen=True)
class AnalysisResult:
    """Predictions for one image, consumed by the caller to update image metadata."""
    position: Optional[str] = None
    neutral_background: bool = False
    product_only: bool = False
    dominant_color: Optional[str] = None
    
    @classmethod
    def default(cls) -> "AnalysisResult":
        return cls()
    
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_classifier(kind: ClassifierKind, model_dir: Union[str, Path, None] = None) -> ImageClassifier:
    """Classifier for ``kind`` reading its model from ``model_dir``."""
    layout = TRAINING_LAYOUTS[kind]
    return ImageClassifier(
        name=kind.value,
        model_path=config.model_path(kind.value, model_dir),
        feature_mode=layout.feature_mode,
        remap_legacy=layout.remap_legacy,
    )


class AnalysisOrchestrator:
    """
    Runs position, neutral background, product-only and dominant color
    detection on one image.
    
    Analysis is all-or-nothing: if decoding or any detector fails the
    default result is returned. A model trained on a different feature
    configuration is a deployment error and is raised instead.
    """
    
    def __init__(
        self,
        model_dir: Union[str, Path, None] = None,
        position_classifier: Optional[ImageClassifier] = None,
        product_only_classifier: Optional[ImageClassifier] = None
    ):
        self.position_classifier = position_classifier or build_classifier(ClassifierKind.POSITION, model_dir)
        self.product_only_classifier = product_only_classifier or build_classifier(ClassifierKind.PRODUCT_ONLY, model_dir)
        
        if self.position_classifier.feature_mode != FeatureMode.COARSE:
            raise ValueError("Position classifier must use coarse features")
        if self.product_only_classifier.feature_mode != FeatureMode.FINE:
            raise ValueError("Product-only classifier must use fine features")
    
    def analyze(self, image_bytes: bytes) -> AnalysisResult:
        """
        Analyze raw image bytes.
        
        Returns:
            AnalysisResult; the default result when anything fails
            
        Raises:
            FeatureLengthMismatch: If a persisted model does not match its feature configuration
        """
        run_id = generate_run_id()
        logger = get_logger()
        metrics = get_metrics()
        metrics.increment_analysis_count()
        start_time = time.time()
        
        try:
            img_rgb = decode_image_bytes(image_bytes)
            
            stage_start = time.time()
            position = self._detect_position(img_rgb)
            metrics.record_timing("position", (time.time() - stage_start) * 1000)
            
            stage_start = time.time()
            neutral_background = detect_neutral_background(img_rgb)
            metrics.record_timing("neutral_background", (time.time() - stage_start) * 1000)
            
            stage_start = time.time()
            product_only = self._detect_product_only(img_rgb)
            metrics.record_timing("product_only", (time.time() - stage_start) * 1000)
            
            stage_start = time.time()
            dominant_color = detect_dominant_color(img_rgb)
            metrics.record_timing("dominant_color", (time.time() - stage_start) * 1000)
            
        except FeatureLengthMismatch:
            metrics.increment_failure_count("feature_length_mismatch")
            raise
        except Exception as e:
            metrics.increment_failure_count(type(e).__name__)
            logger.error(f"Image analysis failed: {e}", extra={"run_id": run_id})
            return AnalysisResult.default()
        
        result = AnalysisResult(
            position=position,
            neutral_background=neutral_background,
            product_only=product_only,
            dominant_color=dominant_color,
        )
        if position is not None:
            metrics.record_prediction("position", position)
        metrics.record_prediction("product-only", str(product_only).lower())
        
        duration_ms = (time.time() - start_time) * 1000
        metrics.record_timing("analysis", duration_ms)
        logger.info(
            "Image analysis complete",
            extra={"run_id": run_id, "duration_ms": round(duration_ms, 1), **result.to_dict()}
        )
        return result
    
    def _detect_position(self, img_rgb) -> Optional[str]:
        label = self.position_classifier.predict_image(img_rgb)
        if label is MODEL_ABSENT:
            get_metrics().increment_fallback_count(self.position_classifier.name)
            return None
        return label
    
    def _detect_product_only(self, img_rgb) -> bool:
        label = self.product_only_classifier.predict_image(img_rgb)
        if label is MODEL_ABSENT:
            get_metrics().increment_fallback_count(self.product_only_classifier.name)
            return heuristic_product_only(img_rgb)
        return label == "true"
    
    def model_status(self) -> Dict[str, Any]:
        """State of each classifier used for analysis."""
        return {
            classifier.name: classifier.status()
            for classifier in (self.position_classifier, self.product_only_classifier)
        }


# Global orchestrator instance
_orchestrator: Optional[AnalysisOrchestrator] = None


def get_orchestrator() -> AnalysisOrchestrator:
    """Get or create the process-wide orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = AnalysisOrchestrator()
    return _orchestrator
