"""
Unit tests for the lazily loaded image classifiers.
"""
from unittest.mock import patch

import numpy as np
import pytest

from catalog_vision.services.errors import FeatureLengthMismatch
from catalog_vision.services.features import FeatureMode, feature_length
from catalog_vision.services.ml import classifier as classifier_module
from catalog_vision.services.ml.classifier import (
    MODEL_ABSENT, ClassifierState, ImageClassifier, ModelAbsent, remap_legacy_position
)
from catalog_vision.services.ml.trainer import TrainedModel, save_model
from generate_test_images import solid_image


def _write_model(path, labels, feature_mode=FeatureMode.EDGE, name="test"):
    length = feature_length(feature_mode)
    samples = np.vstack([np.full(length, i * 10, dtype=np.float32) for i in range(len(labels))])
    model = TrainedModel(name=name, feature_mode=feature_mode, samples=samples, labels=tuple(labels), k=1)
    return save_model(model, path)


class TestModelAbsent:
    """Sentinel for missing models"""
    
    def test_singleton_and_falsy(self):
        """Test the absent-model sentinel"""
        assert ModelAbsent() is MODEL_ABSENT
        assert not MODEL_ABSENT
        assert repr(MODEL_ABSENT) == "MODEL_ABSENT"


class TestLegacyPositionRemap:
    """Lateral labels fold into Side"""
    
    @pytest.mark.parametrize("label", ["Left", "Right", "Lateral Left", "Lateral Right"])
    def test_legacy_labels(self, label):
        """Test lateral labels mapped to Side"""
        assert remap_legacy_position(label) == "Side"
    
    @pytest.mark.parametrize("label", ["Front", "Back", "Side", "Part Zoom"])
    def test_current_labels_unchanged(self, label):
        """Test that current position labels pass through"""
        assert remap_legacy_position(label) == label


class TestImageClassifier:
    """Loading, prediction and fallback signalling"""
    
    def test_missing_model_returns_absent(self, tmp_path):
        """Test prediction without a persisted model"""
        clf = ImageClassifier("background", tmp_path / "missing.joblib", FeatureMode.EDGE)
        assert clf.state == ClassifierState.UNLOADED
        assert clf.predict(np.zeros(9)) is MODEL_ABSENT
        assert clf.state == ClassifierState.ABSENT
        assert not clf.is_available()
    
    def test_absence_is_remembered(self, tmp_path):
        """Test that a missing model stays absent for the same instance"""
        path = tmp_path / "background.joblib"
        clf = ImageClassifier("background", path, FeatureMode.EDGE)
        assert clf.predict(np.zeros(9)) is MODEL_ABSENT
        
        # Model appearing later is not picked up by the same instance
        _write_model(path, ["true", "false"])
        assert clf.predict(np.zeros(9)) is MODEL_ABSENT
    
    def test_predict_loaded_model(self, tmp_path):
        """Test nearest-neighbor prediction from a persisted model"""
        path = _write_model(tmp_path / "background.joblib", ["true", "false"])
        clf = ImageClassifier("background", path, FeatureMode.EDGE)
        assert clf.predict(np.zeros(9)) == "true"
        assert clf.predict(np.full(9, 10.0)) == "false"
        assert clf.state == ClassifierState.LOADED
    
    def test_model_loaded_once(self, tmp_path):
        """Test that the artifact is read from disk only once"""
        path = _write_model(tmp_path / "background.joblib", ["true", "false"])
        clf = ImageClassifier("background", path, FeatureMode.EDGE)
        with patch.object(classifier_module, "load_model", wraps=classifier_module.load_model) as mock_load:
            for _ in range(3):
                clf.predict(np.zeros(9))
            assert mock_load.call_count == 1
    
    def test_legacy_labels_remapped(self, tmp_path):
        """Test legacy labels of an old position model reported as Side"""
        path = _write_model(tmp_path / "position.joblib", ["Lateral Left", "Front"], FeatureMode.COARSE)
        clf = ImageClassifier("position", path, FeatureMode.COARSE, remap_legacy=True)
        assert clf.predict(np.zeros(feature_length(FeatureMode.COARSE))) == "Side"
    
    def test_legacy_labels_kept_without_remap(self, tmp_path):
        """Test that labels are untouched when remapping is off"""
        path = _write_model(tmp_path / "position.joblib", ["Lateral Left", "Front"], FeatureMode.COARSE)
        clf = ImageClassifier("position", path, FeatureMode.COARSE)
        assert clf.predict(np.zeros(feature_length(FeatureMode.COARSE))) == "Lateral Left"
    
    def test_wrong_query_length(self, tmp_path):
        """Test rejection of a feature vector of the wrong length"""
        path = _write_model(tmp_path / "background.joblib", ["true", "false"])
        clf = ImageClassifier("background", path, FeatureMode.EDGE)
        with pytest.raises(FeatureLengthMismatch):
            clf.predict(np.zeros(12))
    
    def test_model_trained_with_other_features(self, tmp_path):
        """Test rejection of a model trained on another feature configuration"""
        path = _write_model(tmp_path / "position.joblib", ["Front", "Back"], FeatureMode.EDGE)
        clf = ImageClassifier("position", path, FeatureMode.COARSE)
        with pytest.raises(FeatureLengthMismatch) as exc_info:
            clf.predict(np.zeros(feature_length(FeatureMode.COARSE)))
        assert exc_info.value.expected == feature_length(FeatureMode.COARSE)
        assert exc_info.value.actual == 9
    
    def test_predict_image(self, tmp_path):
        """Test prediction straight from an image"""
        path = _write_model(tmp_path / "background.joblib", ["true", "false"])
        clf = ImageClassifier("background", path, FeatureMode.EDGE)
        assert clf.predict_image(solid_image(100, 100, (0, 0, 0))) == "true"
    
    def test_predict_image_without_model(self, tmp_path):
        """Test image prediction without a persisted model"""
        clf = ImageClassifier("background", tmp_path / "missing.joblib", FeatureMode.EDGE)
        assert clf.predict_image(solid_image()) is MODEL_ABSENT
    
    def test_status(self, tmp_path):
        """Test status before and after loading"""
        path = _write_model(tmp_path / "background.joblib", ["true", "false"])
        clf = ImageClassifier("background", path, FeatureMode.EDGE)
        assert clf.status()["state"] == "unloaded"
        clf.is_available()
        status = clf.status()
        assert status["state"] == "loaded"
        assert status["feature_length"] == 9
        assert status["num_samples"] == 2
        assert status["classes"] == ["false", "true"]
