"""
Unit tests for KNN training, evaluation and model persistence.
"""
import numpy as np
import pytest
from sklearn.metrics import accuracy_score as sklearn_accuracy_score

from catalog_vision.services.errors import EmptyDatasetError, FeatureLengthMismatch
from catalog_vision.services.features import FeatureMode
from catalog_vision.services.ml.trainer import (
    KNNTrainer, LabeledSample, TrainedModel, accuracy_score, load_model, save_model,
    stratified_split
)


def _samples(label, count, center, spread=5.0, seed=0):
    rng = np.random.default_rng(seed)
    return [
        LabeledSample(np.asarray(center, dtype=np.float32) + rng.normal(0, spread, 3).astype(np.float32), label)
        for _ in range(count)
    ]


def _color_samples():
    return _samples("red", 30, (220, 20, 20), seed=1) + _samples("blue", 30, (20, 20, 220), seed=2)


class TestStratifiedSplit:
    """Per-class train/test partitioning"""
    
    def test_split_per_class(self):
        """Test test share per class"""
        samples = _samples("a", 100, (0, 0, 0)) + _samples("b", 50, (9, 9, 9))
        train, test = stratified_split(samples, 0.2, seed=42)
        test_counts = {label: sum(1 for s in test if s.label == label) for label in ("a", "b")}
        assert test_counts == {"a": 20, "b": 10}
        assert len(train) == 120
    
    def test_partitions_are_disjoint(self):
        """Test that no sample is in both partitions"""
        samples = _samples("a", 20, (0, 0, 0))
        train, test = stratified_split(samples, 0.25, seed=3)
        assert not {id(s) for s in train} & {id(s) for s in test}
        assert len(train) + len(test) == 20
    
    def test_zero_ratio_keeps_everything_for_training(self):
        """Test ratio zero"""
        samples = _samples("a", 10, (0, 0, 0))
        train, test = stratified_split(samples, 0.0, seed=3)
        assert len(train) == 10
        assert test == []
    
    def test_single_sample_class_stays_in_training(self):
        """Test that every class keeps one training sample"""
        samples = _samples("a", 1, (0, 0, 0))
        train, test = stratified_split(samples, 0.9, seed=3)
        assert len(train) == 1
        assert test == []


class TestAccuracy:
    """Accuracy on the held-out partition"""
    
    def test_fraction_correct(self):
        """Test fraction of correct predictions"""
        assert accuracy_score(["a", "b", "a", "b"], ["a", "b", "b", "b"]) == 0.75
    
    def test_agrees_with_scikit_learn(self):
        """Held-out accuracy is the scikit-learn accuracy score"""
        actual = ["Front", "Back", "Side", "Side", "Top"]
        predicted = ["Front", "Side", "Side", "Back", "Top"]
        assert accuracy_score(actual, predicted) == pytest.approx(sklearn_accuracy_score(actual, predicted))
        assert isinstance(accuracy_score(actual, predicted), float)
    
    def test_empty_test_set(self):
        """Test accuracy of an empty test set"""
        assert accuracy_score([], []) == 0.0


class TestKNNTrainer:
    """Training a classifier end to end"""
    
    def test_empty_dataset_rejected(self):
        """Test error for an empty dataset"""
        with pytest.raises(EmptyDatasetError):
            KNNTrainer("position", FeatureMode.EDGE).train([], 0.2)
    
    def test_inconsistent_lengths_rejected(self):
        """Test error for vectors of different lengths"""
        samples = [LabeledSample(np.zeros(9), "a"), LabeledSample(np.zeros(8), "b")]
        with pytest.raises(FeatureLengthMismatch):
            KNNTrainer("background", FeatureMode.EDGE).train(samples, 0.2)
    
    def test_separable_classes(self):
        """Test perfect accuracy on well separated classes"""
        model, accuracy = KNNTrainer("colors", FeatureMode.EDGE, k=5, seed=42).train(_color_samples(), 0.2)
        assert accuracy == 1.0
        assert model.num_samples == 48
        assert model.classes == ["blue", "red"]
        assert model.predict([230, 10, 15]) == "red"
        assert model.predict([10, 30, 210]) == "blue"
    
    def test_no_test_samples_gives_zero_accuracy(self):
        """Test accuracy when nothing is held out"""
        model, accuracy = KNNTrainer("colors", FeatureMode.EDGE, seed=42).train(_color_samples(), 0.0)
        assert accuracy == 0.0
        assert model.num_samples == 60
    
    def test_model_saved_when_path_given(self, tmp_path):
        """Test persistence into a new directory"""
        path = tmp_path / "nested" / "colors.joblib"
        KNNTrainer("colors", FeatureMode.EDGE, seed=42).train(_color_samples(), 0.2, model_path=path)
        assert path.exists()
    
    def test_k_larger_than_training_set(self):
        """Test k capped at the training set size"""
        samples = [LabeledSample(np.array([0.0, 0.0, 0.0]), "dark"), LabeledSample(np.array([255.0, 255.0, 255.0]), "light")]
        model, _ = KNNTrainer("tiny", FeatureMode.EDGE, k=5).train(samples, 0.0)
        assert model.predict([0, 0, 0]) in {"dark", "light"}


class TestTrainedModel:
    """Prediction and persistence of fitted models"""
    
    def test_wrong_vector_length(self):
        """Test rejection of a query of the wrong length"""
        model, _ = KNNTrainer("colors", FeatureMode.EDGE, seed=42).train(_color_samples(), 0.2)
        with pytest.raises(FeatureLengthMismatch) as exc_info:
            model.predict(np.zeros(9))
        assert exc_info.value.expected == 3
        assert exc_info.value.actual == 9
    
    def test_save_and_load(self, tmp_path):
        """Test that a loaded model equals the saved one"""
        model, _ = KNNTrainer("colors", FeatureMode.COARSE, k=3, seed=42).train(_color_samples(), 0.2)
        path = save_model(model, tmp_path / "colors.joblib")
        loaded = load_model(path)
        assert loaded.name == "colors"
        assert loaded.feature_mode == FeatureMode.COARSE
        assert loaded.k == 3
        assert loaded.labels == model.labels
        np.testing.assert_array_equal(loaded.samples, model.samples)
        assert loaded.predict([230, 10, 15]) == "red"
    
    def test_unknown_artifact_rejected(self):
        """Test rejection of foreign artifacts"""
        with pytest.raises(ValueError):
            TrainedModel.from_dict({"format": 99, "algorithm": "svm"})
