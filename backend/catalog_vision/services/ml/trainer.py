"""
k-nearest-neighbor training, evaluation and model persistence.

A KNN model has no compressed parameters: the persisted artifact is the
full training partition plus ``k`` and the feature configuration that
produced the vectors.
"""
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import joblib
import numpy as np
from loguru import logger
from sklearn.metrics import accuracy_score as sklearn_accuracy_score
from sklearn.neighbors import KNeighborsClassifier

from catalog_vision.config import config
from catalog_vision.services.errors import EmptyDatasetError, FeatureLengthMismatch
from catalog_vision.services.features import FeatureMode

ALGORITHM = "k-nearest-neighbors"
ARTIFACT_FORMAT = 1


@dataclass(frozen=True, eq=False)
class LabeledSample:
    """One feature vector and its label."""
    features: np.ndarray
    label: str


@dataclass(frozen=True, eq=False)
class TrainedModel:
    """Immutable fitted KNN model: training samples, labels and k."""
    name: str
    feature_mode: FeatureMode
    samples: np.ndarray
    labels: Tuple[str, ...]
    k: int = 5
    algorithm: str = ALGORITHM
    _estimator: List[KNeighborsClassifier] = field(default_factory=list, init=False, repr=False)
    
    @property
    def feature_length(self) -> int:
        return int(self.samples.shape[1])
    
    @property
    def num_samples(self) -> int:
        return int(self.samples.shape[0])
    
    @property
    def classes(self) -> List[str]:
        return sorted(set(self.labels))
    
    def estimator(self) -> KNeighborsClassifier:
        """Fitted scikit-learn estimator, built once per model instance."""
        if not self._estimator:
            n_neighbors = min(self.k, self.num_samples)
            knn = KNeighborsClassifier(n_neighbors=n_neighbors, metric="euclidean", algorithm="brute")
            knn.fit(self.samples, np.asarray(self.labels))
            self._estimator.append(knn)
        return self._estimator[0]
    
    def predict(self, features: Union[np.ndarray, Sequence[float]]) -> str:
        """Predict the label of one feature vector."""
        vector = np.asarray(features, dtype=np.float32).reshape(1, -1)
        if vector.shape[1] != self.feature_length:
            raise FeatureLengthMismatch(self.feature_length, vector.shape[1], context=f"model '{self.name}'")
        return str(self.estimator().predict(vector)[0])
    
    def predict_many(self, samples: np.ndarray) -> List[str]:
        """Predict labels for a (n, d) matrix."""
        if len(samples) == 0:
            return []
        return [str(label) for label in self.estimator().predict(samples)]
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": ARTIFACT_FORMAT,
            "name": self.name,
            "algorithm": self.algorithm,
            "k": self.k,
            "feature_mode": FeatureMode(self.feature_mode).value,
            "samples": self.samples,
            "labels": list(self.labels),
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrainedModel":
        if data.get("format") != ARTIFACT_FORMAT or data.get("algorithm") != ALGORITHM:
            raise ValueError(f"Unsupported model artifact: format={data.get('format')}, algorithm={data.get('algorithm')}")
        return cls(
            name=data["name"],
            feature_mode=FeatureMode(data["feature_mode"]),
            samples=np.asarray(data["samples"], dtype=np.float32),
            labels=tuple(data["labels"]),
            k=int(data["k"]),
        )


def save_model(model: TrainedModel, path: Union[str, Path]) -> Path:
    """Persist a model, replacing any previous artifact at ``path``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(model.to_dict(), path, compress=3)
    logger.info(f"Model '{model.name}' saved to {path} ({model.num_samples} samples)")
    return path


def load_model(path: Union[str, Path]) -> TrainedModel:
    """Load a model persisted with ``save_model``."""
    return TrainedModel.from_dict(joblib.load(Path(path)))


def stratified_split(
    samples: Sequence[LabeledSample],
    test_ratio: float,
    seed: Optional[int] = None
) -> Tuple[List[LabeledSample], List[LabeledSample]]:
    """
    Split samples into train/test partitions class by class.
    
    Each class sends ``round(count * test_ratio)`` shuffled samples to the
    test partition, keeping at least one sample for training.
    
    Returns:
        (train, test)
    """
    by_label: Dict[str, List[LabeledSample]] = {}
    for sample in samples:
        by_label.setdefault(sample.label, []).append(sample)
    
    rng = np.random.default_rng(seed)
    train: List[LabeledSample] = []
    test: List[LabeledSample] = []
    
    for label, group in by_label.items():
        order = rng.permutation(len(group))
        n_test = int(math.floor(len(group) * test_ratio + 0.5))
        n_test = min(n_test, len(group) - 1)
        test.extend(group[i] for i in order[:n_test])
        train.extend(group[i] for i in order[n_test:])
    
    return train, test


def accuracy_score(actual: Sequence[str], predicted: Sequence[str]) -> float:
    """Fraction of matching labels; 0.0 for an empty test set."""
    if len(actual) == 0:
        return 0.0
    return float(sklearn_accuracy_score(list(actual), list(predicted)))


def _stack(samples: Sequence[LabeledSample]) -> np.ndarray:
    if not samples:
        return np.empty((0, 0), dtype=np.float32)
    return np.vstack([np.asarray(s.features, dtype=np.float32).reshape(1, -1) for s in samples])


class KNNTrainer:
    """Trains, evaluates and persists a KNN classifier."""
    
    def __init__(
        self,
        name: str,
        feature_mode: FeatureMode,
        k: Optional[int] = None,
        seed: Optional[int] = None
    ):
        self.name = name
        self.feature_mode = FeatureMode(feature_mode)
        self.k = k if k is not None else config.KNN_NEIGHBORS
        self.seed = seed if seed is not None else config.RANDOM_SEED
    
    def train(
        self,
        samples: Sequence[LabeledSample],
        test_ratio: float,
        model_path: Optional[Union[str, Path]] = None
    ) -> Tuple[TrainedModel, float]:
        """
        Fit on a stratified training partition and score on the rest.
        
        Args:
            samples: Labeled feature vectors, all of the same length
            test_ratio: Fraction of each class held out for evaluation
            model_path: Where to persist the fitted model, if given
            
        Returns:
            (model, accuracy)
            
        Raises:
            EmptyDatasetError: If ``samples`` is empty
            FeatureLengthMismatch: If sample vectors differ in length
        """
        if not samples:
            raise EmptyDatasetError(f"No samples to train classifier '{self.name}'")
        
        expected = len(samples[0].features)
        for sample in samples:
            if len(sample.features) != expected:
                raise FeatureLengthMismatch(expected, len(sample.features), context=f"dataset '{self.name}'")
        
        train, test = stratified_split(samples, test_ratio, seed=self.seed)
        logger.info(f"Training '{self.name}': {len(train)} train / {len(test)} test samples")
        
        model = TrainedModel(
            name=self.name,
            feature_mode=self.feature_mode,
            samples=_stack(train),
            labels=tuple(s.label for s in train),
            k=self.k,
        )
        
        predictions = model.predict_many(_stack(test))
        accuracy = accuracy_score([s.label for s in test], predictions)
        logger.info(f"Classifier '{self.name}' accuracy: {accuracy * 100:.2f}%")
        
        if model_path is not None:
            save_model(model, model_path)
        
        return model, accuracy
