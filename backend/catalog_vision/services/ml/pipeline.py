"""
End-to-end classifier training: collect images, balance, extract
features, train and persist.
"""
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

from catalog_vision.config import config
from catalog_vision.services.errors import DecodeFailure, EmptyDatasetError
from catalog_vision.services.features import FeatureMode, extract_features
from catalog_vision.services.imaging import load_image_file
from catalog_vision.services.ml.balancing import balance_classes
from catalog_vision.services.ml.dataset import TRAINING_LAYOUTS, ClassifierKind, collect_training_images
from catalog_vision.services.ml.trainer import KNNTrainer, LabeledSample
from catalog_vision.utils.ids import generate_run_id
from catalog_vision.utils.logging import get_logger


@dataclass
class TrainingReport:
    """Summary of one training run."""
    run_id: str
    kind: ClassifierKind
    class_counts: Dict[str, int]
    total_samples: int
    train_samples: int
    test_samples: int
    accuracy: float
    model_path: Path
    skipped: List[Path] = field(default_factory=list)
    duration_ms: float = 0.0


def _extract_one(path: Path, mode: FeatureMode) -> Optional[np.ndarray]:
    try:
        return extract_features(load_image_file(path), mode)
    except DecodeFailure as e:
        get_logger().warning(f"Skipping unreadable image {path}: {e}")
        return None


def extract_labeled_samples(
    images_by_label: Dict[str, List[Path]],
    mode: FeatureMode,
    workers: int = 1
) -> Tuple[List[LabeledSample], List[Path]]:
    """
    Feature vectors for every (label, image) pair.
    
    Each distinct file is decoded once even when balancing duplicated it.
    Output order follows the input order regardless of ``workers``.
    
    Returns:
        (samples, skipped_paths)
    """
    pairs = [(label, path) for label, paths in images_by_label.items() for path in paths]
    unique_paths = list(dict.fromkeys(path for _, path in pairs))
    
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            vectors = list(executor.map(lambda p: _extract_one(p, mode), unique_paths))
    else:
        vectors = [_extract_one(path, mode) for path in unique_paths]
    
    features_by_path = dict(zip(unique_paths, vectors))
    samples = []
    for label, path in pairs:
        features = features_by_path[path]
        if features is not None:
            samples.append(LabeledSample(features=features, label=label))
    
    skipped = [path for path, features in features_by_path.items() if features is None]
    return samples, skipped


def train_classifier(
    kind: Union[ClassifierKind, str],
    training_root: Union[str, Path, None] = None,
    model_dir: Union[str, Path, None] = None,
    test_ratio: Optional[float] = None,
    balance: bool = False,
    workers: Optional[int] = None,
    seed: Optional[int] = None
) -> TrainingReport:
    """
    Train and persist one classifier from its training folders.
    
    Args:
        kind: Classifier to train
        training_root: Root of the training image tree
        model_dir: Directory receiving the model artifact
        test_ratio: Fraction of each class held out for evaluation
        balance: Equalize class sizes before extraction
        workers: Threads used for feature extraction
        seed: Random seed for balancing and splitting
        
    Returns:
        TrainingReport
        
    Raises:
        TrainingLayoutError: If the training directory is missing
        EmptyDatasetError: If no image could be used
        ValueError: For an invalid test ratio or worker count
    """
    kind = ClassifierKind(kind)
    layout = TRAINING_LAYOUTS[kind]
    test_ratio = config.TEST_RATIO if test_ratio is None else test_ratio
    workers = config.FEATURE_WORKERS if workers is None else workers
    seed = config.RANDOM_SEED if seed is None else seed
    
    if not config.validate_test_ratio(test_ratio):
        raise ValueError(f"Invalid test ratio: {test_ratio}")
    if not config.validate_workers(workers):
        raise ValueError(f"Invalid worker count: {workers}")
    
    run_id = generate_run_id("trn")
    logger = get_logger()
    start_time = time.time()
    logger.info(f"Training {kind.value} classifier", extra={"run_id": run_id, "balance": balance})
    
    images_by_label = collect_training_images(kind, training_root)
    if balance:
        images_by_label = balance_classes(images_by_label, seed=seed)
    
    samples, skipped = extract_labeled_samples(images_by_label, layout.feature_mode, workers)
    if not samples:
        raise EmptyDatasetError(f"No valid training image found for '{kind.value}'")
    logger.info(f"Extracted {len(samples)} samples", extra={"run_id": run_id, "skipped": len(skipped)})
    
    model_path = config.model_path(kind.value, model_dir)
    trainer = KNNTrainer(kind.value, layout.feature_mode, seed=seed)
    model, accuracy = trainer.train(samples, test_ratio, model_path=model_path)
    
    class_counts: Dict[str, int] = {}
    for sample in samples:
        class_counts[sample.label] = class_counts.get(sample.label, 0) + 1
    
    report = TrainingReport(
        run_id=run_id,
        kind=kind,
        class_counts=class_counts,
        total_samples=len(samples),
        train_samples=model.num_samples,
        test_samples=len(samples) - model.num_samples,
        accuracy=accuracy,
        model_path=model_path,
        skipped=skipped,
        duration_ms=(time.time() - start_time) * 1000,
    )
    logger.info(
        f"Training {kind.value} done: accuracy {accuracy * 100:.2f}%",
        extra={"run_id": run_id, "model_path": str(model_path), "duration_ms": round(report.duration_ms, 1)}
    )
    return report
