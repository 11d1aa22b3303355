"""
Operator commands: train classifiers, reorganize training folders and
analyze images from the command line.
"""
import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from catalog_vision.config import config
from catalog_vision.services.errors import EmptyDatasetError, TrainingLayoutError
from catalog_vision.services.ml.dataset import ClassifierKind, reorganize_training_folders
from catalog_vision.services.ml.pipeline import train_classifier
from catalog_vision.services.orchestrator import AnalysisOrchestrator
from catalog_vision.utils.logging import get_logger

TRAIN_COMMANDS = {
    "train-position": ClassifierKind.POSITION,
    "train-background": ClassifierKind.BACKGROUND,
    "train-product-only": ClassifierKind.PRODUCT_ONLY,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="catalog-vision", description="Catalog image classifiers")
    parser.add_argument("--training-dir", type=Path, default=None, help="Root of the training image tree")
    parser.add_argument("--model-dir", type=Path, default=None, help="Directory holding model artifacts")
    subparsers = parser.add_subparsers(dest="command", required=True)
    
    for name, kind in TRAIN_COMMANDS.items():
        train = subparsers.add_parser(name, help=f"Train the {kind.value} classifier")
        train.add_argument("--test-ratio", type=float, default=config.TEST_RATIO, help="Fraction held out for evaluation")
        train.add_argument("--balance", action="store_true", help="Balance classes to avoid majority bias")
        train.add_argument("--workers", type=int, default=config.FEATURE_WORKERS, help="Feature extraction threads")
        train.add_argument("--seed", type=int, default=config.RANDOM_SEED, help="Random seed")
    
    reorganize = subparsers.add_parser(
        "reorganize-training-folders",
        help="Move Left, Right, LateralLeft and LateralRight images into Side"
    )
    reorganize.add_argument("--dry-run", action="store_true", help="Show actions without executing them")
    
    analyze = subparsers.add_parser("analyze", help="Analyze image files and print JSON results")
    analyze.add_argument("files", nargs="+", type=Path, help="Image files")
    
    return parser


def _train(args: argparse.Namespace) -> int:
    logger = get_logger()
    kind = TRAIN_COMMANDS[args.command]
    try:
        report = train_classifier(
            kind,
            training_root=args.training_dir,
            model_dir=args.model_dir,
            test_ratio=args.test_ratio,
            balance=args.balance,
            workers=args.workers,
            seed=args.seed,
        )
    except (TrainingLayoutError, EmptyDatasetError, ValueError) as e:
        logger.error(str(e))
        return 1
    
    for label, count in report.class_counts.items():
        print(f"{label}: {count} samples")
    print(f"Training samples: {report.train_samples}")
    print(f"Test samples: {report.test_samples}")
    print(f"Accuracy: {report.accuracy * 100:.2f}%")
    print(f"Model saved to: {report.model_path}")
    return 0


def _reorganize(args: argparse.Namespace) -> int:
    try:
        report = reorganize_training_folders(args.training_dir, dry_run=args.dry_run)
    except TrainingLayoutError as e:
        get_logger().error(str(e))
        return 1
    
    for source, destination in report.moved:
        print(f"{'[DRY RUN] ' if args.dry_run else ''}{source} -> {destination}")
    if args.dry_run:
        print(f"[DRY RUN] {report.moved_count} image(s) would be moved. Run without --dry-run to apply.")
    else:
        print(f"{report.moved_count} image(s) moved to Side")
    return 0


def _analyze(args: argparse.Namespace) -> int:
    orchestrator = AnalysisOrchestrator(model_dir=args.model_dir)
    status = 0
    for path in args.files:
        try:
            content = path.read_bytes()
        except OSError as e:
            get_logger().error(f"Cannot read {path}: {e}")
            status = 1
            continue
        result = orchestrator.analyze(content)
        print(json.dumps({"file": str(path), **result.to_dict()}))
    return status


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command in TRAIN_COMMANDS:
        return _train(args)
    if args.command == "reorganize-training-folders":
        return _reorganize(args)
    return _analyze(args)


if __name__ == "__main__":
    sys.exit(main())
