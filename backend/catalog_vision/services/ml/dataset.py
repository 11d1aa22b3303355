"""
Training image layout.

Each classifier reads images from its own subtree of the training root,
one folder per class::

    position/{Front,Back,Side,Top,Bottom,PartZoom}/
    background/{neutral,non-neutral}/
    product-only/{product-only,situational}/

Legacy position folders (Left, Right, LateralLeft, LateralRight) are read
as "Side" until ``reorganize_training_folders`` moves them.
"""
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Tuple, Union

from loguru import logger

from catalog_vision.config import config
from catalog_vision.services.errors import TrainingLayoutError
from catalog_vision.services.features import FeatureMode

LEGACY_SIDE_FOLDERS = ("Left", "Right", "LateralLeft", "LateralRight")


class ClassifierKind(str, Enum):
    POSITION = "position"
    BACKGROUND = "background"
    PRODUCT_ONLY = "product-only"


@dataclass(frozen=True)
class TrainingLayout:
    """Where a classifier's images live and how they are labeled."""
    kind: ClassifierKind
    subdir: str
    folders: Dict[str, Tuple[str, ...]]
    feature_mode: FeatureMode
    remap_legacy: bool = False
    
    def root(self, training_root: Union[str, Path, None] = None) -> Path:
        return Path(training_root or config.TRAINING_DIR) / self.subdir
    
    def expected_folders(self) -> List[str]:
        return [folders[0] for folders in self.folders.values()]


TRAINING_LAYOUTS: Dict[ClassifierKind, TrainingLayout] = {
    ClassifierKind.POSITION: TrainingLayout(
        kind=ClassifierKind.POSITION,
        subdir="position",
        folders={
            "Front": ("Front",),
            "Back": ("Back",),
            "Side": ("Side",) + LEGACY_SIDE_FOLDERS,
            "Top": ("Top",),
            "Bottom": ("Bottom",),
            "Part Zoom": ("PartZoom",),
        },
        feature_mode=FeatureMode.COARSE,
        remap_legacy=True,
    ),
    ClassifierKind.BACKGROUND: TrainingLayout(
        kind=ClassifierKind.BACKGROUND,
        subdir="background",
        folders={
            "true": ("neutral",),
            "false": ("non-neutral",),
        },
        feature_mode=FeatureMode.EDGE,
    ),
    ClassifierKind.PRODUCT_ONLY: TrainingLayout(
        kind=ClassifierKind.PRODUCT_ONLY,
        subdir="product-only",
        folders={
            "true": ("product-only",),
            "false": ("situational",),
        },
        feature_mode=FeatureMode.FINE,
    ),
}


def list_images(directory: Path) -> List[Path]:
    """Supported image files directly inside ``directory``, sorted by name."""
    if not directory.is_dir():
        return []
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in config.SUPPORTED_EXTENSIONS
    )


def collect_training_images(
    kind: ClassifierKind,
    training_root: Union[str, Path, None] = None
) -> Dict[str, List[Path]]:
    """
    Image paths per label for one classifier.
    
    Missing or empty class folders are skipped with a warning.
    
    Raises:
        TrainingLayoutError: If the classifier's training directory does not exist
    """
    layout = TRAINING_LAYOUTS[ClassifierKind(kind)]
    root = layout.root(training_root)
    if not root.is_dir():
        expected = ", ".join(f"{root / name}" for name in layout.expected_folders())
        raise TrainingLayoutError(f"Training directory does not exist: {root}. Create: {expected}")
    
    images_by_label: Dict[str, List[Path]] = {}
    for label, folders in layout.folders.items():
        images: List[Path] = []
        for folder in folders:
            images.extend(list_images(root / folder))
        
        if not images:
            logger.warning(f"No images for '{label}' (folders: {', '.join(folders)})")
            continue
        
        logger.info(f"Class '{label}': {len(images)} images")
        images_by_label[label] = images
    
    return images_by_label


@dataclass
class ReorganizeReport:
    """Outcome of folding legacy position folders into Side."""
    dry_run: bool
    moved: List[Tuple[Path, Path]] = field(default_factory=list)
    created: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    
    @property
    def moved_count(self) -> int:
        return len(self.moved)


def reorganize_training_folders(
    training_root: Union[str, Path, None] = None,
    dry_run: bool = False
) -> ReorganizeReport:
    """
    Move images from the legacy lateral folders into ``position/Side``.
    
    A file whose name already exists in Side is renamed ``<Folder>_<name>``.
    Legacy folders left without images are deleted. With ``dry_run`` the
    planned moves are reported and nothing is touched.
    
    Raises:
        TrainingLayoutError: If the position training directory does not exist
    """
    root = TRAINING_LAYOUTS[ClassifierKind.POSITION].root(training_root)
    if not root.is_dir():
        raise TrainingLayoutError(f"Training directory does not exist: {root}")
    
    report = ReorganizeReport(dry_run=dry_run)
    target_dir = root / "Side"
    if not target_dir.exists():
        report.created.append(target_dir)
        if not dry_run:
            target_dir.mkdir(parents=True)
        logger.info(f"{'[DRY RUN] Would create' if dry_run else 'Created'} {target_dir}")
    
    planned = set()
    for folder in LEGACY_SIDE_FOLDERS:
        legacy_dir = root / folder
        if not legacy_dir.is_dir():
            logger.warning(f"Legacy folder not found (skipped): {legacy_dir}")
            report.missing.append(folder)
            continue
        
        images = list_images(legacy_dir)
        logger.info(f"{folder}: {len(images)} image(s) to move")
        
        for image in images:
            destination = target_dir / image.name
            if destination.exists() or destination in planned:
                destination = target_dir / f"{folder}_{image.name}"
                logger.warning(f"File exists, renaming: {image.name} -> {destination.name}")
            planned.add(destination)
            report.moved.append((image, destination))
            if not dry_run:
                shutil.move(str(image), str(destination))
        
        if dry_run:
            leftover = [p for p in legacy_dir.iterdir() if p not in images]
        else:
            leftover = list(legacy_dir.iterdir())
        if not leftover:
            report.removed.append(legacy_dir)
            if not dry_run:
                shutil.rmtree(legacy_dir)
                logger.info(f"Removed {legacy_dir}")
    
    if dry_run:
        logger.info(f"[DRY RUN] {report.moved_count} image(s) would be moved to Side")
    else:
        logger.info(f"{report.moved_count} image(s) moved to Side")
    return report
