"""
Class balancing for training sets.

KNN votes are sensitive to local density, so majority classes are cut
down and minority classes are padded with duplicates before training.
"""
from typing import Dict, List, Optional, TypeVar

import numpy as np
from loguru import logger

from catalog_vision.config import config

T = TypeVar("T")


def balancing_target(counts: List[int], min_target: Optional[int] = None) -> int:
    """
    Target size per class: the median count, at least ``min_target``.
    
    With an even number of classes the upper median is used.
    """
    if min_target is None:
        min_target = config.BALANCE_MIN_TARGET
    if not counts:
        return min_target
    sorted_counts = sorted(counts)
    median = sorted_counts[len(sorted_counts) // 2]
    return max(min_target, median)


def balance_classes(
    items_by_class: Dict[str, List[T]],
    min_target: Optional[int] = None,
    seed: Optional[int] = None
) -> Dict[str, List[T]]:
    """
    Equalize per-class item counts.
    
    Classes above the target are randomly subsampled without replacement;
    classes below it keep every item and are topped up with items drawn
    with replacement from the same class; classes at the target are
    returned unchanged.
    
    Args:
        items_by_class: label -> items (file paths, samples, ...)
        min_target: Lower bound of the target size
        seed: Random seed for reproducible balancing
        
    Returns:
        New label -> items mapping in the same label order
    """
    counts = [len(items) for items in items_by_class.values()]
    target = balancing_target(counts, min_target)
    logger.info(f"Balancing target: {target} items per class")
    
    rng = np.random.default_rng(seed)
    balanced: Dict[str, List[T]] = {}
    
    for label, items in items_by_class.items():
        count = len(items)
        if count > target:
            indices = rng.choice(count, size=target, replace=False)
            balanced[label] = [items[i] for i in indices]
        elif 0 < count < target:
            extra = rng.integers(0, count, size=target - count)
            balanced[label] = list(items) + [items[i] for i in extra]
        else:
            if count == 0:
                logger.warning(f"Class '{label}' has no items, cannot oversample")
            balanced[label] = list(items)
        
        logger.debug(f"Class '{label}': {count} -> {len(balanced[label])}")
    
    return balanced
