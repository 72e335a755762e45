"""Bounded second pass that merges near-duplicate open clusters."""

import math
from collections import OrderedDict
from typing import Callable, Optional

from newsrank.core.logging import get_logger
from newsrank.ranker.models import Cluster

logger = get_logger(__name__)

DEFAULT_MERGE_WINDOW = 3
DEFAULT_OVERLAP_RATIO = 0.5


def keyword_overlap(a: set, b: set) -> int:
    """Size of the intersection of two keyword sets."""
    return len(a & b)


def should_merge(a: set, b: set, ratio: float = DEFAULT_OVERLAP_RATIO) -> bool:
    """True when both sets are non-empty and overlap covers ratio of the smaller."""
    min_size = min(len(a), len(b))
    if min_size == 0:
        return False
    return keyword_overlap(a, b) >= math.ceil(min_size * ratio)


def merge_nearby_buckets(clusters: "OrderedDict[str, Cluster]",
                         window: int = DEFAULT_MERGE_WINDOW,
                         ratio: float = DEFAULT_OVERLAP_RATIO,
                         rescore: Optional[Callable[[Cluster], float]] = None) -> "OrderedDict[str, Cluster]":
    """
    Merge clusters whose signatures share enough keywords.

    Keys are scanned in (signature length, signature) order and each cluster
    is only compared with the next ``window`` keys. The larger cluster absorbs
    the smaller one; members beyond capacity are dropped. The registry is
    modified in place and keeps creation order for the survivors.

    Args:
        clusters: Open clusters keyed by id, in creation order
        window: How many following keys each cluster is compared with
        ratio: Required overlap relative to the smaller keyword set
        rescore: Recomputes the absorbing cluster's raw score

    Returns:
        The same registry
    """
    order = sorted(clusters.keys(), key=lambda key: (len(clusters[key].signature), clusters[key].signature))
    keyword_sets = {key: set(clusters[key].keywords) for key in order}
    merges = 0
    dropped_total = 0

    for i, key_a in enumerate(order):
        if key_a not in clusters:
            continue
        for j in range(i + 1, min(i + window, len(order) - 1) + 1):
            key_b = order[j]
            if key_b not in clusters:
                continue
            if not should_merge(keyword_sets[key_a], keyword_sets[key_b], ratio):
                continue

            a, b = clusters[key_a], clusters[key_b]
            into, source = (a, b) if a.size >= b.size else (b, a)
            dropped = into.absorb(source)
            if rescore is not None:
                into.raw_score = rescore(into)
            del clusters[source.id]

            merges += 1
            dropped_total += dropped
            if dropped:
                logger.debug(f"Merge into {into.id} dropped {dropped} items at capacity")

            if source is a:
                break

    if merges:
        logger.info(f"Merged {merges} cluster pairs, {len(clusters)} clusters remain, {dropped_total} items dropped")
    return clusters
