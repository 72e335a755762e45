"""Sistema de scoring para clusters de noticias.

Implements the two cluster scores:
- Raw score: freshness x source x size heuristic kept for diagnostics
- Rating: bounded 1.0-5.0 figure in 0.5 steps shown to readers, combining
  freshness, source quality, size, domain diversity, urgency and buzz
"""

import math
from typing import Dict, Iterable, List, Optional

from newsrank.core.settings import DEFAULT_SOURCE_QUALITY
from newsrank.core.time import age_hours, current_timestamp
from newsrank.ranker.models import Cluster, Item, DEFAULT_MAX_CLUSTER_SIZE

# Rating weights
FRESHNESS_WEIGHT = 0.45
SOURCE_WEIGHT = 0.25
SIZE_WEIGHT = 0.10
DIVERSITY_WEIGHT = 0.05
URGENCY_BOOST = 0.2
BUZZ_BOOST = 0.3

# Rating scale
RAW_CEILING = 1.5
MAX_RATING = 5.0
MIN_RATING = 1.0
RATING_STEP = 0.5

# Freshness decay
TIME_DECAY_TAU_HOURS = 48.0
FRESHNESS_FLOOR = 0.2
FRESHNESS_DEFAULT = 0.9
RAW_FRESHNESS_BOOST = 1.2


def freshness_weight(item: Item, now: Optional[float] = None,
                     tau_hours: float = TIME_DECAY_TAU_HOURS,
                     floor: float = FRESHNESS_FLOOR,
                     default: float = FRESHNESS_DEFAULT) -> float:
    """
    exp(-hours / tau) clamped to [floor, 1.0].

    Items without a parseable timestamp get ``default``. Future timestamps
    count as age zero.
    """
    ts = item.timestamp
    if ts is None:
        return default
    hours = max(0.0, age_hours(ts, now))
    return min(1.0, max(floor, math.exp(-hours / tau_hours)))


def source_weight(item: Item, table: Optional[Dict[str, float]] = None) -> float:
    """Quality multiplier of the item's domain, 1.0 when unknown."""
    table = DEFAULT_SOURCE_QUALITY if table is None else table
    domain = item.domain
    if not domain:
        return 1.0
    return table.get(domain, 1.0)


def _mean(values: Iterable[float]) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0


def round_to_step(value: float, step: float = RATING_STEP) -> float:
    """Round half up to the nearest step."""
    return math.floor(value / step + 0.5) * step


class ClusterScorer:
    """Calculator of raw scores and ratings for one batch."""

    def __init__(self, now: Optional[float] = None,
                 source_quality: Optional[Dict[str, float]] = None,
                 tau_hours: float = TIME_DECAY_TAU_HOURS,
                 freshness_floor: float = FRESHNESS_FLOOR,
                 freshness_default: float = FRESHNESS_DEFAULT,
                 max_cluster_size: int = DEFAULT_MAX_CLUSTER_SIZE):
        self.now = current_timestamp() if now is None else now
        self.source_quality = dict(DEFAULT_SOURCE_QUALITY) if source_quality is None else source_quality
        self.tau_hours = tau_hours
        self.freshness_floor = freshness_floor
        self.freshness_default = freshness_default
        self.max_cluster_size = max_cluster_size

    @classmethod
    def from_settings(cls, settings, now: Optional[float] = None) -> 'ClusterScorer':
        return cls(
            now=now,
            source_quality=settings.source_quality,
            tau_hours=settings.freshness_tau_hours,
            freshness_floor=settings.freshness_floor,
            freshness_default=settings.freshness_default,
            max_cluster_size=settings.max_cluster_size,
        )

    @property
    def max_source_quality(self) -> float:
        return max(self.source_quality.values(), default=1.0) or 1.0

    def freshness(self, item: Item) -> float:
        return freshness_weight(item, self.now, self.tau_hours,
                                self.freshness_floor, self.freshness_default)

    def source(self, item: Item) -> float:
        return source_weight(item, self.source_quality)

    def raw_score(self, cluster: Cluster) -> float:
        """(mean freshness * 1.2) * mean source weight * ln(1 + size)."""
        members = cluster.members
        if not members:
            return 0.0
        mean_freshness = _mean(self.freshness(item) for item in members)
        mean_source = _mean(self.source(item) for item in members)
        return (mean_freshness * RAW_FRESHNESS_BOOST) * mean_source * math.log(1 + len(members))

    def components(self, cluster: Cluster) -> Dict[str, float]:
        """Individual rating terms before weighting, for diagnostics."""
        members = cluster.members
        size = len(members)
        return {
            'freshness': _mean(self.freshness(item) for item in members),
            'source': _mean(self.source(item) for item in members) / self.max_source_quality,
            'size': math.log(1 + size) / math.log(1 + self.max_cluster_size),
            'diversity': len({item.domain for item in members}) / size,
            'urgency': sum(item.urgency for item in members) / size,
            'buzz': sum(item.buzz for item in members) / size,
        }

    def rating(self, cluster: Cluster) -> float:
        """
        Bounded reader-facing rating.

        Weighted sum, capped at 1.5, scaled to 0-5, rounded to 0.5 and clamped
        to [1.0, 5.0]. Empty clusters rate 0.
        """
        if not cluster.members:
            return 0.0

        parts = self.components(cluster)
        raw = (
            FRESHNESS_WEIGHT * parts['freshness'] +
            SOURCE_WEIGHT * parts['source'] +
            SIZE_WEIGHT * parts['size'] +
            DIVERSITY_WEIGHT * parts['diversity'] +
            URGENCY_BOOST * parts['urgency'] +
            BUZZ_BOOST * parts['buzz']
        )
        scaled = round_to_step(min(RAW_CEILING, raw) / RAW_CEILING * MAX_RATING)
        return min(MAX_RATING, max(MIN_RATING, scaled))


def rank_clusters(clusters: List[Cluster]) -> List[Cluster]:
    """Stable sort by rating descending; equal ratings keep creation order."""
    return sorted(clusters, key=lambda cluster: cluster.rating, reverse=True)
