"""Clustering incremental de noticias.

Single streaming pass that assigns each item to the first open cluster whose
representative vector is similar enough, or founds a new cluster:
- Registry of open clusters kept in creation order
- First match wins, full clusters are skipped
- Centroid updated together with every append
"""

from collections import OrderedDict
from typing import List, Optional, Sequence

from newsrank.core.logging import get_logger
from newsrank.core.settings import Settings, get_settings
from newsrank.ranker.models import Cluster, Item
from newsrank.ranker.vectorize import QUALITY_HIGH, cosine_similarity

logger = get_logger(__name__)


def similarity_threshold(quality: str, settings: Optional[Settings] = None) -> float:
    """Threshold for the effective quality mode."""
    settings = settings or get_settings()
    if quality == QUALITY_HIGH:
        return settings.high_quality_threshold
    return settings.low_quality_threshold


class IncrementalClusterer:
    """Greedy first-match clustering over an insertion-ordered registry."""

    def __init__(self, threshold: float, max_size: int = 100, top_k: int = 12):
        self.threshold = threshold
        self.max_size = max_size
        self.top_k = top_k
        self.clusters: "OrderedDict[str, Cluster]" = OrderedDict()

    @classmethod
    def from_settings(cls, quality: str, settings: Optional[Settings] = None) -> 'IncrementalClusterer':
        settings = settings or get_settings()
        return cls(
            threshold=similarity_threshold(quality, settings),
            max_size=settings.max_cluster_size,
            top_k=settings.signature_top_k,
        )

    def find_cluster(self, vector: Sequence[float]) -> Optional[Cluster]:
        """First open cluster, in creation order, that matches and has room."""
        for cluster in self.clusters.values():
            if cosine_similarity(vector, cluster.representative) > self.threshold:
                if cluster.is_full:
                    logger.debug(f"Cluster {cluster.id} matched but is full, scanning on")
                    continue
                return cluster
        return None

    def add(self, item: Item, vector: Sequence[float], signature: str) -> Cluster:
        """Place one item; returns the cluster that received it."""
        cluster = self.find_cluster(vector)
        if cluster is not None:
            cluster.append(item)
            return cluster

        cluster = Cluster.found(
            signature=signature,
            founder=item,
            vector=vector,
            max_size=self.max_size,
            top_k=self.top_k,
        )
        self.clusters[cluster.id] = cluster
        return cluster

    def run(self, items: Sequence[Item], vectors: Sequence[Sequence[float]],
            signatures: Sequence[str]) -> "OrderedDict[str, Cluster]":
        """Stream all items in input order."""
        for item, vector, signature in zip(items, vectors, signatures):
            self.add(item, vector, signature)

        logger.info(f"Streaming pass placed {len(items)} items into {len(self.clusters)} clusters")
        return self.clusters

    def to_list(self) -> List[Cluster]:
        return list(self.clusters.values())
