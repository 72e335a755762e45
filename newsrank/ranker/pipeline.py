"""Pipeline orquestador de clustering y rating.

Coordina el flujo completo para un lote de noticias:
1. Keywords: TF-IDF per document over the batch
2. Signatures: fingerprint per document
3. Vectors: keyword indicators or external embeddings
4. Clustering: greedy streaming pass
5. Merge: bounded pass over near-duplicate clusters
6. Finalize: raw score, labels, rating, flags, ordering
"""

import asyncio
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from newsrank.core.logging import get_logger
from newsrank.core.settings import Settings, get_settings
from newsrank.ranker.cluster import IncrementalClusterer
from newsrank.ranker.embeddings import EmbeddingProvider
from newsrank.ranker.keywords import build_signature, extract_keywords
from newsrank.ranker.labels import LabelRule, enrich_cluster
from newsrank.ranker.merge import merge_nearby_buckets
from newsrank.ranker.models import ClusterView, Item
from newsrank.ranker.score import ClusterScorer, rank_clusters
from newsrank.ranker.vectorize import QUALITY_LOW, vectorize

logger = get_logger(__name__)

ItemLike = Union[Item, Dict[str, Any]]


def coerce_items(items: Sequence[ItemLike]) -> List[Item]:
    """Accept Items or raw dicts from ingestion; anything else is skipped."""
    coerced = []
    for item in items:
        if isinstance(item, Item):
            coerced.append(item)
        elif isinstance(item, Mapping):
            coerced.append(Item.from_dict(item))
        else:
            logger.warning(f"Skipping input of type {type(item).__name__}, expected Item or dict")
    return coerced


async def cluster_articles(items: Sequence[ItemLike],
                           quality: str = QUALITY_LOW,
                           provider: Optional[EmbeddingProvider] = None,
                           settings: Optional[Settings] = None,
                           now: Optional[float] = None,
                           label_rules: Optional[List[LabelRule]] = None) -> List[ClusterView]:
    """
    Cluster, score and rank one batch of items.

    Args:
        items: Items in input order; order is part of the result
        quality: "low" for keyword vectors, "high" for embeddings
        provider: Embedding provider used by the high mode
        settings: Engine settings, defaults to get_settings()
        now: POSIX seconds used for freshness, defaults to the current time
        label_rules: Topic rules, defaults to the packaged table

    Returns:
        Cluster views sorted by rating descending
    """
    if not items:
        return []

    start_time = time.time()
    settings = settings or get_settings()
    batch = coerce_items(items)
    if not batch:
        return []

    docs = [item.document() for item in batch]
    keyword_lists = extract_keywords(docs, settings.signature_top_k)
    signatures = [
        build_signature(keywords, item.title, settings.signature_title_chars)
        for keywords, item in zip(keyword_lists, batch)
    ]

    vectors, effective_quality = await vectorize(docs, keyword_lists, quality, provider)

    clusterer = IncrementalClusterer.from_settings(effective_quality, settings)
    clusters = clusterer.run(batch, vectors, signatures)

    scorer = ClusterScorer.from_settings(settings, now=now)
    merge_nearby_buckets(
        clusters,
        window=settings.merge_window,
        ratio=settings.merge_overlap_ratio,
        rescore=scorer.raw_score,
    )

    finalized = []
    for cluster in clusters.values():
        cluster.raw_score = scorer.raw_score(cluster)
        enrich_cluster(cluster, scorer, label_rules, settings.max_labels)
        finalized.append(cluster)

    ranked = rank_clusters(finalized)

    logger.info(
        f"Clustered {len(batch)} items into {len(ranked)} clusters "
        f"(quality={effective_quality}) in {time.time() - start_time:.3f}s"
    )
    return [cluster.to_view() for cluster in ranked]


def cluster_articles_sync(items: Sequence[ItemLike], quality: str = QUALITY_LOW,
                          provider: Optional[EmbeddingProvider] = None,
                          settings: Optional[Settings] = None,
                          now: Optional[float] = None,
                          label_rules: Optional[List[LabelRule]] = None) -> List[ClusterView]:
    """Blocking wrapper for callers outside an event loop."""
    return asyncio.run(cluster_articles(items, quality, provider, settings, now, label_rules))
