"""News clustering and rating package.

This package contains modules for:
- Keyword extraction and signatures (keywords.py)
- Items, centroids and clusters (models.py)
- Keyword vectors, embeddings and similarity (vectorize.py, embeddings.py)
- Streaming clustering and bucket merging (cluster.py, merge.py)
- Cluster scoring and rating (score.py)
- Topic labels and enrichment (labels.py)
- Urgency/buzz signals (signals.py)
- Processing pipeline (pipeline.py)
"""

from .keywords import NO_KEYWORD, extract_keywords, build_signature

from .models import Item, Centroid, Cluster, ClusterView

from .embeddings import (
    EmbeddingError,
    EmbeddingProvider,
    DummyEmbeddingProvider,
    OpenAIEmbeddingProvider,
    get_embedding_provider
)

from .score import ClusterScorer, freshness_weight, source_weight

from .signals import derive_signals, derive_signals_from_settings, buzz_terms_from_texts

from .pipeline import cluster_articles, cluster_articles_sync

__all__ = [
    # Keywords
    'NO_KEYWORD',
    'extract_keywords',
    'build_signature',

    # Models
    'Item',
    'Centroid',
    'Cluster',
    'ClusterView',

    # Embeddings
    'EmbeddingError',
    'EmbeddingProvider',
    'DummyEmbeddingProvider',
    'OpenAIEmbeddingProvider',
    'get_embedding_provider',

    # Scoring
    'ClusterScorer',
    'freshness_weight',
    'source_weight',

    # Signals
    'derive_signals',
    'derive_signals_from_settings',
    'buzz_terms_from_texts',

    # Pipeline
    'cluster_articles',
    'cluster_articles_sync'
]
