"""Fixed-length vectors per document and the similarity used to compare them.

Two quality modes:
- low: binary bag-of-keywords over the batch's union vocabulary
- high: dense vectors from an external embedding provider, with a whole-batch
  fallback to the low mode vectors on any failure
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as sk_cosine_similarity
from sklearn.preprocessing import MultiLabelBinarizer

from newsrank.core.logging import get_logger
from newsrank.ranker.embeddings import EmbeddingProvider, validate_vectors
from newsrank.ranker.keywords import real_keywords

logger = get_logger(__name__)

QUALITY_LOW = "low"
QUALITY_HIGH = "high"
QUALITY_MODES = (QUALITY_LOW, QUALITY_HIGH)


def normalize_quality(quality: Optional[str]) -> str:
    """Map a requested quality mode onto a supported one."""
    value = (quality or QUALITY_LOW).strip().lower()
    if value not in QUALITY_MODES:
        logger.warning(f"Unknown quality mode '{quality}', using '{QUALITY_LOW}'")
        return QUALITY_LOW
    return value


def keyword_vectors(keyword_lists: Sequence[Sequence[Optional[str]]]) -> np.ndarray:
    """
    Binary indicator vectors over the union vocabulary of the batch.

    Sentinel slots are ignored. The vocabulary is sorted, so the same batch
    always yields the same columns.
    """
    if not keyword_lists:
        return np.zeros((0, 0), dtype=np.int8)

    labels = [set(real_keywords(keywords)) for keywords in keyword_lists]
    vocabulary = sorted(set().union(*labels))
    if not vocabulary:
        return np.zeros((len(labels), 0), dtype=np.int8)

    binarizer = MultiLabelBinarizer(classes=vocabulary)
    return binarizer.fit_transform(labels).astype(np.int8)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity over the shared prefix of two vectors.

    Returns 0.0 for empty vectors, zero norms or non-finite values.
    """
    vec_a = np.asarray(a, dtype=float).ravel()
    vec_b = np.asarray(b, dtype=float).ravel()
    length = min(vec_a.shape[0], vec_b.shape[0])
    if length == 0:
        return 0.0

    vec_a = vec_a[:length]
    vec_b = vec_b[:length]
    if not (np.all(np.isfinite(vec_a)) and np.all(np.isfinite(vec_b))):
        return 0.0
    if not vec_a.any() or not vec_b.any():
        return 0.0

    similarity = float(sk_cosine_similarity(vec_a.reshape(1, -1), vec_b.reshape(1, -1))[0, 0])
    return similarity if np.isfinite(similarity) else 0.0


async def vectorize(docs: Sequence[str],
                    keyword_lists: Sequence[Sequence[Optional[str]]],
                    quality: str = QUALITY_LOW,
                    provider: Optional[EmbeddingProvider] = None) -> Tuple[List[np.ndarray], str]:
    """
    Build one vector per document.

    Args:
        docs: Document texts, used only by the embedding provider
        keyword_lists: Per-document keyword slots from the extractor
        quality: Requested quality mode
        provider: Embedding provider for the high mode

    Returns:
        (vectors, effective quality mode)
    """
    low_vectors = list(keyword_vectors(keyword_lists))
    quality = normalize_quality(quality)

    if quality != QUALITY_HIGH:
        return low_vectors, QUALITY_LOW

    if provider is None:
        logger.info("High quality requested but no embedding provider configured, using keyword vectors")
        return low_vectors, QUALITY_LOW

    try:
        embeddings = await provider.embed(list(docs))
        validate_vectors(embeddings, len(docs))
    except Exception as e:
        logger.warning(f"Embedding with {provider.provider_name} failed, using keyword vectors: {e}")
        return low_vectors, QUALITY_LOW

    logger.info(f"Embedded {len(embeddings)} documents with {provider.provider_name}")
    return [np.asarray(vector, dtype=float) for vector in embeddings], QUALITY_HIGH
