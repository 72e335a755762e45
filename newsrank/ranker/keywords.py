"""TF-IDF keyword extraction and document signatures.

Every document gets a fixed-length list of ``top_k`` keyword slots so that
downstream vocabulary indexing stays deterministic. Unused slots hold the
``NO_KEYWORD`` sentinel, which must be filtered before anything is shown.
"""

import math
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from newsrank.core.text import content_tokens, normalize_text

NO_KEYWORD = None
DEFAULT_TOP_K = 12
SIGNATURE_SEPARATOR = "|"
NO_TITLE = "no-title"


def term_frequencies(doc: Optional[str]) -> Dict[str, float]:
    """Term frequency table in first-occurrence order; empty for empty docs."""
    terms = content_tokens(doc)
    if not terms:
        return {}
    total = len(terms)
    return {term: count / total for term, count in Counter(terms).items()}


def extract_keywords(docs: Sequence[Optional[str]], top_k: int = DEFAULT_TOP_K) -> List[List[Optional[str]]]:
    """
    Rank per-document keywords by tf * idf across a batch.

    idf is ``ln(N / (1 + df))``. Ties, including the all-equal scores of a
    single-document batch, keep first-occurrence order because the sort is
    stable.

    Args:
        docs: Raw document texts
        top_k: Slots per document

    Returns:
        One list of exactly ``top_k`` entries per document, padded with
        NO_KEYWORD
    """
    tables = [term_frequencies(doc) for doc in docs]

    doc_freq: Dict[str, int] = {}
    for table in tables:
        for term in table:
            doc_freq[term] = doc_freq.get(term, 0) + 1

    n_docs = len(docs)
    idf = {term: math.log(n_docs / (1 + df)) for term, df in doc_freq.items()}

    results = []
    for table in tables:
        scored = [(term, tf * idf[term]) for term, tf in table.items()]
        scored.sort(key=lambda pair: pair[1], reverse=True)
        keywords = [term for term, _ in scored[:top_k]]
        keywords.extend([NO_KEYWORD] * (top_k - len(keywords)))
        results.append(keywords)

    return results


def real_keywords(keywords: Iterable[Optional[str]]) -> List[str]:
    """Drop sentinel slots."""
    return [k for k in keywords if k is not NO_KEYWORD and k != ""]


def build_signature(keywords: Iterable[Optional[str]], title: Optional[str] = None,
                    title_chars: int = 80) -> str:
    """
    Build the pipe-joined, sorted, deduplicated keyword fingerprint.

    Falls back to the truncated normalized title, then to ``"no-title"``.
    """
    signature = SIGNATURE_SEPARATOR.join(sorted(set(real_keywords(keywords))))
    if signature:
        return signature
    return normalize_text(title)[:title_chars] or NO_TITLE


def signature_keywords(signature: Optional[str]) -> List[str]:
    """Split a signature back into its keyword list."""
    if not signature:
        return []
    return [k for k in signature.split(SIGNATURE_SEPARATOR) if k]
