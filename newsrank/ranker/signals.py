"""Urgency and buzz flags derived from the batch itself.

Urgency marks stories that several items repeat; buzz marks items whose
keywords overlap terms trending on social media. Fetching the social texts is
left to the caller.
"""

from collections import Counter
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Set

from newsrank.core.logging import get_logger
from newsrank.core.settings import Settings, get_settings
from newsrank.ranker.keywords import build_signature, extract_keywords, real_keywords
from newsrank.ranker.models import Item

logger = get_logger(__name__)

URGENCY_REPEAT_THRESHOLD = 3
BUZZ_MIN_OVERLAP = 2
BUZZ_TERMS_PER_TEXT = 5


def item_signature(item: Item) -> str:
    """Signature of an item taken on its own, outside any batch."""
    keywords = extract_keywords([item.document()])[0]
    return build_signature(keywords, item.title)


def buzz_terms_from_texts(texts: Iterable[str], per_text: int = BUZZ_TERMS_PER_TEXT) -> Set[str]:
    """Top keywords of each social text, pooled."""
    terms: Set[str] = set()
    for text in texts:
        terms.update(real_keywords(extract_keywords([text], per_text)[0]))
    return terms


def derive_signals(items: Sequence[Item],
                   buzz_terms: Optional[Iterable[str]] = None,
                   repeat_threshold: int = URGENCY_REPEAT_THRESHOLD,
                   min_overlap: int = BUZZ_MIN_OVERLAP) -> List[Item]:
    """
    Return copies of items with urgency and buzz recomputed.

    An item is urgent when its own signature occurs in at least
    ``repeat_threshold`` items. It is buzz when its title and summary share at
    least ``min_overlap`` keywords with ``buzz_terms``; without buzz terms no
    item is buzz.
    """
    signatures = [item_signature(item) for item in items]
    counts = Counter(signatures)
    buzz = set(buzz_terms or ())

    flagged = []
    for item, signature in zip(items, signatures):
        text = " ".join(part for part in (item.title, item.summary) if part)
        keywords = set(real_keywords(extract_keywords([text])[0]))
        flagged.append(replace(
            item,
            urgency=1 if counts[signature] >= repeat_threshold else 0,
            buzz=1 if buzz and len(keywords & buzz) >= min_overlap else 0,
        ))

    logger.debug(
        f"Signals: {sum(i.urgency for i in flagged)} urgent, "
        f"{sum(i.buzz for i in flagged)} buzz of {len(flagged)} items"
    )
    return flagged


def derive_signals_from_settings(items: Sequence[Item],
                                 social_texts: Optional[Iterable[str]] = None,
                                 settings: Optional[Settings] = None) -> List[Item]:
    """derive_signals with thresholds and buzz terms taken from settings."""
    settings = settings or get_settings()
    buzz_terms = None
    if social_texts is not None:
        buzz_terms = buzz_terms_from_texts(social_texts, settings.buzz_terms_per_text)
    return derive_signals(
        items,
        buzz_terms=buzz_terms,
        repeat_threshold=settings.urgency_repeat_threshold,
        min_overlap=settings.buzz_min_overlap,
    )
