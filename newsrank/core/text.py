"""Text normalization and tokenization shared by keyword extraction."""

import re
from typing import List, Optional

URL_RE = re.compile(r'https?://\S+')
# Anything that is not a Unicode letter/digit or whitespace; \w also admits "_"
PUNCT_RE = re.compile(r'[^\w\s]|_')
SPACE_RE = re.compile(r'\s+')

STOP_WORDS = frozenset([
    # Korean
    "그", "이", "저", "것", "수", "등", "및", "에서", "으로", "하다", "했다", "지난", "오늘", "내일",
    "대한", "관련", "위해", "그리고", "하지만", "또한", "모든", "기사", "속보", "단독",
    # English
    "the", "a", "an", "and", "or", "but", "is", "are", "was", "were", "to", "of", "in", "on",
    "for", "with", "by", "from", "at", "as", "that", "this", "these", "those", "be", "been",
    "it", "its", "into", "about", "their", "his", "her", "you", "your", "we", "our", "they",
    "them", "he", "she",
])


def normalize_text(text: Optional[str]) -> str:
    """
    Normalize free text for keyword work.

    Strips URLs and punctuation, keeps Unicode letters and digits,
    collapses whitespace and lowercases.

    Args:
        text: Input text (None allowed)

    Returns:
        Normalized text, empty string for empty input
    """
    if not text:
        return ""

    text = URL_RE.sub(' ', str(text))
    text = PUNCT_RE.sub(' ', text)
    text = SPACE_RE.sub(' ', text)
    return text.strip().lower()


def tokenize(text: Optional[str]) -> List[str]:
    """Split already-normalized text on whitespace."""
    if not text:
        return []
    return text.split()


def content_tokens(text: Optional[str]) -> List[str]:
    """Normalize, tokenize and drop stop words."""
    return [token for token in tokenize(normalize_text(text)) if token not in STOP_WORDS]
