"""Data structures for clustering: input items, centroids and clusters."""

import hashlib
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from newsrank.core.time import parse_timestamp, to_iso
from newsrank.ranker.keywords import (
    DEFAULT_TOP_K,
    extract_keywords,
    real_keywords,
    signature_keywords,
)

DEFAULT_MAX_CLUSTER_SIZE = 100

# Hosts that publish on behalf of another outlet
DOMAIN_ALIASES = {
    "news.naver.com": "naver.com",
    "n.news.naver.com": "naver.com",
}


def normalize_domain(host: Optional[str]) -> str:
    """Lowercase a host, drop ``www.`` and fold publishing aliases."""
    if not isinstance(host, str):
        return ""
    host = host.strip().lower()
    if host.startswith("www."):
        host = host[4:]
    return DOMAIN_ALIASES.get(host, host)


def domain_of(url: Optional[str]) -> str:
    """Host of a URL without ``www.``; empty string when unparseable."""
    if not url or not isinstance(url, str):
        return ""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    return normalize_domain(host)


def _flag(value: Any) -> int:
    try:
        return 1 if int(value) > 0 else 0
    except (TypeError, ValueError, OverflowError):
        return 0


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _string_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


@dataclass(frozen=True)
class Item:
    """A news item as supplied by ingestion. Never mutated by the engine."""
    title: str = ""
    summary: Optional[str] = None
    content: Optional[str] = None
    url: Optional[str] = None
    published_at: Any = None
    source_domain: Optional[str] = None
    lang: Optional[str] = None
    urgency: int = 0
    buzz: int = 0

    def __post_init__(self):
        # Ingestion feeds are loosely typed; fields are normalized once here
        object.__setattr__(self, "title", _text(self.title) or "")
        object.__setattr__(self, "summary", _text(self.summary))
        object.__setattr__(self, "content", _text(self.content))
        object.__setattr__(self, "url", _string_or_none(self.url))
        object.__setattr__(self, "source_domain", _string_or_none(self.source_domain))
        object.__setattr__(self, "lang", _string_or_none(self.lang))
        object.__setattr__(self, "urgency", _flag(self.urgency))
        object.__setattr__(self, "buzz", _flag(self.buzz))

    @property
    def domain(self) -> str:
        if self.source_domain:
            return normalize_domain(self.source_domain)
        return domain_of(self.url)

    @property
    def timestamp(self) -> Optional[float]:
        return parse_timestamp(self.published_at)

    def document(self) -> str:
        """Title, summary and content joined for keyword extraction."""
        return " ".join(part for part in (self.title, self.summary, self.content) if part)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Item':
        """Create from dictionary, accepting snake_case or camelCase keys."""
        return cls(
            title=data.get('title') or "",
            summary=data.get('summary') or data.get('description'),
            content=data.get('content'),
            url=data.get('url') or data.get('link'),
            published_at=data.get('published_at') or data.get('publishedAt'),
            source_domain=data.get('source_domain') or data.get('sourceDomain'),
            lang=data.get('lang') or data.get('sourceLang'),
            urgency=_flag(data.get('urgency', 0)),
            buzz=_flag(data.get('buzz', 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        published_at = self.published_at
        if isinstance(published_at, datetime):
            published_at = published_at.isoformat()
        return {
            'title': self.title,
            'summary': self.summary,
            'content': self.content,
            'url': self.url,
            'published_at': published_at,
            'source_domain': self.domain,
            'lang': self.lang,
            'urgency': self.urgency,
            'buzz': self.buzz,
        }


@dataclass
class Centroid:
    """Running aggregate of a cluster: title keyword counts and mean timestamp."""
    title_tokens: Dict[str, int] = field(default_factory=dict)
    published_at_avg: Optional[float] = None
    valid_ts_count: int = 0

    def update(self, item: Item, top_k: int = DEFAULT_TOP_K) -> None:
        """Fold one appended item into the aggregate."""
        for keyword in real_keywords(extract_keywords([item.title], top_k)[0]):
            self.title_tokens[keyword] = self.title_tokens.get(keyword, 0) + 1

        ts = item.timestamp
        if ts is None:
            return
        if self.valid_ts_count == 0 or self.published_at_avg is None:
            self.published_at_avg = ts
            self.valid_ts_count = 1
        else:
            count = self.valid_ts_count
            self.published_at_avg = (self.published_at_avg * count + ts) / (count + 1)
            self.valid_ts_count = count + 1

    def top_keywords(self, k: int = DEFAULT_TOP_K) -> List[str]:
        """Most frequent title keywords; ties keep first-seen order."""
        ranked = sorted(self.title_tokens.items(), key=lambda pair: pair[1], reverse=True)
        return [keyword for keyword, _ in ranked[:k]]

    def published_at_iso(self) -> Optional[str]:
        if self.valid_ts_count == 0:
            return None
        return to_iso(self.published_at_avg)


def make_cluster_id(signature: str) -> str:
    """Identity hash of signature plus a random salt; not content-addressed."""
    salt = secrets.token_hex(4)
    return hashlib.md5(f"{signature}:{salt}".encode('utf-8')).hexdigest()[:12]


@dataclass
class Cluster:
    """A group of items covering the same story during one batch run."""
    signature: str
    representative: Sequence[float]
    id: str = ""
    keywords: List[str] = field(default_factory=list)
    members: List[Item] = field(default_factory=list)
    centroid: Centroid = field(default_factory=Centroid)
    raw_score: float = 0.0
    rating: float = 0.0
    labels: List[str] = field(default_factory=list)
    is_urgent: bool = False
    is_buzz: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    max_size: int = DEFAULT_MAX_CLUSTER_SIZE
    top_k: int = DEFAULT_TOP_K

    def __post_init__(self):
        if not self.id:
            self.id = make_cluster_id(self.signature)
        if not self.keywords:
            self.keywords = signature_keywords(self.signature)

    @classmethod
    def found(cls, signature: str, founder: Item, vector: Sequence[float],
              max_size: int = DEFAULT_MAX_CLUSTER_SIZE, top_k: int = DEFAULT_TOP_K) -> 'Cluster':
        """Create a cluster with ``founder`` as first member."""
        cluster = cls(signature=signature, representative=vector, max_size=max_size, top_k=top_k)
        cluster.append(founder)
        return cluster

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def is_full(self) -> bool:
        return len(self.members) >= self.max_size

    @property
    def founder(self) -> Optional[Item]:
        return self.members[0] if self.members else None

    def append(self, item: Item) -> bool:
        """
        Add a member and fold it into the centroid as one step.

        Returns False, leaving the cluster untouched, when at capacity.
        """
        if self.is_full:
            return False
        self.members.append(item)
        self.centroid.update(item, self.top_k)
        return True

    def absorb(self, other: 'Cluster') -> int:
        """Append other's members one by one; returns how many did not fit."""
        dropped = 0
        for item in other.members:
            if not self.append(item):
                dropped += 1
        return dropped

    def to_view(self) -> 'ClusterView':
        return ClusterView(
            id=self.id,
            signature=self.signature,
            keywords=list(self.keywords[:self.top_k]),
            raw_score=self.raw_score,
            size=self.size,
            labels=list(self.labels),
            rating=self.rating,
            is_urgent=self.is_urgent,
            is_buzz=self.is_buzz,
            members=list(self.members),
            title_top_keywords=self.centroid.top_keywords(self.top_k),
            published_at_avg=self.centroid.published_at_iso(),
            created_at=self.created_at.isoformat(),
        )


@dataclass(frozen=True)
class ClusterView:
    """Finalized cluster handed to the feed layer."""
    id: str
    signature: str
    keywords: List[str]
    raw_score: float
    size: int
    labels: List[str]
    rating: float
    is_urgent: bool
    is_buzz: bool
    members: List[Item]
    title_top_keywords: List[str]
    published_at_avg: Optional[str]
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the feed layer's wire shape."""
        return {
            'id': self.id,
            'signature': self.signature,
            'keywords': self.keywords,
            'rawScore': self.raw_score,
            'size': self.size,
            'labels': self.labels,
            'rating': self.rating,
            'isUrgent': self.is_urgent,
            'isBuzz': self.is_buzz,
            'members': [member.to_dict() for member in self.members],
            'centroid': {
                'titleTopKeywords': self.title_top_keywords,
                'publishedAtAvg': self.published_at_avg,
            },
            'createdAt': self.created_at,
        }
