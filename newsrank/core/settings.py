"""Application settings and configuration."""
from functools import lru_cache
from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SOURCE_QUALITY = {
    "reuters.com": 1.15,
    "apnews.com": 1.12,
    "bbc.com": 1.10,
    "nytimes.com": 1.10,
    "wsj.com": 1.08,
    "bloomberg.com": 1.08,
    "chosun.com": 1.15,
    "joins.com": 1.12,
    "donga.com": 1.11,
    "hani.co.kr": 1.10,
    "kbs.co.kr": 1.10,
    "ytn.co.kr": 1.08,
    "imbc.com": 1.08,
    "yonhapnewstv.co.kr": 1.09,
    "nhk.or.jp": 1.15,
    "asahi.com": 1.12,
    "mainichi.jp": 1.10,
    "yomiuri.co.jp": 1.08,
    "nypost.com": 1.12,
    "cnbc.com": 1.11,
    "youtube.com": 1.05,
}


class Settings(BaseSettings):
    """Engine settings loaded from environment variables (prefix NEWSRANK_)."""

    model_config = SettingsConfigDict(
        env_prefix="NEWSRANK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    environment: str = "development"
    app_name: str = "NewsRank"

    # Keywords and signatures
    signature_top_k: int = Field(default=12, ge=1)
    signature_title_chars: int = Field(default=80, ge=1)

    # Clustering
    max_cluster_size: int = Field(default=100, ge=1)
    low_quality_threshold: float = 0.6
    high_quality_threshold: float = 0.75
    merge_window: int = Field(default=3, ge=1)
    merge_overlap_ratio: float = 0.5

    # Scoring
    freshness_tau_hours: float = Field(default=48.0, gt=0)
    freshness_floor: float = 0.2
    freshness_default: float = 0.9
    source_quality: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_SOURCE_QUALITY)
    )

    # Enrichment
    max_labels: int = Field(default=2, ge=0)

    # Urgency / buzz signals
    urgency_repeat_threshold: int = 3
    buzz_min_overlap: int = 2
    buzz_terms_per_text: int = 5

    # Embedding collaborator (high quality mode)
    embedding_api_base: str = "https://api.openai.com/v1"
    embedding_api_key: Optional[str] = None
    embedding_model: str = "text-embedding-3-small"
    embedding_timeout: float = 20.0
    embedding_max_retries: int = 3


@lru_cache()
def get_settings() -> Settings:
    """Get settings singleton."""
    return Settings()
