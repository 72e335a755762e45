"""Etiquetado de temas y enriquecimiento de clusters.

Matches a cluster's lead text against a fixed table of topic pattern sets
and derives the cluster-level urgent/buzz flags:
- Topic table shipped as package data (labels.yaml)
- At most ``max_labels`` topics, kept by fixed priority
- Enrichment runs once per finalized cluster
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern

import yaml

from newsrank.core.logging import get_logger
from newsrank.ranker.models import Cluster
from newsrank.ranker.score import ClusterScorer

logger = get_logger(__name__)

DEFAULT_LABELS_PATH = Path(__file__).with_name("labels.yaml")
DEFAULT_MAX_LABELS = 2


@dataclass
class LabelRule:
    """A topic and the patterns that identify it."""
    key: str
    patterns: List[str]
    priority: float = 0.0
    compiled: List[Pattern] = field(default_factory=list, repr=False)

    def __post_init__(self):
        if not self.compiled:
            self.compiled = [re.compile(p, re.IGNORECASE) for p in self.patterns]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LabelRule':
        """Create from dictionary."""
        patterns = data.get('patterns', [])
        if isinstance(patterns, str):
            patterns = [patterns]
        return cls(
            key=data.get('key', data.get('name', '')),
            patterns=list(patterns),
            priority=float(data.get('priority', 0)),
        )

    def matches(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self.compiled)


class LabelRulesParser:
    """Loads label rules from YAML or dictionaries."""

    @staticmethod
    def load_from_dict(config_dict: Dict[str, Any]) -> List[LabelRule]:
        """Load label rules from dictionary."""
        return [LabelRule.from_dict(entry) for entry in config_dict.get('labels', [])]

    @staticmethod
    def load_from_yaml(yaml_path) -> List[LabelRule]:
        """Load label rules from YAML file."""
        with open(yaml_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        return LabelRulesParser.load_from_dict(data)


@lru_cache()
def default_label_rules() -> List[LabelRule]:
    """Rules from the packaged labels.yaml, loaded once."""
    rules = LabelRulesParser.load_from_yaml(DEFAULT_LABELS_PATH)
    logger.debug(f"Loaded {len(rules)} label rules from {DEFAULT_LABELS_PATH.name}")
    return rules


def detect_labels(text: str, rules: Optional[List[LabelRule]] = None,
                  max_labels: int = DEFAULT_MAX_LABELS) -> List[str]:
    """
    Topics whose patterns appear in text.

    Matches are collected in table order. Only when there are more than
    ``max_labels`` are they reordered by priority and cut.
    """
    rules = default_label_rules() if rules is None else rules
    if not text:
        return []

    hits = [rule for rule in rules if rule.matches(text)]
    if len(hits) > max_labels:
        hits = sorted(hits, key=lambda rule: rule.priority, reverse=True)[:max_labels]
    return [rule.key for rule in hits]


def cluster_text(cluster: Cluster) -> str:
    """Founder title and summary plus the cluster keywords."""
    head = cluster.founder
    title = head.title if head else ""
    summary = head.summary if head else ""
    return " ".join([title or "", summary or "", " ".join(cluster.keywords)])


def enrich_cluster(cluster: Cluster, scorer: ClusterScorer,
                   rules: Optional[List[LabelRule]] = None,
                   max_labels: int = DEFAULT_MAX_LABELS) -> Cluster:
    """Attach labels, rating and urgent/buzz flags to a finalized cluster."""
    cluster.labels = detect_labels(cluster_text(cluster), rules, max_labels)
    cluster.rating = scorer.rating(cluster)
    cluster.is_urgent = any(item.urgency > 0 for item in cluster.members)
    cluster.is_buzz = any(item.buzz > 0 for item in cluster.members)
    return cluster
