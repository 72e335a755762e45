"""
Embedding provider interface and implementations for high quality clustering.

Provides abstraction over the external embedding service. The pipeline calls
``embed`` once per batch and treats any failure as a signal to fall back to
keyword vectors. Includes a deterministic dummy provider for tests and
offline runs.
"""

import hashlib
import math
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from newsrank.core.logging import get_logger
from newsrank.core.settings import Settings, get_settings

logger = get_logger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class EmbeddingError(Exception):
    """Raised when the embedding service cannot produce a full batch."""


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers."""

    @abstractmethod
    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed a batch of documents.

        Args:
            texts: Documents in batch order

        Returns:
            One vector per document, same order

        Raises:
            EmbeddingError: if the batch cannot be embedded in full
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identification name."""
        pass


class DummyEmbeddingProvider(EmbeddingProvider):
    """
    Deterministic provider that hashes tokens into a fixed number of buckets.

    Documents sharing words get similar vectors, which is enough to exercise
    the high quality path without network access.
    """

    def __init__(self, dimensions: int = 64):
        self.dimensions = dimensions
        self.call_count = 0

    @property
    def provider_name(self) -> str:
        return "DummyEmbedding"

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        self.call_count += 1
        return [self._vector(text) for text in texts]

    def _vector(self, text: str) -> List[float]:
        vector = [0.0] * self.dimensions
        for token in (text or "").lower().split():
            digest = hashlib.md5(token.encode('utf-8')).hexdigest()
            vector[int(digest, 16) % self.dimensions] += 1.0
        return vector


def _is_retryable(error: BaseException) -> bool:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRYABLE_STATUS
    return isinstance(error, httpx.TransportError)


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embeddings from an OpenAI compatible ``/embeddings`` endpoint."""

    def __init__(self, api_key: str, model: str = "text-embedding-3-small",
                 api_base: str = "https://api.openai.com/v1",
                 timeout: float = 20.0, max_retries: int = 3):
        self.api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries

    @property
    def provider_name(self) -> str:
        return f"OpenAI:{self.model}"

    async def _post(self, client: httpx.AsyncClient, texts: Sequence[str]) -> httpx.Response:
        response = await client.post(
            f"{self.api_base}/embeddings",
            json={"model": self.model, "input": list(texts)},
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        response.raise_for_status()
        return response

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []

        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(max(1, self.max_retries)),
                    wait=wait_exponential(multiplier=1, min=1, max=8),
                    retry=retry_if_exception(_is_retryable),
                    reraise=True,
                ):
                    with attempt:
                        response = await self._post(client, texts)
        except httpx.HTTPError as e:
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        try:
            data = response.json()["data"]
            ordered = sorted(data, key=lambda entry: entry.get("index", 0))
            vectors = [[float(v) for v in entry["embedding"]] for entry in ordered]
        except (ValueError, KeyError, TypeError) as e:
            raise EmbeddingError(f"Malformed embedding response: {e}") from e

        validate_vectors(vectors, len(texts))
        logger.debug(f"Embedded {len(vectors)} documents with {self.provider_name}")
        return vectors


def validate_vectors(vectors: Sequence[Sequence[float]], expected: int) -> None:
    """Reject partial or degenerate batches."""
    if len(vectors) != expected:
        raise EmbeddingError(f"Expected {expected} vectors, got {len(vectors)}")
    dimensions = {len(vector) for vector in vectors}
    if 0 in dimensions:
        raise EmbeddingError("Empty embedding vector")
    if len(dimensions) > 1:
        raise EmbeddingError(f"Inconsistent embedding dimensions: {sorted(dimensions)}")
    for vector in vectors:
        if not all(math.isfinite(v) for v in vector):
            raise EmbeddingError("Non-finite value in embedding vector")


def get_embedding_provider(settings: Optional[Settings] = None) -> Optional[EmbeddingProvider]:
    """Build the configured provider; None when no API key is set."""
    settings = settings or get_settings()
    if not settings.embedding_api_key:
        return None
    return OpenAIEmbeddingProvider(
        api_key=settings.embedding_api_key,
        model=settings.embedding_model,
        api_base=settings.embedding_api_base,
        timeout=settings.embedding_timeout,
        max_retries=settings.embedding_max_retries,
    )
