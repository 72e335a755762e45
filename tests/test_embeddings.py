"""
Tests for embedding providers.
"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from newsrank.core.settings import Settings
from newsrank.ranker.embeddings import (
    DummyEmbeddingProvider,
    EmbeddingError,
    OpenAIEmbeddingProvider,
    get_embedding_provider,
    validate_vectors,
)

API_BASE = "https://embeddings.test/v1"


def json_response(payload, status_code=200):
    request = httpx.Request("POST", f"{API_BASE}/embeddings")
    return httpx.Response(status_code, json=payload, request=request)


def patched_client(post):
    """Patch httpx.AsyncClient so that client.post is the given mock."""
    patcher = patch('httpx.AsyncClient')
    mock_client = patcher.start()
    mock_client.return_value.__aenter__.return_value.post = post
    return patcher


class TestDummyEmbeddingProvider:
    """Tests for the deterministic dummy provider."""

    @pytest.mark.asyncio
    async def test_deterministic_vectors(self):
        """Test de vectores deterministas del proveedor dummy."""
        provider = DummyEmbeddingProvider(dimensions=32)
        first = await provider.embed(["Central bank raises rates", "Football final"])
        second = await provider.embed(["Central bank raises rates", "Football final"])
        assert first == second
        assert all(len(vector) == 32 for vector in first)
        assert provider.call_count == 2
        assert provider.provider_name == "DummyEmbedding"

    @pytest.mark.asyncio
    async def test_empty_text_is_zero_vector(self):
        """Test de texto vacío como vector nulo."""
        provider = DummyEmbeddingProvider(dimensions=8)
        vectors = await provider.embed([""])
        assert vectors == [[0.0] * 8]


class TestOpenAIEmbeddingProvider:
    """Tests for the HTTP provider with a mocked client."""

    def setup_method(self):
        self.provider = OpenAIEmbeddingProvider(
            api_key="test-key", model="test-model", api_base=API_BASE, max_retries=1
        )

    @pytest.mark.asyncio
    async def test_vectors_follow_index_order(self):
        """Test de vectores ordenados por índice."""
        response = json_response({"data": [
            {"index": 1, "embedding": [0, 1]},
            {"index": 0, "embedding": [1, 0]},
        ]})
        post = AsyncMock(return_value=response)
        patcher = patched_client(post)
        try:
            vectors = await self.provider.embed(["first", "second"])
        finally:
            patcher.stop()

        assert vectors == [[1.0, 0.0], [0.0, 1.0]]
        post.assert_awaited_once()
        kwargs = post.call_args.kwargs
        assert kwargs["json"] == {"model": "test-model", "input": ["first", "second"]}
        assert kwargs["headers"]["Authorization"] == "Bearer test-key"

    @pytest.mark.asyncio
    async def test_empty_batch_makes_no_request(self):
        """Test de que un lote vacío no llama al servicio."""
        post = AsyncMock()
        patcher = patched_client(post)
        try:
            assert await self.provider.embed([]) == []
        finally:
            patcher.stop()
        post.assert_not_called()

    @pytest.mark.asyncio
    async def test_transport_error_raises_embedding_error(self):
        """Test de error de transporte convertido en EmbeddingError."""
        post = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
        patcher = patched_client(post)
        try:
            with pytest.raises(EmbeddingError):
                await self.provider.embed(["text"])
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        """Test de que un error 4xx no se reintenta."""
        provider = OpenAIEmbeddingProvider(api_key="k", api_base=API_BASE, max_retries=3)
        post = AsyncMock(return_value=json_response({"error": "bad request"}, status_code=400))
        patcher = patched_client(post)
        try:
            with pytest.raises(EmbeddingError):
                await provider.embed(["text"])
        finally:
            patcher.stop()
        assert post.await_count == 1

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        """Test de respuesta con formato inesperado."""
        post = AsyncMock(return_value=json_response({"unexpected": []}))
        patcher = patched_client(post)
        try:
            with pytest.raises(EmbeddingError):
                await self.provider.embed(["text"])
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_partial_batch_is_rejected(self):
        """Test de lote parcial rechazado."""
        post = AsyncMock(return_value=json_response({"data": [{"index": 0, "embedding": [1, 0]}]}))
        patcher = patched_client(post)
        try:
            with pytest.raises(EmbeddingError):
                await self.provider.embed(["one", "two"])
        finally:
            patcher.stop()


class TestValidateVectors:
    """Tests for validate_vectors."""

    def test_valid_batch(self):
        """Test de lote válido."""
        validate_vectors([[0.1, 0.2], [0.3, 0.4]], 2)

    @pytest.mark.parametrize("vectors,expected", [
        ([[0.1, 0.2]], 2),
        ([[0.1, 0.2], []], 2),
        ([[0.1, 0.2], [0.3]], 2),
        ([[0.1, float('nan')]], 1),
        ([[float('inf'), 0.1]], 1),
    ])
    def test_invalid_batches(self, vectors, expected):
        """Test de lotes de vectores inválidos."""
        with pytest.raises(EmbeddingError):
            validate_vectors(vectors, expected)


class TestGetEmbeddingProvider:
    """Tests for provider construction from settings."""

    def test_no_key_means_no_provider(self):
        """Test sin API key configurada."""
        assert get_embedding_provider(Settings(embedding_api_key=None)) is None

    def test_configured_provider(self):
        """Test del proveedor construido desde settings."""
        settings = Settings(embedding_api_key="secret", embedding_model="m", embedding_max_retries=2)
        provider = get_embedding_provider(settings)
        assert isinstance(provider, OpenAIEmbeddingProvider)
        assert provider.model == "m"
        assert provider.max_retries == 2
        assert provider.provider_name == "OpenAI:m"
