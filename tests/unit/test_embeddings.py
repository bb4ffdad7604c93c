"""Unit tests for embedding generation."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from local_rag.embeddings import EmbeddingGenerator
from local_rag.errors import (
    ConfigurationError,
    MalformedResponseError,
    RateLimitedError,
    TransportError,
)

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/embeddings")


def _response(vectors, reverse=False):
    """OpenAI-style response; optionally with items out of order."""
    mock_response = MagicMock()
    items = [MagicMock(embedding=v, index=i) for i, v in enumerate(vectors)]
    mock_response.data = list(reversed(items)) if reverse else items
    return mock_response


def _status_error(cls, status):
    return cls("error", response=httpx.Response(status, request=_REQUEST), body=None)


@pytest.mark.asyncio
class TestEmbeddingGenerator:
    """Unit tests for embedding generation."""

    async def test_generate_single_embedding(self):
        """Can generate embedding for single text."""
        with patch("local_rag.embeddings.AsyncOpenAI") as mock_client:
            mock_client.return_value.embeddings.create = AsyncMock(
                return_value=_response([[0.1] * 512])
            )

            embedder = EmbeddingGenerator(api_key="sk-test")
            result = await embedder.generate("test content")

            assert len(result) == 512
            assert all(isinstance(x, float) for x in result)

    async def test_generate_batch_embeddings(self):
        """Can generate embeddings for batch."""
        with patch("local_rag.embeddings.AsyncOpenAI") as mock_client:
            mock_client.return_value.embeddings.create = AsyncMock(
                return_value=_response([[0.1] * 512, [0.2] * 512])
            )

            embedder = EmbeddingGenerator(api_key="sk-test")
            results = await embedder.generate_batch(["text1", "text2"])

            assert len(results) == 2
            assert results[0][0] == 0.1
            assert results[1][0] == 0.2

    async def test_batch_order_follows_response_index(self):
        """Vectors are matched to inputs by index, not by response order."""
        with patch("local_rag.embeddings.AsyncOpenAI") as mock_client:
            mock_client.return_value.embeddings.create = AsyncMock(
                return_value=_response([[0.1] * 512, [0.2] * 512, [0.3] * 512], reverse=True)
            )

            embedder = EmbeddingGenerator(api_key="sk-test")
            results = await embedder.generate_batch(["a", "b", "c"])

            assert [r[0] for r in results] == [0.1, 0.2, 0.3]

    async def test_uses_correct_model_and_dimensions(self):
        """Uses text-embedding-3-small at 512 dimensions by default."""
        with patch("local_rag.embeddings.AsyncOpenAI") as mock_client:
            mock_create = AsyncMock(return_value=_response([[0.1] * 512]))
            mock_client.return_value.embeddings.create = mock_create

            embedder = EmbeddingGenerator(api_key="sk-test")
            await embedder.generate("test")

            mock_create.assert_called_once()
            call_kwargs = mock_create.call_args[1]
            assert call_kwargs["model"] == "text-embedding-3-small"
            assert call_kwargs["dimensions"] == 512
            assert call_kwargs["input"] == ["test"]

    async def test_long_input_is_truncated(self):
        """Inputs are cut to 8000 characters before sending."""
        with patch("local_rag.embeddings.AsyncOpenAI") as mock_client:
            mock_create = AsyncMock(return_value=_response([[0.1] * 512]))
            mock_client.return_value.embeddings.create = mock_create

            embedder = EmbeddingGenerator(api_key="sk-test")
            await embedder.generate("x" * 9000)

            assert len(mock_create.call_args[1]["input"][0]) == 8000

    async def test_empty_text_rejected(self):
        """Empty text never reaches the API."""
        with patch("local_rag.embeddings.AsyncOpenAI") as mock_client:
            embedder = EmbeddingGenerator(api_key="sk-test")

            with pytest.raises(ValueError, match="empty"):
                await embedder.generate("   ")

            mock_client.assert_not_called()

    async def test_empty_batch_returns_empty(self):
        with patch("local_rag.embeddings.AsyncOpenAI") as mock_client:
            embedder = EmbeddingGenerator(api_key="sk-test")
            assert await embedder.generate_batch([]) == []
            mock_client.assert_not_called()

    async def test_missing_api_key_raises_configuration_error(self, monkeypatch):
        """Calls without a credential fail with ConfigurationError."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        embedder = EmbeddingGenerator()

        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            await embedder.generate("test")

    @pytest.mark.parametrize(
        "error,expected",
        [
            (_status_error(openai.AuthenticationError, 401), ConfigurationError),
            (_status_error(openai.RateLimitError, 429), RateLimitedError),
            (_status_error(openai.InternalServerError, 500), MalformedResponseError),
            (openai.APIConnectionError(request=_REQUEST), TransportError),
            (openai.APITimeoutError(request=_REQUEST), TransportError),
            (
                openai.APIResponseValidationError(
                    response=httpx.Response(200, request=_REQUEST), body=None
                ),
                MalformedResponseError,
            ),
            (openai.APIError("unexpected", request=_REQUEST, body=None), MalformedResponseError),
        ],
    )
    async def test_api_errors_are_mapped(self, error, expected):
        """OpenAI exceptions surface as local_rag errors."""
        with patch("local_rag.embeddings.AsyncOpenAI") as mock_client:
            mock_client.return_value.embeddings.create = AsyncMock(side_effect=error)

            embedder = EmbeddingGenerator(api_key="sk-test")

            with pytest.raises(expected):
                await embedder.generate_batch(["text"])

    async def test_wrong_vector_count_is_malformed(self):
        with patch("local_rag.embeddings.AsyncOpenAI") as mock_client:
            mock_client.return_value.embeddings.create = AsyncMock(
                return_value=_response([[0.1] * 512])
            )

            embedder = EmbeddingGenerator(api_key="sk-test")

            with pytest.raises(MalformedResponseError):
                await embedder.generate_batch(["a", "b"])

    async def test_wrong_dimensions_is_malformed(self):
        with patch("local_rag.embeddings.AsyncOpenAI") as mock_client:
            mock_client.return_value.embeddings.create = AsyncMock(
                return_value=_response([[0.1] * 1536])
            )

            embedder = EmbeddingGenerator(api_key="sk-test")

            with pytest.raises(MalformedResponseError, match="dimensions"):
                await embedder.generate("a")


class TestEmbeddingGeneratorSetup:
    def test_custom_model(self):
        """Can specify custom embedding model."""
        embedder = EmbeddingGenerator(model="text-embedding-3-large", api_key="sk-test")
        assert embedder.model == "text-embedding-3-large"

    def test_is_available_with_key(self):
        assert EmbeddingGenerator(api_key="sk-test").is_available() is True

    def test_is_available_reads_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        assert EmbeddingGenerator().is_available() is True

    def test_is_available_without_key(self, monkeypatch):
        """No key means semantic search affordances should be hidden."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        assert EmbeddingGenerator().is_available() is False

    def test_client_created_lazily_without_retries(self):
        with patch("local_rag.embeddings.AsyncOpenAI") as mock_client:
            embedder = EmbeddingGenerator(api_key="sk-test")
            mock_client.assert_not_called()

            embedder.client
            embedder.client

            mock_client.assert_called_once_with(api_key="sk-test", max_retries=0)
