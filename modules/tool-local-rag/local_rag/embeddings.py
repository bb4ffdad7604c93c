"""OpenAI embedding generation wrapper."""

import logging
import os
from typing import Optional

import openai
from openai import AsyncOpenAI

from .errors import (
    ConfigurationError,
    MalformedResponseError,
    RateLimitedError,
    TransportError,
)

logger = logging.getLogger(__name__)


class EmbeddingGenerator:
    """OpenAI embedding API wrapper for the local index.

    Uses text-embedding-3-small reduced to 512 dimensions:
    - Small enough to keep the JSON index light
    - Good enough for title/host/path similarity

    Failures are mapped onto local_rag.errors; nothing is retried here.
    """

    MAX_INPUT_LENGTH = 8000

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        dimensions: int = 512,
    ):
        self.model = model
        self.dimensions = dimensions
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        self._client: Optional[AsyncOpenAI] = None

    def is_available(self) -> bool:
        """Cheap local check: is an API key configured?"""
        return bool(self._api_key)

    @property
    def client(self) -> AsyncOpenAI:
        if not self._api_key:
            raise ConfigurationError(
                "OpenAI API key required. Set OPENAI_API_KEY environment variable "
                "or pass api_key parameter."
            )
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, max_retries=0)
        return self._client

    async def generate(self, content: str) -> list[float]:
        """Generate embedding for single content.

        Args:
            content: Text to embed (truncated to 8000 chars)

        Returns:
            Vector of `dimensions` floats

        Raises:
            ValueError: If content is empty
            LocalRAGError: If the API call fails
        """
        if not content or not content.strip():
            raise ValueError("Cannot generate embedding for empty text.")

        embeddings = await self.generate_batch([content])
        return embeddings[0]

    async def generate_batch(self, contents: list[str]) -> list[list[float]]:
        """Generate embeddings for batch of content.

        More efficient than multiple individual calls. The i-th vector
        belongs to the i-th input; the batch succeeds or fails as a whole.
        """
        if not contents:
            return []

        inputs = [text[: self.MAX_INPUT_LENGTH] for text in contents]

        try:
            response = await self.client.embeddings.create(
                model=self.model, input=inputs, dimensions=self.dimensions
            )
        except openai.AuthenticationError as e:
            raise ConfigurationError(f"OpenAI API key rejected: {e}") from e
        except openai.RateLimitError as e:
            raise RateLimitedError(
                "Rate limit exceeded. Please wait before trying again."
            ) from e
        except openai.APIConnectionError as e:
            # Also covers APITimeoutError
            raise TransportError(f"Network error: {e}") from e
        except openai.APIStatusError as e:
            logger.error("Embedding request failed with status %s", e.status_code)
            raise MalformedResponseError(f"Status code: {e.status_code}") from e
        except openai.APIError as e:
            # e.g. APIResponseValidationError
            logger.error("Embedding request failed: %s", e)
            raise MalformedResponseError(str(e)) from e

        return self._parse(response, expected=len(inputs))

    def _parse(self, response, expected: int) -> list[list[float]]:
        data = sorted(response.data, key=lambda item: item.index)

        if len(data) != expected:
            logger.error(
                "Embedding response has %d vectors for %d inputs", len(data), expected
            )
            raise MalformedResponseError(
                f"Expected {expected} embeddings, got {len(data)}"
            )

        vectors = [list(item.embedding) for item in data]
        for vector in vectors:
            if len(vector) != self.dimensions:
                logger.error(
                    "Embedding has %d dimensions, expected %d",
                    len(vector),
                    self.dimensions,
                )
                raise MalformedResponseError(
                    f"Expected {self.dimensions} dimensions, got {len(vector)}"
                )

        return vectors
