"""Shared fixtures: a controllable clock and deterministic embedders."""

import re
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from local_rag.models import Document, DocumentMetadata, DocumentType, document_id


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


class KeywordEmbedder:
    """Bag-of-words vectors: one dimension per distinct word seen so far.

    Texts sharing words get positive cosine similarity, unrelated texts get 0.
    """

    def __init__(self, dims=512):
        self.dims = dims
        self.vocab = {}

    def embed(self, text):
        vector = [0.0] * self.dims
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            index = self.vocab.setdefault(word, len(self.vocab) % self.dims)
            vector[index] += 1.0
        return vector


def make_embedder_mock(embed):
    embedder = AsyncMock()
    embedder.generate.side_effect = embed
    embedder.generate_batch.side_effect = lambda texts: [embed(t) for t in texts]
    embedder.is_available = MagicMock(return_value=True)
    embedder.dimensions = 512
    return embedder


def make_document(
    url,
    doc_type=DocumentType.HISTORY,
    timestamp=None,
    embedding=None,
    title="Example page",
    content=None,
    **metadata,
):
    timestamp = timestamp or datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
    return Document(
        id=document_id(doc_type, url),
        type=doc_type,
        url=url,
        title=title,
        content=content if content is not None else f"{title} {url}",
        embedding=embedding if embedding is not None else [0.1, 0.2, 0.3],
        timestamp=timestamp,
        metadata=DocumentMetadata(**metadata),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def keyword_embedder():
    return KeywordEmbedder()


@pytest.fixture
def mock_embedder(keyword_embedder):
    """Mock embedder that returns deterministic bag-of-words embeddings."""
    return make_embedder_mock(keyword_embedder.embed)
