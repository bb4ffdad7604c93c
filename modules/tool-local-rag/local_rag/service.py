"""Engine facade wiring store, indexer, semantic search and lexical ranker."""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from . import frecency
from .embeddings import EmbeddingGenerator
from .indexer import Indexer
from .lexical import HybridLexicalRanker
from .models import (
    Candidate,
    Document,
    DocumentType,
    IndexStats,
    RankedCandidate,
    SearchResult,
    SourceRecord,
)
from .search import SimilaritySearch
from .storage import Clock, DocumentStore

logger = logging.getLogger(__name__)


class LocalRAGService:
    """Local semantic + lexical search over history, tabs and bookmarks.

    Design decisions:
    - One JSON index file per storage root, owned by this process
    - Collaborators are injected, no module-level singletons
    - Semantic and lexical paths are independent; a failed semantic search
      never falls back to lexical ranking on its own
    """

    def __init__(
        self,
        config: Optional[dict] = None,
        embeddings: Optional[EmbeddingGenerator] = None,
        clock: Optional[Clock] = None,
    ):
        """Open (or create) the index.

        Args:
            config: Optional configuration:
                - storage_root: Base directory (default: ~/.local_rag)
                - index_file: Index file name (default: rag_index.json)
                - embedding_model: OpenAI model (default: text-embedding-3-small)
                - embedding_dimensions: Vector size (default: 512)
                - max_documents: Index capacity (default: 1000)
                - min_similarity: Search cutoff (default: 0.3)
                - history_scan_limit: Lexical ranker history cap (default: None)
            embeddings: Embedding generator; built from config when omitted
            clock: Returns the current time (default: UTC now)
        """
        config = config or {}

        storage_root = config.get("storage_root", os.path.expanduser("~/.local_rag"))
        self.storage_path = Path(storage_root)
        self.storage_path.mkdir(parents=True, exist_ok=True)
        index_path = self.storage_path / config.get("index_file", "rag_index.json")

        self.embeddings = embeddings or EmbeddingGenerator(
            model=config.get("embedding_model", "text-embedding-3-small"),
            dimensions=config.get("embedding_dimensions", 512),
        )

        self.store = DocumentStore.open(
            index_path,
            max_documents=config.get("max_documents", DocumentStore.MAX_DOCUMENTS),
            clock=clock,
        )
        self.indexer = Indexer(self.store, self.embeddings)
        self.searcher = SimilaritySearch(
            self.store,
            self.embeddings,
            min_similarity=config.get("min_similarity", SimilaritySearch.MIN_SIMILARITY),
        )
        self.ranker = HybridLexicalRanker(
            history_scan_limit=config.get("history_scan_limit")
        )

    def is_available(self) -> bool:
        """Whether semantic search can run (an embedding credential is set)."""
        return self.embeddings.is_available()

    async def index_one(self, record: SourceRecord) -> Document:
        return await self.indexer.index_one(record)

    async def index_batch(self, records: Iterable[SourceRecord]) -> int:
        return await self.indexer.index_batch(records)

    async def search(
        self,
        query: str,
        limit: int = 10,
        types: Optional[Iterable[DocumentType]] = None,
    ) -> list[SearchResult]:
        return await self.searcher.search(query, limit=limit, types=types)

    async def semantic_search(
        self, natural_query: str, limit: int = 10
    ) -> list[SearchResult]:
        return await self.searcher.semantic_search(natural_query, limit=limit)

    def rank(
        self,
        query: str,
        candidates: Iterable[Candidate],
        now: Optional[datetime] = None,
    ) -> list[RankedCandidate]:
        """Keystroke search over raw entries; independent of the vector index."""
        return self.ranker.rank(query, candidates, now=now)

    def frecency_score(
        self, candidate: Candidate, now: Optional[datetime] = None
    ) -> float:
        """Visit-count and recency score for an address-bar entry."""
        return frecency.candidate_score(candidate, now=now)

    async def clear_index(self) -> None:
        await self.store.clear()
        logger.info("Cleared index at %s", self.store.path)

    async def enforce_expiry(self) -> int:
        return await self.store.enforce_expiry()

    def stats(self) -> IndexStats:
        return self.store.stats()

    def formatted_stats(self) -> str:
        return self.stats().format()
