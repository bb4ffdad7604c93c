"""Embedding-based search over the document store."""

import logging
from typing import Iterable, Optional

from .embeddings import EmbeddingGenerator
from .intent import classify, type_filter_for
from .models import Document, DocumentType, SearchResult
from .similarity import top_k
from .storage import DocumentStore

logger = logging.getLogger(__name__)


def match_reason(query: str, document: Document, score: float) -> str:
    """Human-readable explanation shown next to a result."""
    query_words = query.lower().split()
    title_words = document.title.lower().split()

    matching = [
        qw for qw in query_words if any(tw in qw or qw in tw for tw in title_words)
    ]
    if matching:
        return f"Matches: {', '.join(matching)}"

    if score > 0.8:
        return "High semantic similarity"
    if score > 0.6:
        return "Related content"
    return "Possible match"


class SimilaritySearch:
    """Cosine-similarity search with a minimum score cutoff."""

    MIN_SIMILARITY = 0.3

    def __init__(
        self,
        store: DocumentStore,
        embeddings: EmbeddingGenerator,
        min_similarity: float = MIN_SIMILARITY,
    ):
        self.store = store
        self.embeddings = embeddings
        self.min_similarity = min_similarity

    async def search(
        self,
        query: str,
        limit: int = 10,
        types: Optional[Iterable[DocumentType]] = None,
    ) -> list[SearchResult]:
        """Search documents semantically.

        Args:
            query: Free text; empty or whitespace-only returns []
            limit: Max results to return
            types: Restrict to these document types

        Returns:
            Results ranked by descending score, all >= min_similarity

        Raises:
            LocalRAGError: If the query embedding cannot be generated
        """
        if not query or not query.strip():
            return []

        query_embedding = await self.embeddings.generate(query)

        # Immutable snapshot taken after the await
        candidates = self.store.documents()
        if types is not None:
            allowed = {DocumentType(t) for t in types}
            candidates = tuple(doc for doc in candidates if doc.type in allowed)

        ranked = top_k(
            query_embedding,
            [(doc, doc.embedding) for doc in candidates],
            k=len(candidates),
        )
        kept = [(doc, score) for doc, score in ranked if score >= self.min_similarity]

        return [
            SearchResult(
                document=doc,
                score=score,
                match_reason=match_reason(query, doc, score),
            )
            for doc, score in kept[: max(limit, 0)]
        ]

    async def semantic_search(
        self, natural_query: str, limit: int = 10
    ) -> list[SearchResult]:
        """Search with the type filter inferred from the query wording."""
        intents = classify(natural_query)
        type_filter = type_filter_for(intents)
        logger.debug(
            "Query intents %s, type filter %s",
            sorted(i.value for i in intents),
            type_filter,
        )
        return await self.search(natural_query, limit=limit, types=type_filter)
