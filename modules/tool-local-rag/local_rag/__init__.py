"""Local hybrid retrieval over browsing history, tabs and bookmarks."""

__version__ = "1.0.0"

from .errors import (
    ConfigurationError,
    LocalRAGError,
    MalformedResponseError,
    RateLimitedError,
    TransportError,
)
from .models import (
    Candidate,
    Document,
    DocumentMetadata,
    DocumentType,
    IndexSnapshot,
    IndexStats,
    QueryIntent,
    RankedCandidate,
    SearchResult,
    SourceRecord,
)
from .embeddings import EmbeddingGenerator
from .storage import DocumentStore
from .indexer import Indexer, build_searchable_content
from .search import SimilaritySearch
from .lexical import HybridLexicalRanker, rank
from .frecency import VisitType, calculate_score, candidate_score, category_for_score
from .service import LocalRAGService

__all__ = [
    "Candidate",
    "ConfigurationError",
    "Document",
    "DocumentMetadata",
    "DocumentStore",
    "DocumentType",
    "EmbeddingGenerator",
    "HybridLexicalRanker",
    "IndexSnapshot",
    "IndexStats",
    "Indexer",
    "LocalRAGError",
    "LocalRAGService",
    "MalformedResponseError",
    "QueryIntent",
    "RankedCandidate",
    "RateLimitedError",
    "SearchResult",
    "SimilaritySearch",
    "SourceRecord",
    "TransportError",
    "VisitType",
    "build_searchable_content",
    "calculate_score",
    "candidate_score",
    "category_for_score",
    "rank",
]
