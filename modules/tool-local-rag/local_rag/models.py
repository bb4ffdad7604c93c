"""Data models for the local retrieval index."""

import hashlib
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SCHEMA_VERSION = 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Naive timestamps are treated as UTC so they compare with aware ones
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DocumentType(str, Enum):
    HISTORY = "history"
    TAB = "tab"
    BOOKMARK = "bookmark"


EXPIRY_WINDOWS = {
    DocumentType.HISTORY: timedelta(days=7),
    DocumentType.TAB: timedelta(days=30),
    DocumentType.BOOKMARK: timedelta(days=30),
}


def expiry_window(doc_type: DocumentType) -> timedelta:
    return EXPIRY_WINDOWS[DocumentType(doc_type)]


def document_id(doc_type: DocumentType, url: str) -> str:
    """Deterministic document ID: md5 hex of "<type>:<url>".

    The same (type, url) pair always maps to the same ID, so re-indexing a
    page overwrites its document instead of duplicating it.
    """
    key = f"{DocumentType(doc_type).value}:{url}"
    return hashlib.md5(key.encode("utf-8")).hexdigest()


class DocumentMetadata(BaseModel):
    """Optional per-document bookkeeping. Unset fields are not persisted."""

    model_config = ConfigDict(populate_by_name=True)

    visit_count: Optional[int] = Field(default=None, alias="visitCount")
    last_visited: Optional[datetime] = Field(default=None, alias="lastVisited")
    space_id: Optional[str] = Field(default=None, alias="spaceId")
    is_pinned: Optional[bool] = Field(default=None, alias="isPinned")

    @field_validator("last_visited")
    @classmethod
    def coerce_utc(cls, value):
        return as_utc(value)


class Document(BaseModel):
    """One indexed unit derived from a history entry, tab or bookmark.

    Design decisions:
    - id: md5 of "type:url" (see document_id), unique within the store
    - content: title + host + path keywords, not the page body
    - embedding: vector from the embedding generator (512 floats)
    - timestamp: last-touched time, drives expiry and capacity eviction
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: DocumentType
    url: str
    title: str
    content: str
    embedding: list[float]
    timestamp: datetime = Field(default_factory=utcnow)
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)

    @field_validator("timestamp")
    @classmethod
    def coerce_utc(cls, value):
        return as_utc(value)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = as_utc(now) if now is not None else utcnow()
        return now - self.timestamp > expiry_window(self.type)


class IndexSnapshot(BaseModel):
    """The whole index as it is written to disk."""

    model_config = ConfigDict(populate_by_name=True)

    documents: list[Document] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=utcnow, alias="lastUpdated")
    version: int = SCHEMA_VERSION

    @field_validator("last_updated")
    @classmethod
    def coerce_utc(cls, value):
        return as_utc(value)

    def dict_for_storage(self) -> dict:
        """Return the JSON-ready dict with camelCase keys and no null fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SourceRecord(BaseModel):
    """A history entry, tab or bookmark handed to the indexer."""

    type: DocumentType
    url: str
    title: str = ""
    visited_at: Optional[datetime] = None
    space_id: Optional[str] = None
    is_pinned: Optional[bool] = None

    @field_validator("visited_at")
    @classmethod
    def coerce_utc(cls, value):
        return as_utc(value)

    @property
    def id(self) -> str:
        return document_id(self.type, self.url)


class SearchResult(BaseModel):
    document: Document
    score: float
    match_reason: str

    @property
    def id(self) -> str:
        return self.document.id

    @property
    def is_high_relevance(self) -> bool:
        return self.score > 0.75

    @property
    def is_medium_relevance(self) -> bool:
        return 0.5 < self.score <= 0.75


class IndexStats(BaseModel):
    total: int = 0
    by_type: dict[DocumentType, int] = Field(
        default_factory=lambda: {t: 0 for t in DocumentType}
    )

    def format(self) -> str:
        return (
            f"Total: {self.total} | "
            f"History: {self.by_type.get(DocumentType.HISTORY, 0)} | "
            f"Tabs: {self.by_type.get(DocumentType.TAB, 0)} | "
            f"Bookmarks: {self.by_type.get(DocumentType.BOOKMARK, 0)}"
        )


class QueryIntent(str, Enum):
    TABS = "tabs"
    HISTORY = "history"
    BOOKMARKS = "bookmarks"
    TOPIC = "topic"


class Candidate(BaseModel):
    """A raw entry scored by the lexical ranker."""

    kind: DocumentType
    url: str
    title: str = ""
    visited_at: Optional[datetime] = None
    visit_count: int = 0
    typed_count: Optional[int] = None

    @field_validator("visited_at")
    @classmethod
    def coerce_utc(cls, value):
        return as_utc(value)


class RankedCandidate(BaseModel):
    candidate: Candidate
    match_score: int
    frecency_bonus: int = 0

    @property
    def score(self) -> int:
        return self.match_score + self.frecency_bonus
