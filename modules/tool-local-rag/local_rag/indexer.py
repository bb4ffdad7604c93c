"""Turn history entries, tabs and bookmarks into indexed documents."""

import logging
import re
from typing import Iterable, Optional
from urllib.parse import urlsplit

from .embeddings import EmbeddingGenerator
from .models import Document, DocumentMetadata, SourceRecord, document_id, expiry_window
from .storage import Clock, DocumentStore

logger = logging.getLogger(__name__)

_PATH_SEPARATORS = re.compile(r"[\s/\-_]+")


def build_searchable_content(title: str, url: str) -> str:
    """Text sent to the embedding generator for a page.

    Title, host and path segments longer than two characters, joined by
    single spaces. The page body is never included.

    Example: ("Rust Book", "https://doc.rust-lang.org/book/ch01-intro")
        -> "Rust Book doc.rust-lang.org book ch01 intro"
    """
    try:
        parts = urlsplit(url)
        host = parts.hostname or ""
        path = parts.path
    except ValueError:
        host, path = "", ""

    keywords = [segment for segment in _PATH_SEPARATORS.split(path) if len(segment) > 2]
    return " ".join(part for part in [title.strip(), host, *keywords] if part)


class Indexer:
    """Builds documents from source records and commits them to the store.

    Embedding requests are awaited without holding the store lock; the
    store is only entered to commit.
    """

    def __init__(
        self,
        store: DocumentStore,
        embeddings: EmbeddingGenerator,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.embeddings = embeddings
        self.clock = clock or store.clock

    async def index_one(self, record: SourceRecord) -> Document:
        """Index a single record.

        An unchanged revisit only bumps visit count and timestamps; no
        embedding is requested.

        Raises:
            LocalRAGError: If the embedding call fails (nothing is stored)
        """
        doc_id = document_id(record.type, record.url)
        content = build_searchable_content(record.title, record.url)

        existing = self.store.get(doc_id)
        if existing is not None and existing.content == content:
            touched = await self.store.touch(doc_id)
            if touched is not None:
                logger.debug("Revisit of %s, visit count %s", record.url, touched.metadata.visit_count)
                return touched

        embedding = await self.embeddings.generate(content)

        document = self._build(record, doc_id, content, embedding, timestamp=self.clock())
        await self.store.upsert([document])
        return document

    async def index_batch(self, records: Iterable[SourceRecord]) -> int:
        """Index records not yet in the store with one embedding call.

        Records whose visit time is already past their type's expiry window
        are skipped before embedding.

        Returns:
            Number of documents written

        Raises:
            LocalRAGError: If the embedding call fails (nothing is stored)
        """
        pending: dict[str, SourceRecord] = {}
        for record in records:
            doc_id = document_id(record.type, record.url)
            if self.store.contains(doc_id):
                continue
            # Later duplicates within the batch win
            pending.pop(doc_id, None)
            pending[doc_id] = record

        now = self.clock()
        expired = [
            doc_id
            for doc_id, record in pending.items()
            if record.visited_at is not None
            and now - record.visited_at > expiry_window(record.type)
        ]
        for doc_id in expired:
            del pending[doc_id]
        if expired:
            logger.debug("Skipped %d already expired entries", len(expired))

        if not pending:
            return 0

        contents = [
            build_searchable_content(record.title, record.url)
            for record in pending.values()
        ]
        embeddings = await self.embeddings.generate_batch(contents)

        documents = [
            self._build(
                record,
                doc_id,
                content,
                embedding,
                timestamp=record.visited_at or now,
            )
            for (doc_id, record), content, embedding in zip(
                pending.items(), contents, embeddings
            )
        ]
        await self.store.upsert(documents)

        logger.info("Indexed %d entries", len(documents))
        return len(documents)

    def _build(self, record, doc_id, content, embedding, timestamp) -> Document:
        return Document(
            id=doc_id,
            type=record.type,
            url=record.url,
            title=record.title,
            content=content,
            embedding=embedding,
            timestamp=timestamp,
            metadata=DocumentMetadata(
                visit_count=1,
                last_visited=timestamp,
                space_id=record.space_id,
                is_pinned=record.is_pinned,
            ),
        )
