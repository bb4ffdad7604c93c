"""JSON-snapshot document store with a single writer."""

import asyncio
import errno
import json
import logging
import os
import tempfile
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from pydantic import ValidationError

from .errors import PersistenceError, StorageFullError, StoragePermissionError
from .models import Document, DocumentType, IndexSnapshot, IndexStats, utcnow

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_NO_SPACE = {errno.ENOSPC, errno.EDQUOT}
_NO_PERMISSION = {errno.EACCES, errno.EPERM, errno.EROFS}


def _classify_os_error(error: OSError) -> Optional[PersistenceError]:
    if error.errno in _NO_SPACE:
        return StorageFullError(str(error))
    if isinstance(error, PermissionError) or error.errno in _NO_PERMISSION:
        return StoragePermissionError(str(error))
    return None


class DocumentStore:
    """In-memory document index persisted as one JSON file.

    Design decisions:
    - One asyncio.Lock serializes every mutation, including the file write
    - Readers get an immutable tuple snapshot; documents are replaced,
      never mutated in place
    - Snapshot written to a temp file then os.replace()d, so the file on
      disk is always a complete snapshot
    - Persistence failures are logged, never raised
    """

    MAX_DOCUMENTS = 1000
    STORAGE_FULL_EVICTION = 10

    def __init__(
        self,
        path: Union[str, Path],
        max_documents: int = MAX_DOCUMENTS,
        clock: Optional[Clock] = None,
    ):
        self.path = Path(path)
        self.backup_path = self.path.with_name(self.path.name + ".backup")
        self.max_documents = max_documents
        self.clock = clock or utcnow
        self.persistence_enabled = True

        self._documents: dict[str, Document] = {}
        self._last_updated = self.clock()
        self._lock = asyncio.Lock()

    @classmethod
    def open(
        cls,
        path: Union[str, Path],
        max_documents: int = MAX_DOCUMENTS,
        clock: Optional[Clock] = None,
    ) -> "DocumentStore":
        """Load the index from disk and drop expired documents."""
        store = cls(path, max_documents=max_documents, clock=clock)
        store.load()
        if store._drop_expired():
            store._save_now()
        return store

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def documents(self) -> tuple[Document, ...]:
        return tuple(self._documents.values())

    def get(self, doc_id: str) -> Optional[Document]:
        return self._documents.get(doc_id)

    def contains(self, doc_id: str) -> bool:
        return doc_id in self._documents

    def count(self) -> int:
        return len(self._documents)

    @property
    def last_updated(self) -> datetime:
        return self._last_updated

    def stats(self) -> IndexStats:
        counts = Counter(doc.type for doc in self._documents.values())
        return IndexStats(
            total=len(self._documents),
            by_type={t: counts.get(t, 0) for t in DocumentType},
        )

    def snapshot(self) -> IndexSnapshot:
        return IndexSnapshot(
            documents=list(self._documents.values()),
            last_updated=self._last_updated,
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def upsert(self, documents: Iterable[Document]) -> None:
        """Insert or replace documents, enforce capacity once, persist once."""
        async with self._lock:
            for document in documents:
                # Re-inserting moves the document to the end, like a fresh add
                self._documents.pop(document.id, None)
                self._documents[document.id] = document
            self._last_updated = self.clock()
            self._evict_oldest(self._excess(), "to enforce limit")
            await self._save_locked()

    async def touch(self, doc_id: str) -> Optional[Document]:
        """Record a revisit: bump visit count and refresh timestamps."""
        async with self._lock:
            existing = self._documents.get(doc_id)
            if existing is None:
                return None

            now = self.clock()
            metadata = existing.metadata.model_copy(
                update={
                    "visit_count": (existing.metadata.visit_count or 0) + 1,
                    "last_visited": now,
                }
            )
            updated = existing.model_copy(update={"timestamp": now, "metadata": metadata})
            self._documents[doc_id] = updated
            self._last_updated = now
            await self._save_locked()
            return updated

    async def enforce_capacity(self, max_documents: Optional[int] = None) -> int:
        """Drop the oldest documents beyond max_documents. Returns count dropped."""
        async with self._lock:
            removed = self._evict_oldest(self._excess(max_documents), "to enforce limit")
            if removed:
                await self._save_locked()
            return removed

    async def enforce_expiry(self) -> int:
        """Remove expired documents. Returns count dropped."""
        async with self._lock:
            removed = self._drop_expired()
            if removed:
                await self._save_locked()
            return removed

    async def clear(self) -> None:
        async with self._lock:
            self._documents.clear()
            self._last_updated = self.clock()
            await self._save_locked()

    async def save(self) -> None:
        async with self._lock:
            await self._save_locked()

    def _excess(self, max_documents: Optional[int] = None) -> int:
        limit = self.max_documents if max_documents is None else max_documents
        return max(len(self._documents) - limit, 0)

    def _evict_oldest(self, count: int, reason: str) -> int:
        if count <= 0:
            return 0

        # sorted() is stable, so equal timestamps evict in insertion order
        oldest = sorted(self._documents.values(), key=lambda doc: doc.timestamp)[:count]
        for doc in oldest:
            del self._documents[doc.id]

        self._last_updated = self.clock()
        logger.info("Removed %d old documents %s", len(oldest), reason)
        return len(oldest)

    def _drop_expired(self) -> int:
        now = self.clock()
        expired = [doc.id for doc in self._documents.values() if doc.is_expired(now)]
        for doc_id in expired:
            del self._documents[doc_id]

        if expired:
            self._last_updated = now
            logger.info("Cleaned %d expired documents", len(expired))
        return len(expired)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Read the snapshot from disk.

        A corrupt file is moved aside to <name>.backup and the store starts
        empty.
        """
        if not self.path.exists():
            logger.info("No index found at %s, starting fresh", self.path)
            return

        try:
            raw = self.path.read_bytes()
        except OSError as e:
            logger.warning("Could not read index %s: %s", self.path, e)
            return

        try:
            snapshot = IndexSnapshot.model_validate_json(raw)
        except (ValidationError, ValueError) as e:
            logger.warning("Failed to load index %s: %s", self.path, e)
            self._quarantine()
            self._documents = {}
            return

        self._documents = {doc.id: doc for doc in snapshot.documents}
        self._last_updated = snapshot.last_updated
        logger.info("Loaded index with %d documents", len(self._documents))

    def _quarantine(self) -> None:
        try:
            os.replace(self.path, self.backup_path)
            logger.warning("Moved corrupt index to %s", self.backup_path)
        except OSError as e:
            logger.warning("Could not move corrupt index aside: %s", e)

    async def _save_locked(self) -> None:
        if not self.persistence_enabled:
            return

        try:
            await asyncio.to_thread(self._write_snapshot)
        except PersistenceError as e:
            if self._recover(e):
                try:
                    await asyncio.to_thread(self._write_snapshot)
                except PersistenceError as retry_error:
                    logger.warning("Index still not saved: %s", retry_error)

    def _save_now(self) -> None:
        """Synchronous save for open(), before any task holds the store."""
        if not self.persistence_enabled:
            return

        try:
            self._write_snapshot()
        except PersistenceError as e:
            if self._recover(e):
                try:
                    self._write_snapshot()
                except PersistenceError as retry_error:
                    logger.warning("Index still not saved: %s", retry_error)

    def _recover(self, error: PersistenceError) -> bool:
        """Apply the failure policy for a save. Returns True to retry once."""
        if isinstance(error, StorageFullError):
            logger.warning("Disk full while saving index (%s), evicting oldest", error)
            self._evict_oldest(self.STORAGE_FULL_EVICTION, "to free disk space")
            return True
        if isinstance(error, StoragePermissionError):
            logger.error(
                "No permission to write index %s (%s); keeping it in memory only",
                self.path,
                error,
            )
            self.persistence_enabled = False
            return False
        logger.warning("Failed to save index: %s", error)
        return False

    def _write_snapshot(self) -> None:
        """Serialize and atomically replace the index file.

        Raises:
            PersistenceError: classified from the underlying OSError
        """
        payload = json.dumps(
            self.snapshot().dict_for_storage(), sort_keys=True, ensure_ascii=False
        )

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=self.path.name, suffix=".tmp"
            )
        except OSError as e:
            raise _classify_os_error(e) or PersistenceError(str(e)) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, self.path)
        except OSError as e:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise _classify_os_error(e) or PersistenceError(str(e)) from e
