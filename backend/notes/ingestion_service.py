"""
Ingestion pipeline run by the background workers.

For each job: chunk the note text, skip it if it looks like it contains
credentials, then persist, embed and index every chunk. A failing chunk is
logged and skipped; the remaining chunks are still attempted.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .interfaces import ChunkStore, EmbeddingProvider, NoteStore, VectorStore
from .security import contains_sensitive_data
from .text_utils import chunk_text, truncate_words
from .worker_pool import ProcessingJob

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_MAX_WORDS = 10000

SKIPPED_SENSITIVE = "sensitive"
SKIPPED_STALE = "stale"


@dataclass
class IngestionResult:
    note_id: str
    chunks_total: int = 0
    chunks_stored: int = 0
    chunks_failed: int = 0
    skipped_reason: Optional[str] = None
    truncated: bool = False

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None

    def __str__(self):
        if self.skipped:
            return f"skipped ({self.skipped_reason})"
        return f"{self.chunks_stored}/{self.chunks_total} chunks stored"


class IngestionPipeline:
    """Turns a ProcessingJob into stored chunks and indexed vectors"""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        vector_store: VectorStore,
        chunks: ChunkStore,
        notes: Optional[NoteStore] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_words: int = DEFAULT_MAX_WORDS,
    ):
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        if max_words < 1:
            raise ValueError("max_words must be at least 1")

        self.embedder = embedder
        self.vector_store = vector_store
        self.chunks = chunks
        self.notes = notes
        self.chunk_size = chunk_size
        self.max_words = max_words

    def _is_stale(self, job: ProcessingJob) -> bool:
        """True if the note was deleted or edited after this job was queued"""
        if self.notes is None:
            return False
        note = self.notes.find_by_id(job.note_id)
        if note is None:
            return True
        return note.title != job.title or note.content != job.content

    def process(self, job: ProcessingJob) -> IngestionResult:
        result = IngestionResult(note_id=job.note_id)

        if self._is_stale(job):
            logger.info("Skipping stale embedding job for note: %s", job.note_id)
            result.skipped_reason = SKIPPED_STALE
            return result

        full_text = f"{job.title}\n\n{job.content}"

        if contains_sensitive_data(full_text):
            logger.info("Skipping embedding for note %s due to sensitive content", job.note_id)
            result.skipped_reason = SKIPPED_SENSITIVE
            return result

        if len(full_text.split()) > self.max_words:
            full_text = truncate_words(full_text, self.max_words)
            result.truncated = True
            logger.info("Note %s truncated to %d words for embedding", job.note_id, self.max_words)

        chunks = chunk_text(full_text, self.chunk_size)
        result.chunks_total = len(chunks)

        for index, content in enumerate(chunks):
            if self._store_chunk(job.note_id, index, content):
                result.chunks_stored += 1
            else:
                result.chunks_failed += 1

        if result.chunks_failed:
            logger.warning(
                "Embedded note %s with %d of %d chunks failing",
                job.note_id, result.chunks_failed, result.chunks_total,
            )
        else:
            logger.info("Embedded %d chunks for note %s", result.chunks_stored, job.note_id)
        return result

    def _store_chunk(self, note_id: str, index: int, content: str) -> bool:
        try:
            chunk = self.chunks.create(note_id=note_id, content=content, chunk_index=index)
        except Exception as e:
            logger.error("Error storing chunk %d for note %s: %s", index, note_id, e)
            return False

        try:
            vector = self.embedder.generate_embedding(content)
        except Exception as e:
            logger.error("Error generating embedding for chunk %d of note %s: %s", index, note_id, e)
            return False

        try:
            self.vector_store.upsert(str(chunk.id), str(note_id), str(chunk.id), vector)
        except Exception as e:
            logger.error("Error storing embedding for chunk %d of note %s: %s", index, note_id, e)
            return False

        return True
