import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .exceptions import SearchError
from .interfaces import EmbeddingProvider, GenerationProvider, NoteStore, VectorStore

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 10
DEFAULT_MIN_RELEVANCE_SCORE = 0.3
DEFAULT_QA_RELEVANCE_SCORE = 0.4
DEFAULT_QA_TOP_K = 5
DEFAULT_CACHE_SIZE = 1000  # Default embedding cache size (each ~3KB)
SEARCH_OVERFETCH_FACTOR = 2  # Several chunks of one note can occupy the top hits

NO_RELEVANT_INFO_ANSWER = (
    "I couldn't find any relevant information in your notes to answer that question."
)


@dataclass
class SearchResult:
    note: Any
    score: float


@dataclass
class AnswerResult:
    question: str
    answer: str
    sources: List[SearchResult] = field(default_factory=list)


class NoteSearchService:
    """
    Semantic search and question answering over embedded notes.

    Thread-safe implementation with manual LRU cache using locks.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        vector_store: VectorStore,
        notes: NoteStore,
        generator: Optional[GenerationProvider] = None,
        min_relevance_score: float = DEFAULT_MIN_RELEVANCE_SCORE,
        qa_relevance_score: float = DEFAULT_QA_RELEVANCE_SCORE,
        qa_top_k: int = DEFAULT_QA_TOP_K,
        embedding_cache_size: int = DEFAULT_CACHE_SIZE,
    ):
        self.embedder = embedder
        self.vector_store = vector_store
        self.notes = notes
        self.generator = generator
        self.min_relevance_score = min_relevance_score
        self.qa_relevance_score = qa_relevance_score
        self.qa_top_k = qa_top_k

        self._embedding_cache: Dict[str, List[float]] = {}
        self._cache_order: List[str] = []  # Track access order for LRU
        self._cache_lock = threading.RLock()
        self._max_cache_size = embedding_cache_size

    def _get_cached_embedding(self, text: str) -> List[float]:
        """
        Get embedding for text with thread-safe LRU caching.

        Raises whatever the embedder raises; failures are never cached.
        """
        with self._cache_lock:
            if text in self._embedding_cache:
                # Move to end (most recently used)
                self._cache_order.remove(text)
                self._cache_order.append(text)
                return self._embedding_cache[text]

        # Generate outside the lock to avoid blocking other searches
        embedding = self.embedder.generate_embedding(text)

        if self._max_cache_size <= 0:
            return embedding

        with self._cache_lock:
            if text in self._embedding_cache:
                return self._embedding_cache[text]

            if len(self._embedding_cache) >= self._max_cache_size and self._cache_order:
                oldest = self._cache_order.pop(0)
                del self._embedding_cache[oldest]

            self._embedding_cache[text] = embedding
            self._cache_order.append(text)

        return embedding

    def _embed_query(self, text: str) -> List[float]:
        try:
            return self._get_cached_embedding(text)
        except Exception as e:
            logger.error("Failed to generate query embedding: %s", e)
            raise SearchError(f"Failed to generate query embedding: {e}") from e

    def _vector_search(self, vector: List[float], top_k: int):
        try:
            return self.vector_store.search(vector, top_k)
        except Exception as e:
            logger.error("Vector search failed: %s", e)
            raise SearchError(f"Failed to search embeddings: {e}") from e

    def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> List[SearchResult]:
        """
        Notes most relevant to the query, best first.

        A note's score is the best score among its chunks. Notes scoring below
        min_relevance_score, and notes deleted since they were indexed, are
        dropped.
        """
        if not query or not query.strip():
            return []
        if limit <= 0:
            limit = DEFAULT_SEARCH_LIMIT

        vector = self._embed_query(query)
        hits = self._vector_search(vector, limit * SEARCH_OVERFETCH_FACTOR)

        # Best chunk score per note, in first-seen order
        best_scores: Dict[str, float] = {}
        for hit in hits:
            current = best_scores.get(hit.note_id)
            if current is None or hit.score > current:
                best_scores[hit.note_id] = hit.score

        if not best_scores:
            return []

        notes_by_id = self.notes.find_by_ids(best_scores.keys())

        results = []
        for note_id, score in best_scores.items():
            note = notes_by_id.get(note_id)
            if note is None:
                logger.warning("Note %s not found for vector hit", note_id)
                continue
            if score < self.min_relevance_score:
                continue
            results.append(SearchResult(note=note, score=score))

        # sorted() is stable: equal scores keep first-seen order
        results = sorted(results, key=lambda r: r.score, reverse=True)[:limit]

        logger.info("Search for %r returned %d notes", query[:100], len(results))
        return results

    def answer(self, question: str) -> AnswerResult:
        """
        Answer a question from the most relevant notes.

        When no note is relevant enough the canned answer is returned without
        calling the generation provider.
        """
        if not question or not question.strip():
            return AnswerResult(question=question, answer=NO_RELEVANT_INFO_ANSWER)

        vector = self._embed_query(question)
        hits = self._vector_search(vector, self.qa_top_k)

        # Relevant hits, one per note, first occurrence wins
        best_scores: Dict[str, float] = {}
        for hit in hits:
            if hit.score >= self.qa_relevance_score and hit.note_id not in best_scores:
                best_scores[hit.note_id] = hit.score

        notes_by_id = self.notes.find_by_ids(list(best_scores)) if best_scores else {}
        sources = [
            SearchResult(note=notes_by_id[note_id], score=score)
            for note_id, score in best_scores.items()
            if note_id in notes_by_id
        ]

        if not sources:
            logger.info("No relevant notes found for question %r", question[:100])
            return AnswerResult(question=question, answer=NO_RELEVANT_INFO_ANSWER)

        if self.generator is None:
            raise SearchError("No generation provider configured")

        context_text = "".join(
            f"Title: {s.note.title}\nContent: {s.note.content}\n\n" for s in sources
        )

        try:
            answer = self.generator.generate_answer(question, context_text)
        except Exception as e:
            logger.error("Failed to generate answer: %s", e)
            raise SearchError(f"Failed to generate answer: {e}") from e

        return AnswerResult(question=question, answer=answer, sources=sources)
