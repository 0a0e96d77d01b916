"""
Capability interfaces the ingestion pipeline and search service depend on.

Core services depend on these protocols, not on the concrete Qdrant, LLM or
ORM-backed implementations, so tests can hand in simple fakes.

- EmbeddingProvider.generate_embedding(text) -> vector
- GenerationProvider.generate_answer(question, context) -> text
- VectorStore.upsert / search / delete_by_note
- NoteStore / ChunkStore / ChannelSettingsStore: the narrow document-store
  surface the core uses
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Protocol
from uuid import UUID


@dataclass(frozen=True)
class VectorHit:
    """One nearest-neighbour match, mapped back to its chunk and note"""

    chunk_id: str
    note_id: str
    score: float


class EmbeddingProvider(Protocol):
    def generate_embedding(self, text: str) -> List[float]: ...


class GenerationProvider(Protocol):
    def generate_text(self, prompt: str, **kwargs: Any) -> dict: ...

    def generate_answer(self, question: str, context_text: str) -> str: ...


class VectorStore(Protocol):
    def upsert(self, vector_id: str, note_id: str, chunk_id: str, vector: List[float]) -> None: ...

    def search(self, vector: List[float], top_k: int) -> List[VectorHit]: ...

    def delete_by_note(self, note_id: str) -> None: ...


class NoteStore(Protocol):
    def find_by_id(self, note_id) -> Optional[Any]: ...

    def find_by_ids(self, note_ids: Iterable) -> dict: ...


class ChunkStore(Protocol):
    def create(self, note_id: UUID, content: str, chunk_index: int) -> Any: ...

    def delete_by_note(self, note_id) -> int: ...


class ChannelSettingsStore(Protocol):
    def find_by_name(self, channel_name: str) -> Optional[Any]: ...
