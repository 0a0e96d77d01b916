"""
Exception hierarchy for the notes app.

Provider and vector-store adapters raise these; the worker pool and the
best-effort cleanup paths catch and log them, views map them to HTTP codes.
"""


class NotesError(Exception):
    """Base class for all notes app errors"""


class LLMServiceError(NotesError):
    """An embedding or generation provider call failed"""


class EmbeddingError(LLMServiceError):
    pass


class GenerationError(LLMServiceError):
    pass


class VectorStoreError(NotesError):
    """A Qdrant call failed"""


class SearchError(NotesError):
    """Search or Q&A could not be completed"""


class NoteNotFound(NotesError):
    def __init__(self, note_id):
        super().__init__(f"Note {note_id} not found")
        self.note_id = note_id
