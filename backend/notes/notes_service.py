"""
Note lifecycle: create, update and delete notes, and keep their
embeddings in step.

Title, category and summary are generated synchronously on create; chunking
and embedding are handed to the background worker pool. Chunk and vector
cleanup is best-effort: failures are logged and never fail the request.
"""

import datetime
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from .categories import DEFAULT_CATEGORY
from .exceptions import LLMServiceError, NoteNotFound
from .llm_service import UNTITLED_NOTE
from .worker_pool import ProcessingJob

logger = logging.getLogger(__name__)

UPDATED_NOTE_TITLE = "Updated Note"
YOUTUBE_PLATFORM = "youtube"


@dataclass
class CreateNoteResult:
    note: Optional[Any] = None
    duplicate: bool = False
    url: str = ""
    queued: bool = False


def _parse_timestamp(value) -> Optional[Any]:
    """ISO-8601 string -> aware datetime, or None if missing/unparsable"""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = parse_datetime(value)
    except ValueError:
        parsed = None
    if parsed is None:
        logger.warning("Failed to parse timestamp '%s'", value)
        return None
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, datetime.timezone.utc)
    return parsed


class NotesService:
    """Business logic for note operations"""

    def __init__(self, notes, chunks, channel_settings, llm, vector_store, worker_pool):
        self.notes = notes
        self.chunks = chunks
        self.channel_settings = channel_settings
        self.llm = llm
        self.vector_store = vector_store
        self.worker_pool = worker_pool

    def _custom_prompt(self, author: str):
        """(prompt_text, prompt_schema) configured for a channel, or None"""
        if not author:
            return None
        try:
            settings_obj = self.channel_settings.find_by_name(author)
        except Exception as e:
            logger.error("Failed to load channel settings for %s: %s", author, e)
            return None
        if settings_obj is None or not settings_obj.has_custom_prompt:
            return None
        logger.info("Found custom prompt for channel '%s' during note creation", author)
        return settings_obj.prompt_text, settings_obj.prompt_schema

    def _submit(self, note) -> bool:
        return self.worker_pool.submit(ProcessingJob.from_note(note))

    def create_note(self, content: str, title: str = "", metadata: Optional[Dict[str, Any]] = None) -> CreateNoteResult:
        metadata = dict(metadata or {})

        url = metadata.get("url")
        if isinstance(url, str) and url:
            try:
                if self.notes.exists_by_url(url):
                    logger.info("Duplicate note detected for URL: %s", url)
                    return CreateNoteResult(duplicate=True, url=url)
            except Exception as e:
                logger.error("Error checking for duplicate URL: %s", e)

        author = metadata.get("author") if isinstance(metadata.get("author"), str) else ""
        is_youtube = metadata.get("platform") == YOUTUBE_PLATFORM
        custom_prompt = self._custom_prompt(author)
        want_default_summary = is_youtube and custom_prompt is None

        summary = ""
        structured_data = None
        category = DEFAULT_CATEGORY

        try:
            analysis = self.llm.analyze_note(content, include_summary=want_default_summary)
        except LLMServiceError as e:
            logger.error("Failed to analyze note: %s", e)
            title = title or UNTITLED_NOTE
        else:
            title = title or analysis.title
            category = analysis.category
            if want_default_summary:
                summary = analysis.summary
            logger.info("Note analyzed - Title: %s, Category: %s, Summary length: %d", title, category, len(summary))

        if custom_prompt is not None:
            prompt_text, prompt_schema = custom_prompt
            try:
                summary, structured_data = self.llm.generate_structured_summary(content, prompt_text, prompt_schema)
            except LLMServiceError as e:
                logger.error("Failed to generate custom summary: %s", e)

        note = self.notes.create(
            title=title,
            content=content,
            category=category,
            summary=summary,
            structured_data=structured_data,
            source_published_at=_parse_timestamp(metadata.get("timestamp")),
            last_summarized_at=timezone.now() if summary else None,
            metadata=metadata,
        )
        logger.info("Created note %s", note.id)

        queued = self._submit(note)
        return CreateNoteResult(note=note, queued=queued)

    def update_note(self, note_id, content: str):
        note = self.notes.find_by_id(note_id)
        if note is None:
            raise NoteNotFound(note_id)

        try:
            title = self.llm.generate_title(content)
        except LLMServiceError as e:
            logger.error("Failed to generate title for updated note: %s", e)
            title = UPDATED_NOTE_TITLE

        self.notes.update(note.id, title=title, content=content)
        note = self.notes.find_by_id(note.id)
        if note is None:
            raise NoteNotFound(note_id)

        # Old chunks describe the previous content; rebuild from scratch
        self._delete_embeddings(note.id)
        self._submit(note)
        return note

    def _delete_embeddings(self, note_id) -> int:
        """Best-effort removal of a note's chunks and vectors; returns chunks deleted"""
        deleted_chunks = 0
        try:
            deleted_chunks = self.chunks.delete_by_note(note_id)
        except Exception as e:
            logger.error("Failed to delete chunks for note %s: %s", note_id, e)

        try:
            self.vector_store.delete_by_note(str(note_id))
        except Exception as e:
            logger.error("Failed to delete embeddings for note %s: %s", note_id, e)

        return deleted_chunks

    def delete_note(self, note_id):
        note = self.notes.find_by_id(note_id)
        if note is None:
            raise NoteNotFound(note_id)

        self.notes.delete(note.id)
        self._delete_embeddings(note.id)
        logger.info("Deleted note %s", note.id)

    def delete_channel_notes(self, channel: str) -> Dict[str, int]:
        logger.info("Deleting all notes for channel: %s", channel)

        note_ids = self.notes.delete_by_author(channel)
        deleted_chunks = sum(self._delete_embeddings(note_id) for note_id in note_ids)

        logger.info("Deleted %d notes and %d chunks for channel: %s", len(note_ids), deleted_chunks, channel)
        return {"deleted_notes": len(note_ids), "deleted_chunks": deleted_chunks}

    def get_note(self, note_id):
        note = self.notes.find_by_id(note_id)
        if note is None:
            raise NoteNotFound(note_id)
        return note

    def list_notes(self, channel: str = "", category: str = "") -> List[Any]:
        return self.notes.find_all(channel=channel, category=category)

    def list_channels(self) -> List[dict]:
        return self.notes.channel_counts()

    def category_counts(self) -> List[dict]:
        return self.notes.category_counts(include_empty=True)

    def classify_uncategorized(self) -> Dict[str, int]:
        """Assign a category to every note that has none"""
        notes = self.notes.find_uncategorized()
        classified = 0
        errors = 0

        for note in notes:
            try:
                category = self.llm.classify_note(note.title, note.content)
            except LLMServiceError as e:
                logger.error("Failed to classify note %s: %s", note.id, e)
                category = DEFAULT_CATEGORY
                errors += 1

            if self.notes.update(note.id, category=category):
                classified += 1
            else:
                logger.error("Failed to update note %s with category", note.id)
                errors += 1

        return {"classified": classified, "errors": errors, "total": len(notes)}
