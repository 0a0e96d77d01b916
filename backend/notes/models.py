import uuid

from django.db import models

from .categories import DEFAULT_CATEGORY


class Note(models.Model):
    """A saved note: raw text plus AI-generated title, category and summary"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    content = models.TextField()
    category = models.CharField(max_length=100, default=DEFAULT_CATEGORY, db_index=True)
    summary = models.TextField(blank=True, default="")

    # Channel-specific summaries may return a JSON document instead of prose
    structured_data = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    source_published_at = models.DateTimeField(null=True, blank=True)
    last_summarized_at = models.DateTimeField(null=True, blank=True)

    # Capture metadata from the browser extension: platform, author, url, timestamp
    metadata = models.JSONField(default=dict, blank=True)

    # Copy of metadata["url"] for duplicate detection
    source_url = models.CharField(max_length=2048, blank=True, default="", db_index=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.category}: {self.title[:50]}"

    @property
    def channel(self) -> str:
        """Author/channel the note was captured from ('' for manual notes)"""
        author = (self.metadata or {}).get("author")
        return author if isinstance(author, str) else ""



class NoteChunk(models.Model):
    """
    Bounded-size segment of a note's text, the unit of embedding.

    The chunk id doubles as the Qdrant point id. note_id is a plain indexed
    column rather than a foreign key: chunk cleanup on note delete is
    best-effort and must not block deletion of the note itself.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    note_id = models.UUIDField(db_index=True)
    content = models.TextField()
    chunk_index = models.IntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['note_id', 'chunk_index']
        indexes = [
            models.Index(fields=['note_id', 'chunk_index'], name='notes_chunk_note_idx'),
        ]

    def __str__(self):
        return f"Chunk {self.chunk_index} of note {str(self.note_id)[:8]}"


class ChannelSettings(models.Model):
    """Per-channel summarization prompt overrides"""

    channel_name = models.CharField(max_length=255, unique=True)
    platform = models.CharField(max_length=50, blank=True, default="")
    channel_url = models.CharField(max_length=2048, blank=True, default="")

    # Instructions for the model, and the JSON structure it must return
    prompt_text = models.TextField(blank=True, default="")
    prompt_schema = models.TextField(blank=True, default="")

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['channel_name']
        verbose_name_plural = "channel settings"

    def __str__(self):
        return self.channel_name

    @property
    def has_custom_prompt(self) -> bool:
        return bool(self.prompt_text or self.prompt_schema)
