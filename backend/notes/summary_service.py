import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.utils import timezone

from .exceptions import LLMServiceError, NoteNotFound

logger = logging.getLogger(__name__)


@dataclass
class SummaryResult:
    summary: str
    structured_data: Optional[Dict[str, Any]] = None


class SummaryService:
    """Summary generation, title regeneration and ad-hoc questions about content"""

    def __init__(self, notes, channel_settings, llm):
        self.notes = notes
        self.channel_settings = channel_settings
        self.llm = llm

    def _channel_prompt(self, note):
        settings_obj = self.channel_settings.find_by_name(note.channel)
        if settings_obj is None:
            return "", ""
        if settings_obj.has_custom_prompt:
            logger.info("Using custom prompt/schema for channel %s", note.channel)
        return settings_obj.prompt_text, settings_obj.prompt_schema

    def generate_summary(
        self,
        note_id,
        prompt_text: str = "",
        prompt_schema: str = "",
        content: Optional[str] = None,
    ) -> SummaryResult:
        """
        Summarize a note and save the result on it.

        An explicit prompt_text/prompt_schema overrides the channel settings of
        the note's author. content defaults to the stored note content.

        Raises:
            NoteNotFound: note does not exist
            LLMServiceError: generation failed
        """
        note = self.notes.find_by_id(note_id)
        if note is None:
            raise NoteNotFound(note_id)

        if not prompt_text and not prompt_schema:
            prompt_text, prompt_schema = self._channel_prompt(note)

        text = content if content else note.content
        summary, structured_data = self.llm.generate_structured_summary(text, prompt_text, prompt_schema)

        fields = {"summary": summary, "last_summarized_at": timezone.now()}
        if structured_data is not None:
            fields["structured_data"] = structured_data
        self.notes.update(note.id, **fields)

        logger.info("Generated summary for note %s (structured: %s)", note.id, structured_data is not None)
        return SummaryResult(summary=summary, structured_data=structured_data)

    def regenerate_all_titles(self) -> Dict[str, int]:
        notes = self.notes.find_all()
        regenerated = 0
        errors = 0

        for note in notes:
            try:
                title = self.llm.generate_title(note.content)
            except LLMServiceError as e:
                logger.error("Failed to generate title for note %s: %s", note.id, e)
                errors += 1
                continue

            if self.notes.update(note.id, title=title):
                regenerated += 1
                logger.info("Updated title for note %s: %s -> %s", note.id, note.title, title)
            else:
                logger.error("Failed to update title for note %s", note.id)
                errors += 1

        return {"regenerated": regenerated, "errors": errors, "total": len(notes)}

    def ask_about_content(self, prompt: str, content: str) -> str:
        return self.llm.ask_about_content(prompt, content)
