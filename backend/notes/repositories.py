"""
Django ORM document store.

Narrow repositories over Note, NoteChunk and ChannelSettings. Services receive
these by constructor injection so they stay independent of the ORM in tests.
"""

import json
import logging
import uuid
from typing import Dict, Iterable, List, Optional

from django.db.models import Count

from .categories import CATEGORIES
from .models import ChannelSettings, Note, NoteChunk

logger = logging.getLogger(__name__)


def _as_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


class NoteRepository:
    """Persistence for notes"""

    def create(self, **fields) -> Note:
        metadata = fields.get("metadata") or {}
        fields.setdefault("source_url", metadata.get("url") or "")
        return Note.objects.create(**fields)

    def find_by_id(self, note_id) -> Optional[Note]:
        note_uuid = _as_uuid(note_id)
        if note_uuid is None:
            return None
        return Note.objects.filter(id=note_uuid).first()

    def find_by_ids(self, note_ids: Iterable) -> Dict[str, Note]:
        """Batch lookup; returns {str(note id): note} for the ids that exist"""
        uuids = [u for u in (_as_uuid(n) for n in note_ids) if u is not None]
        if not uuids:
            return {}
        return {str(note.id): note for note in Note.objects.filter(id__in=uuids)}

    def find_all(self, channel: str = "", category: str = "") -> List[Note]:
        query = Note.objects.all()
        if channel:
            query = query.filter(metadata__author=channel)
        if category:
            query = query.filter(category=category)
        return list(query)

    def find_uncategorized(self) -> List[Note]:
        """Notes with an empty category or one outside the category list"""
        return list(Note.objects.exclude(category__in=CATEGORIES))

    def exists_by_url(self, url: str) -> bool:
        return bool(url) and Note.objects.filter(source_url=url).exists()

    def update(self, note_id, **fields) -> int:
        """Set the given fields on a note; returns the number of rows updated"""
        note_uuid = _as_uuid(note_id)
        if note_uuid is None:
            return 0
        return Note.objects.filter(id=note_uuid).update(**fields)

    def delete(self, note_id) -> int:
        note_uuid = _as_uuid(note_id)
        if note_uuid is None:
            return 0
        deleted, _ = Note.objects.filter(id=note_uuid).delete()
        return deleted

    def delete_by_author(self, author: str) -> List[str]:
        """Delete every note captured from a channel; returns the deleted ids"""
        query = Note.objects.filter(metadata__author=author)
        note_ids = [str(note_id) for note_id in query.values_list("id", flat=True)]
        query.delete()
        return note_ids

    def channel_counts(self) -> List[dict]:
        """Distinct authors with their platform and note count, busiest first"""
        channels: Dict[str, dict] = {}
        for metadata in Note.objects.order_by("created_at").values_list("metadata", flat=True):
            author = (metadata or {}).get("author")
            if not author:
                continue
            entry = channels.setdefault(
                author, {"name": author, "platform": metadata.get("platform"), "note_count": 0}
            )
            entry["note_count"] += 1
        return sorted(channels.values(), key=lambda c: c["note_count"], reverse=True)

    def category_counts(self, include_empty: bool = True) -> List[dict]:
        rows = (
            Note.objects.exclude(category="")
            .values("category")
            .annotate(count=Count("id"))
            .order_by("-count", "category")
        )
        results = [{"name": row["category"], "count": row["count"]} for row in rows]
        if include_empty:
            seen = {r["name"] for r in results}
            results.extend({"name": c, "count": 0} for c in CATEGORIES if c not in seen)
        return results


class ChunkRepository:
    """Persistence for note chunks"""

    def create(self, note_id, content: str, chunk_index: int) -> NoteChunk:
        return NoteChunk.objects.create(
            note_id=_as_uuid(note_id), content=content, chunk_index=chunk_index
        )

    def delete_by_note(self, note_id) -> int:
        note_uuid = _as_uuid(note_id)
        if note_uuid is None:
            return 0
        deleted, _ = NoteChunk.objects.filter(note_id=note_uuid).delete()
        return deleted


class ChannelSettingsRepository:
    """Persistence for per-channel prompt settings"""

    def find_by_name(self, channel_name: str) -> Optional[ChannelSettings]:
        if not channel_name:
            return None
        return ChannelSettings.objects.filter(channel_name=channel_name).first()

    def find_all(self) -> List[ChannelSettings]:
        return list(ChannelSettings.objects.all())

    def upsert(
        self,
        channel_name: str,
        platform: str = "",
        channel_url: str = "",
        prompt_text: str = "",
        prompt_schema: str = "",
    ) -> ChannelSettings:
        if prompt_schema:
            try:
                json.loads(prompt_schema)
            except ValueError as e:
                raise ValueError(f"Invalid JSON in prompt_schema: {e}") from e

        settings_obj, created = ChannelSettings.objects.update_or_create(
            channel_name=channel_name,
            defaults={
                "platform": platform,
                "channel_url": channel_url,
                "prompt_text": prompt_text,
                "prompt_schema": prompt_schema,
            },
        )
        logger.info("%s channel settings for %s", "Created" if created else "Updated", channel_name)
        return settings_obj

    def delete(self, channel_name: str) -> int:
        deleted, _ = ChannelSettings.objects.filter(channel_name=channel_name).delete()
        return deleted

