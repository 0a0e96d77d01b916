import logging

from django.apps import apps
from django.conf import settings
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .categories import CATEGORIES, is_valid_category
from .exceptions import LLMServiceError, NoteNotFound, SearchError
from .llm_service import llm_service
from .notes_service import NotesService
from .repositories import ChannelSettingsRepository, ChunkRepository, NoteRepository
from .search_service import NoteSearchService
from .serializers import (
    AIQuestionSerializer,
    ChannelSettingsSerializer,
    CreateNoteSerializer,
    NoteSerializer,
    QuestionSerializer,
    SearchSerializer,
    SummarizePromptSerializer,
    SummarizeSerializer,
    UpdateNoteSerializer,
)
from .summary_service import SummaryService
from .vector_service import vector_service

logger = logging.getLogger(__name__)

# Long-lived so its query embedding cache is shared across requests
search_service = NoteSearchService(
    embedder=llm_service,
    vector_store=vector_service,
    notes=NoteRepository(),
    generator=llm_service,
    min_relevance_score=settings.NOTES_MIN_RELEVANCE_SCORE,
    qa_relevance_score=settings.NOTES_QA_RELEVANCE_SCORE,
    qa_top_k=settings.NOTES_QA_TOP_K,
    embedding_cache_size=settings.EMBEDDING_CACHE_SIZE,
)


def get_worker_pool():
    return apps.get_app_config("notes").worker_pool


def get_notes_service() -> NotesService:
    return NotesService(
        notes=NoteRepository(),
        chunks=ChunkRepository(),
        channel_settings=ChannelSettingsRepository(),
        llm=llm_service,
        vector_store=vector_service,
        worker_pool=get_worker_pool(),
    )


def get_summary_service() -> SummaryService:
    return SummaryService(
        notes=NoteRepository(),
        channel_settings=ChannelSettingsRepository(),
        llm=llm_service,
    )


def _error(message, status_code):
    return Response({"error": message}, status=status_code)


def _scored_notes(results):
    return [{"note": NoteSerializer(r.note).data, "score": r.score} for r in results]


def _not_found(note_id):
    logger.debug("Note not found: %s", note_id)
    return _error("Note not found", status.HTTP_404_NOT_FOUND)


# =============================================================================
# Notes
# =============================================================================


class NoteListView(APIView):
    """
    GET: list notes, optionally filtered by ?channel= and ?category=
    POST: create a note; embedding happens in the background
    """

    def get(self, request):
        notes = get_notes_service().list_notes(
            channel=request.query_params.get("channel", ""),
            category=request.query_params.get("category", ""),
        )
        return Response(NoteSerializer(notes, many=True).data)

    def post(self, request):
        serializer = CreateNoteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            result = get_notes_service().create_note(
                content=data["content"], title=data["title"], metadata=data["metadata"]
            )
        except Exception as e:
            logger.error("Error creating note: %s", e, exc_info=True)
            return _error("Failed to create note", status.HTTP_500_INTERNAL_SERVER_ERROR)

        if result.duplicate:
            return Response({"error": "duplicate", "url": result.url}, status=status.HTTP_409_CONFLICT)

        response = NoteSerializer(result.note).data
        response["embedding_queued"] = result.queued
        return Response(response, status=status.HTTP_201_CREATED)


class NoteDetailView(APIView):
    def get(self, request, note_id):
        try:
            note = get_notes_service().get_note(note_id)
        except NoteNotFound:
            return _not_found(note_id)
        return Response(NoteSerializer(note).data)

    def put(self, request, note_id):
        serializer = UpdateNoteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        try:
            note = get_notes_service().update_note(note_id, serializer.validated_data["content"])
        except NoteNotFound:
            return _not_found(note_id)
        return Response(NoteSerializer(note).data)

    def delete(self, request, note_id):
        try:
            get_notes_service().delete_note(note_id)
        except NoteNotFound:
            return _not_found(note_id)
        return Response({"message": "Note deleted successfully"})


class NotesByCategoryView(APIView):
    def get(self, request, category):
        if not is_valid_category(category):
            return _error("Invalid category", status.HTTP_400_BAD_REQUEST)
        notes = get_notes_service().list_notes(category=category)
        return Response(NoteSerializer(notes, many=True).data)


# =============================================================================
# Search and Q&A
# =============================================================================


class SearchView(APIView):
    """Semantic search: POST {"query": str, "limit": int}"""

    def post(self, request):
        serializer = SearchSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        try:
            results = search_service.search(
                serializer.validated_data["query"], serializer.validated_data["limit"]
            )
        except SearchError as e:
            return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(_scored_notes(results))


class AskView(APIView):
    """Question answering over notes: POST {"question": str}"""

    def post(self, request):
        serializer = QuestionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = search_service.answer(serializer.validated_data["question"])
        except SearchError as e:
            return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(
            {
                "answer": result.answer,
                "sources": _scored_notes(result.sources),
                "question": result.question,
            }
        )


class AIQuestionView(APIView):
    """Free-form prompt about arbitrary content: POST {"content", "prompt"}"""

    def post(self, request):
        serializer = AIQuestionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        try:
            response = get_summary_service().ask_about_content(
                serializer.validated_data["prompt"], serializer.validated_data["content"]
            )
        except LLMServiceError as e:
            logger.error("Failed to generate AI response: %s", e)
            return _error("Failed to generate AI response", status.HTTP_502_BAD_GATEWAY)

        return Response({"response": response})


# =============================================================================
# Summaries and migrations
# =============================================================================


def _summary_response(result):
    data = {"summary": result.summary}
    if result.structured_data is not None:
        data["structuredData"] = result.structured_data
    return Response(data)


class SummarizeView(APIView):
    def post(self, request):
        serializer = SummarizeSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            result = get_summary_service().generate_summary(
                data["noteId"],
                prompt_text=data["promptText"],
                prompt_schema=data["promptSchema"],
                content=data["content"] or None,
            )
        except NoteNotFound:
            return _not_found(data["noteId"])
        except LLMServiceError as e:
            logger.error("Error generating summary: %s", e)
            return _error("Failed to generate summary", status.HTTP_502_BAD_GATEWAY)
        return _summary_response(result)


class SummarizeNoteView(APIView):
    def post(self, request, note_id):
        # Body is optional
        serializer = SummarizePromptSerializer(data=request.data or {})
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = get_summary_service().generate_summary(
                note_id,
                prompt_text=serializer.validated_data["promptText"],
                prompt_schema=serializer.validated_data["promptSchema"],
            )
        except NoteNotFound:
            return _not_found(note_id)
        except LLMServiceError as e:
            logger.error("Error generating summary for note %s: %s", note_id, e)
            return _error("Failed to generate summary", status.HTTP_502_BAD_GATEWAY)
        return _summary_response(result)


class RegenerateTitlesView(APIView):
    def post(self, request):
        result = get_summary_service().regenerate_all_titles()
        return Response({"message": "Title regeneration complete", **result})


class ClassifyNotesView(APIView):
    def post(self, request):
        result = get_notes_service().classify_uncategorized()
        return Response({"message": "Classification complete", **result})


# =============================================================================
# Categories
# =============================================================================


class CategoriesView(APIView):
    def get(self, request):
        return Response(get_notes_service().category_counts())


class CategoryStatsView(APIView):
    def get(self, request):
        counts = [c for c in get_notes_service().category_counts() if c["count"] > 0]
        return Response(
            {
                "categories": counts,
                "total_notes": sum(c["count"] for c in counts),
                "total_categories": len(CATEGORIES),
            }
        )


# =============================================================================
# Channels
# =============================================================================


class ChannelListView(APIView):
    def get(self, request):
        return Response(get_notes_service().list_channels())


class ChannelNotesView(APIView):
    def delete(self, request, channel):
        result = get_notes_service().delete_channel_notes(channel)
        return Response(
            {
                "message": "Channel notes deleted",
                "deletedNotes": result["deleted_notes"],
                "deletedChunks": result["deleted_chunks"],
                "channel": channel,
            }
        )


class ChannelSettingsListView(APIView):
    def get(self, request):
        settings_list = ChannelSettingsRepository().find_all()
        return Response(ChannelSettingsSerializer(settings_list, many=True).data)


class ChannelSettingsDetailView(APIView):
    def get(self, request, channel):
        settings_obj = ChannelSettingsRepository().find_by_name(channel)
        if settings_obj is None:
            # Unconfigured channels get empty defaults
            return Response(
                {
                    "channelName": channel,
                    "platform": "",
                    "channelUrl": "",
                    "promptText": "",
                    "promptSchema": "",
                    "updatedAt": None,
                }
            )
        return Response(ChannelSettingsSerializer(settings_obj).data)

    def put(self, request, channel):
        serializer = ChannelSettingsSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        settings_obj = ChannelSettingsRepository().upsert(
            channel_name=channel,
            platform=data.get("platform", ""),
            channel_url=data.get("channel_url", ""),
            prompt_text=data.get("prompt_text", ""),
            prompt_schema=data.get("prompt_schema", ""),
        )
        return Response(ChannelSettingsSerializer(settings_obj).data)

    def delete(self, request, channel):
        logger.info("Deleting channel settings for: %s", channel)
        if not ChannelSettingsRepository().delete(channel):
            return _error("Settings not found", status.HTTP_404_NOT_FOUND)
        return Response({"message": "Settings deleted"})


# =============================================================================
# Queue
# =============================================================================


class QueueStatusView(APIView):
    """Embedding worker pool status"""

    def get(self, request):
        pool = get_worker_pool()
        if pool is None:
            return _error("Worker pool not configured", status.HTTP_503_SERVICE_UNAVAILABLE)
        return Response(pool.stats())
