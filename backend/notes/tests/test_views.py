"""
Tests for the HTTP API (providers, vector store and worker pool mocked)
"""

import json
import uuid
from unittest.mock import Mock, patch

from django.test import Client, TestCase
from django.urls import reverse

from notes.categories import CATEGORIES
from notes.exceptions import GenerationError, SearchError
from notes.llm_service import NoteAnalysis
from notes.models import ChannelSettings, Note, NoteChunk
from notes.search_service import NO_RELEVANT_INFO_ANSWER, AnswerResult, SearchResult

from .fakes import FakeVectorStore


class APITestCase(TestCase):
    def setUp(self):
        self.client = Client()

        self.llm = Mock()
        self.llm.analyze_note.return_value = NoteAnalysis(title="Generated", category="ideas")
        self.llm.generate_title.return_value = "Regenerated"
        self.vectors = FakeVectorStore()
        self.pool = Mock()
        self.pool.submit.return_value = True
        self.pool.stats.return_value = {"submitted": 1, "dropped": 0, "queue_depth": 0, "running": True}

        for target, value in (
            ("notes.views.llm_service", self.llm),
            ("notes.views.vector_service", self.vectors),
            ("notes.views.get_worker_pool", Mock(return_value=self.pool)),
        ):
            patcher = patch(target, value)
            patcher.start()
            self.addCleanup(patcher.stop)

    def post_json(self, url, data):
        return self.client.post(url, json.dumps(data), content_type="application/json")

    def put_json(self, url, data):
        return self.client.put(url, json.dumps(data), content_type="application/json")


class NoteEndpointsTest(APITestCase):
    def test_create_note(self):
        response = self.post_json(reverse("note_list"), {"content": "A new idea", "metadata": {"platform": "web"}})

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["title"], "Generated")
        self.assertEqual(data["category"], "ideas")
        self.assertTrue(data["embedding_queued"])
        self.assertTrue(Note.objects.filter(id=data["id"]).exists())
        self.pool.submit.assert_called_once()

    def test_create_requires_content(self):
        response = self.post_json(reverse("note_list"), {"content": "   "})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(Note.objects.count(), 0)

    def test_create_duplicate_url_conflicts(self):
        Note.objects.create(title="t", content="c", source_url="https://x.com/1")

        response = self.post_json(reverse("note_list"), {"content": "again", "metadata": {"url": "https://x.com/1"}})

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json(), {"error": "duplicate", "url": "https://x.com/1"})

    def test_list_notes_by_channel(self):
        Note.objects.create(title="a", content="c", metadata={"author": "chan"})
        Note.objects.create(title="b", content="c", metadata={"author": "other"})

        response = self.client.get(reverse("note_list"), {"channel": "chan"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([n["title"] for n in response.json()], ["a"])

    def test_get_update_delete_note(self):
        note = Note.objects.create(title="t", content="old")
        NoteChunk.objects.create(note_id=note.id, content="old", chunk_index=0)
        url = reverse("note_detail", kwargs={"note_id": note.id})

        self.assertEqual(self.client.get(url).json()["content"], "old")

        response = self.put_json(url, {"content": "new"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["title"], "Regenerated")
        self.assertFalse(NoteChunk.objects.filter(note_id=note.id).exists())

        response = self.client.delete(url)
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Note.objects.filter(id=note.id).exists())
        self.assertIn(str(note.id), self.vectors.deleted_notes)

    def test_missing_note_is_404(self):
        url = reverse("note_detail", kwargs={"note_id": uuid.uuid4()})

        self.assertEqual(self.client.get(url).status_code, 404)
        self.assertEqual(self.put_json(url, {"content": "x"}).status_code, 404)
        self.assertEqual(self.client.delete(url).status_code, 404)

    def test_notes_by_category(self):
        Note.objects.create(title="r", content="c", category="recipes")

        response = self.client.get(reverse("notes_by_category", kwargs={"category": "recipes"}))
        self.assertEqual([n["title"] for n in response.json()], ["r"])

        response = self.client.get(reverse("notes_by_category", kwargs={"category": "bogus"}))
        self.assertEqual(response.status_code, 400)


@patch("notes.views.search_service")
class SearchEndpointsTest(APITestCase):
    def test_search(self, search_service):
        note = Note.objects.create(title="t", content="c")
        search_service.search.return_value = [SearchResult(note=note, score=0.8)]

        response = self.post_json(reverse("search"), {"query": "find", "limit": 5})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()[0]["score"], 0.8)
        self.assertEqual(response.json()[0]["note"]["id"], str(note.id))
        search_service.search.assert_called_once_with("find", 5)

    def test_search_requires_query(self, search_service):
        response = self.post_json(reverse("search"), {"limit": 5})

        self.assertEqual(response.status_code, 400)
        search_service.search.assert_not_called()

    def test_search_failure_is_500(self, search_service):
        search_service.search.side_effect = SearchError("embedding provider down")

        response = self.post_json(reverse("search"), {"query": "find"})

        self.assertEqual(response.status_code, 500)
        self.assertIn("embedding provider down", response.json()["error"])

    def test_ask(self, search_service):
        search_service.answer.return_value = AnswerResult(
            question="q?", answer=NO_RELEVANT_INFO_ANSWER, sources=[]
        )

        response = self.post_json(reverse("ask"), {"question": "q?"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(), {"answer": NO_RELEVANT_INFO_ANSWER, "sources": [], "question": "q?"}
        )

    def test_ask_returns_scored_sources(self, search_service):
        note = Note.objects.create(title="Trip", content="Flight on Monday")
        search_service.answer.return_value = AnswerResult(
            question="When?", answer="Monday", sources=[SearchResult(note=note, score=0.72)]
        )

        response = self.post_json(reverse("ask"), {"question": "When?"})

        source = response.json()["sources"][0]
        self.assertEqual(source["score"], 0.72)
        self.assertEqual(source["note"]["id"], str(note.id))

    def test_ai_question(self, search_service):
        self.llm.ask_about_content.return_value = "Explained"

        response = self.post_json(reverse("ai_question"), {"content": "text", "prompt": "Explain"})

        self.assertEqual(response.json(), {"response": "Explained"})

    def test_ai_question_failure_is_502(self, search_service):
        self.llm.ask_about_content.side_effect = GenerationError("offline")

        response = self.post_json(reverse("ai_question"), {"content": "text", "prompt": "Explain"})

        self.assertEqual(response.status_code, 502)


class SummaryEndpointsTest(APITestCase):
    def test_summarize_note_by_id(self):
        note = Note.objects.create(title="t", content="c")
        self.llm.generate_structured_summary.return_value = ("Sum", {"summary": "Sum"})

        response = self.post_json(reverse("summarize_note", kwargs={"note_id": note.id}), {})

        self.assertEqual(response.json(), {"summary": "Sum", "structuredData": {"summary": "Sum"}})

    def test_summarize_missing_note(self):
        response = self.post_json(reverse("summarize"), {"noteId": str(uuid.uuid4())})

        self.assertEqual(response.status_code, 404)

    def test_regenerate_titles(self):
        Note.objects.create(title="old", content="c")

        response = self.post_json(reverse("migrate_titles"), {})

        self.assertEqual(response.json()["regenerated"], 1)
        self.assertEqual(Note.objects.get().title, "Regenerated")

    def test_classify(self):
        Note.objects.create(title="t", content="c", category="")
        self.llm.classify_note.return_value = "tasks"

        response = self.post_json(reverse("migrate_classify"), {})

        self.assertEqual(response.json()["classified"], 1)
        self.assertEqual(Note.objects.get().category, "tasks")


class CategoryAndChannelEndpointsTest(APITestCase):
    def test_categories_zero_filled(self):
        Note.objects.create(title="t", content="c", category="recipes")

        data = self.client.get(reverse("categories")).json()

        self.assertEqual(len(data), len(CATEGORIES))
        self.assertEqual(data[0], {"name": "recipes", "count": 1})

    def test_category_stats(self):
        Note.objects.create(title="t", content="c", category="recipes")

        data = self.client.get(reverse("category_stats")).json()

        self.assertEqual(data["total_notes"], 1)
        self.assertEqual(data["categories"], [{"name": "recipes", "count": 1}])
        self.assertEqual(data["total_categories"], len(CATEGORIES))

    def test_channels_and_delete_channel_notes(self):
        Note.objects.create(title="t", content="c", metadata={"author": "chan", "platform": "youtube"})

        channels = self.client.get(reverse("channel_list")).json()
        self.assertEqual(channels, [{"name": "chan", "platform": "youtube", "note_count": 1}])

        response = self.client.delete(reverse("channel_notes", kwargs={"channel": "chan"}))
        self.assertEqual(response.json()["deletedNotes"], 1)
        self.assertEqual(Note.objects.count(), 0)

    def test_channel_settings_crud(self):
        url = reverse("channel_settings_detail", kwargs={"channel": "chan"})

        self.assertEqual(self.client.get(url).json()["promptText"], "")

        response = self.put_json(url, {"platform": "youtube", "promptText": "P", "promptSchema": '{"summary": ""}'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["channelName"], "chan")
        self.assertEqual(ChannelSettings.objects.get().prompt_text, "P")

        self.assertEqual(len(self.client.get(reverse("channel_settings_list")).json()), 1)

        self.assertEqual(self.client.delete(url).status_code, 200)
        self.assertEqual(self.client.delete(url).status_code, 404)

    def test_channel_settings_rejects_invalid_schema(self):
        url = reverse("channel_settings_detail", kwargs={"channel": "chan"})

        response = self.put_json(url, {"promptSchema": "{not json"})

        self.assertEqual(response.status_code, 400)
        self.assertFalse(ChannelSettings.objects.exists())

    def test_queue_status(self):
        response = self.client.get(reverse("queue_status"))

        self.assertEqual(response.json()["submitted"], 1)
