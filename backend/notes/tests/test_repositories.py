import uuid

from django.test import TestCase

from notes.categories import CATEGORIES
from notes.models import Note, NoteChunk
from notes.repositories import ChannelSettingsRepository, ChunkRepository, NoteRepository


class NoteRepositoryTest(TestCase):
    def setUp(self):
        self.repo = NoteRepository()

    def test_create_copies_url_for_duplicate_detection(self):
        note = self.repo.create(title="t", content="c", metadata={"url": "https://x.com/1"})

        self.assertEqual(note.source_url, "https://x.com/1")
        self.assertTrue(self.repo.exists_by_url("https://x.com/1"))
        self.assertFalse(self.repo.exists_by_url("https://x.com/2"))
        self.assertFalse(self.repo.exists_by_url(""))

    def test_find_by_id_handles_bad_ids(self):
        note = self.repo.create(title="t", content="c")

        self.assertEqual(self.repo.find_by_id(str(note.id)), note)
        self.assertIsNone(self.repo.find_by_id("not-a-uuid"))
        self.assertIsNone(self.repo.find_by_id(uuid.uuid4()))

    def test_find_by_ids_returns_existing_only(self):
        a = self.repo.create(title="a", content="a")
        b = self.repo.create(title="b", content="b")

        found = self.repo.find_by_ids([str(a.id), str(b.id), str(uuid.uuid4()), "junk"])

        self.assertEqual(set(found), {str(a.id), str(b.id)})
        self.assertEqual(found[str(a.id)], a)

    def test_find_all_filters_by_channel_and_category(self):
        self.repo.create(title="1", content="c", category="recipes", metadata={"author": "chef"})
        self.repo.create(title="2", content="c", category="workouts", metadata={"author": "chef"})
        self.repo.create(title="3", content="c", category="recipes", metadata={"author": "other"})

        self.assertEqual(len(self.repo.find_all()), 3)
        self.assertEqual({n.title for n in self.repo.find_all(channel="chef")}, {"1", "2"})
        self.assertEqual({n.title for n in self.repo.find_all(category="recipes")}, {"1", "3"})
        self.assertEqual([n.title for n in self.repo.find_all(channel="chef", category="recipes")], ["1"])

    def test_update_and_delete(self):
        note = self.repo.create(title="old", content="c")

        self.assertEqual(self.repo.update(note.id, title="new"), 1)
        self.assertEqual(Note.objects.get(id=note.id).title, "new")
        self.assertEqual(self.repo.delete(note.id), 1)
        self.assertEqual(self.repo.delete(note.id), 0)

    def test_delete_by_author_returns_ids(self):
        a = self.repo.create(title="a", content="c", metadata={"author": "chan"})
        self.repo.create(title="b", content="c", metadata={"author": "keep"})

        deleted = self.repo.delete_by_author("chan")

        self.assertEqual(deleted, [str(a.id)])
        self.assertEqual(Note.objects.count(), 1)

    def test_channel_counts_sorted_by_count(self):
        for _ in range(2):
            self.repo.create(title="t", content="c", metadata={"author": "busy", "platform": "youtube"})
        self.repo.create(title="t", content="c", metadata={"author": "quiet", "platform": "twitter"})
        self.repo.create(title="t", content="c")

        self.assertEqual(
            self.repo.channel_counts(),
            [
                {"name": "busy", "platform": "youtube", "note_count": 2},
                {"name": "quiet", "platform": "twitter", "note_count": 1},
            ],
        )

    def test_category_counts_zero_fills(self):
        self.repo.create(title="t", content="c", category="recipes")
        self.repo.create(title="t", content="c", category="recipes")

        counts = self.repo.category_counts()

        self.assertEqual(counts[0], {"name": "recipes", "count": 2})
        self.assertEqual(len(counts), len(CATEGORIES))
        self.assertTrue(all(c["count"] == 0 for c in counts[1:]))

    def test_find_uncategorized(self):
        """Test that empty and unknown categories both need classification"""
        self.repo.create(title="empty", content="c", category="")
        self.repo.create(title="legacy", content="c", category="Travel-Notes")
        self.repo.create(title="known", content="c", category="recipes")

        self.assertEqual({n.title for n in self.repo.find_uncategorized()}, {"empty", "legacy"})


class ChunkRepositoryTest(TestCase):
    def test_create_and_delete_by_note(self):
        repo = ChunkRepository()
        note_id = uuid.uuid4()
        other_id = uuid.uuid4()
        repo.create(note_id, "second", 1)
        repo.create(str(note_id), "first", 0)
        repo.create(other_id, "other", 0)

        stored = NoteChunk.objects.filter(note_id=note_id)
        self.assertEqual([c.content for c in stored], ["first", "second"])
        self.assertEqual(repo.delete_by_note(str(note_id)), 2)
        self.assertEqual(NoteChunk.objects.count(), 1)


class ChannelSettingsRepositoryTest(TestCase):
    def setUp(self):
        self.repo = ChannelSettingsRepository()

    def test_upsert_creates_then_updates(self):
        self.repo.upsert("chan", platform="youtube", prompt_text="v1")
        self.repo.upsert("chan", platform="youtube", prompt_text="v2", prompt_schema='{"summary": ""}')

        settings_obj = self.repo.find_by_name("chan")
        self.assertEqual(settings_obj.prompt_text, "v2")
        self.assertTrue(settings_obj.has_custom_prompt)
        self.assertEqual(len(self.repo.find_all()), 1)

    def test_upsert_rejects_invalid_schema(self):
        with self.assertRaises(ValueError):
            self.repo.upsert("chan", prompt_schema="{not json")

    def test_delete(self):
        self.repo.upsert("chan")

        self.assertEqual(self.repo.delete("chan"), 1)
        self.assertEqual(self.repo.delete("chan"), 0)
        self.assertIsNone(self.repo.find_by_name("chan"))
