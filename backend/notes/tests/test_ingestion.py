from django.test import SimpleTestCase

from notes.ingestion_service import SKIPPED_SENSITIVE, SKIPPED_STALE, IngestionPipeline
from notes.worker_pool import ProcessingJob

from .fakes import FakeChunkStore, FakeEmbedder, FakeNoteStore, FakeVectorStore, make_note


def words(count, prefix="w"):
    return " ".join(f"{prefix}{i}" for i in range(count))


class IngestionPipelineTest(SimpleTestCase):
    def setUp(self):
        self.embedder = FakeEmbedder()
        self.vectors = FakeVectorStore()
        self.chunks = FakeChunkStore()

    def pipeline(self, **kwargs):
        return IngestionPipeline(self.embedder, self.vectors, self.chunks, **kwargs)

    def test_embeds_every_chunk_with_ids(self):
        """Test that each chunk is persisted and its vector carries chunk and note ids"""
        job = ProcessingJob(note_id="note-1", title="Title", content=words(2499))

        result = self.pipeline(chunk_size=1000).process(job)

        self.assertEqual(result.chunks_total, 3)
        self.assertEqual(result.chunks_stored, 3)
        self.assertEqual([c.chunk_index for c in self.chunks.chunks], [0, 1, 2])
        self.assertEqual(len(self.vectors.points), 3)
        for chunk in self.chunks.chunks:
            point = self.vectors.points[chunk.id]
            self.assertEqual(point["note_id"], "note-1")
            self.assertEqual(point["chunk_id"], chunk.id)

    def test_full_text_is_title_then_content(self):
        job = ProcessingJob(note_id="n", title="My title", content="body text")

        self.pipeline().process(job)

        self.assertEqual(self.embedder.calls, ["My title body text"])

    def test_sensitive_note_is_skipped_without_error(self):
        job = ProcessingJob(note_id="n", title="Creds", content="password=supersecret123")

        result = self.pipeline().process(job)

        self.assertEqual(result.skipped_reason, SKIPPED_SENSITIVE)
        self.assertEqual(self.chunks.chunks, [])
        self.assertEqual(self.embedder.calls, [])
        self.assertEqual(self.vectors.points, {})

    def test_long_note_is_truncated(self):
        job = ProcessingJob(note_id="n", title="t", content=words(50))

        result = self.pipeline(chunk_size=10, max_words=25).process(job)

        self.assertTrue(result.truncated)
        self.assertEqual(result.chunks_total, 3)
        stored_words = " ".join(c.content for c in self.chunks.chunks).split()
        self.assertEqual(len(stored_words), 25)

    def test_note_at_word_cap_is_not_truncated(self):
        """Test that truncation is decided by word count, not by reformatting"""
        # Title line plus 24 words, separated by a blank line, is exactly 25 words
        job = ProcessingJob(note_id="n", title="t", content=words(24))

        result = self.pipeline(chunk_size=100, max_words=25).process(job)

        self.assertFalse(result.truncated)
        self.assertEqual(len(self.chunks.chunks[0].content.split()), 25)

    def test_embedding_failure_skips_only_that_chunk(self):
        """Test that chunk 1 failing still lets chunks 0 and 2 be indexed"""
        content = words(9)
        job = ProcessingJob(note_id="n", title="t", content=content)
        # "t w0 w1 | w2 w3 w4 | ..." with 3 words per chunk
        self.embedder.fail_on = {"w2 w3 w4"}

        with self.assertLogs("notes.ingestion_service", level="ERROR"):
            result = self.pipeline(chunk_size=3).process(job)

        self.assertEqual(result.chunks_total, 4)
        self.assertEqual(result.chunks_failed, 1)
        self.assertEqual(result.chunks_stored, 3)
        self.assertEqual(len(self.vectors.points), 3)

    def test_chunk_store_failure_skips_that_chunk(self):
        self.chunks.fail_on_index = {0}
        job = ProcessingJob(note_id="n", title="t", content=words(5))

        with self.assertLogs("notes.ingestion_service", level="ERROR"):
            result = self.pipeline(chunk_size=3).process(job)

        self.assertEqual(result.chunks_failed, 1)
        self.assertEqual(result.chunks_stored, 1)
        self.assertEqual(len(self.embedder.calls), 1)

    def test_vector_store_failure_skips_that_chunk(self):
        job = ProcessingJob(note_id="n", title="t", content=words(5))
        original_upsert = self.vectors.upsert
        calls = []

        def flaky_upsert(vector_id, note_id, chunk_id, vector):
            calls.append(chunk_id)
            if len(calls) == 1:
                raise RuntimeError("qdrant down")
            original_upsert(vector_id, note_id, chunk_id, vector)

        self.vectors.upsert = flaky_upsert

        with self.assertLogs("notes.ingestion_service", level="ERROR"):
            result = self.pipeline(chunk_size=3).process(job)

        self.assertEqual(result.chunks_failed, 1)
        self.assertEqual(result.chunks_stored, 1)

    def test_empty_note_produces_no_chunks(self):
        job = ProcessingJob(note_id="n", title="", content="   ")

        result = self.pipeline().process(job)

        self.assertEqual(result.chunks_total, 0)
        self.assertIsNone(result.skipped_reason)


class StaleJobTest(SimpleTestCase):
    def setUp(self):
        self.embedder = FakeEmbedder()
        self.vectors = FakeVectorStore()
        self.chunks = FakeChunkStore()

    def test_deleted_note_is_skipped(self):
        pipeline = IngestionPipeline(self.embedder, self.vectors, self.chunks, notes=FakeNoteStore())
        job = ProcessingJob(note_id="gone", title="t", content="c")

        result = pipeline.process(job)

        self.assertEqual(result.skipped_reason, SKIPPED_STALE)
        self.assertEqual(self.chunks.chunks, [])

    def test_edited_note_is_skipped(self):
        note = make_note(note_id="n1", title="t", content="new content")
        pipeline = IngestionPipeline(
            self.embedder, self.vectors, self.chunks, notes=FakeNoteStore([note])
        )

        result = pipeline.process(ProcessingJob(note_id="n1", title="t", content="old content"))

        self.assertEqual(result.skipped_reason, SKIPPED_STALE)
        self.assertEqual(self.embedder.calls, [])

    def test_current_note_is_embedded(self):
        note = make_note(note_id="n1", title="t", content="same content", metadata={})
        pipeline = IngestionPipeline(
            self.embedder, self.vectors, self.chunks, notes=FakeNoteStore([note])
        )

        result = pipeline.process(ProcessingJob.from_note(note))

        self.assertIsNone(result.skipped_reason)
        self.assertEqual(result.chunks_stored, 1)

