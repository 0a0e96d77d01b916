import atexit
import logging

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)


class NotesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "notes"

    # Set in ready(); shared by every request that enqueues embedding jobs
    worker_pool = None

    def ready(self):
        from .ingestion_service import IngestionPipeline
        from .llm_service import llm_service
        from .repositories import ChunkRepository, NoteRepository
        from .vector_service import vector_service
        from .worker_pool import WorkerPool

        pipeline = IngestionPipeline(
            embedder=llm_service,
            vector_store=vector_service,
            chunks=ChunkRepository(),
            notes=NoteRepository(),
            chunk_size=settings.NOTES_CHUNK_SIZE,
            max_words=settings.NOTES_MAX_WORDS,
        )
        self.worker_pool = WorkerPool(
            pipeline,
            worker_count=settings.NOTES_WORKER_COUNT,
            queue_size=settings.NOTES_QUEUE_SIZE,
        )

        # An unstarted pool runs whatever it accepted when stopped
        atexit.register(self.worker_pool.stop)
        if settings.NOTES_WORKERS_AUTOSTART:
            self.worker_pool.start()
        else:
            logger.debug("Background workers not started (NOTES_WORKERS_AUTOSTART is off)")
