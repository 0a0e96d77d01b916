"""
Background embedding workers.

A fixed number of long-lived threads drain a bounded in-process queue of
ProcessingJobs. Submitting never blocks the request path: when the queue is
full the job is dropped and the caller is told so. Embedding is best-effort.

Job lifecycle: QUEUED -> RUNNING -> COMPLETED | FAILED. Jobs refused at
submit time are marked DROPPED and never run.
"""

import copy
import enum
import logging
import queue
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

from django.db import close_old_connections

logger = logging.getLogger(__name__)

DEFAULT_WORKER_COUNT = 3
DEFAULT_QUEUE_SIZE = 100

# Placed on the queue once per worker by stop(); FIFO puts it behind queued jobs
_STOP = object()


class JobStatus(str, enum.Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    DROPPED = "dropped"


@dataclass
class ProcessingJob:
    """
    Snapshot of a note taken at enqueue time.

    Workers only ever read these fields, never the live note, so later edits
    to the note cannot race with an in-flight job.
    """

    note_id: str
    title: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: JobStatus = JobStatus.QUEUED
    error: Optional[str] = None
    submitted_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @classmethod
    def from_note(cls, note) -> "ProcessingJob":
        return cls(
            note_id=str(note.id),
            title=note.title,
            content=note.content,
            metadata=copy.deepcopy(note.metadata or {}),
        )


class JobProcessor(Protocol):
    def process(self, job: ProcessingJob) -> Any: ...


class WorkerPool:
    """Bounded job queue consumed by a fixed pool of worker threads"""

    def __init__(
        self,
        processor: JobProcessor,
        worker_count: int = DEFAULT_WORKER_COUNT,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ):
        if worker_count < 1:
            raise ValueError("worker_count must be at least 1")
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")

        self.processor = processor
        self.worker_count = worker_count
        self.queue_size = queue_size

        self._queue: "queue.Queue" = queue.Queue(maxsize=queue_size)
        self._workers = []
        # Guards the accepting flag so no job lands behind a stop sentinel
        self._state_lock = threading.Lock()
        self._accepting = True
        self._started = False
        self._stopped = False

        self._stats_lock = threading.Lock()
        self._stats = {"submitted": 0, "dropped": 0, "completed": 0, "failed": 0}

    def _count(self, key: str):
        with self._stats_lock:
            self._stats[key] += 1

    def start(self):
        """Launch the worker threads"""
        with self._state_lock:
            if self._started:
                logger.debug("Worker pool already started")
                return
            if self._stopped:
                raise RuntimeError("Cannot restart a stopped worker pool")
            self._started = True

            for i in range(self.worker_count):
                worker = threading.Thread(
                    target=self._worker_loop,
                    name=f"embedding-worker-{i + 1}",
                    daemon=True,
                )
                self._workers.append(worker)
                worker.start()

        logger.info("Started %d background workers (queue size %d)", self.worker_count, self.queue_size)

    def submit(self, job: ProcessingJob) -> bool:
        """
        Queue a job without blocking.

        Returns True if the job was queued, False if the queue is full or the
        pool is shutting down.
        """
        with self._state_lock:
            if not self._accepting:
                job.status = JobStatus.DROPPED
                self._count("dropped")
                logger.warning("Worker pool is stopping, skipping embedding for note: %s", job.note_id)
                return False

            job.status = JobStatus.QUEUED
            job.submitted_at = datetime.now(timezone.utc)
            try:
                self._queue.put_nowait(job)
            except queue.Full:
                job.status = JobStatus.DROPPED
                self._count("dropped")
                logger.warning("Job queue full, skipping embedding for note: %s", job.note_id)
                return False

        self._count("submitted")
        logger.info("Queued embedding job for note: %s", job.note_id)
        return True

    def stop(self, timeout: Optional[float] = None):
        """
        Stop accepting jobs, let queued and in-flight jobs finish, then wait
        for every worker to exit. In-flight jobs are never cancelled.
        """
        with self._state_lock:
            if self._stopped:
                return
            self._stopped = True
            self._accepting = False
            started = self._started

        if not started:
            # No workers to drain the queue, so run accepted jobs here
            pending = self._queue.qsize()
            if pending:
                logger.info("Worker pool stopped before start, running %d queued jobs inline", pending)
            self._drain_inline()
            return

        logger.info("Stopping worker pool, draining %d queued jobs", self._queue.qsize())
        for _ in self._workers:
            self._queue.put(_STOP)

        for worker in self._workers:
            worker.join(timeout)
            if worker.is_alive():
                logger.warning("Worker %s did not exit within %s seconds", worker.name, timeout)

        logger.info("All background workers stopped")

    def _worker_loop(self):
        while True:
            job = self._queue.get()
            try:
                if job is _STOP:
                    return
                self._run_job(job)
            finally:
                self._queue.task_done()

    def _drain_inline(self):
        while True:
            try:
                job = self._queue.get_nowait()
            except queue.Empty:
                return
            try:
                self._run_job(job)
            finally:
                self._queue.task_done()

    def _run_job(self, job: ProcessingJob):
        job.status = JobStatus.RUNNING
        try:
            result = self.processor.process(job)
        except Exception as e:
            job.error = str(e)
            job.status = JobStatus.FAILED
            self._count("failed")
            logger.error("Error processing job for note %s: %s", job.note_id, e, exc_info=True)
        else:
            job.status = JobStatus.COMPLETED
            self._count("completed")
            logger.info("Finished embedding job for note %s: %s", job.note_id, result)
        finally:
            job.finished_at = datetime.now(timezone.utc)
            # Long-lived threads must not hold on to stale DB connections
            close_old_connections()

    @property
    def is_running(self) -> bool:
        return self._started and not self._stopped

    def stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            stats = dict(self._stats)
        stats.update(
            {
                "queue_depth": self._queue.qsize(),
                "queue_size": self.queue_size,
                "worker_count": self.worker_count,
                "running": self.is_running,
            }
        )
        return stats
