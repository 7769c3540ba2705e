"""Background execution of bulk sync jobs.

Jobs run on a bounded thread pool. Jobs for the same supplier are serialised by a
per-supplier lock, so a second job waits in ``queued`` until the first one finishes.
Only the most recent ``retain_finished`` finished jobs are kept; session state lives
in the store, not here.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from parcelsync.domain.model import utcnow

if TYPE_CHECKING:
    from types import TracebackType
    from uuid import UUID

    from parcelsync.domain.reconciliation import BatchReport

log = getLogger(__name__)

type JobTarget = Callable[[UUID, str], BatchReport]

DEFAULT_RETAIN_FINISHED = 100


class JobStatus(StrEnum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_finished(self) -> bool:
        return self in {JobStatus.SUCCEEDED, JobStatus.FAILED}


@dataclass(eq=False)
class SyncJob:
    session_id: UUID
    supplier_name: str
    submitted_at: datetime
    status: JobStatus = JobStatus.QUEUED
    started_at: datetime | None = None
    finished_at: datetime | None = None
    report: BatchReport | None = None
    error: BaseException | None = None
    _future: Future[None] | None = field(default=None, repr=False)


class SyncJobRunner:
    def __init__(
        self,
        target: JobTarget,
        *,
        max_workers: int = 4,
        retain_finished: int = DEFAULT_RETAIN_FINISHED,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._target = target
        self._retain_finished = retain_finished
        self._clock = clock
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="parcelsync-sync",
        )
        self._jobs: dict[UUID, SyncJob] = {}
        self._supplier_locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def submit(self, session_id: UUID, supplier_name: str) -> SyncJob:
        job = SyncJob(
            session_id=session_id,
            supplier_name=supplier_name,
            submitted_at=self._clock(),
        )
        with self._registry_lock:
            if session_id in self._jobs:
                raise ValueError(f"A job for session {session_id} was already submitted")
            self._jobs[session_id] = job
        job._future = self._executor.submit(self._run, job)  # noqa: SLF001
        log.info("Queued sync job for session %s (supplier %r)", session_id, supplier_name)
        return job

    def get(self, session_id: UUID) -> SyncJob | None:
        with self._registry_lock:
            return self._jobs.get(session_id)

    def wait(self, session_id: UUID, timeout: float | None = None) -> SyncJob:
        """Block until the job finishes; ``TimeoutError`` if it is still running after ``timeout``."""

        job = self.get(session_id)
        if job is None or job._future is None:  # noqa: SLF001
            raise KeyError(session_id)
        job._future.result(timeout=timeout)  # noqa: SLF001
        return job

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> SyncJobRunner:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()

    def _supplier_lock(self, supplier_name: str) -> threading.Lock:
        with self._registry_lock:
            return self._supplier_locks.setdefault(supplier_name, threading.Lock())

    def _run(self, job: SyncJob) -> None:
        with self._supplier_lock(job.supplier_name):
            job.status = JobStatus.RUNNING
            job.started_at = self._clock()
            try:
                job.report = self._target(job.session_id, job.supplier_name)
            except Exception as exc:
                job.error = exc
                job.status = JobStatus.FAILED
                log.error("Sync job for session %s failed: %s", job.session_id, exc)
            else:
                job.status = JobStatus.SUCCEEDED
            finally:
                job.finished_at = self._clock()
                self._evict_finished()

    def _evict_finished(self) -> None:
        with self._registry_lock:
            finished = [key for key, job in self._jobs.items() if job.status.is_finished]
            for key in finished[: max(len(finished) - self._retain_finished, 0)]:
                del self._jobs[key]
