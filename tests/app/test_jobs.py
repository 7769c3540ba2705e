from __future__ import annotations

import threading
import uuid
from typing import TYPE_CHECKING

import pytest

from parcelsync.domain.errors import TransportError
from parcelsync.domain.reconciliation import BatchReport
from parcelsync.jobs import JobStatus, SyncJobRunner

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def calls() -> list[tuple[uuid.UUID, str]]:
    return []


@pytest.fixture
def runner(calls: list[tuple[uuid.UUID, str]]) -> Iterator[SyncJobRunner]:
    def target(session_id: uuid.UUID, supplier_name: str) -> BatchReport:
        calls.append((session_id, supplier_name))
        return BatchReport(total=0)

    with SyncJobRunner(target, max_workers=2) as job_runner:
        yield job_runner


def test_submitted_job_runs_to_success(
    runner: SyncJobRunner,
    calls: list[tuple[uuid.UUID, str]],
) -> None:
    session_id = uuid.uuid4()

    runner.submit(session_id, "Acme")
    job = runner.wait(session_id, timeout=5)

    assert job.status is JobStatus.SUCCEEDED
    assert job.status.is_finished
    assert job.report is not None
    assert job.started_at is not None
    assert job.finished_at is not None
    assert calls == [(session_id, "Acme")]


def test_duplicate_session_is_rejected(runner: SyncJobRunner) -> None:
    session_id = uuid.uuid4()
    runner.submit(session_id, "Acme")

    with pytest.raises(ValueError, match="already submitted"):
        runner.submit(session_id, "Acme")


def test_wait_for_unknown_job(runner: SyncJobRunner) -> None:
    with pytest.raises(KeyError):
        runner.wait(uuid.uuid4())


def test_failing_job_is_recorded_not_raised() -> None:
    def target(session_id: uuid.UUID, supplier_name: str) -> BatchReport:
        raise TransportError(f"{supplier_name} unreachable for {session_id}")

    with SyncJobRunner(target) as job_runner:
        session_id = uuid.uuid4()
        job_runner.submit(session_id, "Acme")
        job = job_runner.wait(session_id, timeout=5)

    assert job.status is JobStatus.FAILED
    assert isinstance(job.error, TransportError)
    assert job.report is None


def test_jobs_for_one_supplier_do_not_overlap() -> None:
    release = threading.Event()
    active = 0
    peak = 0
    guard = threading.Lock()

    def target(session_id: uuid.UUID, supplier_name: str) -> BatchReport:
        nonlocal active, peak
        _ = (session_id, supplier_name)
        with guard:
            active += 1
            peak = max(peak, active)
        release.wait(timeout=5)
        with guard:
            active -= 1
        return BatchReport(total=0)

    with SyncJobRunner(target, max_workers=2) as job_runner:
        first, second = uuid.uuid4(), uuid.uuid4()
        job_runner.submit(first, "Acme")
        job_runner.submit(second, "Acme")
        release.set()
        job_runner.wait(first, timeout=5)
        job_runner.wait(second, timeout=5)

    assert peak == 1


def test_only_recent_finished_jobs_are_retained() -> None:
    def target(session_id: uuid.UUID, supplier_name: str) -> BatchReport:
        _ = (session_id, supplier_name)
        return BatchReport(total=0)

    with SyncJobRunner(target, max_workers=1, retain_finished=2) as job_runner:
        sessions = [uuid.uuid4() for _ in range(3)]
        for session_id in sessions:
            job_runner.submit(session_id, "Acme")
            job_runner.wait(session_id, timeout=5)

        assert job_runner.get(sessions[0]) is None
        assert job_runner.get(sessions[1]) is not None
        assert job_runner.get(sessions[2]) is not None
