from __future__ import annotations

import pytest

from parcelsync.domain.errors import InconsistentStateError, PersistenceError
from parcelsync.domain.saga import Saga, SagaStatus, SagaStep


def test_saga_runs_all_steps_in_order() -> None:
    calls: list[str] = []

    saga = Saga(
        name="demo",
        steps=[
            SagaStep("first", lambda: calls.append("first") or 1),
            SagaStep("second", lambda: calls.append("second") or 2),
        ],
    )
    result = saga.execute()

    assert result.status is SagaStatus.COMPLETED
    assert result.completed
    assert calls == ["first", "second"]
    assert result.results == {"first": 1, "second": 2}


def test_first_step_failure_propagates_without_compensation() -> None:
    compensated: list[str] = []

    def boom() -> None:
        raise PersistenceError("down")

    saga = Saga(
        name="demo",
        steps=[
            SagaStep("first", boom, compensation=lambda: compensated.append("first")),
            SagaStep("second", lambda: None),
        ],
    )

    with pytest.raises(PersistenceError):
        saga.execute()
    assert compensated == []


def test_later_failure_compensates_completed_steps_in_reverse() -> None:
    compensated: list[str] = []

    def boom() -> None:
        raise PersistenceError("insert failed")

    saga = Saga(
        name="demo",
        steps=[
            SagaStep("a", lambda: None, compensation=lambda: compensated.append("a")),
            SagaStep("b", lambda: None, compensation=lambda: compensated.append("b")),
            SagaStep("c", boom),
        ],
    )
    result = saga.execute()

    assert result.status is SagaStatus.COMPENSATED
    assert result.failed_step == "c"
    assert isinstance(result.error, PersistenceError)
    assert compensated == ["b", "a"]
    assert result.compensated_steps == ["b", "a"]


def test_failed_compensation_raises_inconsistent_state(
    caplog: pytest.LogCaptureFixture,
) -> None:
    def boom() -> None:
        raise PersistenceError("nope")

    saga = Saga(
        name="demo",
        steps=[
            SagaStep("a", lambda: None, compensation=boom),
            SagaStep("b", boom),
        ],
    )

    with caplog.at_level("CRITICAL"), pytest.raises(InconsistentStateError):
        saga.execute()
    assert any(record.levelname == "CRITICAL" for record in caplog.records)
