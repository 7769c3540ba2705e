"""Ordered multi-step writes with compensation.

Each step runs and commits on its own. When a later step fails, the compensations of
the already completed steps run in reverse order. A failing compensation leaves the
system inconsistent and is surfaced as :class:`InconsistentStateError`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger

from parcelsync.domain.errors import InconsistentStateError

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class SagaStep:
    name: str
    action: Callable[[], object]
    compensation: Callable[[], object] | None = None


class SagaStatus(StrEnum):
    COMPLETED = "completed"
    COMPENSATED = "compensated"


@dataclass(slots=True)
class SagaResult:
    status: SagaStatus
    results: dict[str, object] = field(default_factory=dict)
    failed_step: str | None = None
    error: Exception | None = None
    compensated_steps: list[str] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.status is SagaStatus.COMPLETED


@dataclass(slots=True)
class Saga:
    name: str
    steps: list[SagaStep]

    def execute(self) -> SagaResult:
        """Run all steps.

        A failure in the first step propagates unchanged since nothing needs undoing.
        A later failure is compensated and reported via the returned result.
        """

        results: dict[str, object] = {}
        done: list[SagaStep] = []
        for step in self.steps:
            try:
                results[step.name] = step.action()
            except Exception as exc:
                if not done:
                    raise
                log.warning("Saga %s: step %s failed: %s", self.name, step.name, exc)
                compensated = self._compensate(done, cause=exc)
                return SagaResult(
                    status=SagaStatus.COMPENSATED,
                    results=results,
                    failed_step=step.name,
                    error=exc,
                    compensated_steps=compensated,
                )
            done.append(step)
        return SagaResult(status=SagaStatus.COMPLETED, results=results)

    def _compensate(self, done: list[SagaStep], *, cause: Exception) -> list[str]:
        compensated: list[str] = []
        for step in reversed(done):
            if step.compensation is None:
                continue
            try:
                step.compensation()
            except Exception as exc:
                log.critical(
                    "Saga %s: compensation of %s failed after %s; manual repair required",
                    self.name,
                    step.name,
                    cause,
                )
                raise InconsistentStateError(
                    f"Saga {self.name}: compensation of step {step.name!r} failed: {exc}"
                ) from exc
            compensated.append(step.name)
        return compensated
