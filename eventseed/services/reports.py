"""Run state and per-phase reports produced by the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from eventseed.ontology.types import Phase


class SeedState(str, Enum):
    IDLE = "idle"
    GENERATING_USERS = "generating_users"
    GENERATING_EVENT_TYPES = "generating_event_types"
    GENERATING_EVENTS = "generating_events"
    DONE = "done"
    FAILED = "failed"


GENERATING_STATE: dict[Phase, SeedState] = {
    Phase.USERS: SeedState.GENERATING_USERS,
    Phase.EVENT_TYPES: SeedState.GENERATING_EVENT_TYPES,
    Phase.EVENTS: SeedState.GENERATING_EVENTS,
}


class PhaseStatus(str, Enum):
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class PhaseReport:
    phase: Phase
    target: int
    committed: int
    status: PhaseStatus
    error: str | None = None
    elapsed: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status is PhaseStatus.COMPLETE and self.committed == self.target

    @property
    def shortfall(self) -> int:
        return max(self.target - self.committed, 0)

    @property
    def rate(self) -> float:
        return self.committed / self.elapsed if self.elapsed > 0 else 0.0


@dataclass
class RunReport:
    state: SeedState = SeedState.IDLE
    phases: list[PhaseReport] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return (
            self.state is SeedState.DONE
            and all(r.succeeded for r in self.phases)
        )

    @property
    def failed_phase(self) -> PhaseReport | None:
        return next((r for r in self.phases if not r.succeeded), None)

    @property
    def exit_code(self) -> int:
        if self.succeeded:
            return 0
        failed = self.failed_phase
        if failed is not None and failed.status is PhaseStatus.CANCELLED:
            return 130
        return 1

    def committed(self, phase: Phase) -> int:
        return sum(r.committed for r in self.phases if r.phase is phase)
