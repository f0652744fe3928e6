"""Metrics sinks — where phase progress goes.

Two strategies behind one interface, selected by configuration:

  - log:   quiet mode. Phase transitions and every 10 % of progress go to
           the ``eventseed.metrics`` logger.
  - rich:  interactive mode. One ``rich`` progress bar per phase, finished
           with COMPLETE / ERROR / CANCELLED.

The core only ever calls the ``MetricsSink`` methods, always from the event
loop thread.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from eventseed.ontology.types import Phase
from eventseed.services.reports import PhaseReport, PhaseStatus

log = logging.getLogger(__name__)


class MetricsSink(ABC):
    """Receives progress counters from the orchestrator and loaders."""

    @abstractmethod
    def phase_started(self, phase: Phase, target: int) -> None:
        ...

    @abstractmethod
    def batch_committed(self, phase: Phase, committed: int, target: int) -> None:
        """Called after every acknowledged batch with the running committed total."""
        ...

    @abstractmethod
    def phase_finished(self, report: PhaseReport) -> None:
        ...

    def close(self) -> None:
        """Release any terminal or file resources. Safe to call twice."""


# ---------------------------------------------------------------------------
# Log sink (quiet mode)
# ---------------------------------------------------------------------------


class LogMetricsSink(MetricsSink):
    """Logs transitions and progress in ``step`` fractions of the target."""

    def __init__(self, step: float = 0.10, logger: logging.Logger | None = None):
        self.step = step
        self.log = logger or log
        self._next_mark: dict[Phase, float] = {}

    def phase_started(self, phase: Phase, target: int) -> None:
        self._next_mark[phase] = self.step
        self.log.info("%s: starting, target %d", phase.label, target)

    def batch_committed(self, phase: Phase, committed: int, target: int) -> None:
        if target <= 0:
            return
        fraction = committed / target
        mark = self._next_mark.get(phase, self.step)
        if fraction + 1e-9 < mark:
            return
        self.log.info("%s: %d/%d committed (%.0f%%)", phase.label, committed, target, fraction * 100)
        while mark <= fraction + 1e-9:
            mark += self.step
        self._next_mark[phase] = mark

    def phase_finished(self, report: PhaseReport) -> None:
        if report.status is PhaseStatus.COMPLETE:
            self.log.info(
                "%s: complete, %d committed in %.2fs (%.0f rows/s)",
                report.phase.label, report.committed, report.elapsed, report.rate,
            )
        else:
            self.log.error(
                "%s: %s after %d/%d committed: %s",
                report.phase.label, report.status.value, report.committed,
                report.target, report.error,
            )


# ---------------------------------------------------------------------------
# Rich sink (interactive mode)
# ---------------------------------------------------------------------------


class RichProgressSink(MetricsSink):
    """One progress bar per phase on a shared ``rich`` live display."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)
        self._progress = Progress(
            TextColumn("[bold]{task.fields[label]:<12}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
            TextColumn("{task.description}"),
            console=self.console,
            transient=False,
        )
        self._tasks: dict[Phase, TaskID] = {}
        self._started = False

    def _ensure_started(self) -> None:
        if not self._started:
            self._progress.start()
            self._started = True

    def phase_started(self, phase: Phase, target: int) -> None:
        self._ensure_started()
        self._tasks[phase] = self._progress.add_task(
            "Starting...", total=target, label=phase.label
        )

    def batch_committed(self, phase: Phase, committed: int, target: int) -> None:
        task_id = self._tasks.get(phase)
        if task_id is not None:
            self._progress.update(task_id, completed=committed, total=target, description="")

    def phase_finished(self, report: PhaseReport) -> None:
        task_id = self._tasks.get(report.phase)
        if task_id is None:
            return
        if report.status is PhaseStatus.COMPLETE:
            description = "[green]COMPLETE"
        elif report.status is PhaseStatus.CANCELLED:
            description = "[yellow]CANCELLED"
        else:
            description = f"[red]ERROR: {report.error}"
        self._progress.update(task_id, completed=report.committed, description=description)

    def close(self) -> None:
        if self._started:
            self._progress.stop()
            self._started = False


def create_metrics_sink(quiet: bool, console: Console | None = None) -> MetricsSink:
    """Select the sink for the configured mode."""
    if quiet:
        return LogMetricsSink()
    return RichProgressSink(console)
