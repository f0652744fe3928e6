"""Phase orchestrator — Users → EventTypes → Events.

State machine::

    idle → generating_users → generating_event_types → generating_events → done
                 └──────────────────┴──────────────────────┴──→ failed

Only the requested phases are visited, always in dependency order. A
``generating_*`` state completes only when the generation stage emitted the
phase's exact count and every batch was committed by a loader. The committed
ids of the users and event-types phases are carried forward as the events
phase's foreign-key pools; an events-only run reads them from the database
instead.

Every failure path (loader, generation, interrupt, run timeout) ends in
``_execute``, which cancels the phase's pipeline, waits for the workers to
stop, and reports the last committed count. ``run()`` never raises for a
phase failure; the ``RunReport`` carries it. Configuration problems found
before the first phase starts are raised as ``ConfigurationError``.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from datetime import datetime, timezone
from functools import partial
from typing import Iterable
from uuid import UUID

from eventseed.ontology.types import Phase
from eventseed.services.errors import (
    ConfigurationError,
    GenerationError,
    PhaseCancelled,
    PhaseIncomplete,
    describe_failure,
)
from eventseed.services.metrics import MetricsSink
from eventseed.services.reports import (
    GENERATING_STATE,
    PhaseReport,
    PhaseStatus,
    RunReport,
    SeedState,
)
from eventseed.settings import SeedConfig
from eventseed.workers.channel import BoundedPipeline
from eventseed.workers.generation import (
    Batch,
    ExecutorFactory,
    GenerationStage,
    PhasePlan,
    create_phase_executor,
    default_executor,
)
from eventseed.workers.loader import BatchLoader, CommitLedger, RetryPolicy

log = logging.getLogger(__name__)


class SeedOrchestrator:
    """Runs the requested phases and produces the final ``RunReport``."""

    def __init__(
        self,
        db,
        config: SeedConfig,
        sink: MetricsSink,
        *,
        executor_factory: ExecutorFactory = default_executor,
        anchor: datetime | None = None,
    ):
        self.db = db
        self.config = config
        self.sink = sink
        self.executor_factory = executor_factory
        self.anchor = anchor or datetime.now(timezone.utc)
        self.state = SeedState.IDLE
        self.transitions: list[SeedState] = [SeedState.IDLE]
        self.report = RunReport()
        self._rng = random.Random(config.random_seed)
        self._user_ids: list[UUID] | None = None
        self._event_type_ids: list[int] | None = None
        self._pipeline: BoundedPipeline[Batch] | None = None
        self._cancel_reason: str | None = None
        self._cancel_task: asyncio.Future | None = None

    # -- public ---------------------------------------------------------------

    @property
    def user_ids(self) -> list[UUID] | None:
        return self._user_ids

    @property
    def event_type_ids(self) -> list[int] | None:
        return self._event_type_ids

    async def run(self, phases: Iterable[Phase]) -> RunReport:
        ordered = sorted(set(phases), key=lambda p: p.order)
        if not ordered:
            raise ConfigurationError("No phases requested")

        await self._preflight(ordered)

        watchdog = None
        if self.config.run_timeout > 0:
            watchdog = asyncio.create_task(self._watchdog(), name="seed-watchdog")
        try:
            for phase in ordered:
                report = await self._run_phase(phase)
                self.report.phases.append(report)
                self.sink.phase_finished(report)
                if not report.succeeded:
                    self._transition(SeedState.FAILED)
                    break
            else:
                self._transition(SeedState.DONE)
        finally:
            if watchdog is not None:
                watchdog.cancel()
            self.report.state = self.state
        return self.report

    def cancel(self, reason: str = "interrupted") -> None:
        """Stop the run: generation stops enqueuing, loaders finish in-flight batches."""
        if self._cancel_reason is None:
            self._cancel_reason = reason
            log.warning("Cancellation requested (%s); finishing in-flight batches", reason)
        if self._pipeline is not None and self._cancel_task is None and not self._pipeline.cancelled:
            self._cancel_task = asyncio.ensure_future(self._pipeline.cancel())

    # -- phases ---------------------------------------------------------------

    def _transition(self, state: SeedState) -> None:
        log.info("State: %s -> %s", self.state.value, state.value)
        self.state = state
        self.transitions.append(state)

    async def _preflight(self, phases: list[Phase]) -> None:
        """Load FK pools an events run needs but will not produce itself."""
        if Phase.EVENTS not in phases:
            return
        if Phase.USERS not in phases:
            self._user_ids = await self.db.fetch_user_ids()
            if not self._user_ids:
                raise ConfigurationError("No users found in database. Run the users phase first.")
            log.info("Found %d users for event generation", len(self._user_ids))
        if Phase.EVENT_TYPES not in phases:
            self._event_type_ids = await self.db.fetch_event_type_ids()
            if not self._event_type_ids:
                raise ConfigurationError(
                    "No event types found in database. Run the event-types phase first."
                )
            log.info("Found %d event types for event generation", len(self._event_type_ids))

    async def _plan(self, phase: Phase) -> PhasePlan:
        cfg = self.config
        if phase is Phase.USERS:
            return PhasePlan(
                phase=phase,
                count=self._rng.randint(cfg.min_users, cfg.max_users),
                batch_size=cfg.user_batch_size,
                anchor=self.anchor,
                seed=cfg.random_seed,
            )
        if phase is Phase.EVENT_TYPES:
            return PhasePlan(
                phase=phase,
                count=self._rng.randint(cfg.min_event_types, cfg.max_event_types),
                batch_size=cfg.event_type_batch_size,
                anchor=self.anchor,
                seed=cfg.random_seed,
                id_offset=await self.db.max_event_type_id(),
            )
        if not self._user_ids or not self._event_type_ids:
            raise ConfigurationError("Events phase has no committed users or event types to reference")
        return PhasePlan(
            phase=phase,
            count=cfg.target_events,
            batch_size=cfg.event_batch_size,
            anchor=self.anchor,
            seed=cfg.random_seed,
            history_seconds=cfg.event_history_days * 24 * 3600,
            user_ids=self._user_ids,
            event_type_ids=self._event_type_ids,
        )

    async def _run_phase(self, phase: Phase) -> PhaseReport:
        self._transition(GENERATING_STATE[phase])
        started = time.perf_counter()

        try:
            plan = await self._plan(phase)
        except Exception as e:
            log.error("%s: planning failed: %s", phase.label, e)
            return PhaseReport(
                phase, target=0, committed=0, status=PhaseStatus.FAILED,
                error=describe_failure(phase.value, e),
                elapsed=time.perf_counter() - started,
            )

        log.info("%s: seeding %d rows in batches of %d", phase.label, plan.count, plan.batch_size)
        self.sink.phase_started(phase, plan.count)
        ledger = CommitLedger(phase, plan.count, collect_ids=phase is not Phase.EVENTS)
        error = await self._execute(plan, ledger)
        if error is None and phase is Phase.EVENT_TYPES:
            error = await self._sync_event_type_sequence()
        elapsed = time.perf_counter() - started

        if error is None:
            if phase is Phase.USERS:
                self._user_ids = ledger.ids
            elif phase is Phase.EVENT_TYPES:
                self._event_type_ids = ledger.ids
            return PhaseReport(phase, plan.count, ledger.committed, PhaseStatus.COMPLETE, elapsed=elapsed)

        status = PhaseStatus.CANCELLED if isinstance(error, PhaseCancelled) else PhaseStatus.FAILED
        log.error(
            "%s: %s with %d/%d committed: %s",
            phase.label, status.value, ledger.committed, plan.count, error,
        )
        return PhaseReport(
            phase, plan.count, ledger.committed, status,
            error=describe_failure(phase.value, error), elapsed=elapsed,
        )

    async def _execute(self, plan: PhasePlan, ledger: CommitLedger) -> BaseException | None:
        """Run one phase's generation stage and loaders. Returns the failure, if any."""
        if self._cancel_reason is not None:
            return PhaseCancelled(f"Cancelled before start: {self._cancel_reason}")

        cfg = self.config
        pipeline: BoundedPipeline[Batch] = BoundedPipeline(cfg.pipeline_capacity)
        executor = create_phase_executor(plan, cfg.workers, self.executor_factory)
        self._pipeline = pipeline
        error: BaseException | None = None
        try:
            stage = GenerationStage(plan, pipeline, executor, cfg.workers)
            retry = RetryPolicy(
                max_retries=cfg.insert_max_retries,
                base_delay=cfg.insert_retry_base_delay,
                max_delay=cfg.insert_retry_max_delay,
            )
            loaders = [
                BatchLoader(
                    self.db, pipeline, ledger, self.sink,
                    retry=retry,
                    insert_timeout=cfg.insert_timeout,
                    include_email=cfg.users_include_email,
                    loader_id=f"{plan.phase.value}-loader-{i}",
                )
                for i in range(max(1, min(cfg.loaders, plan.batches)))
            ]
            tasks = [asyncio.create_task(stage.run(), name=f"generate-{plan.phase.value}")]
            tasks += [asyncio.create_task(loader.run(), name=loader.loader_id) for loader in loaders]

            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
            if pending:
                await pipeline.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

            # Loader failures are the root cause more often than not; report them first.
            for task in tasks[1:] + tasks[:1]:
                if task.done() and not task.cancelled() and task.exception() is not None:
                    error = task.exception()
                    break

            # An interrupt also reaches the pool workers; whatever generation
            # raised after it is a symptom of the cancel.
            if self._cancel_reason is not None and (
                isinstance(error, GenerationError) or (error is None and not ledger.complete)
            ):
                error = PhaseCancelled(f"Cancelled: {self._cancel_reason}")

            if error is None and not ledger.complete:
                error = PhaseIncomplete(
                    f"{plan.phase.label} emitted {stage.emitted} and committed "
                    f"{ledger.committed} of {plan.count} rows"
                )
            elif error is None and stage.emitted != plan.count:
                error = PhaseIncomplete(
                    f"{plan.phase.label} emitted {stage.emitted} of {plan.count} rows"
                )
            return error
        finally:
            self._pipeline = None
            if self._cancel_task is not None:
                await self._cancel_task
                self._cancel_task = None
            # Shutdown can block on worker exit; keep it off the loop thread.
            await asyncio.get_running_loop().run_in_executor(
                None, partial(executor.shutdown, wait=error is None, cancel_futures=True)
            )

    async def _sync_event_type_sequence(self) -> BaseException | None:
        """Event-type ids are written explicitly, so the id sequence must catch up."""
        try:
            value = await self.db.sync_event_type_sequence()
        except Exception as e:
            log.error("Could not advance the event_types id sequence: %s", e)
            return e
        log.info("event_types id sequence now at %s", value)
        return None

    async def _watchdog(self) -> None:
        await asyncio.sleep(self.config.run_timeout)
        log.error("Seeding exceeded %.0fs; cancelling", self.config.run_timeout)
        self.cancel(f"run timeout of {self.config.run_timeout:.0f}s exceeded")
