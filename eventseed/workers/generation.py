"""Generation stage — CPU-bound synthesis feeding the bounded pipeline.

Synthesis runs in a process pool sized to the logical core count. Each pool
slot gets a driver coroutine on the event loop that:

1. claims the next unit from a shared ``WorkCountdown``,
2. awaits ``synthesize_batch`` in the executor,
3. puts the resulting ``Batch`` into the pipeline (suspending while it is full).

Work is claimed one batch at a time instead of pre-partitioned ranges, so
faster workers absorb more of it. The countdown lives on the event loop and
is only mutated between awaits, which makes ``claim()`` atomic with respect
to the other drivers.

A failure in any driver cancels the pipeline and fails the whole stage.
"""

from __future__ import annotations

import asyncio
import logging
import math
import signal
from concurrent.futures import Executor, ProcessPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Sequence
from uuid import UUID

from eventseed.ontology.types import Phase
from eventseed.services.errors import GenerationError
from eventseed.synthesis.entities import BatchJob, install_foreign_keys, synthesize_batch
from eventseed.workers.channel import BoundedPipeline, PipelineCancelled, ProducerHandle

log = logging.getLogger(__name__)

ExecutorFactory = Callable[..., Executor]


@dataclass
class PhasePlan:
    """Everything a phase needs before its first batch is synthesized."""

    phase: Phase
    count: int
    batch_size: int
    anchor: datetime
    seed: int | None = None
    history_seconds: int = 0
    id_offset: int = 0
    user_ids: Sequence[UUID] = field(default_factory=tuple, repr=False)
    event_type_ids: Sequence[int] = field(default_factory=tuple, repr=False)

    @property
    def batches(self) -> int:
        return math.ceil(self.count / self.batch_size) if self.count else 0

    def job(self, index: int, start_ordinal: int, size: int) -> BatchJob:
        return BatchJob(
            phase=self.phase,
            index=index,
            start_ordinal=start_ordinal,
            size=size,
            anchor=self.anchor,
            seed=self.seed,
            history_seconds=self.history_seconds,
            id_offset=self.id_offset,
        )


@dataclass
class Batch:
    """A group of synthesized records moved through the pipeline as a unit."""

    phase: Phase
    index: int
    records: list

    @property
    def size(self) -> int:
        return len(self.records)

    def ids(self) -> list:
        return [r.id for r in self.records]


class WorkCountdown:
    """Monotonic countdown of remaining batches for one phase."""

    def __init__(self, total: int, batch_size: int):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.total = total
        self.batch_size = batch_size
        self.batches = math.ceil(total / batch_size) if total > 0 else 0
        self._next = 0

    @property
    def remaining(self) -> int:
        return self.batches - self._next

    def claim(self) -> tuple[int, int, int] | None:
        """Return ``(index, start_ordinal, size)`` for the next batch, or None when exhausted."""
        if self._next >= self.batches:
            return None
        index = self._next
        self._next += 1
        start = index * self.batch_size
        return index, start, min(self.batch_size, self.total - start)


def init_synthesis_worker(initializer: Callable | None = None, initargs: tuple = ()) -> None:
    """Runs first in every pool process.

    A terminal Ctrl+C reaches the whole process group. Workers ignore it so
    only the parent decides how the run stops; a worker killed by the signal
    would break the pool and turn the interrupt into a generation failure.
    """
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    signal.signal(signal.SIGTERM, signal.SIG_IGN)
    if initializer is not None:
        initializer(*initargs)


def default_executor(
    workers: int,
    initializer: Callable | None = None,
    initargs: tuple = (),
) -> Executor:
    """Process pool for synthesis; ``initializer`` installs FK pools once per process."""
    return ProcessPoolExecutor(
        max_workers=workers,
        initializer=init_synthesis_worker,
        initargs=(initializer, initargs),
    )


def create_phase_executor(
    plan: PhasePlan, workers: int, factory: ExecutorFactory = default_executor
) -> Executor:
    if plan.phase is Phase.EVENTS:
        return factory(
            workers,
            initializer=install_foreign_keys,
            initargs=(tuple(plan.user_ids), tuple(plan.event_type_ids)),
        )
    return factory(workers)


class GenerationStage:
    """Emit exactly ``plan.count`` records as ``plan.batches`` batches.

    Producer handles are registered at construction so loaders started
    right after never observe a producer-less, empty pipeline.
    """

    def __init__(
        self,
        plan: PhasePlan,
        pipeline: BoundedPipeline[Batch],
        executor: Executor,
        workers: int,
    ):
        self.plan = plan
        self.pipeline = pipeline
        self.executor = executor
        self.countdown = WorkCountdown(plan.count, plan.batch_size)
        self.emitted = 0
        self.batches_emitted = 0
        driver_count = min(max(workers, 1), self.countdown.batches)
        self._handles: list[ProducerHandle[Batch]] = [
            pipeline.open_producer() for _ in range(driver_count)
        ]

    async def run(self) -> int:
        """Drive synthesis to completion. Returns the number of records emitted."""
        log.info(
            "Generating %d %s in %d batches (%d workers)",
            self.plan.count, self.plan.phase.value, self.countdown.batches, len(self._handles),
        )
        drivers = [
            asyncio.create_task(self._drive(handle), name=f"generate-{self.plan.phase.value}-{i}")
            for i, handle in enumerate(self._handles)
        ]
        try:
            await asyncio.gather(*drivers)
        except Exception as e:
            await self.pipeline.cancel()
            await asyncio.gather(*drivers, return_exceptions=True)
            if isinstance(e, GenerationError):
                raise
            raise GenerationError(
                f"Synthesis worker failed during {self.plan.phase.value}: {type(e).__name__}: {e}"
            ) from e
        finally:
            for handle in self._handles:
                await handle.close()
        log.debug("Emitted %d %s in %d batches", self.emitted, self.plan.phase.value, self.batches_emitted)
        return self.emitted

    async def _drive(self, handle: ProducerHandle[Batch]) -> None:
        loop = asyncio.get_running_loop()
        async with handle:
            while not self.pipeline.cancelled:
                unit = self.countdown.claim()
                if unit is None:
                    return
                index, start, size = unit
                try:
                    records = await loop.run_in_executor(
                        self.executor, synthesize_batch, self.plan.job(index, start, size)
                    )
                except Exception as e:
                    if not self.pipeline.cancelled:
                        raise
                    log.debug(
                        "Pipeline cancelled; discarding %s batch %d (%s)",
                        self.plan.phase.value, index, type(e).__name__,
                    )
                    return
                if len(records) != size:
                    raise GenerationError(
                        f"Batch {index} of {self.plan.phase.value} has {len(records)} records, "
                        f"expected {size}"
                    )
                try:
                    await handle.put(Batch(self.plan.phase, index, records))
                except PipelineCancelled:
                    log.debug("Pipeline cancelled; dropping %s batch %d", self.plan.phase.value, index)
                    return
                self.emitted += size
                self.batches_emitted += 1
