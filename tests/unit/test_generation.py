"""Unit tests for the generation stage: countdown, batch sizing, failure paths."""

from __future__ import annotations

import asyncio
import signal
import threading
from concurrent.futures.process import BrokenProcessPool
from unittest.mock import patch
from uuid import uuid4

import pytest

from eventseed.ontology.types import Phase
from eventseed.services.errors import GenerationError
from eventseed.synthesis import entities
from eventseed.workers.channel import BoundedPipeline
from eventseed.workers.generation import (
    GenerationStage,
    PhasePlan,
    WorkCountdown,
    create_phase_executor,
    default_executor,
)
from tests.conftest import ANCHOR
from tests.unit.helpers import thread_executor


async def _drain(pipeline: BoundedPipeline) -> list:
    return [batch async for batch in pipeline]


class TestWorkCountdown:
    def test_short_last_batch_is_not_padded(self):
        countdown = WorkCountdown(250, 100)
        claims = []
        while (unit := countdown.claim()) is not None:
            claims.append(unit)
        assert claims == [(0, 0, 100), (1, 100, 100), (2, 200, 50)]
        assert countdown.remaining == 0

    def test_exact_multiple(self):
        countdown = WorkCountdown(1000, 100)
        assert countdown.batches == 10
        sizes = [countdown.claim()[2] for _ in range(10)]
        assert sizes == [100] * 10
        assert countdown.claim() is None

    def test_rejects_zero_batch_size(self):
        with pytest.raises(ValueError):
            WorkCountdown(10, 0)


class TestGenerationStage:
    @pytest.mark.asyncio
    async def test_emits_exact_count(self, anchor):
        plan = PhasePlan(Phase.USERS, count=250, batch_size=100, anchor=anchor, seed=1)
        pipeline = BoundedPipeline(2)
        with thread_executor(3) as executor:
            stage = GenerationStage(plan, pipeline, executor, workers=3)
            emitted, batches = await asyncio.gather(stage.run(), _drain(pipeline))

        assert emitted == 250
        assert sorted(b.size for b in batches) == [50, 100, 100]
        assert sorted(b.index for b in batches) == [0, 1, 2]
        assert len({u.email for b in batches for u in b.records}) == 250

    @pytest.mark.asyncio
    async def test_more_workers_than_batches(self, anchor):
        plan = PhasePlan(Phase.EVENT_TYPES, count=3, batch_size=2, anchor=anchor)
        pipeline = BoundedPipeline(1)
        with thread_executor(8) as executor:
            stage = GenerationStage(plan, pipeline, executor, workers=8)
            assert pipeline.active_producers == 2
            emitted, batches = await asyncio.gather(stage.run(), _drain(pipeline))
        assert emitted == 3
        assert sorted(t.id for b in batches for t in b.records) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_events_use_executor_initializer(self, anchor):
        users = [uuid4() for _ in range(4)]
        plan = PhasePlan(
            Phase.EVENTS, count=30, batch_size=10, anchor=anchor, seed=3,
            history_seconds=3600, user_ids=users, event_type_ids=[7, 8],
        )
        pipeline = BoundedPipeline(4)
        executor = create_phase_executor(plan, 2, thread_executor)
        try:
            stage = GenerationStage(plan, pipeline, executor, workers=2)
            emitted, batches = await asyncio.gather(stage.run(), _drain(pipeline))
        finally:
            executor.shutdown()
            entities.install_foreign_keys((), ())

        assert emitted == 30
        events = [e for b in batches for e in b.records]
        assert {e.user_id for e in events} <= set(users)
        assert {e.event_type_id for e in events} <= {7, 8}

    @pytest.mark.asyncio
    async def test_worker_failure_cancels_pipeline(self, anchor):
        real = entities.synthesize_batch

        def flaky(job):
            if job.index == 2:
                raise RuntimeError("worker crashed")
            return real(job)

        plan = PhasePlan(Phase.USERS, count=1000, batch_size=100, anchor=anchor, seed=1)
        pipeline = BoundedPipeline(2)
        with patch("eventseed.workers.generation.synthesize_batch", flaky), thread_executor(2) as executor:
            stage = GenerationStage(plan, pipeline, executor, workers=2)
            consumer = asyncio.create_task(_drain(pipeline))
            with pytest.raises(GenerationError, match="worker crashed"):
                await stage.run()
            await asyncio.wait_for(consumer, timeout=1)

        assert pipeline.cancelled
        assert stage.emitted < 1000

    @pytest.mark.asyncio
    async def test_wrong_batch_size_is_an_error(self, anchor):
        plan = PhasePlan(Phase.USERS, count=10, batch_size=5, anchor=anchor)
        pipeline = BoundedPipeline(2)
        with patch("eventseed.workers.generation.synthesize_batch", lambda job: []), thread_executor(1) as executor:
            stage = GenerationStage(plan, pipeline, executor, workers=1)
            with pytest.raises(GenerationError, match="expected 5"):
                await stage.run()

    @pytest.mark.asyncio
    async def test_stops_quietly_when_pipeline_cancelled(self, anchor):
        plan = PhasePlan(Phase.USERS, count=100, batch_size=10, anchor=anchor)
        pipeline = BoundedPipeline(1)
        with thread_executor(1) as executor:
            stage = GenerationStage(plan, pipeline, executor, workers=1)
            task = asyncio.create_task(stage.run())
            while pipeline.depth == 0:
                await asyncio.sleep(0.001)
            await pipeline.cancel()
            emitted = await asyncio.wait_for(task, timeout=2)
        assert emitted < 100
        assert emitted % 10 == 0

    @pytest.mark.asyncio
    async def test_executor_failure_after_cancel_is_not_an_error(self, anchor):
        started = threading.Event()
        release = threading.Event()

        def broken_pool(job):
            started.set()
            release.wait(timeout=5)
            raise BrokenProcessPool("worker terminated abruptly")

        plan = PhasePlan(Phase.USERS, count=10, batch_size=10, anchor=anchor)
        pipeline = BoundedPipeline(1)
        with patch("eventseed.workers.generation.synthesize_batch", broken_pool), thread_executor(1) as executor:
            stage = GenerationStage(plan, pipeline, executor, workers=1)
            task = asyncio.create_task(stage.run())
            await asyncio.to_thread(started.wait, 5)
            await pipeline.cancel()
            release.set()
            emitted = await asyncio.wait_for(task, timeout=2)
        assert emitted == 0


class TestDefaultExecutor:
    def test_pool_workers_ignore_interrupts(self):
        executor = default_executor(1)
        try:
            handlers = [
                executor.submit(signal.getsignal, sig).result(timeout=30)
                for sig in (signal.SIGINT, signal.SIGTERM)
            ]
        finally:
            executor.shutdown()
        assert handlers == [signal.SIG_IGN, signal.SIG_IGN]

    def test_pool_runs_phase_initializer(self):
        user = uuid4()
        executor = default_executor(1, initializer=entities.install_foreign_keys, initargs=((user,), (5, 6)))
        plan = PhasePlan(Phase.EVENTS, count=20, batch_size=20, anchor=ANCHOR, history_seconds=60)
        try:
            events = executor.submit(entities.synthesize_batch, plan.job(0, 0, 20)).result(timeout=30)
        finally:
            executor.shutdown()
        assert len(events) == 20
        assert {e.user_id for e in events} == {user}
        assert {e.event_type_id for e in events} <= {5, 6}
