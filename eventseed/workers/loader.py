"""Batch loader — drains the pipeline into PostgreSQL with one COPY per batch.

Several loaders share one pipeline; each holds a pooled connection only for
the duration of its COPY, so while one waits on the network round-trip the
others keep inserting on their own connections.

Transient failures (connection loss, timeouts, deadlocks) are retried for
the same batch with exponential backoff. Anything else, constraint
violations first of all, cancels the pipeline and propagates to the
orchestrator. A batch is never skipped: it is either committed and counted,
or the phase fails.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from eventseed.ontology.types import Phase, RECORD_TYPES, User
from eventseed.services.errors import (
    SeedError,
    TransientStorageError,
    classify_storage_error,
    is_transient,
)
from eventseed.services.metrics import MetricsSink
from eventseed.utils.ids import short_id
from eventseed.workers.channel import BoundedPipeline
from eventseed.workers.generation import Batch

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 5
    base_delay: float = 0.5
    max_delay: float = 10.0

    def delay(self, attempt: int) -> float:
        """Backoff before retry number ``attempt`` (1-based)."""
        return min(self.max_delay, self.base_delay * (2 ** (attempt - 1)))


class CommitLedger:
    """Committed-row accounting for one phase.

    Advanced only after the database acknowledged a batch. When
    ``collect_ids`` is set, the ids of committed rows are kept so the next
    phase can sample foreign keys from them.
    """

    def __init__(self, phase: Phase, target: int, collect_ids: bool = False):
        self.phase = phase
        self.target = target
        self.committed = 0
        self.batches = 0
        self.ids: list | None = [] if collect_ids else None

    def record(self, batch: Batch) -> int:
        self.committed += batch.size
        self.batches += 1
        if self.ids is not None:
            self.ids.extend(batch.ids())
        return self.committed

    @property
    def complete(self) -> bool:
        return self.committed == self.target


def table_layout(phase: Phase, include_email: bool = True) -> tuple[str, tuple[str, ...]]:
    record_type = RECORD_TYPES[phase]
    columns = record_type.__columns__
    if record_type is User and not include_email:
        columns = tuple(c for c in columns if c != "email")
    return record_type.__table_name__, columns


class BatchLoader:
    """I/O-bound consumer of one phase's pipeline."""

    def __init__(
        self,
        db,
        pipeline: BoundedPipeline[Batch],
        ledger: CommitLedger,
        sink: MetricsSink,
        *,
        retry: RetryPolicy | None = None,
        insert_timeout: float | None = None,
        include_email: bool = True,
        loader_id: str | None = None,
    ):
        self.db = db
        self.pipeline = pipeline
        self.ledger = ledger
        self.sink = sink
        self.retry = retry or RetryPolicy()
        self.insert_timeout = insert_timeout
        self.include_email = include_email
        self.loader_id = loader_id or short_id("loader-")
        self.table, self.columns = table_layout(ledger.phase, include_email)

    def _rows(self, batch: Batch) -> list[tuple]:
        if batch.phase is Phase.USERS:
            return [r.as_row(self.include_email) for r in batch.records]
        return [r.as_row() for r in batch.records]

    async def run(self) -> int:
        """Consume until the pipeline closes. Returns batches committed by this loader."""
        committed_here = 0
        async for batch in self.pipeline:
            try:
                await self._insert(batch)
            except Exception:
                await self.pipeline.cancel()
                raise
            total = self.ledger.record(batch)
            committed_here += 1
            self.sink.batch_committed(self.ledger.phase, total, self.ledger.target)
        log.debug("Loader %s drained (%d batches)", self.loader_id, committed_here)
        return committed_here

    async def _insert(self, batch: Batch) -> None:
        rows = self._rows(batch)
        attempt = 0
        while True:
            try:
                await self.db.copy_records(
                    self.table, self.columns, rows, timeout=self.insert_timeout
                )
                return
            except SeedError:
                raise
            except Exception as e:
                if not is_transient(e):
                    log.error(
                        "Loader %s: batch %d into %s failed: %s",
                        self.loader_id, batch.index, self.table, e,
                    )
                    raise classify_storage_error(self.table, e) from e
                attempt += 1
                if attempt > self.retry.max_retries:
                    raise TransientStorageError(
                        f"Batch {batch.index} into {self.table} kept failing: {e}",
                        attempts=attempt,
                    ) from e
                delay = self.retry.delay(attempt)
                log.warning(
                    "Loader %s: transient error on %s batch %d (attempt %d/%d), retrying in %.2fs: %s",
                    self.loader_id, self.table, batch.index, attempt,
                    self.retry.max_retries, delay, e,
                )
                await asyncio.sleep(delay)
