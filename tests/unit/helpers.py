"""Shared doubles for unit tests: fake database, recording sink, thread executor."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from eventseed.ontology.types import Phase
from eventseed.services.metrics import MetricsSink
from eventseed.services.reports import PhaseReport


class FakeDatabase:
    """In-memory stand-in for ``Database``: records every COPY, can inject failures."""

    def __init__(self, *, user_ids=(), event_type_ids=(), max_event_type_id: int = 0):
        self.user_ids = list(user_ids)
        self.event_type_ids = list(event_type_ids)
        self._max_event_type_id = max_event_type_id
        self.copies: list[tuple[str, tuple[str, ...], list[tuple]]] = []
        self.attempts: dict[str, int] = {}
        self._failure: tuple[str, int, BaseException, int | None] | None = None
        self.sequence_error: BaseException | None = None
        self.sequence_syncs: list[int | None] = []

    def fail(self, table: str, *, after: int, exc: BaseException, times: int | None = None) -> None:
        """Raise ``exc`` on COPYs into ``table`` once ``after`` have succeeded.

        ``times=None`` fails every later attempt; otherwise only ``times`` of them.
        """
        self._failure = (table, after, exc, times)

    def committed(self, table: str) -> int:
        return sum(len(rows) for t, _, rows in self.copies if t == table)

    def rows(self, table: str) -> list[tuple]:
        return [row for t, _, rows in self.copies if t == table for row in rows]

    def batches(self, table: str) -> list[int]:
        return [len(rows) for t, _, rows in self.copies if t == table]

    async def copy_records(self, table, columns, records, *, timeout=None):
        self.attempts[table] = self.attempts.get(table, 0) + 1
        if self._failure is not None:
            fail_table, after, exc, times = self._failure
            succeeded = len(self.batches(table))
            if table == fail_table and succeeded >= after and times != 0:
                if times is not None:
                    self._failure = (fail_table, after, exc, times - 1)
                raise exc
        await asyncio.sleep(0)
        self.copies.append((table, tuple(columns), list(records)))

    async def fetch_user_ids(self):
        return list(self.user_ids)

    async def fetch_event_type_ids(self):
        return list(self.event_type_ids)

    async def max_event_type_id(self) -> int:
        return self._max_event_type_id

    async def sync_event_type_sequence(self):
        if self.sequence_error is not None:
            raise self.sequence_error
        ids = [row[0] for row in self.rows("event_types")] + [self._max_event_type_id]
        value = max(ids) or None
        self.sequence_syncs.append(value)
        return value


class RecordingSink(MetricsSink):
    """Keeps every callback; ``on_commit`` lets a test react mid-phase."""

    def __init__(self, on_commit: Callable[[Phase, int], None] | None = None):
        self.started: list[tuple[Phase, int]] = []
        self.commits: list[tuple[Phase, int, int]] = []
        self.finished: list[PhaseReport] = []
        self.closed = False
        self.on_commit = on_commit

    def phase_started(self, phase, target):
        self.started.append((phase, target))

    def batch_committed(self, phase, committed, target):
        self.commits.append((phase, committed, target))
        if self.on_commit is not None:
            self.on_commit(phase, committed)

    def phase_finished(self, report):
        self.finished.append(report)

    def close(self):
        self.closed = True


def thread_executor(workers: int, initializer=None, initargs: tuple = ()):
    """In-process replacement for the synthesis process pool."""
    return ThreadPoolExecutor(max_workers=workers, initializer=initializer, initargs=initargs)
