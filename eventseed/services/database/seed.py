"""Read-side queries the orchestrator needs around the insert phases."""

from __future__ import annotations

from uuid import UUID


class SeedQueriesMixin:
    """Foreign-key pool loading and id allocation. Requires PoolMixin."""

    async def fetch_user_ids(self) -> list[UUID]:
        rows = await self.fetch("SELECT id FROM users")  # type: ignore[attr-defined]
        return [r["id"] for r in rows]

    async def fetch_event_type_ids(self) -> list[int]:
        rows = await self.fetch("SELECT id FROM event_types ORDER BY id")  # type: ignore[attr-defined]
        return [r["id"] for r in rows]

    async def max_event_type_id(self) -> int:
        value = await self.fetchval("SELECT COALESCE(MAX(id), 0) FROM event_types")  # type: ignore[attr-defined]
        return int(value or 0)

    async def sync_event_type_sequence(self) -> int | None:
        """Move the ``event_types.id`` sequence to ``MAX(id)``.

        Returns the new sequence value, or None when the column has no
        sequence or the table is empty (``setval`` is strict).
        """
        return await self.fetchval(  # type: ignore[attr-defined]
            "SELECT setval(pg_get_serial_sequence('event_types', 'id'), MAX(id)) FROM event_types"
        )

    async def count_rows(self, table: str) -> int:
        if table not in ("users", "event_types", "events"):
            raise ValueError(f"unknown table {table!r}")
        return int(await self.fetchval(f"SELECT COUNT(*) FROM {table}"))  # type: ignore[attr-defined]
