"""AsyncPG connection pool + low-level query methods."""

from __future__ import annotations

import asyncio

import asyncpg

from eventseed.services.errors import ConfigurationError


class PoolMixin:
    """Connection pool lifecycle and low-level fetch/execute/copy methods."""

    def __init__(
        self,
        database_url: str,
        *,
        min_size: int = 5,
        max_size: int = 50,
        synchronous_commit: str = "off",
    ):
        self.database_url = database_url
        self.min_size = min_size
        self.max_size = max_size
        self.synchronous_commit = synchronous_commit
        self.pool: asyncpg.Pool | None = None

    async def connect(self, timeout: float = 10.0):
        """Open the pool. An unreachable database is a configuration error."""
        try:
            self.pool = await asyncpg.create_pool(
                self.database_url,
                min_size=self.min_size,
                max_size=self.max_size,
                timeout=timeout,
                server_settings={
                    "application_name": "eventseed",
                    "synchronous_commit": self.synchronous_commit,
                },
            )
        except (OSError, asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            raise ConfigurationError(
                f"Cannot connect to database: {e}. "
                "Check DATABASE_URL and ensure the database is running."
            ) from e

    async def close(self):
        if self.pool:
            await self.pool.close()
            self.pool = None

    async def fetch(self, query: str, *args):
        assert self.pool is not None, "Database not connected"
        return await self.pool.fetch(query, *args)

    async def fetchval(self, query: str, *args):
        assert self.pool is not None, "Database not connected"
        return await self.pool.fetchval(query, *args)

    async def execute(self, query: str, *args):
        assert self.pool is not None, "Database not connected"
        return await self.pool.execute(query, *args)

    async def copy_records(
        self,
        table: str,
        columns: tuple[str, ...],
        records: list[tuple],
        *,
        timeout: float | None = None,
    ) -> str:
        """Binary COPY of ``records`` into ``table`` on one pooled connection.

        A single COPY statement commits all rows or none.
        """
        assert self.pool is not None, "Database not connected"
        async with self.pool.acquire() as conn:
            return await conn.copy_records_to_table(
                table, records=records, columns=list(columns), timeout=timeout
            )
