"""Database package — re-export of the Database class.

``from eventseed.services.database import Database`` is the public entry point.
"""

from __future__ import annotations

from eventseed.services.database.pool import PoolMixin
from eventseed.services.database.seed import SeedQueriesMixin
from eventseed.settings import SeedConfig


class Database(PoolMixin, SeedQueriesMixin):
    """AsyncPG connection pool + the seeding queries.

    Combines pool lifecycle (PoolMixin) and the FK-pool / id-allocation
    queries (SeedQueriesMixin) into a single class.
    """

    @classmethod
    def from_config(cls, config: SeedConfig) -> Database:
        return cls(
            config.database_url,
            min_size=config.db_pool_min,
            max_size=config.db_pool_max,
            synchronous_commit=config.synchronous_commit,
        )


__all__ = [
    "Database",
]
