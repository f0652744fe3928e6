"""Integration test fixtures — require a reachable Postgres.

Set SEED_TEST_DATABASE_URL to a disposable database; the seed tables are
created if missing and truncated before every test.
"""

from __future__ import annotations

import os

import pytest
import pytest_asyncio

from eventseed.services.database import Database
from eventseed.services.errors import ConfigurationError

TEST_DATABASE_URL = os.environ.get("SEED_TEST_DATABASE_URL", "")

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id UUID PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT UNIQUE,
    created_at TIMESTAMPTZ NOT NULL
);
CREATE TABLE IF NOT EXISTS event_types (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS events (
    id UUID PRIMARY KEY,
    user_id UUID NOT NULL REFERENCES users(id),
    event_type_id INTEGER NOT NULL REFERENCES event_types(id),
    metadata JSONB NOT NULL,
    timestamp TIMESTAMPTZ NOT NULL
);
"""


@pytest_asyncio.fixture
async def db():
    if not TEST_DATABASE_URL:
        pytest.skip("SEED_TEST_DATABASE_URL not set")
    database = Database(TEST_DATABASE_URL, min_size=1, max_size=8)
    try:
        await database.connect(timeout=5.0)
    except ConfigurationError as e:
        pytest.skip(f"database unreachable: {e}")
    await database.execute(SCHEMA)
    await database.execute("TRUNCATE events, event_types, users RESTART IDENTITY")
    yield database
    await database.close()
