"""Error taxonomy for seeding runs.

Three classes of failure matter to the pipeline:

- transient storage errors (dropped connection, timeout, deadlock) are retried
  per batch with bounded backoff inside the loader;
- constraint violations (duplicate key, FK violation) mean the synthesizer or
  the phase sequencing is wrong, so they are fatal for the phase;
- configuration errors are raised before any generation starts.

Everything the orchestrator reports derives from ``SeedError``.
"""

from __future__ import annotations

import asyncio

import asyncpg


class SeedError(Exception):
    """Base class for every seeding failure."""


class ConfigurationError(SeedError):
    """Invalid bounds, unreachable database, or missing FK material."""


class GenerationError(SeedError):
    """A synthesis worker failed or emitted a batch of the wrong size."""


class TransientStorageError(SeedError):
    """Retries for a batch were exhausted on transient storage errors."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class ConstraintViolationError(SeedError):
    """A bulk insert hit a unique or foreign-key constraint."""

    def __init__(self, message: str, *, constraint: str | None = None, hint: str = ""):
        super().__init__(message)
        self.constraint = constraint
        self.hint = hint


class FatalStorageError(SeedError):
    """A bulk insert failed with an error that retrying cannot fix."""


class PhaseCancelled(SeedError):
    """Interrupt or run timeout stopped the phase."""


class PhaseIncomplete(SeedError):
    """A phase ended with emitted or committed count different from its target."""


# Connection-level and contention errors; the batch is retried on a fresh connection.
_TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.CannotConnectNowError,
    asyncpg.exceptions.AdminShutdownError,
    asyncpg.exceptions.TooManyConnectionsError,
    asyncpg.exceptions.DeadlockDetectedError,
    asyncpg.exceptions.SerializationError,
    asyncpg.exceptions.QueryCanceledError,
    asyncio.TimeoutError,
    ConnectionError,
    OSError,
)


def is_transient(exc: BaseException) -> bool:
    """True if a failed bulk insert may succeed on retry."""
    if isinstance(exc, asyncpg.exceptions.IntegrityConstraintViolationError):
        return False
    return isinstance(exc, _TRANSIENT_ERRORS)


def constraint_hint(table: str, exc: BaseException) -> str:
    """Explain a constraint violation in terms of what the operator should do."""
    constraint = getattr(exc, "constraint_name", None) or ""
    text = f"{constraint} {exc}".lower()

    if isinstance(exc, asyncpg.exceptions.ForeignKeyViolationError):
        return (
            "An event referenced a user or event type that is not committed. "
            "Run the users and event-types phases before events."
        )
    if "event_types" in text or table == "event_types":
        return (
            "Database already contains event types. "
            "Use a fresh database or clear existing data."
        )
    if "users" in text or table == "users":
        return (
            "Database already contains users. "
            "Use a fresh database or clear existing data."
        )
    return "Duplicate data detected. Use a fresh database."


def classify_storage_error(table: str, exc: BaseException) -> SeedError:
    """Wrap a non-transient insert failure in the matching fatal error."""
    if isinstance(exc, asyncpg.exceptions.IntegrityConstraintViolationError):
        return ConstraintViolationError(
            f"Constraint violation inserting into {table}: {exc}",
            constraint=getattr(exc, "constraint_name", None),
            hint=constraint_hint(table, exc),
        )
    return FatalStorageError(f"Insert into {table} failed: {exc}")


def describe_failure(phase: str, exc: BaseException) -> str:
    """One-line cause string for the final report."""
    if isinstance(exc, ConstraintViolationError) and exc.hint:
        return f"{exc}. {exc.hint}"
    if isinstance(exc, TransientStorageError):
        return (
            f"{exc} (gave up after {exc.attempts} attempts). "
            "Check DATABASE_URL and that the database is reachable."
        )
    if isinstance(exc, SeedError):
        return str(exc)
    return f"Seeder '{phase}' failed: {type(exc).__name__}: {exc}"
