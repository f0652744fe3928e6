"""Row types for the three seeded tables and the phase that produces each.

Records are plain frozen dataclasses rather than pydantic models: tens of
millions are built per run in worker processes, pickled back to the loop and
turned into ``COPY`` rows, so per-instance validation is not affordable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import ClassVar
from uuid import UUID


class Phase(str, Enum):
    """Seeding phases in dependency order."""

    USERS = "users"
    EVENT_TYPES = "event_types"
    EVENTS = "events"

    @property
    def order(self) -> int:
        return _PHASE_ORDER.index(self)

    @property
    def label(self) -> str:
        return {
            Phase.USERS: "Users",
            Phase.EVENT_TYPES: "EventTypes",
            Phase.EVENTS: "Events",
        }[self]


_PHASE_ORDER = (Phase.USERS, Phase.EVENT_TYPES, Phase.EVENTS)


@dataclass(frozen=True)
class User:
    __table_name__: ClassVar[str] = "users"
    __columns__: ClassVar[tuple[str, ...]] = ("id", "name", "email", "created_at")

    id: UUID
    name: str
    email: str | None
    created_at: datetime

    def as_row(self, include_email: bool = True) -> tuple:
        if include_email:
            return (self.id, self.name, self.email, self.created_at)
        return (self.id, self.name, self.created_at)


@dataclass(frozen=True)
class EventType:
    __table_name__: ClassVar[str] = "event_types"
    __columns__: ClassVar[tuple[str, ...]] = ("id", "name")

    id: int
    name: str

    def as_row(self) -> tuple:
        return (self.id, self.name)


@dataclass(frozen=True)
class Event:
    __table_name__: ClassVar[str] = "events"
    __columns__: ClassVar[tuple[str, ...]] = (
        "id", "user_id", "event_type_id", "metadata", "timestamp",
    )

    id: UUID
    user_id: UUID
    event_type_id: int
    metadata: str  # JSON text; asyncpg's jsonb codec takes it as-is
    timestamp: datetime

    def as_row(self) -> tuple:
        return (self.id, self.user_id, self.event_type_id, self.metadata, self.timestamp)


RECORD_TYPES: dict[Phase, type] = {
    Phase.USERS: User,
    Phase.EVENT_TYPES: EventType,
    Phase.EVENTS: Event,
}
