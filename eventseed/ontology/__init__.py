"""Row types for the three seeded tables."""

from eventseed.ontology.types import RECORD_TYPES, Event, EventType, Phase, User

__all__ = ["Phase", "User", "EventType", "Event", "RECORD_TYPES"]
