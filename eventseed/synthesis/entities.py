"""Record synthesis: one candidate row per call, no shared random state.

Every function here takes its randomness from an explicit ``random.Random``.
``synthesize_batch`` is the entry point the generation stage hands to the
process pool: it builds a fresh generator per batch, seeded from
``(seed, phase, batch index)`` when a seed is configured, so a seeded run
produces identical batches no matter which worker picks them up.

Foreign-key pools for the events phase are installed once per worker process
by ``install_foreign_keys`` (the executor initializer) and only read afterwards.
"""

from __future__ import annotations

import json
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Sequence
from uuid import UUID

from eventseed.ontology.types import Event, EventType, Phase, User
from eventseed.services.errors import GenerationError
from eventseed.synthesis import lexicon
from eventseed.utils.ids import random_uuid, time_ordered_uuid

# Users are backdated up to two years before the run's anchor time.
USER_SIGNUP_WINDOW_SECONDS = 730 * 24 * 3600

_user_ids: Sequence[UUID] = ()
_event_type_ids: Sequence[int] = ()


@dataclass(frozen=True)
class BatchJob:
    """One unit of work claimed from the countdown."""

    phase: Phase
    index: int
    start_ordinal: int
    size: int
    anchor: datetime
    seed: int | None = None
    history_seconds: int = 0  # events only
    id_offset: int = 0        # event types only


def install_foreign_keys(user_ids: Sequence[UUID], event_type_ids: Sequence[int]) -> None:
    """Executor initializer: make the committed id pools visible to this worker."""
    global _user_ids, _event_type_ids
    _user_ids = tuple(user_ids)
    _event_type_ids = tuple(event_type_ids)


def batch_rng(seed: int | None, phase: Phase, index: int) -> random.Random:
    if seed is None:
        return random.Random()
    return random.Random(f"{seed}:{phase.value}:{index}")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def synthesize_user(rng: random.Random, ordinal: int, anchor: datetime) -> User:
    """Lexicon first/last name; the ordinal in the email keeps it unique within a run."""
    first = rng.choice(lexicon.FIRST_NAMES)
    last = rng.choice(lexicon.LAST_NAMES)
    domain = rng.choice(lexicon.EMAIL_DOMAINS)
    created_at = anchor - timedelta(seconds=rng.randrange(USER_SIGNUP_WINDOW_SECONDS))
    return User(
        id=time_ordered_uuid(rng, created_at),
        name=f"{first} {last}",
        email=f"{first}.{last}{ordinal}@{domain}".lower(),
        created_at=created_at,
    )


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------


def event_type_name(ordinal: int) -> str:
    """Map an ordinal to a distinct event-type name.

    The first ``len(EVENT_TYPE_NAMES)`` ordinals use the base names as-is.
    Later rounds append a variant suffix, and once the suffixes are used up
    a cycle number, so different ordinals never produce the same name.
    """
    names = lexicon.EVENT_TYPE_NAMES
    suffixes = lexicon.VARIANT_SUFFIXES
    base = names[ordinal % len(names)]
    round_ = ordinal // len(names)
    if round_ == 0:
        return base
    suffix = suffixes[(round_ - 1) % len(suffixes)]
    cycle = (round_ - 1) // len(suffixes)
    if cycle == 0:
        return f"{base}_{suffix}"
    return f"{base}_{suffix}{cycle + 1}"


def synthesize_event_type(rng: random.Random, ordinal: int, id_offset: int = 0) -> EventType:
    # rng is unused: names are a pure function of the ordinal
    return EventType(id=id_offset + ordinal + 1, name=event_type_name(ordinal))


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def _page_for(rng: random.Random) -> str:
    return lexicon.EVENT_TYPE_PAGES[rng.choice(lexicon.EVENT_TYPE_NAMES)]


def synthesize_metadata(rng: random.Random, timestamp: datetime) -> dict:
    """Pick a template and fill it with plausible values."""
    template = rng.choice(lexicon.METADATA_TEMPLATES)
    if template == "page_view":
        data = {
            "page_url": _page_for(rng),
            "referrer": rng.choice(lexicon.REFERRERS),
            "user_agent": rng.choice(lexicon.USER_AGENTS),
        }
    elif template == "click":
        data = {
            "button_id": f"btn_{rng.randrange(1, 100)}",
            "element_text": rng.choice(lexicon.BUTTON_LABELS),
            "page_url": _page_for(rng),
            "coordinates": {"x": rng.randrange(0, 1920), "y": rng.randrange(0, 1080)},
        }
    elif template == "form_submit":
        data = {
            "form_id": f"form_{rng.randrange(1, 50)}",
            "field_count": rng.randrange(1, 20),
            "completion_time_ms": rng.randrange(1000, 60000),
        }
    elif template == "purchase":
        data = {
            "product_id": rng.randrange(1, 10000),
            "price": rng.randrange(100, 100000) / 100.0,
            "currency": rng.choice(lexicon.CURRENCIES),
            "quantity": rng.randrange(1, 6),
            "category": rng.choice(lexicon.PRODUCT_CATEGORIES),
        }
    else:
        data = {
            "session_id": str(random_uuid(rng)),
            "duration_ms": rng.randrange(1000, 300000),
            "device_type": rng.choice(lexicon.DEVICE_TYPES),
            "referrer": rng.choice(lexicon.REFERRERS),
        }
    data["template"] = template
    data["timestamp"] = timestamp.isoformat()
    return data


def synthesize_event(
    rng: random.Random,
    user_ids: Sequence[UUID],
    event_type_ids: Sequence[int],
    anchor: datetime,
    history_seconds: int,
) -> Event:
    """One event referencing committed ids only, timestamped inside the history window."""
    timestamp = anchor - timedelta(seconds=rng.randrange(max(history_seconds, 1)))
    metadata = synthesize_metadata(rng, timestamp)
    return Event(
        id=time_ordered_uuid(rng, timestamp),
        user_id=user_ids[rng.randrange(len(user_ids))],
        event_type_id=event_type_ids[rng.randrange(len(event_type_ids))],
        metadata=json.dumps(metadata, separators=(",", ":")),
        timestamp=timestamp,
    )


# ---------------------------------------------------------------------------
# Executor entry point
# ---------------------------------------------------------------------------


def synthesize_batch(job: BatchJob) -> list:
    """Build ``job.size`` records for ``job.phase``. Runs inside a worker."""
    rng = batch_rng(job.seed, job.phase, job.index)
    ordinals = range(job.start_ordinal, job.start_ordinal + job.size)

    if job.phase is Phase.USERS:
        return [synthesize_user(rng, n, job.anchor) for n in ordinals]

    if job.phase is Phase.EVENT_TYPES:
        return [synthesize_event_type(rng, n, job.id_offset) for n in ordinals]

    if not _user_ids or not _event_type_ids:
        raise GenerationError(
            "Foreign-key pools are empty in this worker; "
            "install_foreign_keys must run before event synthesis"
        )
    return [
        synthesize_event(rng, _user_ids, _event_type_ids, job.anchor, job.history_seconds)
        for _ in ordinals
    ]
