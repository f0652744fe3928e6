"""UUID helpers for synthesized rows and worker labels.

Row ids are drawn from the caller's private ``random.Random`` rather than
``uuid4()`` so that a seeded run reproduces the same ids.

Examples::

    from eventseed.utils.ids import short_id, time_ordered_uuid

    short_id("loader-")                         # 'loader-a1b2c3d4'
    time_ordered_uuid(rng, created_at)          # UUID('0190f3c2-...')
"""

from __future__ import annotations

import random
from datetime import datetime
from uuid import UUID, uuid4


def short_id(prefix: str = "", length: int = 8) -> str:
    """Generate a short random hex ID.

    Args:
        prefix: String prepended to the hex portion.
        length: Number of hex characters (default 8 → 4 bytes of randomness).

    Returns:
        ``f"{prefix}{uuid4().hex[:length]}"``
    """
    return f"{prefix}{uuid4().hex[:length]}"


def time_ordered_uuid(rng: random.Random, at: datetime) -> UUID:
    """UUID in the version-7 layout: 48-bit unix milliseconds + 74 random bits.

    Ids sort roughly by ``at``, which keeps B-tree inserts on the primary key
    close to append-only for time-ordered data.
    """
    millis = int(at.timestamp() * 1000) & ((1 << 48) - 1)
    rand_a = rng.getrandbits(12)
    rand_b = rng.getrandbits(62)
    value = (millis << 80) | (0x7 << 76) | (rand_a << 64) | (0b10 << 62) | rand_b
    return UUID(int=value)


def random_uuid(rng: random.Random) -> UUID:
    """Version-4 UUID drawn from ``rng``."""
    return UUID(int=rng.getrandbits(128), version=4)
