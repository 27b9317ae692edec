"""Synthetic identifiers for list entries that have no natural key."""

from __future__ import annotations

import time
from uuid import uuid4


def generate_unique_id() -> str:
    """
    Return a collision-resistant id of the form ``{millis}-{uuid4}``.

    The millisecond prefix only spreads ids across the sort order; uniqueness
    comes from the uuid part.
    """
    millis = int(time.time() * 1000)
    return f"{millis}-{uuid4()}"
