"""Retrievability: modeled probability of recalling a card right now.

Formula: R = exp(-t / S)

Where:
- t = days since the last review
- S = stability in days

Immediately after a review R is 1.0 and it decays smoothly from there. New
cards have never been reviewed, so there is nothing to forget yet.
"""

import math
from datetime import datetime

from memo.srs.models import MemoryState, State


SECONDS_PER_DAY = 86400.0

# Keeps the curve defined for zero-stability cards
STABILITY_EPSILON = 0.01


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end (negative if end is earlier)."""
    return (end - start).total_seconds() / SECONDS_PER_DAY


def forgetting_curve(elapsed_days: float, stability: float) -> float:
    """Recall probability after elapsed_days for a memory of the given stability."""
    return math.exp(-max(elapsed_days, 0.0) / max(stability, STABILITY_EPSILON))


def retrievability(memory: MemoryState, now: datetime) -> float:
    """Current recall probability in [0, 1].

    Elapsed time is measured from the last review, falling back to the due
    date for records that are missing one.
    """
    if memory.state is State.NEW:
        return 1.0

    anchor = memory.last_review or memory.due
    return forgetting_curve(days_between(anchor, now), memory.stability)


def retrievability_percent(memory: MemoryState, now: datetime) -> int:
    """Retrievability as a whole percentage for display."""
    return math.floor(retrievability(memory, now) * 100 + 0.5)


def is_due(memory: MemoryState, now: datetime) -> bool:
    """Check if a card is due for review."""
    return memory.due <= now
