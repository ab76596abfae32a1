"""Review previews and display helpers.

Previews run the scheduler for every rating without saving anything, so the
study UI can show the resulting interval on each rating button.
"""

import math
from dataclasses import dataclass
from datetime import datetime

from memo.srs.models import MemoryState, Rating, State
from memo.srs.scheduler import Scheduler


@dataclass(frozen=True)
class RatingPreview:
    """What would happen if the card were given this rating."""

    rating: Rating
    state: MemoryState
    interval_days: float
    interval: str


def preview(scheduler: Scheduler, memory: MemoryState, now: datetime) -> list[RatingPreview]:
    """Preview all four ratings, ordered Again, Hard, Good, Easy."""
    outcomes = scheduler.repeat(memory, now)
    return [_to_preview(rating, outcomes[rating]) for rating in Rating]


def preview_rating(
    scheduler: Scheduler, memory: MemoryState, rating: Rating | int | str, now: datetime
) -> RatingPreview:
    """Preview a single rating."""
    rating = Rating.parse(rating)
    return _to_preview(rating, scheduler.repeat(memory, now)[rating])


def _to_preview(rating: Rating, outcome: MemoryState) -> RatingPreview:
    return RatingPreview(
        rating=rating,
        state=outcome,
        interval_days=outcome.scheduled_days,
        interval=format_interval(outcome.scheduled_days),
    )


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_interval(days: float) -> str:
    """Format a day interval into a short human-readable string.

    Each unit takes over once the interval reaches it, so exactly 7 days is
    "1w" rather than "7d".

    Args:
        days: Interval in (fractional) days

    Returns:
        Formatted string, e.g. "< 1m", "10m", "1d", "2w", "3mo", "1.5y"
    """
    if days < 1 / 1440:
        return "< 1m"
    if days < 1 / 24:
        return f"{_round_half_up(days * 1440)}m"
    if days < 1:
        return f"{_round_half_up(days * 24)}h"
    if days < 7:
        return f"{_round_half_up(days)}d"
    if days < 30:
        return f"{_round_half_up(days / 7)}w"
    if days < 365:
        return f"{_round_half_up(days / 30)}mo"
    years = _round_half_up(days / 365 * 10) / 10
    return f"{years:g}y"


STATE_NAMES = {
    State.NEW: "New",
    State.LEARNING: "Learning",
    State.REVIEW: "Review",
    State.RELEARNING: "Relearning",
}

RATING_NAMES = {
    Rating.AGAIN: "Again",
    Rating.HARD: "Hard",
    Rating.GOOD: "Good",
    Rating.EASY: "Easy",
}


def state_name(state: State | int) -> str:
    """Display name for a state, "Unknown" for anything else."""
    try:
        return STATE_NAMES[State(state)]
    except ValueError:
        return "Unknown"


def rating_name(rating: Rating | int) -> str:
    """Display name for a rating, "Unknown" for anything else."""
    try:
        return RATING_NAMES[Rating(rating)]
    except ValueError:
        return "Unknown"
