"""Spaced-repetition core: memory model, scheduler, previews and ordering.

Quick start:
    from memo import srs

    scheduler = srs.Scheduler()
    memory = srs.MemoryState.new(now)
    memory, log = scheduler.review(memory, srs.Rating.GOOD, now)
"""

from memo.srs.conversions import (
    format_timestamp,
    memory_from_record,
    memory_to_record,
    parse_timestamp,
    utc_now,
)
from memo.srs.models import MemoryState, Rating, ReviewLogEntry, State
from memo.srs.parameters import SchedulerParameters, parse_steps
from memo.srs.preview import (
    RatingPreview,
    format_interval,
    preview,
    preview_rating,
    rating_name,
    state_name,
)
from memo.srs.priority import sort_by_priority
from memo.srs.retrievability import is_due, retrievability, retrievability_percent
from memo.srs.scheduler import Scheduler


__all__ = [
    # Model
    "MemoryState",
    "Rating",
    "ReviewLogEntry",
    "State",

    # Scheduling
    "Scheduler",
    "SchedulerParameters",
    "parse_steps",

    # Estimation and display
    "retrievability",
    "retrievability_percent",
    "is_due",
    "RatingPreview",
    "preview",
    "preview_rating",
    "format_interval",
    "state_name",
    "rating_name",

    # Ordering
    "sort_by_priority",

    # Conversions
    "memory_to_record",
    "memory_from_record",
    "format_timestamp",
    "parse_timestamp",
    "utc_now",
]
