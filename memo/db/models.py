"""Database models for Memo."""

from dataclasses import dataclass, field
from datetime import datetime

from memo.srs.conversions import utc_now
from memo.srs.models import MemoryState


@dataclass
class Deck:
    """A named collection of cards."""

    id: int | None = None
    name: str = ""
    description: str | None = None
    created_at: datetime | None = None


@dataclass
class Card:
    """A flashcard with its front/back content and scheduling state.

    The memory state is embedded in the card row and only ever replaced with
    the scheduler's output after a review.
    """

    id: int | None = None
    deck_id: int = 0
    front: str = ""
    back: str = ""
    tags: list[str] = field(default_factory=list)
    memory: MemoryState = field(default_factory=lambda: MemoryState.new(utc_now()))
    created_at: datetime | None = None
    updated_at: datetime | None = None
