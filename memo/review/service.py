"""Review persistence and card creation.

This is the server side of a study session: load the card, run the scheduler,
write the new memory state, then append the review log. The log is a
best-effort audit trail; once the memory state is written the review counts,
even if the log insert fails.
"""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime

from memo.constants import DUE_BATCH_SIZE
from memo.db.database import Database
from memo.db.models import Card, Deck
from memo.errors import (
    CardNotFoundError,
    DeckNotFoundError,
    InvalidInputError,
    PersistenceError,
)
from memo.srs.conversions import utc_now
from memo.srs.models import MemoryState, Rating
from memo.srs.preview import RatingPreview, preview
from memo.srs.priority import sort_by_priority
from memo.srs.scheduler import Scheduler

logger = logging.getLogger(__name__)


@dataclass
class ReviewOutcome:
    """Result of a persisted review."""

    card_id: int
    memory: MemoryState
    log_saved: bool = True

    @property
    def due(self) -> datetime:
        return self.memory.due


class ReviewService:
    """Applies reviews to stored cards."""

    def __init__(self, db: Database, scheduler: Scheduler | None = None):
        self.db = db
        self.scheduler = scheduler or Scheduler()

    def review_card(
        self,
        card_id: int,
        rating: Rating | int | str,
        now: datetime | None = None,
        duration_ms: int | None = None,
    ) -> ReviewOutcome:
        """Apply a rating to a stored card and persist the result.

        Raises:
            InvalidRatingError: If the rating is not Again/Hard/Good/Easy
            CardNotFoundError: If the card does not exist
            PersistenceError: If the memory state could not be written
        """
        rating = Rating.parse(rating)
        now = now or utc_now()

        card = self.db.get_card(card_id)
        if card is None:
            raise CardNotFoundError(f"Card {card_id} not found")

        memory, log = self.scheduler.review(
            card.memory, rating, now, duration_ms=duration_ms, card_id=card_id
        )

        try:
            self.db.update_card_memory(card_id, memory)
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to update card {card_id}: {e}") from e

        log_saved = True
        try:
            self.db.add_review_log(log)
        except sqlite3.Error as e:
            log_saved = False
            logger.error(f"Failed to save review log for card {card_id}: {e}")

        logger.info(
            f"Card {card_id} rated {rating.name.lower()}: "
            f"{card.memory.state.name.lower()} -> {memory.state.name.lower()}, due {memory.due.isoformat()}"
        )
        return ReviewOutcome(card_id=card_id, memory=memory, log_saved=log_saved)

    def preview_card(self, card_id: int, now: datetime | None = None) -> list[RatingPreview]:
        """Preview all four ratings for a stored card without saving anything."""
        card = self.db.get_card(card_id)
        if card is None:
            raise CardNotFoundError(f"Card {card_id} not found")
        return preview(self.scheduler, card.memory, now or utc_now())

    def get_due_cards(
        self, deck_id: int, now: datetime | None = None, limit: int = DUE_BATCH_SIZE
    ) -> list[Card]:
        """Fetch a deck's due cards and rank them for a study session."""
        if self.db.get_deck(deck_id) is None:
            raise DeckNotFoundError(f"Deck {deck_id} not found")
        return sort_by_priority(self.db.get_due_cards(deck_id, now or utc_now(), limit))

    def get_cards(self, deck_id: int) -> list[Card]:
        """Every card in a deck, in creation order."""
        if self.db.get_deck(deck_id) is None:
            raise DeckNotFoundError(f"Deck {deck_id} not found")
        return self.db.get_cards_for_deck(deck_id)

    def create_deck(self, name: str, description: str | None = None) -> Deck:
        """Create a deck. A name is required."""
        if not name or not name.strip():
            raise InvalidInputError("Name is required")
        deck = Deck(name=name.strip(), description=description, created_at=utc_now())
        deck.id = self.db.create_deck(deck)
        return deck

    def create_card(
        self,
        deck_id: int,
        front: str,
        back: str,
        tags: list[str] | None = None,
        now: datetime | None = None,
    ) -> Card:
        """Create a card in New state, due immediately."""
        if not front or not back:
            raise InvalidInputError("Front and back content are required")

        card = Card(
            deck_id=deck_id,
            front=front,
            back=back,
            tags=list(tags or []),
            memory=MemoryState.new(now or utc_now()),
        )
        card.id = self.db.add_card(card)
        return card
