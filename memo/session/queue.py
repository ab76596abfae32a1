"""In-memory queue for one study session.

The queue holds the batch of due cards fetched when the session starts. The
head card is shown; once its rating is saved the card leaves the head, and if
it comes due again within the requeue threshold (a learning step, say) it
goes back on the tail with its new memory state.
"""

import asyncio
from collections import deque
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Iterable

from memo.constants import REQUEUE_THRESHOLD_MINUTES
from memo.db.models import Card
from memo.errors import SessionFinishedError, SubmitInFlightError
from memo.session.client import ReviewClient
from memo.srs.conversions import utc_now
from memo.srs.models import Rating


class SessionStatus(Enum):
    NO_CARDS_DUE = "no_cards_due"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass
class SubmitResult:
    """Outcome of one accepted rating."""

    card: Card
    due: datetime
    requeued: bool


class SessionQueue:
    """Ordered queue of cards under review in a single session."""

    def __init__(
        self,
        cards: Iterable[Card],
        client: ReviewClient,
        requeue_threshold: timedelta = timedelta(minutes=REQUEUE_THRESHOLD_MINUTES),
        clock: Callable[[], datetime] = utc_now,
    ):
        self._queue: deque[Card] = deque(cards)
        self._started_empty = not self._queue
        self._lock = asyncio.Lock()
        self.client = client
        self.requeue_threshold = requeue_threshold
        self.clock = clock
        self.reviewed_count = 0

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def remaining(self) -> int:
        return len(self._queue)

    @property
    def is_submitting(self) -> bool:
        return self._lock.locked()

    @property
    def status(self) -> SessionStatus:
        if self._started_empty:
            return SessionStatus.NO_CARDS_DUE
        if self._queue:
            return SessionStatus.IN_PROGRESS
        return SessionStatus.COMPLETE

    def current(self) -> Card | None:
        """The card to show now, or None when the session has ended."""
        return self._queue[0] if self._queue else None

    async def submit(self, rating: Rating | int | str, duration_ms: int | None = None) -> SubmitResult:
        """Save a rating for the head card and advance the queue.

        On failure the queue and the reviewed count are left unchanged so the
        same card can be rated again.

        Raises:
            InvalidRatingError: If the rating is not Again/Hard/Good/Easy
            SubmitInFlightError: If another rating is still being saved
            SessionFinishedError: If there is no card to rate
            ReviewSubmitError: If the client failed to save the review
        """
        rating = Rating.parse(rating)
        if self._lock.locked():
            raise SubmitInFlightError("A review is already being submitted")
        if not self._queue:
            raise SessionFinishedError("No cards left in this session")

        async with self._lock:
            card = self._queue[0]
            outcome = await self.client.submit_review(card.id, rating, duration_ms)

            self._queue.popleft()
            updated = replace(card, memory=outcome.memory)
            requeued = outcome.due - self.clock() < self.requeue_threshold
            if requeued:
                self._queue.append(updated)
            self.reviewed_count += 1

        return SubmitResult(card=updated, due=outcome.due, requeued=requeued)
