"""FSRS-style review scheduler.

Turns a card's memory state plus a rating into the next memory state and a
review log entry. Everything here is pure: the same state, rating, time and
parameters always give the same result, including the interval jitter, which
is seeded from the inputs.

Phases:
- New: any rating seeds stability/difficulty and enters Learning
- Learning/Relearning: short steps (minutes) until the last step is passed,
  then the card graduates to Review
- Review: passing ratings grow stability; Again is a lapse and demotes the
  card to Relearning
"""

import math
import random
from datetime import datetime, timedelta

from memo.errors import InvalidTimestampError
from memo.srs.models import (
    DIFFICULTY_MAX,
    DIFFICULTY_MIN,
    MemoryState,
    Rating,
    ReviewLogEntry,
    State,
)
from memo.srs.parameters import STABILITY_MIN, SchedulerParameters
from memo.srs.retrievability import SECONDS_PER_DAY, days_between, forgetting_curve


# Interval jitter: (start_days, end_days, factor)
FUZZ_RANGES = (
    (2.5, 7.0, 0.15),
    (7.0, 20.0, 0.1),
    (20.0, math.inf, 0.05),
)

PASSING_RATINGS = (Rating.HARD, Rating.GOOD, Rating.EASY)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _require_aware(now: datetime) -> None:
    if not isinstance(now, datetime) or now.tzinfo is None:
        raise InvalidTimestampError(f"Review time must be a timezone-aware datetime, got {now!r}")


class Scheduler:
    """Computes review outcomes for a fixed parameter vector."""

    def __init__(self, parameters: SchedulerParameters | None = None):
        self.parameters = parameters or SchedulerParameters()

    @property
    def w(self) -> tuple[float, ...]:
        return self.parameters.weights

    def review(
        self,
        memory: MemoryState,
        rating: Rating | int | str,
        now: datetime,
        duration_ms: int | None = None,
        card_id: int | None = None,
    ) -> tuple[MemoryState, ReviewLogEntry]:
        """Apply a rating to a memory state.

        Args:
            memory: State before the review
            rating: Again, Hard, Good or Easy (enum, 1-4 or name token)
            now: Timezone-aware review time
            duration_ms: How long the review took, if known
            card_id: Card the review belongs to, copied into the log entry

        Returns:
            Tuple of (new memory state, log entry). The log entry describes
            the state as it was before this review.
        """
        rating = Rating.parse(rating)
        next_memory = self.repeat(memory, now)[rating]
        log = ReviewLogEntry(
            card_id=card_id,
            rating=rating,
            state=memory.state,
            elapsed_days=memory.elapsed_days,
            scheduled_days=memory.scheduled_days,
            learning_steps=memory.learning_steps,
            reviewed_at=now,
            duration_ms=duration_ms,
        )
        return next_memory, log

    def repeat(self, memory: MemoryState, now: datetime) -> dict[Rating, MemoryState]:
        """Compute the outcome of every rating for a memory state."""
        _require_aware(now)
        elapsed = 0.0
        if memory.last_review is not None:
            elapsed = max(0.0, days_between(memory.last_review, now))

        if memory.state is State.NEW:
            return self._from_new(memory, now)
        if memory.state.is_learning_phase:
            return self._from_learning(memory, now, elapsed)
        return self._from_review(memory, now, elapsed)

    def next_interval(self, stability: float) -> int:
        """Whole days until retrievability falls to the requested retention."""
        p = self.parameters
        days = -stability * math.log(p.request_retention)
        return int(_clamp(round(days), p.minimum_interval, p.maximum_interval))

    # ---- Phase transitions ----

    def _from_new(self, memory: MemoryState, now: datetime) -> dict[Rating, MemoryState]:
        steps = self.parameters.learning_steps
        outcomes = {}
        for rating in Rating:
            outcomes[rating] = self._next_state(
                memory,
                now,
                elapsed=0.0,
                phase=State.LEARNING,
                stability=self._initial_stability(rating),
                difficulty=self._initial_difficulty(rating),
                learning_steps=1,
                interval=timedelta(minutes=self._step_minutes(steps, rating, 1)),
            )
        return outcomes

    def _from_learning(
        self, memory: MemoryState, now: datetime, elapsed: float
    ) -> dict[Rating, MemoryState]:
        p = self.parameters
        step_count = memory.learning_steps + 1
        if memory.state is State.LEARNING:
            steps = p.learning_steps
            # The first rating of a New card counts as the first step
            wait_index = step_count
        else:
            steps = p.relearning_steps
            # A lapse already waits the first relearning step, so the counter
            # is the position of the step being waited
            wait_index = memory.learning_steps

        outcomes = {
            Rating.AGAIN: self._next_state(
                memory,
                now,
                elapsed=elapsed,
                phase=memory.state,
                stability=self._short_term_stability(memory.stability, Rating.AGAIN),
                difficulty=self._next_difficulty(memory.difficulty, Rating.AGAIN),
                learning_steps=1,
                interval=timedelta(minutes=steps[0]),
            )
        }

        if wait_index < len(steps):
            for rating in PASSING_RATINGS:
                outcomes[rating] = self._next_state(
                    memory,
                    now,
                    elapsed=elapsed,
                    phase=memory.state,
                    stability=self._short_term_stability(memory.stability, rating),
                    difficulty=self._next_difficulty(memory.difficulty, rating),
                    learning_steps=step_count,
                    interval=timedelta(minutes=self._step_minutes(steps, rating, wait_index)),
                )
            return outcomes

        # Final step passed: graduate
        candidates = {
            rating: (
                self._short_term_stability(memory.stability, rating),
                self._next_difficulty(memory.difficulty, rating),
            )
            for rating in PASSING_RATINGS
        }
        outcomes.update(self._review_outcomes(memory, now, elapsed, candidates))
        return outcomes

    def _from_review(
        self, memory: MemoryState, now: datetime, elapsed: float
    ) -> dict[Rating, MemoryState]:
        r = forgetting_curve(elapsed, memory.stability)
        # Reviews within a day of the last one use the short-term update
        same_day = elapsed < 1.0

        if same_day:
            lapse_stability = self._short_term_stability(memory.stability, Rating.AGAIN)
        else:
            lapse_stability = self._forget_stability(memory.difficulty, memory.stability, r)

        outcomes = {
            Rating.AGAIN: self._next_state(
                memory,
                now,
                elapsed=elapsed,
                phase=State.RELEARNING,
                stability=lapse_stability,
                difficulty=self._next_difficulty(memory.difficulty, Rating.AGAIN),
                learning_steps=1,
                interval=timedelta(minutes=self.parameters.relearning_steps[0]),
                lapses=memory.lapses + 1,
            )
        }

        candidates = {}
        for rating in PASSING_RATINGS:
            if same_day:
                # A pass never loses stability once the card has graduated
                stability = max(self._short_term_stability(memory.stability, rating), memory.stability)
            else:
                stability = self._recall_stability(memory.difficulty, memory.stability, r, rating)
            candidates[rating] = (stability, self._next_difficulty(memory.difficulty, rating))

        outcomes.update(self._review_outcomes(memory, now, elapsed, candidates))
        return outcomes

    def _review_outcomes(
        self,
        memory: MemoryState,
        now: datetime,
        elapsed: float,
        candidates: dict[Rating, tuple[float, float]],
    ) -> dict[Rating, MemoryState]:
        """Day-scale Review outcomes for Hard/Good/Easy, kept in rating order."""
        p = self.parameters
        rng = random.Random(f"{now.isoformat()}_{memory.reps}_{memory.difficulty * memory.stability}")
        fuzz_factor = rng.random()

        intervals = {}
        for rating, (stability, _) in candidates.items():
            interval = self.next_interval(stability)
            if p.enable_fuzz:
                interval = self._apply_fuzz(interval, elapsed, fuzz_factor)
            intervals[rating] = interval

        hard = min(intervals[Rating.HARD], intervals[Rating.GOOD])
        good = min(max(intervals[Rating.GOOD], hard + 1), p.maximum_interval)
        easy = min(max(intervals[Rating.EASY], good + 1), p.maximum_interval)
        intervals = {Rating.HARD: hard, Rating.GOOD: good, Rating.EASY: easy}

        return {
            rating: self._next_state(
                memory,
                now,
                elapsed=elapsed,
                phase=State.REVIEW,
                stability=stability,
                difficulty=difficulty,
                learning_steps=0,
                interval=timedelta(days=intervals[rating]),
            )
            for rating, (stability, difficulty) in candidates.items()
        }

    def _next_state(
        self,
        memory: MemoryState,
        now: datetime,
        *,
        elapsed: float,
        phase: State,
        stability: float,
        difficulty: float,
        learning_steps: int,
        interval: timedelta,
        lapses: int | None = None,
    ) -> MemoryState:
        return MemoryState(
            state=phase,
            stability=stability,
            difficulty=difficulty,
            elapsed_days=elapsed,
            scheduled_days=interval.total_seconds() / SECONDS_PER_DAY,
            learning_steps=learning_steps,
            reps=memory.reps + 1,
            lapses=memory.lapses if lapses is None else lapses,
            due=now + interval,
            last_review=now,
        )

    # ---- Intervals ----

    def _step_minutes(self, steps: tuple[float, ...], rating: Rating, index: int) -> float:
        """Short-term interval for a card that stays in its learning steps.

        Again restarts at the first step, Good waits for the next step, Hard
        waits halfway between the current and next step, and Easy stretches
        the Good wait.
        """
        if rating is Rating.AGAIN:
            return steps[0]
        last = len(steps) - 1
        good = steps[min(index, last)]
        if rating is Rating.GOOD:
            return good
        if rating is Rating.HARD:
            return (steps[min(index - 1, last)] + good) / 2
        return good * self.parameters.easy_step_factor

    def _apply_fuzz(self, interval: int, elapsed: float, fuzz_factor: float) -> int:
        """Spread due dates so cards reviewed together don't stay bunched."""
        p = self.parameters
        if interval < 2.5:
            return interval

        delta = 1.0
        for start, end, factor in FUZZ_RANGES:
            delta += factor * max(min(interval, end) - start, 0.0)

        low = max(2, p.minimum_interval, round(interval - delta))
        high = min(round(interval + delta), p.maximum_interval)
        if interval > elapsed:
            low = max(low, int(elapsed) + 1)
        low = min(low, high)
        return int(math.floor(fuzz_factor * (high - low + 1) + low))

    # ---- Memory model ----

    def _initial_stability(self, rating: Rating) -> float:
        return max(self.w[rating - 1], STABILITY_MIN)

    def _initial_difficulty(self, rating: Rating) -> float:
        raw = self.w[4] - math.exp(self.w[5] * (rating - 1)) + 1
        return _clamp(raw, DIFFICULTY_MIN, DIFFICULTY_MAX)

    def _next_difficulty(self, difficulty: float, rating: Rating) -> float:
        # Linear damping: changes shrink as difficulty approaches the max
        delta = -self.w[6] * (rating - 3)
        damped = difficulty + delta * (DIFFICULTY_MAX - difficulty) / 9
        # Mean reversion towards the Easy seed
        reverted = self.w[7] * self._initial_difficulty(Rating.EASY) + (1 - self.w[7]) * damped
        return _clamp(reverted, DIFFICULTY_MIN, DIFFICULTY_MAX)

    def _recall_stability(self, difficulty: float, stability: float, r: float, rating: Rating) -> float:
        hard_penalty = self.w[15] if rating is Rating.HARD else 1.0
        easy_bonus = self.w[16] if rating is Rating.EASY else 1.0
        stability = max(stability, STABILITY_MIN)
        growth = (
            math.exp(self.w[8])
            * (11 - difficulty)
            * math.pow(stability, -self.w[9])
            * (math.exp(self.w[10] * (1 - r)) - 1)
            * hard_penalty
            * easy_bonus
        )
        return stability * (1 + growth)

    def _forget_stability(self, difficulty: float, stability: float, r: float) -> float:
        forgotten = (
            self.w[11]
            * math.pow(difficulty, -self.w[12])
            * (math.pow(stability + 1, self.w[13]) - 1)
            * math.exp(self.w[14] * (1 - r))
        )
        ceiling = stability / self.parameters.lapse_stability_factor
        return max(STABILITY_MIN, min(forgotten, ceiling))

    def _short_term_stability(self, stability: float, rating: Rating) -> float:
        return max(STABILITY_MIN, stability * math.exp(self.w[17] * (rating - 3 + self.w[18])))
