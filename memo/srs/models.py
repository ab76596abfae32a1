"""Memory-state model for spaced-repetition scheduling.

A card's memory state follows the forgetting-curve lifecycle
New -> Learning -> Review <-> Relearning. The Scheduler is the only code that
produces new states; everything else reads them.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import IntEnum

from memo.errors import InvalidMemoryStateError, InvalidRatingError, InvalidStateError


# Difficulty bounds once a card has been reviewed at least once
DIFFICULTY_MIN = 1.0
DIFFICULTY_MAX = 10.0


class State(IntEnum):
    """Phase of a card in the forgetting-curve lifecycle."""

    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3

    @classmethod
    def parse(cls, value: "State | int | str") -> "State":
        """Parse a state from its integer value or name token."""
        return _parse_enum(cls, value, InvalidStateError)

    @property
    def is_learning_phase(self) -> bool:
        return self in (State.LEARNING, State.RELEARNING)


class Rating(IntEnum):
    """User feedback on a recall attempt."""

    AGAIN = 1  # Recall failed
    HARD = 2  # Recalled with serious effort
    GOOD = 3  # Recalled after some hesitation
    EASY = 4  # Recalled effortlessly

    @classmethod
    def parse(cls, value: "Rating | int | str") -> "Rating":
        """Parse a rating from its integer value or name token.

        Anything that is not one of the four ratings is rejected rather than
        clamped into range.
        """
        return _parse_enum(cls, value, InvalidRatingError)

    @property
    def is_pass(self) -> bool:
        return self is not Rating.AGAIN


def _parse_enum(enum_cls, value, error_cls):
    if isinstance(value, enum_cls):
        return value
    # bool is an int subclass; True must not quietly become Rating.AGAIN
    if isinstance(value, bool):
        raise error_cls(f"Invalid {enum_cls.__name__.lower()}: {value!r}")
    if isinstance(value, int):
        try:
            return enum_cls(value)
        except ValueError:
            raise error_cls(f"Invalid {enum_cls.__name__.lower()}: {value!r}") from None
    if isinstance(value, str):
        token = value.strip()
        if token.lstrip("-").isdigit():
            return _parse_enum(enum_cls, int(token), error_cls)
        try:
            return enum_cls[token.upper()]
        except KeyError:
            raise error_cls(f"Invalid {enum_cls.__name__.lower()}: {value!r}") from None
    raise error_cls(f"Invalid {enum_cls.__name__.lower()}: {value!r}")


@dataclass(frozen=True)
class MemoryState:
    """Scheduling state for a single card."""

    state: State
    stability: float  # days
    difficulty: float  # 0 while New, otherwise 1-10
    elapsed_days: float  # days since the previous review when this state was computed
    scheduled_days: float  # interval scheduled at the last review
    learning_steps: int  # short-term steps completed in Learning/Relearning
    reps: int
    lapses: int
    due: datetime
    last_review: datetime | None = None

    def __post_init__(self):
        if not isinstance(self.state, State):
            object.__setattr__(self, "state", State.parse(self.state))
        self.validate()

    def validate(self) -> None:
        """Raise InvalidMemoryStateError if any invariant is violated."""
        if self.stability < 0:
            raise InvalidMemoryStateError(f"stability must be >= 0, got {self.stability}")
        if self.reps < 0 or self.lapses < 0 or self.learning_steps < 0:
            raise InvalidMemoryStateError("reps, lapses and learning_steps must be >= 0")
        if self.state is State.NEW:
            if self.reps != 0 or self.last_review is not None:
                raise InvalidMemoryStateError("a New card cannot have reps or a last review")
        elif not DIFFICULTY_MIN <= self.difficulty <= DIFFICULTY_MAX:
            raise InvalidMemoryStateError(
                f"difficulty must be within [{DIFFICULTY_MIN}, {DIFFICULTY_MAX}], got {self.difficulty}"
            )
        for name in ("due", "last_review"):
            value = getattr(self, name)
            if value is not None and value.tzinfo is None:
                raise InvalidMemoryStateError(f"{name} must be timezone-aware")
        if self.last_review is not None and self.due < self.last_review:
            raise InvalidMemoryStateError("due must not be earlier than last_review")

    @classmethod
    def new(cls, now: datetime) -> "MemoryState":
        """Default state for a freshly created card, due immediately."""
        return cls(
            state=State.NEW,
            stability=0.0,
            difficulty=0.0,
            elapsed_days=0.0,
            scheduled_days=0.0,
            learning_steps=0,
            reps=0,
            lapses=0,
            due=now,
            last_review=None,
        )

    def evolve(self, **changes) -> "MemoryState":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


@dataclass(frozen=True)
class ReviewLogEntry:
    """Audit record of one review, capturing the state *before* it was applied."""

    card_id: int | None
    rating: Rating
    state: State
    elapsed_days: float
    scheduled_days: float
    learning_steps: int
    reviewed_at: datetime
    duration_ms: int | None = None
