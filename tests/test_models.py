"""Tests for the memory-state model."""

from datetime import datetime, timedelta

import pytest

from memo.errors import InvalidMemoryStateError, InvalidRatingError, InvalidStateError
from memo.srs.models import MemoryState, Rating, State


class TestRatingParse:
    """Tests for Rating.parse."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (Rating.HARD, Rating.HARD),
            (1, Rating.AGAIN),
            ("4", Rating.EASY),
            ("good", Rating.GOOD),
            (" Hard ", Rating.HARD),
            ("AGAIN", Rating.AGAIN),
        ],
    )
    def test_accepts_known_ratings(self, value, expected):
        """Enum members, integers, digit strings and names should parse."""
        assert Rating.parse(value) is expected

    @pytest.mark.parametrize("value", [0, 5, -1, "7", "meh", "", None, 2.0, True])
    def test_rejects_everything_else(self, value):
        """Out-of-range and non-rating values should raise InvalidRatingError."""
        with pytest.raises(InvalidRatingError):
            Rating.parse(value)

    def test_invalid_rating_is_value_error(self):
        """Callers catching ValueError should see rating errors."""
        with pytest.raises(ValueError):
            Rating.parse(9)

    def test_is_pass(self):
        """Only Again is a failed recall."""
        assert not Rating.AGAIN.is_pass
        assert all(r.is_pass for r in (Rating.HARD, Rating.GOOD, Rating.EASY))


class TestStateParse:
    """Tests for State.parse."""

    def test_parses_int_and_name(self):
        assert State.parse(2) is State.REVIEW
        assert State.parse("relearning") is State.RELEARNING

    def test_rejects_unknown_state(self):
        with pytest.raises(InvalidStateError):
            State.parse(4)

    def test_learning_phase(self):
        """Learning and Relearning are the short-term phases."""
        assert State.LEARNING.is_learning_phase
        assert State.RELEARNING.is_learning_phase
        assert not State.NEW.is_learning_phase
        assert not State.REVIEW.is_learning_phase


class TestMemoryState:
    """Tests for MemoryState invariants."""

    def test_new_card_defaults(self, now):
        """New cards start empty and due immediately."""
        memory = MemoryState.new(now)
        assert memory.state is State.NEW
        assert memory.stability == 0
        assert memory.difficulty == 0
        assert memory.reps == 0
        assert memory.lapses == 0
        assert memory.due == now
        assert memory.last_review is None

    def test_state_coerced_from_int(self, review_memory):
        """Integer states should be converted to the enum."""
        memory = review_memory.evolve(state=3)
        assert memory.state is State.RELEARNING

    def test_rejects_negative_stability(self, review_memory):
        with pytest.raises(InvalidMemoryStateError):
            review_memory.evolve(stability=-1.0)

    def test_rejects_negative_counters(self, review_memory):
        with pytest.raises(InvalidMemoryStateError):
            review_memory.evolve(lapses=-1)

    def test_rejects_difficulty_out_of_range(self, review_memory):
        """Reviewed cards must have difficulty within [1, 10]."""
        with pytest.raises(InvalidMemoryStateError):
            review_memory.evolve(difficulty=0.5)
        with pytest.raises(InvalidMemoryStateError):
            review_memory.evolve(difficulty=10.5)

    def test_new_card_cannot_have_reps(self, now):
        with pytest.raises(InvalidMemoryStateError):
            MemoryState.new(now).evolve(reps=1)

    def test_rejects_naive_due(self):
        with pytest.raises(InvalidMemoryStateError):
            MemoryState.new(datetime(2024, 1, 1))

    def test_rejects_due_before_last_review(self, review_memory, now):
        with pytest.raises(InvalidMemoryStateError):
            review_memory.evolve(last_review=now + timedelta(hours=1))

    def test_is_immutable(self, review_memory):
        """Memory states are values; fields cannot be reassigned."""
        with pytest.raises(AttributeError):
            review_memory.stability = 20.0
