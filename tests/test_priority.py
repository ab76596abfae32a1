"""Tests for due-card ordering."""

from datetime import timedelta

from memo.db.models import Card
from memo.srs.models import State
from memo.srs.priority import sort_by_priority


class TestSortByPriority:
    """Tests for sort_by_priority."""

    def test_learning_phase_first(self, review_memory, learning_memory, relearning_memory, now):
        """Short-term cards come before review cards, even if due later."""
        overdue_review = review_memory.evolve(due=now - timedelta(days=3))
        learning = learning_memory.evolve(due=now + timedelta(minutes=5))

        ordered = sort_by_priority([overdue_review, learning, relearning_memory])

        assert [m.state for m in ordered] == [State.RELEARNING, State.LEARNING, State.REVIEW]

    def test_most_overdue_first(self, review_memory, new_memory, now):
        older = review_memory.evolve(due=now - timedelta(days=5))
        newer = review_memory.evolve(due=now - timedelta(days=1))

        ordered = sort_by_priority([newer, new_memory, older])

        assert ordered == [older, newer, new_memory]

    def test_ties_keep_input_order(self, review_memory):
        cards = [Card(id=i, front=str(i), back=str(i), memory=review_memory) for i in range(4)]
        assert [c.id for c in sort_by_priority(cards)] == [0, 1, 2, 3]

    def test_sorts_cards_by_memory(self, review_memory, learning_memory, now):
        review_card = Card(id=1, memory=review_memory.evolve(due=now - timedelta(days=2)))
        learning_card = Card(id=2, memory=learning_memory)
        assert [c.id for c in sort_by_priority([review_card, learning_card])] == [2, 1]

    def test_custom_key(self, review_memory, learning_memory):
        pairs = [("review", review_memory), ("learning", learning_memory)]
        ordered = sort_by_priority(pairs, key=lambda pair: pair[1])
        assert [name for name, _ in ordered] == ["learning", "review"]

    def test_input_untouched(self, review_memory, learning_memory):
        items = [review_memory, learning_memory]
        sort_by_priority(items)
        assert items == [review_memory, learning_memory]

    def test_empty(self):
        assert sort_by_priority([]) == []
