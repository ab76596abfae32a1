"""Initial ordering of due cards for a study session."""

from collections.abc import Callable, Iterable
from typing import TypeVar

from memo.srs.models import MemoryState


T = TypeVar("T")


def memory_of(item) -> MemoryState:
    """Return the memory state of a card, or the item itself if it is one."""
    if isinstance(item, MemoryState):
        return item
    return item.memory


def sort_by_priority(
    items: Iterable[T], key: Callable[[T], MemoryState] | None = None
) -> list[T]:
    """Sort cards for study.

    Priority: Learning/Relearning (short-term steps) > everything else by due
    date, most overdue first. Equal-priority cards keep their input order.
    Returns a new list; the input is left untouched.

    Args:
        items: Memory states, or objects exposing one (cards)
        key: Extracts the memory state from an item (defaults to item.memory)
    """
    get_memory = key or memory_of

    def rank(item: T):
        memory = get_memory(item)
        return (0 if memory.state.is_learning_phase else 1, memory.due)

    return sorted(items, key=rank)
