"""Conversion between MemoryState and its storage / wire representation.

Timestamps are ISO-8601 strings with a UTC offset; state is stored as its
small integer value.
"""

from collections.abc import Mapping
from datetime import datetime, timezone

from memo.errors import InvalidTimestampError
from memo.srs.models import MemoryState, State


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime | None) -> str | None:
    """Serialize an aware datetime as ISO-8601 in UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        raise InvalidTimestampError(f"Refusing to serialize naive datetime {value!r}")
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp that carries a timezone.

    Raises:
        InvalidTimestampError: If the value is malformed or has no timezone
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        # fromisoformat only accepts a trailing "Z" from Python 3.11
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidTimestampError(f"Malformed timestamp: {value!r}") from None
    else:
        raise InvalidTimestampError(f"Expected an ISO-8601 string, got {value!r}")

    if parsed.tzinfo is None:
        raise InvalidTimestampError(f"Timestamp has no timezone: {value!r}")
    return parsed


def parse_optional_timestamp(value: str | datetime | None) -> datetime | None:
    if value is None or value == "":
        return None
    return parse_timestamp(value)


def memory_to_record(memory: MemoryState) -> dict:
    """Flatten a MemoryState into storage-ready primitives."""
    return {
        "state": int(memory.state),
        "stability": memory.stability,
        "difficulty": memory.difficulty,
        "elapsed_days": memory.elapsed_days,
        "scheduled_days": memory.scheduled_days,
        "learning_steps": memory.learning_steps,
        "reps": memory.reps,
        "lapses": memory.lapses,
        "due": format_timestamp(memory.due),
        "last_review": format_timestamp(memory.last_review),
    }


def memory_from_record(record: Mapping) -> MemoryState:
    """Rebuild a MemoryState from a storage record (dict or sqlite3.Row)."""
    return MemoryState(
        state=State.parse(record["state"]),
        stability=float(record["stability"]),
        difficulty=float(record["difficulty"]),
        elapsed_days=float(record["elapsed_days"]),
        scheduled_days=float(record["scheduled_days"]),
        learning_steps=int(record["learning_steps"]),
        reps=int(record["reps"]),
        lapses=int(record["lapses"]),
        due=parse_timestamp(record["due"]),
        last_review=parse_optional_timestamp(record["last_review"]),
    )
