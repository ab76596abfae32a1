"""Request models and JSON payload helpers for the HTTP API."""

from pydantic import BaseModel, Field, StrictInt, StrictStr

from memo.db.models import Card, Deck
from memo.srs.conversions import format_timestamp, memory_from_record, memory_to_record, parse_optional_timestamp
from memo.srs.preview import RatingPreview


class ReviewRequest(BaseModel):
    """Body of POST /api/review."""

    cardId: int
    # JSON true and 3.0 are not ratings
    rating: StrictInt | StrictStr
    durationMs: int | None = Field(default=None, ge=0)


class CreateDeckRequest(BaseModel):
    name: str
    description: str | None = None


class CreateCardRequest(BaseModel):
    front: str
    back: str
    tags: list[str] = Field(default_factory=list)


def deck_to_payload(deck: Deck) -> dict:
    return {
        "id": deck.id,
        "name": deck.name,
        "description": deck.description,
        "created_at": format_timestamp(deck.created_at),
    }


def card_to_payload(card: Card) -> dict:
    """Serialize a card with its memory state flattened into the same object."""
    return {
        "id": card.id,
        "deck_id": card.deck_id,
        "front": card.front,
        "back": card.back,
        "tags": card.tags,
        **memory_to_record(card.memory),
        "created_at": format_timestamp(card.created_at),
        "updated_at": format_timestamp(card.updated_at),
    }


def card_from_payload(payload: dict) -> Card:
    """Inverse of card_to_payload."""
    return Card(
        id=payload["id"],
        deck_id=payload["deck_id"],
        front=payload["front"],
        back=payload["back"],
        tags=list(payload.get("tags") or []),
        memory=memory_from_record(payload),
        created_at=parse_optional_timestamp(payload.get("created_at")),
        updated_at=parse_optional_timestamp(payload.get("updated_at")),
    )


def preview_to_payload(item: RatingPreview) -> dict:
    return {
        "rating": int(item.rating),
        "interval": item.interval,
        "intervalDays": item.interval_days,
        "state": int(item.state.state),
        "due": format_timestamp(item.state.due),
    }
