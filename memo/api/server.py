"""FastAPI server exposing decks, due cards and review submission."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from rich.console import Console

from memo.api.schemas import (
    CreateCardRequest,
    CreateDeckRequest,
    ReviewRequest,
    card_to_payload,
    deck_to_payload,
    preview_to_payload,
)
from memo.config import Config
from memo.constants import DUE_BATCH_SIZE
from memo.db.database import Database
from memo.errors import (
    CardNotFoundError,
    DeckNotFoundError,
    InvalidInputError,
    PersistenceError,
)
from memo.review.service import ReviewService
from memo.srs.conversions import format_timestamp, memory_to_record
from memo.srs.scheduler import Scheduler


console = Console()

# Global state
config: Config | None = None
service: ReviewService | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources on startup."""
    global config, service
    config = Config.from_env()
    config.ensure_database_dir()
    db = Database(config.database_path)
    db.init_schema()
    service = ReviewService(db, Scheduler(config.scheduler_parameters()))
    console.print(f"[green]Memo API initialized ({config.database_path})[/green]")
    yield
    db.close()
    console.print("[yellow]Memo API shutting down[/yellow]")


app = FastAPI(lifespan=lifespan)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    """Report request validation failures in the same shape as other errors."""
    errors = exc.errors()
    if not errors:
        return _error(422, "Invalid request")
    first = errors[0]
    field = ".".join(str(part) for part in first["loc"] if part not in ("body", "query", "path"))
    if field.startswith("rating"):
        return _error(422, f"Invalid rating: {first.get('input')!r}")
    return _error(422, f"Invalid request: {field} {first['msg']}")


def _max_batch_size() -> int:
    return config.due_batch_size if config else DUE_BATCH_SIZE


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/api/decks")
async def list_decks():
    return {"decks": [deck_to_payload(deck) for deck in service.db.get_all_decks()]}


@app.post("/api/decks", status_code=201)
async def create_deck(body: CreateDeckRequest):
    try:
        deck = service.create_deck(body.name, body.description)
    except InvalidInputError as e:
        return _error(422, str(e))
    return deck_to_payload(deck)


@app.get("/api/decks/{deck_id}/due")
async def due_cards(deck_id: int, limit: int | None = Query(default=None, ge=1)):
    """Cards due now in a deck, ranked for a study session."""
    max_batch = _max_batch_size()
    try:
        cards = service.get_due_cards(deck_id, limit=min(limit or max_batch, max_batch))
    except DeckNotFoundError:
        return _error(404, "Deck not found")
    return {"cards": [card_to_payload(card) for card in cards]}


@app.get("/api/decks/{deck_id}/cards")
async def list_cards(deck_id: int):
    try:
        cards = service.get_cards(deck_id)
    except DeckNotFoundError:
        return _error(404, "Deck not found")
    return {"cards": [card_to_payload(card) for card in cards]}


@app.post("/api/decks/{deck_id}/cards", status_code=201)
async def create_card(deck_id: int, body: CreateCardRequest):
    try:
        card = service.create_card(deck_id, body.front, body.back, body.tags)
    except DeckNotFoundError:
        return _error(404, "Deck not found")
    except InvalidInputError as e:
        return _error(422, str(e))
    return card_to_payload(card)


@app.get("/api/cards/{card_id}/preview")
async def preview_card(card_id: int):
    """Resulting interval for each rating, for labelling the rating buttons."""
    try:
        previews = service.preview_card(card_id)
    except CardNotFoundError:
        return _error(404, "Card not found")
    return {"previews": [preview_to_payload(item) for item in previews]}


@app.post("/api/review")
async def review(body: ReviewRequest):
    """Apply a rating to a card and return when it is next due."""
    try:
        outcome = service.review_card(body.cardId, body.rating, duration_ms=body.durationMs)
    except InvalidInputError as e:
        return _error(422, str(e))
    except CardNotFoundError:
        return _error(404, "Card not found")
    except PersistenceError as e:
        console.print(f"[red]Review update failed: {e}[/red]")
        return _error(500, "Failed to update card")

    return {
        "success": True,
        "nextDue": format_timestamp(outcome.due),
        "memory": memory_to_record(outcome.memory),
    }
