"""SQLite database setup and operations."""

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from memo.constants import DUE_BATCH_SIZE
from memo.errors import CardNotFoundError, DeckNotFoundError
from memo.db.models import Card, Deck
from memo.srs.conversions import (
    format_timestamp,
    memory_from_record,
    memory_to_record,
    parse_optional_timestamp,
    parse_timestamp,
    utc_now,
)
from memo.srs.models import MemoryState, Rating, ReviewLogEntry, State


SCHEMA = """
CREATE TABLE IF NOT EXISTS decks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    description TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS cards (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    deck_id INTEGER NOT NULL REFERENCES decks(id) ON DELETE CASCADE,
    front TEXT NOT NULL,
    back TEXT NOT NULL,
    tags TEXT DEFAULT '[]',
    state INTEGER NOT NULL DEFAULT 0,
    stability REAL NOT NULL DEFAULT 0,
    difficulty REAL NOT NULL DEFAULT 0,
    elapsed_days REAL NOT NULL DEFAULT 0,
    scheduled_days REAL NOT NULL DEFAULT 0,
    learning_steps INTEGER NOT NULL DEFAULT 0,
    reps INTEGER NOT NULL DEFAULT 0,
    lapses INTEGER NOT NULL DEFAULT 0,
    due TEXT NOT NULL,
    last_review TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS review_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    card_id INTEGER NOT NULL REFERENCES cards(id) ON DELETE CASCADE,
    rating INTEGER NOT NULL,
    state INTEGER NOT NULL,
    elapsed_days REAL NOT NULL,
    scheduled_days REAL NOT NULL,
    learning_steps INTEGER NOT NULL DEFAULT 0,
    duration_ms INTEGER,
    review_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_cards_deck_due ON cards(deck_id, due);
CREATE INDEX IF NOT EXISTS idx_review_logs_card ON review_logs(card_id);
"""


class Database:
    """SQLite database wrapper with thread-local connection pooling."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._local = threading.local()
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create a thread-local database connection."""
        if not hasattr(self._local, "conn") or self._local.conn is None:
            self._local.conn = sqlite3.connect(self.db_path)
            self._local.conn.row_factory = sqlite3.Row
            self._local.conn.execute("PRAGMA foreign_keys = ON")
        return self._local.conn

    @contextmanager
    def connection(self):
        """Get a database connection (reuses thread-local connection)."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def close(self) -> None:
        """Close the thread-local connection if open."""
        if hasattr(self._local, "conn") and self._local.conn is not None:
            self._local.conn.close()
            self._local.conn = None

    def init_schema(self) -> None:
        """Initialize the database schema and run migrations."""
        with self.connection() as conn:
            conn.executescript(SCHEMA)
            # Run migrations for existing databases
            self._migrate(conn)

    def _migrate(self, conn: sqlite3.Connection) -> None:
        """Run schema migrations for existing databases."""
        # Databases created before learning steps were tracked
        cursor = conn.execute("PRAGMA table_info(cards)")
        columns = {row[1] for row in cursor.fetchall()}
        if "learning_steps" not in columns:
            conn.execute("ALTER TABLE cards ADD COLUMN learning_steps INTEGER NOT NULL DEFAULT 0")
        if "tags" not in columns:
            conn.execute("ALTER TABLE cards ADD COLUMN tags TEXT DEFAULT '[]'")

        cursor = conn.execute("PRAGMA table_info(review_logs)")
        columns = {row[1] for row in cursor.fetchall()}
        if "learning_steps" not in columns:
            conn.execute("ALTER TABLE review_logs ADD COLUMN learning_steps INTEGER NOT NULL DEFAULT 0")

    # Deck operations
    def create_deck(self, deck: Deck) -> int:
        """Create a deck and return its ID."""
        with self.connection() as conn:
            cursor = conn.execute(
                "INSERT INTO decks (name, description, created_at) VALUES (?, ?, ?)",
                (deck.name, deck.description, format_timestamp(deck.created_at or utc_now())),
            )
            return cursor.lastrowid

    def get_deck(self, deck_id: int) -> Deck | None:
        """Get a deck by ID."""
        with self.connection() as conn:
            row = conn.execute("SELECT * FROM decks WHERE id = ?", (deck_id,)).fetchone()
            if row:
                return self._row_to_deck(row)
            return None

    def get_all_decks(self) -> list[Deck]:
        """Get all decks, oldest first."""
        with self.connection() as conn:
            rows = conn.execute("SELECT * FROM decks ORDER BY id").fetchall()
            return [self._row_to_deck(row) for row in rows]

    def _row_to_deck(self, row: sqlite3.Row) -> Deck:
        return Deck(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            created_at=parse_optional_timestamp(row["created_at"]),
        )

    # Card operations
    def add_card(self, card: Card) -> int:
        """Add a card and return its ID."""
        if self.get_deck(card.deck_id) is None:
            raise DeckNotFoundError(f"Deck {card.deck_id} not found")

        now = format_timestamp(utc_now())
        record = memory_to_record(card.memory)
        with self.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO cards
                (deck_id, front, back, tags, state, stability, difficulty, elapsed_days,
                 scheduled_days, learning_steps, reps, lapses, due, last_review,
                 created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    card.deck_id,
                    card.front,
                    card.back,
                    json.dumps(card.tags),
                    record["state"],
                    record["stability"],
                    record["difficulty"],
                    record["elapsed_days"],
                    record["scheduled_days"],
                    record["learning_steps"],
                    record["reps"],
                    record["lapses"],
                    record["due"],
                    record["last_review"],
                    now,
                    now,
                ),
            )
            return cursor.lastrowid

    def get_card(self, card_id: int) -> Card | None:
        """Get a card by ID."""
        with self.connection() as conn:
            row = conn.execute("SELECT * FROM cards WHERE id = ?", (card_id,)).fetchone()
            if row:
                return self._row_to_card(row)
            return None

    def get_cards_for_deck(self, deck_id: int) -> list[Card]:
        """Get every card in a deck."""
        with self.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM cards WHERE deck_id = ? ORDER BY id",
                (deck_id,),
            ).fetchall()
            return [self._row_to_card(row) for row in rows]

    def get_due_cards(
        self, deck_id: int, now: datetime, limit: int = DUE_BATCH_SIZE
    ) -> list[Card]:
        """Get cards in a deck whose due time has passed, earliest due first."""
        with self.connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM cards
                WHERE deck_id = ? AND due <= ?
                ORDER BY due, id
                LIMIT ?
                """,
                (deck_id, format_timestamp(now), limit),
            ).fetchall()
            return [self._row_to_card(row) for row in rows]

    def update_card_memory(self, card_id: int, memory: MemoryState) -> None:
        """Write a card's new memory state.

        Raises:
            CardNotFoundError: If no card has this ID
        """
        record = memory_to_record(memory)
        with self.connection() as conn:
            cursor = conn.execute(
                """
                UPDATE cards
                SET state = ?, stability = ?, difficulty = ?, elapsed_days = ?,
                    scheduled_days = ?, learning_steps = ?, reps = ?, lapses = ?,
                    due = ?, last_review = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    record["state"],
                    record["stability"],
                    record["difficulty"],
                    record["elapsed_days"],
                    record["scheduled_days"],
                    record["learning_steps"],
                    record["reps"],
                    record["lapses"],
                    record["due"],
                    record["last_review"],
                    format_timestamp(utc_now()),
                    card_id,
                ),
            )
            if cursor.rowcount == 0:
                raise CardNotFoundError(f"Card {card_id} not found")

    def _row_to_card(self, row: sqlite3.Row) -> Card:
        """Convert a database row to a Card."""
        return Card(
            id=row["id"],
            deck_id=row["deck_id"],
            front=row["front"],
            back=row["back"],
            tags=json.loads(row["tags"]) if row["tags"] else [],
            memory=memory_from_record(row),
            created_at=parse_optional_timestamp(row["created_at"]),
            updated_at=parse_optional_timestamp(row["updated_at"]),
        )

    # Review log operations
    def add_review_log(self, entry: ReviewLogEntry) -> int:
        """Append a review log entry and return its ID."""
        with self.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO review_logs
                (card_id, rating, state, elapsed_days, scheduled_days, learning_steps,
                 duration_ms, review_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.card_id,
                    int(entry.rating),
                    int(entry.state),
                    entry.elapsed_days,
                    entry.scheduled_days,
                    entry.learning_steps,
                    entry.duration_ms,
                    format_timestamp(entry.reviewed_at),
                ),
            )
            return cursor.lastrowid

    def get_review_logs(self, card_id: int) -> list[ReviewLogEntry]:
        """Get a card's review history, oldest first."""
        with self.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM review_logs WHERE card_id = ? ORDER BY review_at, id",
                (card_id,),
            ).fetchall()
            return [
                ReviewLogEntry(
                    card_id=row["card_id"],
                    rating=Rating(row["rating"]),
                    state=State(row["state"]),
                    elapsed_days=row["elapsed_days"],
                    scheduled_days=row["scheduled_days"],
                    learning_steps=row["learning_steps"],
                    reviewed_at=parse_timestamp(row["review_at"]),
                    duration_ms=row["duration_ms"],
                )
                for row in rows
            ]
