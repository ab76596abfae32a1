#!/usr/bin/env python3
"""Initialize the database schema and optionally seed a demo deck."""

from dataclasses import dataclass

from rich.console import Console
from rich.panel import Panel
import simple_parsing as sp

from memo.config import Config
from memo.db.database import Database
from memo.review.service import ReviewService


@dataclass
class Args:
    """Initialize the Memo database."""

    demo: bool = False  # Add a small Spanish vocabulary deck


console = Console()

DEMO_CARDS = [
    ("el perro", "the dog"),
    ("la casa", "the house"),
    ("el libro", "the book"),
    ("la mesa", "the table"),
    ("el agua", "the water"),
    ("la ventana", "the window"),
]


def main() -> None:
    args = sp.parse(Args)
    console.rule("[bold blue]Initializing Memo Database")

    config = Config.from_env()
    config.ensure_database_dir()

    console.print(f"Database path: {config.database_path}")

    db = Database(config.database_path)
    db.init_schema()
    console.print("[green]✓ Schema created[/green]")

    if args.demo:
        service = ReviewService(db)
        deck = service.create_deck("Spanish basics", "Everyday nouns")
        for front, back in DEMO_CARDS:
            service.create_card(deck.id, front, back, tags=["demo"])
        console.print(f"[green]✓ Created deck {deck.id} with {len(DEMO_CARDS)} cards[/green]")

    console.print(Panel("[bold green]Database initialized successfully!", title="Done"))


if __name__ == "__main__":
    main()
