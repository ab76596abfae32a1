"""Terminal study session.

Run: python -m memo.study --deck_id 1
     python -m memo.study --deck_id 1 --local   # talk to the database directly
"""

import asyncio
from dataclasses import dataclass
from datetime import timedelta
import sqlite3
import time

import httpx
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
import simple_parsing as sp

from memo.config import Config
from memo.constants import RATING_KEYS
from memo.db.database import Database
from memo.errors import MemoError, ReviewSubmitError
from memo.review.service import ReviewService
from memo.session.client import HttpReviewClient, LocalReviewClient
from memo.session.queue import SessionQueue, SessionStatus
from memo.srs.conversions import utc_now
from memo.srs.preview import preview, state_name
from memo.srs.retrievability import retrievability_percent
from memo.srs.scheduler import Scheduler


@dataclass
class Args:
    """Study the due cards of one deck."""

    deck_id: int  # Deck to study
    local: bool = False  # Use the local database instead of the API server
    base_url: str = ""  # API server URL (defaults to API_BASE_URL or host/port)
    env_file: str = ""  # Optional .env file to load


console = Console()


def show_previews(scheduler: Scheduler, card) -> None:
    """Show the interval each rating would give the card."""
    table = Table(show_header=True, header_style="bold")
    for key, name in RATING_KEYS.items():
        table.add_column(f"{key} {name.capitalize()}", justify="center")
    table.add_row(*(item.interval for item in preview(scheduler, card.memory, utc_now())))
    console.print(table)


def read_rating() -> str:
    choice = Prompt.ask("Rating", choices=list(RATING_KEYS), show_choices=True)
    return RATING_KEYS[choice]


async def study(queue: SessionQueue, scheduler: Scheduler) -> None:
    if queue.status is SessionStatus.NO_CARDS_DUE:
        console.print(Panel("[bold green]No cards due!", title="All caught up"))
        return

    while (card := queue.current()) is not None:
        memory = card.memory
        console.rule(f"[bold blue]{queue.remaining} remaining · reviewed {queue.reviewed_count}")
        console.print(
            f"[dim]{state_name(memory.state)} · "
            f"recall {retrievability_percent(memory, utc_now())}%[/dim]"
        )
        console.print(Panel(card.front, title="Front"))

        started = time.monotonic()
        Prompt.ask("[dim]Press Enter to reveal[/dim]", default="", show_default=False)
        console.print(Panel(card.back, title="Back"))
        show_previews(scheduler, card)

        rating = read_rating()
        duration_ms = int((time.monotonic() - started) * 1000)

        while True:
            try:
                result = await queue.submit(rating, duration_ms)
                break
            except ReviewSubmitError as e:
                console.print(f"[red]{e}[/red]")
                if Prompt.ask("Retry?", choices=["y", "n"], default="y") == "n":
                    return

        if result.requeued:
            console.print("[yellow]Card will come back later this session[/yellow]")

    console.print(
        Panel(f"[bold green]Session Complete!\nReviewed {queue.reviewed_count} cards", title="Done")
    )


async def run(args: Args) -> None:
    config = Config.from_env(args.env_file or None)
    scheduler = Scheduler(config.scheduler_parameters())

    if args.local:
        db = Database(config.database_path)
        db.init_schema()
        client = LocalReviewClient(ReviewService(db, scheduler))
    else:
        client = HttpReviewClient(args.base_url or config.base_url, timeout=config.request_timeout)

    try:
        cards = await client.fetch_due_cards(args.deck_id, limit=config.due_batch_size)
    except httpx.ConnectError:
        console.print(Panel("[red]Could not connect to the Memo API. Is it running?", title="Error"))
        return
    except (httpx.HTTPError, MemoError, sqlite3.Error) as e:
        console.print(Panel(f"[red]Could not load due cards: {e}", title="Error"))
        return

    queue = SessionQueue(
        cards,
        client,
        requeue_threshold=timedelta(minutes=config.requeue_threshold_minutes),
    )
    await study(queue, scheduler)


def main() -> None:
    args = sp.parse(Args)
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
