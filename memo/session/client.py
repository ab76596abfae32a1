"""Review clients used by study sessions.

A client is the session's persistence collaborator: it saves one rating and
reports the card's new memory state. Any failure surfaces as
ReviewSubmitError so the session can leave its queue untouched and let the
user retry.
"""

import asyncio
import sqlite3
from typing import Protocol

import httpx

from memo.api.schemas import card_from_payload
from memo.constants import DUE_BATCH_SIZE
from memo.db.models import Card
from memo.errors import MemoError, ReviewSubmitError
from memo.review.service import ReviewOutcome, ReviewService
from memo.srs.conversions import memory_from_record
from memo.srs.models import Rating


class ReviewClient(Protocol):
    async def submit_review(
        self, card_id: int, rating: Rating, duration_ms: int | None = None
    ) -> ReviewOutcome: ...


class LocalReviewClient:
    """Saves reviews through an in-process ReviewService."""

    def __init__(self, service: ReviewService):
        self.service = service

    async def submit_review(
        self, card_id: int, rating: Rating, duration_ms: int | None = None
    ) -> ReviewOutcome:
        try:
            return await asyncio.to_thread(
                self.service.review_card, card_id, rating, duration_ms=duration_ms
            )
        except MemoError as e:
            raise ReviewSubmitError(str(e)) from e
        except sqlite3.Error as e:
            raise ReviewSubmitError(f"Database error: {e}") from e

    async def fetch_due_cards(self, deck_id: int, limit: int = DUE_BATCH_SIZE) -> list[Card]:
        return await asyncio.to_thread(self.service.get_due_cards, deck_id, limit=limit)


class HttpReviewClient:
    """Saves reviews through the HTTP API."""

    def __init__(self, base_url: str, timeout: float = 10.0, client: httpx.AsyncClient | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        if self._client is not None:
            return await self._client.request(method, url, timeout=self.timeout, **kwargs)
        async with httpx.AsyncClient() as client:
            return await client.request(method, url, timeout=self.timeout, **kwargs)

    async def submit_review(
        self, card_id: int, rating: Rating, duration_ms: int | None = None
    ) -> ReviewOutcome:
        body = {"cardId": card_id, "rating": int(rating)}
        if duration_ms is not None:
            body["durationMs"] = duration_ms

        try:
            response = await self._request("POST", "/api/review", json=body)
        except httpx.HTTPError as e:
            raise ReviewSubmitError(f"Could not reach review server: {e}") from e

        if response.status_code != 200:
            raise ReviewSubmitError(f"Failed to save review ({response.status_code}): {_error_text(response)}")

        try:
            data = response.json()
            memory = memory_from_record(data["memory"])
        except (ValueError, KeyError, TypeError) as e:
            raise ReviewSubmitError(f"Malformed review response: {e}") from e
        return ReviewOutcome(card_id=card_id, memory=memory)

    async def fetch_due_cards(self, deck_id: int, limit: int = DUE_BATCH_SIZE) -> list[Card]:
        """Fetch the ranked batch of due cards for a deck.

        Raises:
            httpx.HTTPError: On transport failure or a non-success response
        """
        response = await self._request("GET", f"/api/decks/{deck_id}/due", params={"limit": limit})
        response.raise_for_status()
        return [card_from_payload(item) for item in response.json()["cards"]]


def _error_text(response: httpx.Response) -> str:
    try:
        return response.json().get("error", response.text)
    except ValueError:
        return response.text
