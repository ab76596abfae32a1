"""Tests for the HTTP API endpoints."""

import sqlite3
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

import memo.api.server as server_module
from memo.api.server import app
from memo.constants import DUE_BATCH_SIZE
from memo.srs.models import State


@pytest.fixture
def client(service, monkeypatch):
    """Test client wired to the temporary database."""
    monkeypatch.setattr(server_module, "service", service)
    monkeypatch.setattr(server_module, "config", None)
    return TestClient(app)


@pytest.fixture
def card(service, deck, now):
    return service.create_card(deck.id, "el perro", "the dog", now=now)


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestDeckEndpoints:
    """Tests for deck creation and listing."""

    def test_create_and_list(self, client):
        response = client.post("/api/decks", json={"name": "Spanish", "description": "Nouns"})
        assert response.status_code == 201
        assert response.json()["name"] == "Spanish"

        decks = client.get("/api/decks").json()["decks"]
        assert [d["name"] for d in decks] == ["Spanish"]

    def test_create_requires_name(self, client):
        response = client.post("/api/decks", json={"name": ""})
        assert response.status_code == 422
        assert response.json() == {"error": "Name is required"}

    def test_create_card(self, client, deck):
        response = client.post(
            f"/api/decks/{deck.id}/cards", json={"front": "la casa", "back": "the house", "tags": ["home"]}
        )
        assert response.status_code == 201
        body = response.json()
        assert body["front"] == "la casa"
        assert body["state"] == int(State.NEW)
        assert body["tags"] == ["home"]

    def test_create_card_requires_content(self, client, deck):
        response = client.post(f"/api/decks/{deck.id}/cards", json={"front": "", "back": "x"})
        assert response.status_code == 422
        assert response.json() == {"error": "Front and back content are required"}

    def test_create_card_missing_deck(self, client):
        response = client.post("/api/decks/999/cards", json={"front": "a", "back": "b"})
        assert response.status_code == 404


class TestDueEndpoint:
    """Tests for GET /api/decks/{id}/due."""

    def test_returns_due_cards(self, client, deck, card):
        response = client.get(f"/api/decks/{deck.id}/due")
        assert response.status_code == 200
        assert [c["id"] for c in response.json()["cards"]] == [card.id]

    def test_limit(self, client, deck, service, now):
        for i in range(3):
            service.create_card(deck.id, str(i), str(i), now=now)
        response = client.get(f"/api/decks/{deck.id}/due", params={"limit": 2})
        assert len(response.json()["cards"]) == 2

    @pytest.mark.parametrize("limit", [0, -1])
    def test_limit_must_be_positive(self, client, deck, limit):
        response = client.get(f"/api/decks/{deck.id}/due", params={"limit": limit})
        assert response.status_code == 422
        assert "limit" in response.json()["error"]

    def test_limit_capped_at_batch_size(self, client, deck, service, now):
        for i in range(DUE_BATCH_SIZE + 5):
            service.create_card(deck.id, str(i), str(i), now=now)
        response = client.get(f"/api/decks/{deck.id}/due", params={"limit": 500})
        assert response.status_code == 200
        assert len(response.json()["cards"]) == DUE_BATCH_SIZE

    def test_missing_deck(self, client):
        response = client.get("/api/decks/999/due")
        assert response.status_code == 404
        assert response.json() == {"error": "Deck not found"}


class TestListCardsEndpoint:
    """Tests for GET /api/decks/{id}/cards."""

    def test_lists_every_card(self, client, deck, service, now):
        first = service.create_card(deck.id, "uno", "one", now=now)
        second = service.create_card(deck.id, "dos", "two", now=now)
        response = client.get(f"/api/decks/{deck.id}/cards")
        assert response.status_code == 200
        assert [c["id"] for c in response.json()["cards"]] == [first.id, second.id]

    def test_missing_deck(self, client):
        response = client.get("/api/decks/999/cards")
        assert response.status_code == 404
        assert response.json() == {"error": "Deck not found"}


class TestPreviewEndpoint:
    """Tests for GET /api/cards/{id}/preview."""

    def test_preview(self, client, card):
        previews = client.get(f"/api/cards/{card.id}/preview").json()["previews"]
        assert [p["rating"] for p in previews] == [1, 2, 3, 4]
        assert previews[0]["interval"] == "1m"

    def test_missing_card(self, client):
        assert client.get("/api/cards/999/preview").status_code == 404


class TestReviewEndpoint:
    """Tests for POST /api/review."""

    def test_review_success(self, client, card, service):
        response = client.post("/api/review", json={"cardId": card.id, "rating": 3, "durationMs": 1200})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["nextDue"] == body["memory"]["due"]
        assert body["memory"]["state"] == int(State.LEARNING)
        assert service.db.get_review_logs(card.id)[0].duration_ms == 1200

    def test_rating_by_name(self, client, card):
        response = client.post("/api/review", json={"cardId": card.id, "rating": "easy"})
        assert response.status_code == 200

    @pytest.mark.parametrize("rating", [0, 5, "perfect", True, 3.0, 2.5])
    def test_invalid_rating(self, client, card, service, rating):
        response = client.post("/api/review", json={"cardId": card.id, "rating": rating})
        assert response.status_code == 422
        assert "Invalid rating" in response.json()["error"]
        assert service.db.get_card(card.id).memory.state is State.NEW

    def test_card_not_found(self, client):
        response = client.post("/api/review", json={"cardId": 999, "rating": 3})
        assert response.status_code == 404
        assert response.json() == {"error": "Card not found"}

    def test_update_failure(self, client, card, service):
        with patch.object(
            service.db, "update_card_memory", side_effect=sqlite3.OperationalError("disk full")
        ):
            response = client.post("/api/review", json={"cardId": card.id, "rating": 3})
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to update card"}

    def test_log_failure_still_succeeds(self, client, card, service):
        with patch.object(
            service.db, "add_review_log", side_effect=sqlite3.OperationalError("locked")
        ):
            response = client.post("/api/review", json={"cardId": card.id, "rating": 3})
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_missing_fields(self, client):
        """Malformed bodies are rejected by request validation."""
        assert client.post("/api/review", json={"rating": 3}).status_code == 422
