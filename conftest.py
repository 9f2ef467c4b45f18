from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient

from focusflow.main import app, get_flashcard_service, get_planner_service
from focusflow.models import Activity, Card
from focusflow.services import FlashcardService, PlannerService
from focusflow.storage import InMemoryStore

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
DAY = date(2026, 10, 18)


def make_card(**fields) -> Card:
    data = {"id": "card_1", "front": "Q", "back": "A", "deck_id": "deck_1",
            "next_review_date": NOW, "created_at": NOW}
    data.update(fields)
    return Card(**data)


def make_activity(start_time=None, duration_minutes=None, **fields) -> Activity:
    data = {"title": "Activity", "date": DAY, "start_time": start_time, "duration_minutes": duration_minutes}
    data.update(fields)
    return Activity(**data)


class FakeClock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def flashcards(store, clock):
    return FlashcardService(store, clock)


@pytest.fixture
def planner(store):
    return PlannerService(store)


@pytest.fixture
def client(flashcards, planner):
    app.dependency_overrides[get_flashcard_service] = lambda: flashcards
    app.dependency_overrides[get_planner_service] = lambda: planner
    yield TestClient(app)
    app.dependency_overrides.clear()
