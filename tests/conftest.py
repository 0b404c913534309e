from __future__ import annotations

from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from main import create_app
from models import EventCategory, EventRecord, EventStatus
from service_events import EventService
from store_events import EventStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeRepo:
    """In-memory stand-in for EventRepo with the same method surface."""

    def __init__(self, events: list[EventRecord] | None = None) -> None:
        self.rows: dict[UUID, EventRecord] = {e.id: e for e in events or []}
        self.fail_writes = False
        self.fail_ping = False

    def insert_event(self, record: EventRecord) -> None:
        if self.fail_writes:
            raise RuntimeError("database unavailable")
        self.rows[record.id] = record

    def update_event(self, record: EventRecord) -> bool:
        if self.fail_writes:
            raise RuntimeError("database unavailable")
        if record.id not in self.rows:
            return False
        self.rows[record.id] = record
        return True

    def delete_event(self, event_id: UUID) -> bool:
        if self.fail_writes:
            raise RuntimeError("database unavailable")
        return self.rows.pop(event_id, None) is not None

    def fetch_events(self) -> list[EventRecord]:
        return sorted(self.rows.values(), key=lambda e: e.starts_at)

    def ping(self) -> None:
        if self.fail_ping:
            raise RuntimeError("connection refused")


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def store(clock: FrozenClock) -> EventStore:
    return EventStore(clock=clock)


@pytest.fixture
def make_event() -> Callable[..., EventRecord]:
    def _make(
        title: str = "Sample Event",
        days: float = 1,
        category: EventCategory = EventCategory.COMMUNITY,
        location: str = "Durban City Hall",
        description: str = "Sample description",
        **extra: Any,
    ) -> EventRecord:
        extra.setdefault("status", EventStatus.PUBLISHED)
        return EventRecord(
            title=title,
            description=description,
            location=location,
            category=category,
            starts_at=NOW + timedelta(days=days),
            **extra,
        )

    return _make


@pytest.fixture
def fake_repo() -> FakeRepo:
    return FakeRepo()


@pytest.fixture
def service(store: EventStore, clock: FrozenClock) -> EventService:
    return EventService(store, clock=clock)


@pytest.fixture
def client(service: EventService) -> Generator[TestClient, None, None]:
    app = create_app(service, seed_demo=False)
    with TestClient(app) as test_client:
        yield test_client
