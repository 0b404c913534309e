"""
Service / facade layer.

This module implements business rules and normalization before any DB
or index interaction. It is intentionally free of SQL: it calls
`EventRepo` (when a database is configured) and keeps the in-memory
`EventStore` in step. All write paths should go through this service so
the database and the store see the same records in the same order.

Key responsibilities:
- validate event semantics (timezone-aware timestamps, endsAt >= startsAt,
  required text fields, non-negative capacity)
- merge partial updates into a full record
- write through: repository first, then the store, so a failed DB write
  leaves the store untouched
- clamp caller supplied counts/limits to configured maximums
- bootstrap the store on startup (from the DB, or the demo dataset)
"""

import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID, uuid4

from models import (
    EventCategory,
    EventCreate,
    EventRecord,
    EventStatus,
    EventUpdate,
    as_utc,
    utc_now,
)
from repo_events import EventRepo
from seed_data import demo_events
from settings import settings
from store_events import EventStore

logger = logging.getLogger(__name__)


def _check_timestamps(starts_at: Optional[datetime], ends_at: Optional[datetime]) -> None:
    for ts in (starts_at, ends_at):
        if ts is not None and ts.tzinfo is None:
            raise ValueError("Timestamp must include timezone info (e.g., 2026-02-20T10:00:00Z)")


def _check_record(record: EventRecord) -> None:
    if not record.title.strip():
        raise ValueError("Title is required")
    if not record.location.strip():
        raise ValueError("Location is required")
    if record.ends_at is not None and record.ends_at < record.starts_at:
        raise ValueError("endsAt must not be earlier than startsAt")


class EventService:
    """Business rules + validation + write-through to repo and store.

    Example usage:
        svc = EventService(EventStore(), repo=EventRepo())
        svc.bootstrap(seed_demo=True)
        svc.create_event(EventCreate(...))
    """

    def __init__(
        self,
        store: EventStore,
        repo: Optional[EventRepo] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.repo = repo
        self._clock = clock or utc_now
        # Held from peek to save: one read-merge-write at a time.
        self._update_lock = threading.Lock()

    def bootstrap(self, seed_demo: bool) -> int:
        """Fill the store once at startup; returns the number of records.

        Stored events win. With an empty (or no) database the demo
        dataset is used when `seed_demo` is set, and persisted if a
        database is configured.
        """

        if self.repo is not None:
            stored = self.repo.fetch_events()
            if stored:
                count = self.store.seed(stored)
                logger.info("Loaded %d events from the database", count)
                return count

        if not seed_demo:
            logger.info("Starting with an empty event store")
            return 0

        records = demo_events(self._clock())
        if self.repo is not None:
            for record in records:
                self.repo.insert_event(record)
        count = self.store.seed(records)
        logger.info("Seeded %d demo events", count)
        return count

    # ------------------------------------------------------------------
    # writes

    def create_event(self, payload: EventCreate) -> EventRecord:
        """Validate `payload`, persist it and index it as a Published event.

        Raises:
        - `ValueError` for naive timestamps, endsAt < startsAt, blank
          title/location or a negative attendee cap
        """

        _check_timestamps(payload.starts_at, payload.ends_at)
        if payload.max_attendees < 0:
            raise ValueError("maxAttendees must be >= 0 (0 means unlimited)")

        record = EventRecord(
            id=uuid4(),
            title=payload.title.strip(),
            description=payload.description,
            location=payload.location.strip(),
            category=payload.category,
            starts_at=payload.starts_at,
            ends_at=payload.ends_at,
            status=EventStatus.PUBLISHED,
            media_urls=tuple(payload.media_urls or ()),
            contact_info=payload.contact_info,
            max_attendees=payload.max_attendees,
            requires_registration=payload.requires_registration,
            created_at=self._clock(),
        )
        _check_record(record)

        if self.repo is not None:
            self.repo.insert_event(record)
        self.store.add_event(record)
        logger.info("Created event %s (%s)", record.id, record.title)
        return record

    def update_event(self, event_id: UUID, patch: EventUpdate) -> Optional[EventRecord]:
        """Apply the non-blank fields of `patch`; None if the event is unknown."""

        _check_timestamps(patch.starts_at, patch.ends_at)
        if patch.max_attendees is not None and patch.max_attendees < 0:
            raise ValueError("maxAttendees must be >= 0 (0 means unlimited)")

        with self._update_lock:
            current = self.store.peek_event(event_id)
            if current is None:
                return None
            updated = EventRecord.model_validate(
                {**current.model_dump(), **self._changes(patch)}
            )
            _check_record(updated)
            return self._save(event_id, updated)

    def _changes(self, patch: EventUpdate) -> dict:
        changes = {}
        for name in ("title", "description", "location"):
            value = getattr(patch, name)
            if value is not None and value.strip():
                changes[name] = value.strip() if name != "description" else value
        for name in ("starts_at", "ends_at", "category", "contact_info",
                     "max_attendees", "requires_registration"):
            value = getattr(patch, name)
            if value is not None:
                changes[name] = value
        if patch.media_urls is not None:
            changes["media_urls"] = tuple(patch.media_urls)
        changes["updated_at"] = self._clock()
        return changes

    def update_status(self, event_id: UUID, status: EventStatus) -> Optional[EventRecord]:
        with self._update_lock:
            current = self.store.peek_event(event_id)
            if current is None:
                return None
            updated = current.model_copy(update={"status": status, "updated_at": self._clock()})
            return self._save(event_id, updated)

    def delete_event(self, event_id: UUID) -> bool:
        """Delete from the database (if any) and drop from the store."""

        deleted_row = self.repo.delete_event(event_id) if self.repo is not None else False
        removed = self.store.remove_event(event_id)
        if deleted_row or removed:
            logger.info("Deleted event %s", event_id)
        return deleted_row or removed

    def track_search(self, term: Optional[str]) -> None:
        self.store.track_search(term)

    def _save(self, event_id: UUID, record: EventRecord) -> Optional[EventRecord]:
        if self.repo is not None and not self.repo.update_event(record):
            logger.warning("Event %s is indexed but has no database row", event_id)
        saved = self.store.update_event(event_id, record)
        logger.info("Updated event %s", event_id)
        return saved

    # ------------------------------------------------------------------
    # reads

    def list_events(
        self,
        status: Optional[str] = None,
        category: Optional[str] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[EventRecord]:
        """Chronological listing; unparseable status/category are ignored."""

        events = self.store.get_all_events()

        wanted_status = EventStatus.parse(status) if status else None
        if wanted_status is not None:
            events = [e for e in events if e.status == wanted_status]
        wanted_category = EventCategory.parse(category) if category else None
        if wanted_category is not None:
            events = [e for e in events if e.category == wanted_category]
        if from_date is not None:
            start = as_utc(from_date)
            events = [e for e in events if e.starts_at >= start]
        if to_date is not None:
            end = as_utc(to_date)
            events = [e for e in events if e.starts_at <= end]

        cap = settings.max_list_limit
        if limit is not None:
            cap = max(0, min(limit, cap))
        return events[:cap]

    def get_event(self, event_id: UUID) -> Optional[EventRecord]:
        """Look up one event; counts as a view for recently-viewed."""

        return self.store.get_event_by_id(event_id)

    def all_events(self) -> List[EventRecord]:
        return self.store.get_all_events()

    def search(
        self,
        query: Optional[str] = None,
        category: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[EventRecord]:
        return self.store.search_events(query, category, start_date, end_date)

    def recommendations(self, count: int, area: Optional[str] = None) -> List[EventRecord]:
        return self.store.get_recommendations(self._clamp(count), area)

    def location_recommendations(
        self, count: int, location: str, category: Optional[str] = None
    ) -> List[EventRecord]:
        return self.store.get_location_based_recommendations(self._clamp(count), location, category)

    def recently_viewed(self, count: int) -> List[EventRecord]:
        return self.store.get_recently_viewed(self._clamp(count))

    def upcoming(self, count: int) -> List[EventRecord]:
        return self.store.get_upcoming_events(self._clamp(count))

    def categories(self) -> List[str]:
        return self.store.get_categories()

    def health_check(self) -> None:
        """Ping the database when one is configured; raises on failure."""

        if self.repo is not None:
            self.repo.ping()

    @staticmethod
    def _clamp(count: int) -> int:
        return max(0, min(count, settings.max_result_count))
