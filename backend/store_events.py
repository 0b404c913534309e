"""
In-memory event store: the secondary index behind the events API.

The relational database is the system of record; this store keeps a
process-wide index of the same events so that chronological listing,
search, view history and recommendations never touch SQL. One instance
is created at startup, owned by `EventService` and shared by every
request thread.

Indexes kept (all mutated only while holding `_lock`):
- `_by_id`: id -> record.
- `_by_date`: UTC date of `starts_at` -> records in insertion order, with
  `_dates` holding the sorted keys. The date is a grouping key only; the
  full timestamp is the sort key.
- `_category_usage`: category -> number of indexed records using it.
- `_recently_viewed`: bounded stack of viewed ids, most recent first.
  Repeats are kept; they are collapsed on read.
- `_upcoming`: FIFO of ids whose `starts_at` was in the future when they
  were added. Never re-checked against the clock on read.
- `_search_frequency`: lower-cased trimmed term -> count.

Nothing here raises for a missing id, an unparseable category or an empty
result; callers get None / an empty list instead. Records are frozen
pydantic models, so everything returned is a safe snapshot.
"""

import bisect
import logging
import threading
from collections import Counter, deque
from datetime import date, datetime
from itertools import islice
from typing import Callable, Dict, Iterable, List, Optional
from uuid import UUID

from models import EventCategory, EventRecord, as_utc, utc_now

logger = logging.getLogger(__name__)


RECENTLY_VIEWED_CAPACITY = 20
TOP_SEARCH_TERMS = 3


class EventStore:
    """Lock-guarded event index with view tracking and recommendations.

    Example usage:
        store = EventStore()
        store.seed(demo_events(utc_now()))
        store.get_recommendations(5, area="Phoenix")
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        recently_viewed_capacity: int = RECENTLY_VIEWED_CAPACITY,
    ):
        self._clock = clock or utc_now
        # Reentrant: search/recommendations call other locked operations.
        self._lock = threading.RLock()
        self._by_id: Dict[UUID, EventRecord] = {}
        self._by_date: Dict[date, List[EventRecord]] = {}
        self._dates: List[date] = []
        self._category_usage: Counter = Counter()
        self._recently_viewed: deque = deque(maxlen=recently_viewed_capacity)
        self._upcoming: deque = deque()
        self._search_frequency: Dict[str, int] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)

    # ------------------------------------------------------------------
    # writes

    def seed(self, records: Iterable[EventRecord]) -> int:
        """Add `records` in order; returns how many were added."""

        added = 0
        with self._lock:
            for record in records:
                self.add_event(record)
                added += 1
        logger.debug("Seeded %d events", added)
        return added

    def add_event(self, record: EventRecord) -> EventRecord:
        """Index `record` by id, date bucket and category.

        Records starting at or after "now" are also queued as upcoming.
        Re-adding an existing id replaces the earlier record everywhere.
        """

        with self._lock:
            existing = self._by_id.get(record.id)
            if existing is not None:
                self._unindex(existing)
                self._upcoming = deque(i for i in self._upcoming if i != record.id)

            self._by_id[record.id] = record
            self._index(record)

            if record.starts_at >= self._clock():
                self._upcoming.append(record.id)
            return record

    def update_event(self, event_id: UUID, record: EventRecord) -> Optional[EventRecord]:
        """Replace the record stored under `event_id`; None if unknown.

        The stored record always carries `event_id`, whatever `record.id`
        says. Queue and history entries follow the id, so they see the new
        version.
        """

        with self._lock:
            existing = self._by_id.get(event_id)
            if existing is None:
                return None

            self._unindex(existing)
            if record.id != event_id:
                record = record.model_copy(update={"id": event_id})
            self._by_id[event_id] = record
            self._index(record)
            return record

    def remove_event(self, event_id: UUID) -> bool:
        """Drop `event_id` from every index, the queue and view history."""

        with self._lock:
            existing = self._by_id.pop(event_id, None)
            if existing is None:
                return False

            self._unindex(existing)
            self._upcoming = deque(i for i in self._upcoming if i != event_id)
            self._recently_viewed = deque(
                (i for i in self._recently_viewed if i != event_id),
                maxlen=self._recently_viewed.maxlen,
            )
            return True

    def track_search(self, term: Optional[str]) -> None:
        """Count one use of `term` (trimmed, case-insensitive); blank is ignored."""

        if term is None or not term.strip():
            return
        key = term.strip().lower()
        with self._lock:
            self._search_frequency[key] = self._search_frequency.get(key, 0) + 1

    # ------------------------------------------------------------------
    # reads

    def get_all_events(self) -> List[EventRecord]:
        """All records, ascending by `starts_at` (stable within a day)."""

        with self._lock:
            events = [e for day in self._dates for e in self._by_date[day]]
        events.sort(key=lambda e: e.starts_at)
        return events

    def get_event_by_id(self, event_id: UUID) -> Optional[EventRecord]:
        """Look up `event_id` and push it onto the recently-viewed stack."""

        with self._lock:
            record = self._by_id.get(event_id)
            if record is not None:
                self._recently_viewed.appendleft(event_id)
            return record

    def peek_event(self, event_id: UUID) -> Optional[EventRecord]:
        """Look up `event_id` without recording a view."""

        with self._lock:
            return self._by_id.get(event_id)

    def search_events(
        self,
        query: Optional[str] = None,
        category: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[EventRecord]:
        """Conjunctive search over the chronological list.

        Filters apply in order: category, start date, end date, free text.
        A category that does not parse is ignored (and not tracked). A
        matched category and any free-text query are tracked as searches.
        """

        with self._lock:
            results = self.get_all_events()

            if category is not None and category.strip():
                parsed = EventCategory.parse(category)
                if parsed is not None:
                    results = [e for e in results if e.category == parsed]
                    self.track_search(category)

            if start_date is not None:
                start = as_utc(start_date)
                results = [e for e in results if e.starts_at >= start]
            if end_date is not None:
                end = as_utc(end_date)
                results = [e for e in results if e.starts_at <= end]

            if query is not None and query.strip():
                needle = query.lower()
                results = [
                    e for e in results
                    if needle in e.title.lower()
                    or needle in e.description.lower()
                    or needle in e.location.lower()
                ]
                self.track_search(query)

            return results

    def get_recommendations(self, count: int, area: Optional[str] = None) -> List[EventRecord]:
        """Recommend up to `count` events.

        Order of precedence:
        1. no search history and no area: peek the upcoming queue.
        2. future events matching `area` in location or title, if any.
        3. future events mentioning one of the top search terms, most
           frequent term first.
        4. remaining future events, soonest first.
        5. if nothing qualified, future events from the upcoming queue.
        """

        if count <= 0:
            return []
        area = (area or "").strip()

        with self._lock:
            if not self._search_frequency and not area:
                return self._peek_upcoming(count)

            now = self._clock()
            candidates = [e for e in self.get_all_events() if e.starts_at >= now]

            if area:
                needle = area.lower()
                area_matches = [
                    e for e in candidates
                    if needle in e.location.lower() or needle in e.title.lower()
                ]
                if area_matches:
                    return area_matches[:count]

            result: List[EventRecord] = []
            seen = set()
            for term in self._top_search_terms():
                for e in candidates:
                    if e.id not in seen and _mentions(e, term):
                        result.append(e)
                        seen.add(e.id)

            for e in candidates:
                if len(result) >= count:
                    break
                if e.id not in seen:
                    result.append(e)
                    seen.add(e.id)

            if not result:
                result = [e for e in self._resolve(self._upcoming) if e.starts_at >= now]

            return result[:count]

    def get_location_based_recommendations(
        self, count: int, location: str, category: Optional[str] = None
    ) -> List[EventRecord]:
        """Future events near `location`, optionally in one category.

        A record is near when `location` occurs in its location, or the
        first comma-separated part of its location occurs in `location`
        (both case-insensitive). `category` of "" or "all" means any.
        Sorted soonest first, then by how often the title was searched.
        """

        if count <= 0:
            return []
        needle = (location or "").lower()
        wanted = (category or "").strip().lower()

        def near(e: EventRecord) -> bool:
            loc = e.location.lower()
            return needle in loc or loc.split(",")[0] in needle

        def in_category(e: EventRecord) -> bool:
            name = e.category.value.lower()
            return name == wanted or name.replace("_", " ") == wanted

        with self._lock:
            now = self._clock()
            matches = [e for e in self.get_all_events() if near(e)]
            if wanted and wanted != "all":
                matches = [e for e in matches if in_category(e)]
            matches = [e for e in matches if e.starts_at > now]
            matches.sort(
                key=lambda e: (e.starts_at, -self._search_frequency.get(e.title.lower(), 0))
            )
            return matches[:count]

    def get_recently_viewed(self, count: int) -> List[EventRecord]:
        """Latest `count` views with repeats collapsed, most recent first."""

        if count <= 0:
            return []
        with self._lock:
            seen = set()
            out: List[EventRecord] = []
            for event_id in islice(self._recently_viewed, count):
                if event_id in seen:
                    continue
                seen.add(event_id)
                record = self._by_id.get(event_id)
                if record is not None:
                    out.append(record)
            return out

    def get_upcoming_events(self, count: int) -> List[EventRecord]:
        """First `count` queued events; the queue is left untouched."""

        if count <= 0:
            return []
        with self._lock:
            return self._peek_upcoming(count)

    def get_categories(self) -> List[str]:
        """Categories in use, in enumeration order, as display strings."""

        with self._lock:
            return [c.value for c in EventCategory if self._category_usage.get(c, 0) > 0]

    def search_frequency(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._search_frequency)

    # ------------------------------------------------------------------
    # helpers; callers hold the lock

    def _index(self, record: EventRecord) -> None:
        key = record.starts_at.date()
        bucket = self._by_date.get(key)
        if bucket is None:
            bucket = self._by_date[key] = []
            bisect.insort(self._dates, key)
        bucket.append(record)
        self._category_usage[record.category] += 1

    def _unindex(self, record: EventRecord) -> None:
        key = record.starts_at.date()
        bucket = self._by_date.get(key)
        if bucket is not None:
            bucket[:] = [e for e in bucket if e.id != record.id]
            if not bucket:
                del self._by_date[key]
                self._dates.pop(bisect.bisect_left(self._dates, key))

        self._category_usage[record.category] -= 1
        if self._category_usage[record.category] <= 0:
            del self._category_usage[record.category]

    def _resolve(self, ids: Iterable[UUID]) -> List[EventRecord]:
        return [self._by_id[i] for i in ids if i in self._by_id]

    def _peek_upcoming(self, count: int) -> List[EventRecord]:
        return self._resolve(self._upcoming)[:count]

    def _top_search_terms(self) -> List[str]:
        ranked = sorted(self._search_frequency.items(), key=lambda kv: kv[1], reverse=True)
        return [term for term, _ in ranked[:TOP_SEARCH_TERMS]]


def _mentions(record: EventRecord, term: str) -> bool:
    """`term` (already lower-case) occurs in the category, title or description."""
    return (
        term in record.category.value.lower()
        or term in record.title.lower()
        or term in record.description.lower()
    )
