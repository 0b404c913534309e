"""
Repository: SQL operations for `events`.

This file contains only DB interaction code. It maps `EventRecord`
models to SQL parameters and converts DB rows back into records. Keep
business rules out of this module; `EventService` decides when to call
it and keeps the in-memory store in step.

Important notes:
- SQL strings are simple and use positional parameters for psycopg.
- `media_urls` is stored with `Jsonb` so Postgres keeps a native array.
- Enums are stored by value (`"Public_Safety"`, `"Published"`).
- Every write commits before returning.
"""

from typing import Any, List, Sequence
from uuid import UUID

from psycopg.types.json import Jsonb

from db import get_conn
from models import EventRecord


COLUMNS = (
    "id, title, description, location, category, status, starts_at, ends_at, "
    "media_urls, contact_info, max_attendees, requires_registration, "
    "created_at, updated_at"
)


def _to_params(record: EventRecord) -> tuple:
    return (
        record.id,
        record.title,
        record.description,
        record.location,
        record.category.value,
        record.status.value,
        record.starts_at,
        record.ends_at,
        Jsonb(list(record.media_urls)),
        record.contact_info,
        record.max_attendees,
        record.requires_registration,
        record.created_at,
        record.updated_at,
    )


def _from_row(row: Sequence[Any]) -> EventRecord:
    return EventRecord(
        id=row[0],
        title=row[1],
        description=row[2] or "",
        location=row[3],
        category=row[4],
        status=row[5],
        starts_at=row[6],
        ends_at=row[7],
        media_urls=tuple(row[8] or ()),
        contact_info=row[9],
        max_attendees=row[10] or 0,
        requires_registration=bool(row[11]),
        created_at=row[12],
        updated_at=row[13],
    )


class EventRepo:
    """DB access only. No business logic here.

    Responsibilities:
    - Map `EventRecord` -> SQL parameters and rows -> `EventRecord`
    - Keep transaction/commit boundaries local and explicit
    """

    def insert_event(self, record: EventRecord) -> None:
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"INSERT INTO events ({COLUMNS}) "
                    "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
                    _to_params(record),
                )
            conn.commit()

    def update_event(self, record: EventRecord) -> bool:
        """Overwrite every column of `record.id`; False if no such row."""

        params = _to_params(record)
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "UPDATE events SET title=%s, description=%s, location=%s, "
                    "category=%s, status=%s, starts_at=%s, ends_at=%s, media_urls=%s, "
                    "contact_info=%s, max_attendees=%s, requires_registration=%s, "
                    "created_at=%s, updated_at=%s WHERE id=%s",
                    params[1:] + (record.id,),
                )
                updated = cur.rowcount > 0
            conn.commit()
        return updated

    def delete_event(self, event_id: UUID) -> bool:
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM events WHERE id=%s", (event_id,))
                deleted = cur.rowcount > 0
            conn.commit()
        return deleted

    def fetch_events(self) -> List[EventRecord]:
        """Every stored event, oldest `starts_at` first."""

        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {COLUMNS} FROM events ORDER BY starts_at ASC")
                return [_from_row(r) for r in cur.fetchall()]

    def ping(self) -> None:
        """Lightweight DB health check. Raises on error.

        Used by the top-level `/health` endpoint to validate DB reachability.
        """

        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
