"""
Pydantic models used across the backend.

`EventRecord` is the unit held by the in-memory event store and stored by
the repository. It is frozen: the store hands records out as snapshots and
callers build a new record (or `model_copy`) to change one.

Request shapes (`EventCreate`, `EventUpdate`, ...) validate input at the
FastAPI route boundary and are consumed by `EventService`.

Guidelines:
- Python attributes are snake_case; JSON uses camelCase aliases
  (`startsAt`, `mediaUrls`) so the frontend keeps its wire format.
- Categories and statuses are closed enums with a lenient `parse()` that
  returns None instead of raising; callers decide whether None means
  "ignore this filter" or "reject the request".
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, List, Optional, Tuple
from uuid import UUID, uuid4

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _normalize_name(text: str) -> str:
    return text.replace("_", "").replace(" ", "").lower()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EventCategory(str, Enum):
    COMMUNITY = "Community"
    GOVERNMENT = "Government"
    PUBLIC_SAFETY = "Public_Safety"
    INFRASTRUCTURE = "Infrastructure"
    HEALTH = "Health"
    EDUCATION = "Education"
    RECREATION = "Recreation"
    ENVIRONMENT = "Environment"
    OTHER = "Other"

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["EventCategory"]:
        """Match `text` against member values ignoring case, `_` and spaces.

        "Public Safety", "publicsafety" and "PUBLIC_SAFETY" all parse to
        PUBLIC_SAFETY. Blank or unknown text returns None.
        """
        if text is None:
            return None
        key = _normalize_name(text.strip())
        if not key:
            return None
        for member in cls:
            if _normalize_name(member.value) == key:
                return member
        return None


class EventStatus(str, Enum):
    DRAFT = "Draft"
    PUBLISHED = "Published"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["EventStatus"]:
        if text is None:
            return None
        key = _normalize_name(text.strip())
        for member in cls:
            if _normalize_name(member.value) == key:
                return member
        return None


def _lenient_category(value):
    if isinstance(value, str):
        return EventCategory.parse(value) or value
    return value


def _lenient_status(value):
    if isinstance(value, str):
        return EventStatus.parse(value) or value
    return value


CategoryField = Annotated[EventCategory, BeforeValidator(_lenient_category)]
StatusField = Annotated[EventStatus, BeforeValidator(_lenient_status)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EventRecord(CamelModel):
    """A municipal event as held by the store.

    Fields:
    - `id`: immutable identifier.
    - `starts_at` / `ends_at`: always UTC-aware after validation.
      `ends_at >= starts_at` is enforced by `EventService`, not here.
    - `media_urls`: ordered attachment URLs (tuple, so records stay immutable).
    - `max_attendees`: 0 means unlimited.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    title: str
    description: str = ""
    location: str
    category: CategoryField = EventCategory.COMMUNITY
    starts_at: datetime
    ends_at: Optional[datetime] = None
    status: StatusField = EventStatus.DRAFT
    media_urls: Tuple[str, ...] = ()
    contact_info: Optional[str] = None
    max_attendees: int = Field(default=0, ge=0)
    requires_registration: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None

    @field_validator("starts_at", "ends_at", "created_at", "updated_at")
    @classmethod
    def _normalize_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None


class EventCreate(CamelModel):
    """Body of `POST /api/events`. Timezone rules are checked by the service."""

    title: str
    description: str
    location: str
    starts_at: datetime
    ends_at: Optional[datetime] = None
    category: CategoryField = EventCategory.COMMUNITY
    media_urls: Optional[List[str]] = None
    contact_info: Optional[str] = None
    max_attendees: int = 0
    requires_registration: bool = False


class EventUpdate(CamelModel):
    """Body of `PUT /api/events/{id}`; None or blank means leave unchanged."""

    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    category: Optional[CategoryField] = None
    media_urls: Optional[List[str]] = None
    contact_info: Optional[str] = None
    max_attendees: Optional[int] = None
    requires_registration: Optional[bool] = None


class EventStatusUpdate(CamelModel):
    status: StatusField


class TrackSearchIn(CamelModel):
    query: str = ""


class RecommendationsOut(CamelModel):
    message: str
    count: int
    events: List[EventRecord]


class LocationRecommendationsOut(CamelModel):
    message: str
    count: int
    location: str
    category: str
    events: List[EventRecord]
