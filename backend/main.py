from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID
import logging

from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from logging_config import setup_logging
from models import (
    EventCreate,
    EventRecord,
    EventStatusUpdate,
    EventUpdate,
    LocationRecommendationsOut,
    RecommendationsOut,
    TrackSearchIn,
)
from repo_events import EventRepo
from service_events import EventService
from settings import settings, validate_settings
from store_events import EventStore

logger = logging.getLogger(__name__)

NOT_FOUND = "Event not found"


def build_service() -> EventService:
    """Wire the store (and the repository when DB_URL is set) into a service."""

    repo = EventRepo() if settings.db_url else None
    store = EventStore(recently_viewed_capacity=settings.recently_viewed_capacity)
    return EventService(store, repo)


def create_app(svc: EventService, seed_demo: bool = False) -> FastAPI:
    """Build the API around one shared `EventService`.

    Routes stay thin: parse parameters, call the service, map outcomes to
    status codes. Tests pass their own service (empty store, fake repo).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        for problem in validate_settings(settings):
            logger.warning("Configuration problem: %s", problem)
        svc.bootstrap(seed_demo)
        yield

    app = FastAPI(title="Municipal Events Backend", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def bad_request(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
            for e in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"detail": errors})

    # ---------------------------------------------------------------- health

    @app.get("/health")
    def health():
        try:
            svc.health_check()
            return {"ok": True}
        except Exception:
            logger.exception("Health check failed")
            raise HTTPException(status_code=500, detail="DB health check failed")

    @app.get("/api/health/ping")
    def ping():
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    # ------------------------------------------------- index backed features
    # Declared before /api/events/{event_id} so the literal paths win.

    @app.get("/api/events/service/all", response_model=List[EventRecord])
    def all_from_service():
        try:
            return svc.all_events()
        except Exception:
            logger.exception("Error getting events from service")
            raise HTTPException(status_code=500, detail="Error retrieving events")

    @app.get("/api/events/search", response_model=List[EventRecord])
    def search(
        query: Optional[str] = None,
        category: Optional[str] = None,
        start_date: Optional[datetime] = Query(None, alias="startDate"),
        end_date: Optional[datetime] = Query(None, alias="endDate"),
    ):
        try:
            return svc.search(query, category, start_date, end_date)
        except Exception:
            logger.exception("Error searching events")
            raise HTTPException(status_code=500, detail="Error searching events")

    @app.get("/api/events/recommendations", response_model=RecommendationsOut)
    def recommendations(count: int = 5, area: Optional[str] = None):
        try:
            events = svc.recommendations(count, area)
        except Exception:
            logger.exception("Error getting recommendations")
            raise HTTPException(status_code=500, detail="Error generating recommendations")
        return RecommendationsOut(
            message="Based on your search history, you may like these events:",
            count=len(events),
            events=events,
        )

    @app.get("/api/events/recommendations/location", response_model=LocationRecommendationsOut)
    def location_recommendations(count: int = 5, location: str = "", category: str = ""):
        try:
            events = svc.location_recommendations(count, location, category)
        except Exception:
            logger.exception("Error getting location-based recommendations")
            raise HTTPException(
                status_code=500, detail="Error generating location-based recommendations"
            )
        suffix = f" in {category} category" if category and category != "all" else ""
        return LocationRecommendationsOut(
            message=f"Events recommended for {location}{suffix}",
            count=len(events),
            location=location,
            category=category,
            events=events,
        )

    @app.post("/api/events/track-search")
    def track_search(body: TrackSearchIn):
        try:
            svc.track_search(body.query)
        except Exception:
            logger.exception("Error tracking search")
            raise HTTPException(status_code=500, detail="Error tracking search")
        return {"message": "Search tracked successfully"}

    @app.get("/api/events/recently-viewed", response_model=List[EventRecord])
    def recently_viewed(count: int = 5):
        try:
            return svc.recently_viewed(count)
        except Exception:
            logger.exception("Error getting recently viewed events")
            raise HTTPException(status_code=500, detail="Error retrieving recently viewed events")

    @app.get("/api/events/upcoming", response_model=List[EventRecord])
    def upcoming(count: int = 10):
        try:
            return svc.upcoming(count)
        except Exception:
            logger.exception("Error getting upcoming events")
            raise HTTPException(status_code=500, detail="Error retrieving upcoming events")

    @app.get("/api/events/categories", response_model=List[str])
    def categories():
        try:
            return svc.categories()
        except Exception:
            logger.exception("Error getting categories")
            raise HTTPException(status_code=500, detail="Error retrieving categories")

    # ------------------------------------------------------------------ CRUD

    @app.post("/api/events", response_model=EventRecord, status_code=201)
    def create_event(payload: EventCreate):
        try:
            return svc.create_event(payload)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception:
            logger.exception("Error creating event")
            raise HTTPException(
                status_code=500,
                detail="An error occurred while creating the event. Please try again.",
            )

    @app.get("/api/events", response_model=List[EventRecord])
    def list_events(
        status: Optional[str] = None,
        category: Optional[str] = None,
        from_date: Optional[datetime] = Query(None, alias="fromDate"),
        to_date: Optional[datetime] = Query(None, alias="toDate"),
    ):
        try:
            return svc.list_events(status, category, from_date, to_date)
        except Exception:
            logger.exception("Error fetching events")
            raise HTTPException(
                status_code=500,
                detail="An error occurred while fetching events. Please try again.",
            )

    @app.get("/api/events/{event_id}", response_model=EventRecord)
    def get_event(event_id: UUID):
        try:
            event = svc.get_event(event_id)
        except Exception:
            logger.exception("Error fetching event %s", event_id)
            raise HTTPException(status_code=500, detail="An error occurred while fetching the event.")
        if event is None:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return event

    @app.put("/api/events/{event_id}", response_model=EventRecord)
    def update_event(event_id: UUID, patch: EventUpdate):
        try:
            event = svc.update_event(event_id, patch)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception:
            logger.exception("Error updating event %s", event_id)
            raise HTTPException(status_code=500, detail="An error occurred while updating the event.")
        if event is None:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return event

    @app.put("/api/events/{event_id}/status", response_model=EventRecord)
    def update_event_status(event_id: UUID, body: EventStatusUpdate):
        try:
            event = svc.update_status(event_id, body.status)
        except Exception:
            logger.exception("Error updating event status %s", event_id)
            raise HTTPException(
                status_code=500, detail="An error occurred while updating the event status."
            )
        if event is None:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return event

    @app.delete("/api/events/{event_id}", status_code=204)
    def delete_event(event_id: UUID):
        try:
            deleted = svc.delete_event(event_id)
        except Exception:
            logger.exception("Error deleting event %s", event_id)
            raise HTTPException(status_code=500, detail="An error occurred while deleting the event.")
        if not deleted:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return Response(status_code=204)

    return app


# Instantiate the service once here so every request shares one store.
# Tests build their own app with `create_app()` instead of using this one.
setup_logging(settings.log_level, settings.log_format)
svc = build_service()
app = create_app(svc, seed_demo=settings.seed_demo_events)
