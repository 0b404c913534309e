from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

from fastapi.testclient import TestClient

from main import create_app
from models import EventCategory, EventStatus
from service_events import EventService


def _body(now, **overrides) -> dict:
    body = {
        "title": "Recycling Awareness Day",
        "description": "Drop off recyclables",
        "location": "Durban Solid Waste Depot",
        "startsAt": (now + timedelta(days=8)).isoformat(),
        "endsAt": (now + timedelta(days=8, hours=6)).isoformat(),
        "category": "Environment",
        "mediaUrls": ["/images/recycling.jpg"],
        "maxAttendees": 0,
        "requiresRegistration": False,
    }
    body.update(overrides)
    return body


def test_create_then_get_event(client, now):
    created = client.post("/api/events", json=_body(now))
    assert created.status_code == 201
    data = created.json()
    assert data["status"] == "Published"
    assert data["category"] == "Environment"
    assert data["mediaUrls"] == ["/images/recycling.jpg"]

    fetched = client.get(f"/api/events/{data['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == data

    recent = client.get("/api/events/recently-viewed").json()
    assert [e["id"] for e in recent] == [data["id"]]


def test_create_with_naive_timestamp_is_bad_request(client, now):
    resp = client.post("/api/events", json=_body(now, startsAt="2026-05-01T09:00:00", endsAt=None))

    assert resp.status_code == 400
    assert "timezone" in resp.json()["detail"]


def test_create_with_missing_field_is_bad_request(client, now):
    body = _body(now)
    del body["title"]

    assert client.post("/api/events", json=body).status_code == 400


def test_get_unknown_and_malformed_ids(client):
    assert client.get(f"/api/events/{uuid4()}").status_code == 404
    assert client.get("/api/events/not-a-uuid").status_code == 400


def test_update_event_and_status(client, now):
    event_id = client.post("/api/events", json=_body(now)).json()["id"]

    updated = client.put(f"/api/events/{event_id}", json={"title": "Recycling Day", "location": ""})
    assert updated.status_code == 200
    assert updated.json()["title"] == "Recycling Day"
    assert updated.json()["location"] == "Durban Solid Waste Depot"
    assert updated.json()["updatedAt"] is not None

    status = client.put(f"/api/events/{event_id}/status", json={"status": "cancelled"})
    assert status.status_code == 200
    assert status.json()["status"] == "Cancelled"

    assert client.put(f"/api/events/{uuid4()}", json={"title": "x"}).status_code == 404
    assert client.put(f"/api/events/{uuid4()}/status", json={"status": "Draft"}).status_code == 404


def test_update_with_end_before_start_is_bad_request(client, now):
    event_id = client.post("/api/events", json=_body(now)).json()["id"]

    resp = client.put(
        f"/api/events/{event_id}", json={"startsAt": (now + timedelta(days=20)).isoformat()}
    )

    assert resp.status_code == 400


def test_delete_event(client, now):
    event_id = client.post("/api/events", json=_body(now)).json()["id"]

    assert client.delete(f"/api/events/{event_id}").status_code == 204
    assert client.delete(f"/api/events/{event_id}").status_code == 404
    assert client.get(f"/api/events/{event_id}").status_code == 404


def test_list_events_filters(client, store, make_event, now):
    store.seed([
        make_event("draft", days=1, status=EventStatus.DRAFT),
        make_event("health", days=2, category=EventCategory.HEALTH),
        make_event("later", days=9),
    ])

    def titles(resp):
        return [e["title"] for e in resp.json()]

    assert titles(client.get("/api/events")) == ["draft", "health", "later"]
    assert titles(client.get("/api/events", params={"status": "Published"})) == ["health", "later"]
    assert titles(client.get("/api/events", params={"category": "Health"})) == ["health"]
    to_date = (now + timedelta(days=5)).isoformat()
    assert titles(client.get("/api/events", params={"toDate": to_date})) == ["draft", "health"]


def test_service_all_is_chronological(client, store, make_event):
    store.seed([make_event("third", days=3), make_event("first", days=1), make_event("second", days=2)])

    resp = client.get("/api/events/service/all")

    assert [e["title"] for e in resp.json()] == ["first", "second", "third"]


def test_search_tracks_terms_that_drive_recommendations(client, store, make_event):
    store.seed([
        make_event("Craft Fair", days=1),
        make_event("Free Health Screening", days=4, category=EventCategory.HEALTH),
    ])

    found = client.get("/api/events/search", params={"query": "health"})
    assert [e["title"] for e in found.json()] == ["Free Health Screening"]

    recs = client.get("/api/events/recommendations", params={"count": 2}).json()
    assert recs["message"] == "Based on your search history, you may like these events:"
    assert recs["count"] == 2
    assert [e["title"] for e in recs["events"]] == ["Free Health Screening", "Craft Fair"]


def test_recommendations_cold_start_uses_upcoming_queue(client, store, make_event):
    store.seed([make_event("b", days=5), make_event("a", days=1)])

    recs = client.get("/api/events/recommendations").json()

    assert [e["title"] for e in recs["events"]] == ["b", "a"]


def test_location_recommendations_payload(client, store, make_event):
    store.seed([
        make_event("Garden Launch", days=9, location="Phoenix Community Park"),
        make_event("Clean-Up Drive", days=7, location="Durban Beachfront"),
    ])

    resp = client.get(
        "/api/events/recommendations/location",
        params={"count": 3, "location": "Phoenix", "category": "Community"},
    ).json()

    assert resp["message"] == "Events recommended for Phoenix in Community category"
    assert resp["count"] == 1
    assert resp["location"] == "Phoenix"
    assert resp["category"] == "Community"
    assert [e["title"] for e in resp["events"]] == ["Garden Launch"]


def test_track_search_endpoint(client, store):
    resp = client.post("/api/events/track-search", json={"query": "Water"})

    assert resp.status_code == 200
    assert resp.json() == {"message": "Search tracked successfully"}
    assert store.search_frequency() == {"water": 1}


def test_upcoming_and_categories(client, store, make_event):
    store.seed([
        make_event("a", days=1, category=EventCategory.HEALTH),
        make_event("b", days=2, category=EventCategory.COMMUNITY),
        make_event("c", days=-1, category=EventCategory.PUBLIC_SAFETY),
    ])

    upcoming = client.get("/api/events/upcoming", params={"count": 1}).json()
    assert [e["title"] for e in upcoming] == ["a"]
    assert client.get("/api/events/categories").json() == ["Community", "Public_Safety", "Health"]


def test_bad_count_is_bad_request(client):
    assert client.get("/api/events/upcoming", params={"count": "many"}).status_code == 400


def test_unexpected_failure_is_generic_server_error(client, service, monkeypatch):
    def boom():
        raise RuntimeError("index corrupted at 0xdeadbeef")

    monkeypatch.setattr(service, "all_events", boom)

    resp = client.get("/api/events/service/all")

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Error retrieving events"}


def test_health_endpoints(store, clock, fake_repo):
    svc = EventService(store, repo=fake_repo, clock=clock)
    with TestClient(create_app(svc, seed_demo=False)) as client:
        assert client.get("/health").json() == {"ok": True}
        assert client.get("/api/health/ping").json()["status"] == "healthy"

        fake_repo.fail_ping = True
        failed = client.get("/health")
        assert failed.status_code == 500
        assert failed.json() == {"detail": "DB health check failed"}


def test_startup_bootstrap_seeds_demo_events(store, clock):
    svc = EventService(store, clock=clock)
    with TestClient(create_app(svc, seed_demo=True)) as client:
        events = client.get("/api/events/service/all").json()

    assert len(events) == 16
    assert "Public_Safety" in [e["category"] for e in events]
