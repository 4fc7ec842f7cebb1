"""
Discovery API Tests

Exercises every route through FastAPI's TestClient against an in-memory
SQLite signal store and a small in-memory catalog.

Test Scenarios:
---------------
1. Health: healthy with a reachable database, degraded when ping fails
2. Feeds: per-surface pages, page-to-page exclusion, 400 on bad input
3. Interactions: recorded per step, 400 on malformed events, viral listing
4. Not interested: mark hides a creator, clear restores, outages reported in body
5. People suggestions, config and maintenance sweep

Run:
----
    pytest server/tests/test_api.py -v
"""

import pytest
from fastapi.testclient import TestClient

from discovery import StoreUnavailableError
from discovery.models import ContentClass
from discovery.stores import InMemoryContentRepository
from discovery.tests.factories import FixedClock, content, event, user
from server.app import app
from server.config import ServerConfig
from server.state import AppState, get_state, set_state


def _catalog() -> InMemoryContentRepository:
    repository = InMemoryContentRepository(
        contents=[content(f"v{i:02d}", f"creator-{i % 6}", age_hours=1 + i) for i in range(12)]
        + [content(f"n{i:02d}", f"voice-{i}", content_class=ContentClass.VOICE) for i in range(4)]
        + [content("hot", "creator-9", age_hours=0.5)],
        users=[user(uid) for uid in ("alice", "bob", "carol", "dave")],
    )
    repository.add_follow("alice", "bob")
    repository.add_follow("bob", "carol")
    return repository


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def client(clock):
    state = AppState(ServerConfig(database_url="sqlite://"), repository=_catalog(), clock=clock)
    set_state(state)
    with TestClient(app) as test_client:
        yield test_client
    state.db_engine.dispose()
    set_state(None)


def _ids(response):
    return [item["content_id"] for item in response.json()["items"]]


class TestHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["name"] == "Discovery Engine API"

    def test_healthy(self, client):
        body = client.get("/api/health").json()

        assert body["status"] == "healthy"
        assert body["database"]["available"] is True
        assert body["catalog"] == "InMemoryContentRepository"

    def test_degraded_when_database_unreachable(self, client, monkeypatch):
        def down():
            raise StoreUnavailableError("ping", RuntimeError("connection refused"))

        monkeypatch.setattr(get_state().signal_store, "ping", down)

        body = client.get("/api/health").json()
        assert body["status"] == "degraded"
        assert body["database"]["available"] is False


class TestFeed:
    def test_reels_page(self, client):
        response = client.get("/api/feed/reels", params={"viewer_id": "alice", "page_size": 5})

        assert response.status_code == 200
        body = response.json()
        assert body["surface"] == "reels"
        assert body["count"] == 5
        assert all(item["content_class"] == "VIDEO" for item in body["items"])

    def test_served_items_not_repeated(self, client):
        params = {"viewer_id": "alice", "page_size": 4}
        first = _ids(client.get("/api/feed/reels", params=params))
        second = _ids(client.get("/api/feed/reels", params=params))

        assert first and second
        assert not set(first) & set(second)

    def test_voice_and_extra_exclusions(self, client):
        response = client.get(
            "/api/feed/voice",
            params=[("viewer_id", "alice"), ("page_size", "10"), ("exclude", "n00"), ("exclude", "n01")],
        )
        assert sorted(_ids(response)) == ["n02", "n03"]

    @pytest.mark.parametrize(
        "path,params",
        [
            ("/api/feed/people", {"viewer_id": "alice"}),
            ("/api/feed/stories", {"viewer_id": "alice"}),
            ("/api/feed/reels", {"viewer_id": "alice", "page_size": 0}),
            ("/api/feed/reels", {"viewer_id": "alice", "page_size": 500}),
        ],
    )
    def test_bad_requests(self, client, path, params):
        assert client.get(path, params=params).status_code == 400

    def test_viewer_required(self, client):
        assert client.get("/api/feed/explore").status_code == 422


class TestInteractions:
    def test_record(self, client):
        response = client.post("/api/interactions", json=event("alice", "v01", "LIKE", creator_id="creator-1"))

        assert response.status_code == 200
        steps = response.json()["steps"]
        assert steps["profile"] == "ok"
        assert steps["affinity"] == "ok"
        assert get_state().signal_store.get_interest_profile("alice").video_preference == 53

    def test_malformed_event_rejected(self, client):
        response = client.post("/api/interactions", json={"viewer_id": "alice", "kind": "LIKE"})
        assert response.status_code == 400

    def test_viral_listing(self, client):
        for i in range(5):
            client.post("/api/interactions", json=event(f"u{i}", "hot", "SHARE"))

        body = client.get("/api/content/viral").json()
        assert body["content_ids"] == ["hot"]
        assert client.get("/api/content/viral", params={"content_class": "voice"}).json()["count"] == 0
        assert client.get("/api/content/viral", params={"content_class": "gif"}).status_code == 400


class TestNotInterested:
    def test_creator_mark_hides_and_clear_restores(self, client):
        mark = {"viewer_id": "alice", "target_type": "CREATOR", "target_id": "creator-2", "reason": "not for me"}

        assert client.post("/api/not-interested", json=mark).json()["recorded"] is True
        page = client.get("/api/feed/reels", params={"viewer_id": "alice", "page_size": 12}).json()
        assert all(item["creator_id"] != "creator-2" for item in page["items"])

        cleared = client.post("/api/not-interested", json={**mark, "interested": True}).json()
        assert cleared["recorded"] is True
        assert get_state().exclusions.excluded_creator_ids("alice") == set()

    def test_unknown_target_type(self, client):
        response = client.post(
            "/api/not-interested", json={"viewer_id": "alice", "target_type": "HASHTAG", "target_id": "x"}
        )
        assert response.status_code == 422

    def test_outage_reported_in_body(self, client, monkeypatch):
        def down(*args, **kwargs):
            raise StoreUnavailableError("mark_not_interested", RuntimeError("timeout"))

        monkeypatch.setattr(get_state().exclusions, "mark_not_interested", down)

        response = client.post(
            "/api/not-interested", json={"viewer_id": "alice", "target_type": "CONTENT", "target_id": "v01"}
        )
        assert response.status_code == 200
        assert response.json()["recorded"] is False
        assert "mark_not_interested" in response.json()["error"]


class TestPeople:
    def test_suggestions(self, client):
        response = client.get("/api/people/suggested", params={"viewer_id": "alice", "limit": 10})

        assert response.status_code == 200
        ids = [p["user_id"] for p in response.json()["profiles"]]
        assert "carol" in ids
        assert not {"alice", "bob"} & set(ids)

    def test_invalid_limit(self, client):
        response = client.get("/api/people/suggested", params={"viewer_id": "alice", "limit": 0})
        assert response.status_code == 400


class TestConfigAndMaintenance:
    def test_config(self, client):
        body = client.get("/api/config").json()

        assert body["source"] == "defaults"
        assert body["config"]["min_spacing"] == 4
        assert body["config"]["max_per_creator"] == 3
        assert body["policy"]["fatigue"] == {"skip": 10, "engagement": -2}

    def test_policy(self, client):
        body = client.get("/api/config/policy").json()

        assert body["interaction_deltas"]["SAVE"] == {"profile": 10, "affinity": 20}
        assert body["interaction_deltas"]["VIEW"]["affinity"] is None
        assert body["viral_threshold"] == 5.0

    def test_sweep_seen(self, client, clock):
        client.post("/api/interactions", json=event("alice", "v01", "VIEW"))
        assert client.post("/api/maintenance/sweep-seen").json()["removed"] == 0

        clock.advance(hours=25)
        assert client.post("/api/maintenance/sweep-seen").json()["removed"] == 1
