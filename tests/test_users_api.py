"""Integration tests for the user service in both profile update modes."""

import pytest
from httpx import ASGITransport, AsyncClient

from bookexchange.books.schemas import CreateBookResponse
from bookexchange.main import user_app
from bookexchange.schemas import EventResponse
from bookexchange.users.router import get_user_service
from bookexchange.users.schemas import CreateUserResponse
from bookexchange.users.service import UserService
from tests.fixtures import create_test_user


@pytest.fixture
async def events_mode_client(db):
    """User service that only appends profile updates to the event log."""
    service = UserService(db, profile_update_mode="events")
    user_app.dependency_overrides[get_user_service] = lambda: service
    async with AsyncClient(
        transport=ASGITransport(app=user_app),
        base_url="http://test",
    ) as client:
        yield client
    user_app.dependency_overrides.clear()


class TestCreateUser:
    async def test_create_user_returns_event_and_user(self, user_client):
        data = await create_test_user(user_client)
        assert data["message"] == "User created and event stored"
        assert data["user"]["userId"] == 1
        assert data["event"]["eventType"] == "UserRegistered"
        assert data["event"]["data"]["userId"] == 1
        assert data["event"]["data"]["preferences"] == {"genres": ["Fiction"]}

    async def test_get_after_create(self, user_client):
        await create_test_user(user_client, username="ana", city="Porto")
        resp = await user_client.get("/users/1")
        assert resp.status_code == 200
        user = resp.json()
        assert user["userId"] == 1
        assert user["username"] == "ana"
        assert user["email"] == "reader@example.com"
        assert user["city"] == "Porto"
        assert user["preferences"] == {"genres": ["Fiction"]}

    async def test_create_user_storage_failure(self, user_client, db):
        await db.execute("DROP TABLE users")
        resp = await user_client.post("/users", json={"username": "x"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to create user"}


class TestGetUser:
    async def test_unknown_user_is_404(self, user_client):
        resp = await user_client.get("/users/77")
        assert resp.status_code == 404
        assert resp.json() == {"error": "User not found"}

    async def test_liveness(self, user_client):
        resp = await user_client.get("/")
        assert resp.text == "User Service is running"

    async def test_id_beyond_integer_range_is_rejected(self, user_client):
        too_big = "99999999999999999999"
        for method, path in [("GET", f"/users/{too_big}"), ("PUT", f"/users/{too_big}")]:
            resp = await user_client.request(method, path, json={})
            assert resp.status_code == 422, path
            assert resp.json()["error"] == "Invalid request"

    def test_responses_share_event_schema_with_books(self):
        assert issubclass(CreateUserResponse, EventResponse)
        assert issubclass(CreateBookResponse, EventResponse)


class TestUpdateUserSnapshotMode:
    async def test_update_returns_event(self, user_client):
        await create_test_user(user_client)
        resp = await user_client.put("/users/1", json={"city": "Faro"})
        assert resp.status_code == 201
        data = resp.json()
        assert data["message"] == "UserProfileUpdated event stored"
        assert data["event"]["eventType"] == "UserProfileUpdated"
        assert data["event"]["data"] == {"userId": 1, "city": "Faro"}

    async def test_update_applies_to_snapshot(self, user_client):
        await create_test_user(user_client, city="Lisbon")
        await user_client.put("/users/1", json={"city": "Faro", "preferences": {"genres": []}})

        user = (await user_client.get("/users/1")).json()
        assert user["city"] == "Faro"
        assert user["preferences"] == {"genres": []}
        assert user["email"] == "reader@example.com"

    async def test_partial_update_keeps_other_fields(self, user_client):
        await create_test_user(user_client, city="Lisbon")
        await user_client.put("/users/1", json={"preferences": {"genres": ["Poetry"]}})

        user = (await user_client.get("/users/1")).json()
        assert user["city"] == "Lisbon"
        assert user["preferences"] == {"genres": ["Poetry"]}


class TestUpdateUserEventsMode:
    async def test_update_leaves_snapshot_untouched(self, events_mode_client, db):
        await create_test_user(events_mode_client, city="Lisbon")
        resp = await events_mode_client.put("/users/1", json={"city": "Faro"})
        assert resp.status_code == 201

        row = await db.fetchone("SELECT city FROM users WHERE user_id = 1")
        assert row["city"] == "Lisbon"

    async def test_reads_are_reconstructed_from_events(self, events_mode_client):
        await create_test_user(events_mode_client, city="Lisbon")
        await create_test_user(events_mode_client, username="other", city="Evora")
        await events_mode_client.put("/users/1", json={"city": "Faro"})

        first = (await events_mode_client.get("/users/1")).json()
        second = (await events_mode_client.get("/users/2")).json()
        assert first["city"] == "Faro"
        assert first["preferences"] == {"genres": ["Fiction"]}
        assert second["city"] == "Evora"

    async def test_unknown_user_is_404(self, events_mode_client):
        await events_mode_client.put("/users/5", json={"city": "Nowhere"})
        resp = await events_mode_client.get("/users/5")
        assert resp.status_code == 404
