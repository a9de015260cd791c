"""Shared test helpers: event builders and API shortcuts."""

from datetime import UTC, datetime, timedelta
from typing import Any

from httpx import AsyncClient

from bookexchange.models import (
    BookAddedPayload,
    BookReservedPayload,
    BookReturnedPayload,
    BookUpdatedPayload,
    CamelModel,
    EventEnvelope,
    UserProfileUpdatedPayload,
    UserRegisteredPayload,
)

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def make_event(
    event_type: str, payload: CamelModel, timestamp: datetime | None = None
) -> EventEnvelope:
    """Wrap a payload the same way the services do."""
    return EventEnvelope.wrap(event_type, payload, timestamp or datetime.now(UTC))


def at(seconds: int) -> datetime:
    """A fixed timestamp ``seconds`` after BASE_TIME."""
    return BASE_TIME + timedelta(seconds=seconds)


def book_added(
    book_id: int = 1,
    name: str = "Test Book",
    author: str = "Author",
    isbn: str = "123",
    publication_date: str = "2024-01-01",
    genre: str = "Fiction",
    timestamp: datetime | None = None,
) -> EventEnvelope:
    payload = BookAddedPayload(
        book_id=book_id,
        name=name,
        author=author,
        isbn=isbn,
        publication_date=publication_date,
        genre=genre,
    )
    return make_event("BookAdded", payload, timestamp)


def book_updated(book_id: int = 1, timestamp: datetime | None = None, **fields: Any) -> EventEnvelope:
    return make_event("BookUpdated", BookUpdatedPayload(book_id=book_id, **fields), timestamp)


def book_reserved(
    book_id: int = 1, user_id: str = "u1", timestamp: datetime | None = None
) -> EventEnvelope:
    return make_event("BookReserved", BookReservedPayload(book_id=book_id, user_id=user_id), timestamp)


def book_returned(
    book_id: int = 1, user_id: str = "u1", timestamp: datetime | None = None
) -> EventEnvelope:
    return make_event("BookReturned", BookReturnedPayload(book_id=book_id, user_id=user_id), timestamp)


def user_registered(
    user_id: int = 1,
    username: str = "reader",
    email: str = "reader@example.com",
    city: str = "Lisbon",
    preferences: Any = None,
    timestamp: datetime | None = None,
) -> EventEnvelope:
    payload = UserRegisteredPayload(
        user_id=user_id,
        username=username,
        email=email,
        city=city,
        preferences=preferences,
    )
    return make_event("UserRegistered", payload, timestamp)


def user_profile_updated(
    user_id: int = 1, timestamp: datetime | None = None, **fields: Any
) -> EventEnvelope:
    payload = UserProfileUpdatedPayload(user_id=user_id, **fields)
    return make_event("UserProfileUpdated", payload, timestamp)


# -- API-level helpers --


async def create_test_book(client: AsyncClient, **overrides: Any) -> dict:
    """Create a book via the API and return the response JSON."""
    body = {
        "name": "Test Book",
        "author": "Author",
        "isbn": "123",
        "publicationDate": "2024-01-01",
        "genre": "Fiction",
        **overrides,
    }
    resp = await client.post("/books", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def create_test_user(client: AsyncClient, **overrides: Any) -> dict:
    """Create a user via the API and return the response JSON."""
    body = {
        "username": "reader",
        "email": "reader@example.com",
        "city": "Lisbon",
        "preferences": {"genres": ["Fiction"]},
        **overrides,
    }
    resp = await client.post("/users", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()
