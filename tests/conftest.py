"""Shared pytest fixtures for the book exchange tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from bookexchange.books.router import get_book_service
from bookexchange.books.service import BookService
from bookexchange.db.connection import Database
from bookexchange.events.projector import BookProjector, UserProjector
from bookexchange.events.publisher import EventPublisher
from bookexchange.events.store import EventStore
from bookexchange.main import book_app, user_app
from bookexchange.users.router import get_user_service
from bookexchange.users.service import UserService


@pytest.fixture
async def db():
    """In-memory database for tests."""
    database = await Database.connect(":memory:")
    yield database
    await database.close()


@pytest.fixture
async def event_store(db):
    """EventStore backed by in-memory database."""
    return EventStore(db)


@pytest.fixture
def book_projector():
    return BookProjector()


@pytest.fixture
def user_projector():
    return UserProjector()


@pytest.fixture
def redis_client():
    """Stand-in for redis.asyncio.Redis; publish reports one receiver."""
    client = MagicMock()
    client.publish = AsyncMock(return_value=1)
    return client


@pytest.fixture
def publisher(redis_client):
    return EventPublisher(redis_client)


@pytest.fixture
async def book_service(db, publisher):
    return BookService(db, publisher)


@pytest.fixture
async def user_service(db):
    return UserService(db)


@pytest.fixture
async def client(book_service):
    """Async test client for the book service with an in-memory DB."""
    book_app.dependency_overrides[get_book_service] = lambda: book_service
    async with AsyncClient(
        transport=ASGITransport(app=book_app),
        base_url="http://test",
    ) as client:
        yield client
    book_app.dependency_overrides.clear()


@pytest.fixture
async def user_client(user_service):
    """Async test client for the user service with an in-memory DB."""
    user_app.dependency_overrides[get_user_service] = lambda: user_service
    async with AsyncClient(
        transport=ASGITransport(app=user_app),
        base_url="http://test",
    ) as client:
        yield client
    user_app.dependency_overrides.clear()
