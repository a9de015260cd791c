"""FastAPI application entry points for the book, user and exchange services.

Each service is an independent ASGI app. Stores and channels are opened in the
lifespan and injected into the routers through dependency overrides.
"""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from redis.asyncio import Redis
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookexchange.books.router import get_book_service
from bookexchange.books.router import router as books_router
from bookexchange.books.service import BookService
from bookexchange.config import Settings
from bookexchange.db.connection import Database
from bookexchange.events.publisher import EventPublisher
from bookexchange.exchange.router import router as exchange_router
from bookexchange.users.router import get_user_service
from bookexchange.users.router import router as users_router
from bookexchange.users.service import UserService

logger = logging.getLogger(__name__)

Lifespan = Callable[[FastAPI], AbstractAsyncContextManager[None]]


@asynccontextmanager
async def book_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the database and the events channel, wire the BookService."""
    settings: Settings = app.state.settings
    db = await Database.connect(settings.db_path)
    redis = Redis.from_url(settings.redis_url, decode_responses=True)

    publisher = EventPublisher(redis, settings.events_channel)
    service = BookService(db, publisher, reservation_policy=settings.reservation_policy)
    app.dependency_overrides[get_book_service] = lambda: service

    app.state.db = db
    logger.info("Book Service ready (db=%s, channel=%s)", settings.db_path, settings.events_channel)
    yield

    await redis.aclose()
    await db.close()


@asynccontextmanager
async def user_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the database and wire the UserService."""
    settings: Settings = app.state.settings
    db = await Database.connect(settings.db_path)

    service = UserService(db, profile_update_mode=settings.profile_update_mode)
    app.dependency_overrides[get_user_service] = lambda: service

    app.state.db = db
    logger.info("User Service ready (profile updates: %s)", settings.profile_update_mode)
    yield

    await db.close()


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        {"error": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        {"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        status_code=422,
    )


def _create_app(
    title: str,
    banner: str | None,
    routers: list[APIRouter],
    settings: Settings,
    lifespan: Lifespan | None = None,
) -> FastAPI:
    app = FastAPI(title=title, version="0.1.0", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)

    if banner is not None:

        @app.get("/", response_class=PlainTextResponse)
        async def root() -> str:
            return banner

    for router in routers:
        app.include_router(router)
    return app


def create_book_app(settings: Settings | None = None) -> FastAPI:
    return _create_app(
        "Book Service",
        "Book Service is running",
        [books_router],
        settings or Settings.from_env(),
        lifespan=book_lifespan,
    )


def create_user_app(settings: Settings | None = None) -> FastAPI:
    return _create_app(
        "User Service",
        "User Service is running",
        [users_router],
        settings or Settings.from_env(),
        lifespan=user_lifespan,
    )


def create_exchange_app(settings: Settings | None = None) -> FastAPI:
    # The exchange router serves its own liveness route.
    return _create_app(
        "Exchange Service",
        None,
        [exchange_router],
        settings or Settings.from_env(),
    )


book_app = create_book_app()
user_app = create_user_app()
exchange_app = create_exchange_app()
