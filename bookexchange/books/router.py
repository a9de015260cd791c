"""FastAPI routes for book commands and queries."""

import logging

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, status

from bookexchange.books.schemas import (
    CreateBookRequest,
    CreateBookResponse,
    ReservationRequest,
    UpdateBookRequest,
)
from bookexchange.books.service import (
    BookNotFoundError,
    BookService,
    ReservationConflictError,
)
from bookexchange.events.publisher import PublishError
from bookexchange.models import BookState
from bookexchange.schemas import EventResponse, RowId

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/books", tags=["books"])


def get_book_service() -> BookService:
    """Dependency placeholder — replaced at app startup."""
    raise RuntimeError("BookService not initialized")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_book(
    request: CreateBookRequest,
    service: BookService = Depends(get_book_service),
) -> CreateBookResponse:
    try:
        return await service.create_book(request)
    except (aiosqlite.Error, PublishError):
        logger.exception("Error creating book")
        raise HTTPException(status_code=500, detail="Failed to create book")


@router.put("/{book_id}", status_code=status.HTTP_201_CREATED)
async def update_book(
    book_id: RowId,
    request: UpdateBookRequest,
    service: BookService = Depends(get_book_service),
) -> EventResponse:
    try:
        return await service.update_book(book_id, request)
    except aiosqlite.Error:
        logger.exception("Error updating book %d", book_id)
        raise HTTPException(status_code=500, detail="Failed to update book")


@router.post("/{book_id}/reserve", status_code=status.HTTP_201_CREATED)
async def reserve_book(
    book_id: RowId,
    request: ReservationRequest,
    service: BookService = Depends(get_book_service),
) -> EventResponse:
    try:
        return await service.reserve_book(book_id, request)
    except BookNotFoundError:
        raise HTTPException(status_code=404, detail="Book not found")
    except ReservationConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except aiosqlite.Error:
        logger.exception("Error storing BookReserved for %d", book_id)
        raise HTTPException(status_code=500, detail="Failed to store event")


@router.post("/{book_id}/return", status_code=status.HTTP_201_CREATED)
async def return_book(
    book_id: RowId,
    request: ReservationRequest,
    service: BookService = Depends(get_book_service),
) -> EventResponse:
    try:
        return await service.return_book(book_id, request)
    except BookNotFoundError:
        raise HTTPException(status_code=404, detail="Book not found")
    except ReservationConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except aiosqlite.Error:
        logger.exception("Error storing BookReturned for %d", book_id)
        raise HTTPException(status_code=500, detail="Failed to store event")


@router.get("", response_model_exclude_none=True)
async def list_books(
    service: BookService = Depends(get_book_service),
) -> list[BookState]:
    try:
        return await service.list_books()
    except aiosqlite.Error:
        logger.exception("Error fetching books")
        raise HTTPException(status_code=500, detail="Failed to fetch books")


@router.get("/{book_id}")
async def get_book(
    book_id: RowId,
    service: BookService = Depends(get_book_service),
) -> BookState:
    try:
        return await service.get_book(book_id)
    except BookNotFoundError:
        raise HTTPException(status_code=404, detail="Book not found")
    except aiosqlite.Error:
        logger.exception("Error fetching book %d", book_id)
        raise HTTPException(status_code=500, detail="Failed to fetch book")
