"""Request and response schemas for book endpoints."""

from bookexchange.models import BookState, BookStatus, CamelModel
from bookexchange.schemas import EventResponse

# -- Requests --


class CreateBookRequest(CamelModel):
    """Every field is optional; missing fields are stored as empty."""

    name: str | None = None
    author: str | None = None
    isbn: str | None = None
    publication_date: str | None = None
    genre: str | None = None


class UpdateBookRequest(CamelModel):
    """Only fields present in the request body are changed."""

    name: str | None = None
    status: BookStatus | None = None


class ReservationRequest(CamelModel):
    """Body for POST /books/{book_id}/reserve and /return."""

    user_id: str | int | None = None


# -- Responses --


class CreateBookResponse(EventResponse):
    book: BookState
