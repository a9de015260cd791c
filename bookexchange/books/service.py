"""Book service: command handlers and queries over the event log and books snapshot.

Every command writes its snapshot change and its event inside one transaction.
BookAdded is published after the commit; a failed publish surfaces to the
caller even though the rows are already durable.
"""

import logging
from datetime import UTC, datetime

from bookexchange.books.schemas import (
    CreateBookRequest,
    CreateBookResponse,
    ReservationRequest,
    UpdateBookRequest,
)
from bookexchange.db.connection import Database, Transaction
from bookexchange.events.projector import BookProjector
from bookexchange.events.publisher import EventPublisher
from bookexchange.events.store import EventStore
from bookexchange.models import (
    BOOK_EVENT_TYPES,
    BookAddedPayload,
    BookReservedPayload,
    BookReturnedPayload,
    BookState,
    BookStatus,
    BookUpdatedPayload,
    EventEnvelope,
)
from bookexchange.schemas import EventResponse

logger = logging.getLogger(__name__)


class BookService:
    """Coordinates event store, books snapshot, projector and publisher."""

    def __init__(
        self,
        db: Database,
        publisher: EventPublisher,
        reservation_policy: str = "unconditional",
    ) -> None:
        self._db = db
        self._store = EventStore(db)
        self._projector = BookProjector()
        self._publisher = publisher
        self._strict = reservation_policy == "strict"

    # -- Commands --

    async def create_book(self, request: CreateBookRequest) -> CreateBookResponse:
        """Insert the snapshot row, append BookAdded, then publish it."""
        async with self._db.transaction() as tx:
            cursor = await tx.execute(
                """
                INSERT INTO books (name, author, isbn, publication_date, genre, status)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    request.name,
                    request.author,
                    request.isbn,
                    request.publication_date,
                    request.genre,
                    BookStatus.AVAILABLE.value,
                ),
            )
            assert cursor.lastrowid is not None
            payload = BookAddedPayload(book_id=cursor.lastrowid, **request.model_dump())
            event = EventEnvelope.wrap("BookAdded", payload, datetime.now(UTC))
            await self._store.append(event, tx)

        logger.info("Book %d created", payload.book_id)
        await self._publisher.publish(event)

        return CreateBookResponse(
            message="Book created, event stored, and published",
            event=event,
            book=BookState(**payload.model_dump()),
        )

    async def update_book(self, book_id: int, request: UpdateBookRequest) -> EventResponse:
        """Append BookUpdated and overwrite name/status on the snapshot when supplied."""
        payload = BookUpdatedPayload(book_id=book_id, **request.model_dump(exclude_unset=True))
        async with self._db.transaction() as tx:
            await tx.execute(
                """
                UPDATE books
                SET name = COALESCE(NULLIF(?, ''), name),
                    status = COALESCE(?, status)
                WHERE book_id = ?
                """,
                (
                    request.name,
                    request.status.value if request.status is not None else None,
                    book_id,
                ),
            )
            event = EventEnvelope.wrap("BookUpdated", payload, datetime.now(UTC))
            await self._store.append(event, tx)

        return EventResponse(message="BookUpdated event stored and book updated", event=event)

    async def reserve_book(self, book_id: int, request: ReservationRequest) -> EventResponse:
        """Append BookReserved and mark the snapshot RESERVED by the caller."""
        user_id = _user_key(request)
        async with self._db.transaction() as tx:
            if self._strict:
                book = await self._current_book(tx, book_id)
                if book["status"] == BookStatus.RESERVED.value:
                    raise ReservationConflictError(
                        book_id, f"Book {book_id} is already reserved"
                    )
            await tx.execute(
                "UPDATE books SET status = ?, reserved_by = ? WHERE book_id = ?",
                (BookStatus.RESERVED.value, user_id, book_id),
            )
            payload = BookReservedPayload(book_id=book_id, user_id=user_id)
            event = EventEnvelope.wrap("BookReserved", payload, datetime.now(UTC))
            await self._store.append(event, tx)

        return EventResponse(message="BookReserved event stored", event=event)

    async def return_book(self, book_id: int, request: ReservationRequest) -> EventResponse:
        """Append BookReturned and mark the snapshot AVAILABLE again."""
        user_id = _user_key(request)
        async with self._db.transaction() as tx:
            if self._strict:
                book = await self._current_book(tx, book_id)
                if (
                    book["status"] != BookStatus.RESERVED.value
                    or book["reserved_by"] != user_id
                ):
                    raise ReservationConflictError(
                        book_id, f"Book {book_id} is not reserved by {user_id}"
                    )
            await tx.execute(
                "UPDATE books SET status = ?, reserved_by = NULL WHERE book_id = ?",
                (BookStatus.AVAILABLE.value, book_id),
            )
            payload = BookReturnedPayload(book_id=book_id, user_id=user_id)
            event = EventEnvelope.wrap("BookReturned", payload, datetime.now(UTC))
            await self._store.append(event, tx)

        return EventResponse(message="BookReturned event stored", event=event)

    # -- Queries --

    async def list_books(self) -> list[BookState]:
        """Reconstruct every book by folding the full book event log."""
        events = await self._store.get_events(BOOK_EVENT_TYPES)
        books = self._projector.fold(events)
        return [books[book_id] for book_id in sorted(books)]

    async def get_book(self, book_id: int) -> BookState:
        """Point lookup on the books snapshot."""
        row = await self._db.fetchone("SELECT * FROM books WHERE book_id = ?", (book_id,))
        if row is None:
            raise BookNotFoundError(book_id)
        return _book_from_row(row)

    @staticmethod
    async def _current_book(tx: Transaction, book_id: int):
        row = await tx.fetchone("SELECT * FROM books WHERE book_id = ?", (book_id,))
        if row is None:
            raise BookNotFoundError(book_id)
        return row


def _user_key(request: ReservationRequest) -> str | None:
    return str(request.user_id) if request.user_id is not None else None


def _book_from_row(row) -> BookState:
    return BookState(
        book_id=row["book_id"],
        name=row["name"],
        author=row["author"],
        isbn=row["isbn"],
        publication_date=row["publication_date"],
        genre=row["genre"],
        status=row["status"],
        reserved_by=row["reserved_by"],
    )


class BookNotFoundError(Exception):
    def __init__(self, book_id: int) -> None:
        self.book_id = book_id
        super().__init__(f"Book not found: {book_id}")


class ReservationConflictError(Exception):
    def __init__(self, book_id: int, message: str) -> None:
        self.book_id = book_id
        super().__init__(message)
