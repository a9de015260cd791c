"""Read-model projectors: fold an ordered event log into current entity state.

The read side of the CQRS pattern. A fold always starts from empty state and
consumes the complete, ordered sequence; resuming from a previous result with
only the tail of the log is not supported and can diverge from a full replay.
"""

import logging
from collections.abc import Callable, Iterable

from pydantic import ValidationError

from bookexchange.models import (
    BookAddedPayload,
    BookReservedPayload,
    BookReturnedPayload,
    BookState,
    BookStatus,
    BookUpdatedPayload,
    EventEnvelope,
    UserProfileUpdatedPayload,
    UserRegisteredPayload,
    UserState,
)

logger = logging.getLogger(__name__)


class BookProjector:
    """Folds book events into a mapping of book_id -> BookState."""

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[dict[int, BookState], EventEnvelope], None]] = {
            "BookAdded": self._apply_book_added,
            "BookUpdated": self._apply_book_updated,
            "BookReserved": self._apply_book_reserved,
            "BookReturned": self._apply_book_returned,
        }

    def fold(self, events: Iterable[EventEnvelope]) -> dict[int, BookState]:
        """Replay events in the given order from empty state."""
        books: dict[int, BookState] = {}
        for event in events:
            handler = self._handlers.get(event.event_type)
            if handler is None:
                logger.debug("BookProjector: no handler for %s, skipping", event.event_type)
                continue
            try:
                handler(books, event)
            except ValidationError:
                logger.warning(
                    "BookProjector: malformed %s event (seq=%s), skipping",
                    event.event_type,
                    event.sequence_num,
                )
        return books

    @staticmethod
    def _apply_book_added(books: dict[int, BookState], event: EventEnvelope) -> None:
        payload = BookAddedPayload.model_validate(event.data)
        books[payload.book_id] = BookState(
            **payload.model_dump(), status=BookStatus.AVAILABLE
        )

    @staticmethod
    def _apply_book_updated(books: dict[int, BookState], event: EventEnvelope) -> None:
        payload = BookUpdatedPayload.model_validate(event.data)
        book = books.get(payload.book_id)
        if book is None:
            return
        if payload.name:
            book.name = payload.name
        if payload.status is not None:
            book.status = payload.status

    @staticmethod
    def _apply_book_reserved(books: dict[int, BookState], event: EventEnvelope) -> None:
        payload = BookReservedPayload.model_validate(event.data)
        book = books.get(payload.book_id)
        if book is None:
            return
        book.status = BookStatus.RESERVED
        book.reserved_by = payload.user_id

    @staticmethod
    def _apply_book_returned(books: dict[int, BookState], event: EventEnvelope) -> None:
        payload = BookReturnedPayload.model_validate(event.data)
        book = books.get(payload.book_id)
        if book is None:
            return
        book.status = BookStatus.AVAILABLE
        book.reserved_by = None


class UserProjector:
    """Folds user events into a mapping of user_id -> UserState."""

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[dict[int, UserState], EventEnvelope], None]] = {
            "UserRegistered": self._apply_user_registered,
            "UserProfileUpdated": self._apply_profile_updated,
        }

    def fold(self, events: Iterable[EventEnvelope]) -> dict[int, UserState]:
        users: dict[int, UserState] = {}
        for event in events:
            handler = self._handlers.get(event.event_type)
            if handler is None:
                continue
            try:
                handler(users, event)
            except ValidationError:
                logger.warning(
                    "UserProjector: malformed %s event (seq=%s), skipping",
                    event.event_type,
                    event.sequence_num,
                )
        return users

    @staticmethod
    def _apply_user_registered(users: dict[int, UserState], event: EventEnvelope) -> None:
        payload = UserRegisteredPayload.model_validate(event.data)
        users[payload.user_id] = UserState(**payload.model_dump())

    @staticmethod
    def _apply_profile_updated(users: dict[int, UserState], event: EventEnvelope) -> None:
        payload = UserProfileUpdatedPayload.model_validate(event.data)
        user = users.get(payload.user_id)
        if user is None:
            return
        # Only keys present in the event are applied.
        if "city" in payload.model_fields_set:
            user.city = payload.city
        if "preferences" in payload.model_fields_set:
            user.preferences = payload.preferences
