"""Canonical data structures and event types for the book exchange.

Defined once here, referenced everywhere else. Event payloads represent the
type-specific content of each event; the EventEnvelope wraps them with
metadata. Everything that crosses a service boundary uses camelCase keys.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BookStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"


# ---------------------------------------------------------------------------
# Event payloads — one per event type
# ---------------------------------------------------------------------------


class BookAddedPayload(CamelModel):
    book_id: int
    name: str | None = None
    author: str | None = None
    isbn: str | None = None
    publication_date: str | None = None
    genre: str | None = None


class BookUpdatedPayload(CamelModel):
    book_id: int
    name: str | None = None
    status: BookStatus | None = None


class BookReservedPayload(CamelModel):
    book_id: int
    user_id: str | None = None


class BookReturnedPayload(CamelModel):
    book_id: int
    user_id: str | None = None


class UserRegisteredPayload(CamelModel):
    user_id: int
    username: str | None = None
    email: str | None = None
    city: str | None = None
    preferences: Any = None


class UserProfileUpdatedPayload(CamelModel):
    user_id: int
    city: str | None = None
    preferences: Any = None


# ---------------------------------------------------------------------------
# Event type registry
# ---------------------------------------------------------------------------

EVENT_TYPES: dict[str, type[CamelModel]] = {
    "BookAdded": BookAddedPayload,
    "BookUpdated": BookUpdatedPayload,
    "BookReserved": BookReservedPayload,
    "BookReturned": BookReturnedPayload,
    "UserRegistered": UserRegisteredPayload,
    "UserProfileUpdated": UserProfileUpdatedPayload,
}

BOOK_EVENT_TYPES = ("BookAdded", "BookUpdated", "BookReserved", "BookReturned")
USER_EVENT_TYPES = ("UserRegistered", "UserProfileUpdated")

EVENT_VERSION = "1.0"


class UnknownEventTypeError(Exception):
    def __init__(self, event_type: str) -> None:
        self.event_type = event_type
        super().__init__(f"Unknown event type: {event_type}")


# ---------------------------------------------------------------------------
# Event envelope
# ---------------------------------------------------------------------------


class EventEnvelope(CamelModel):
    """Wraps every event with metadata. Stored in the events table."""

    event_type: str
    version: str = EVENT_VERSION
    timestamp: datetime
    data: dict[str, Any] = Field(default_factory=dict)
    sequence_num: int | None = Field(default=None, exclude=True)  # assigned by DB on insert

    @classmethod
    def wrap(cls, event_type: str, payload: CamelModel, timestamp: datetime) -> "EventEnvelope":
        """Build an envelope from a typed payload, storing its camelCase form.

        Only fields that were explicitly set on the payload are written, so a
        partial update event carries exactly the keys the caller supplied.
        """
        return cls(
            event_type=event_type,
            timestamp=timestamp,
            data=payload.model_dump(mode="json", by_alias=True, exclude_unset=True),
        )

    def typed_payload(self) -> CamelModel:
        """Deserialize data into the correct payload model based on event_type."""
        payload_cls = EVENT_TYPES.get(self.event_type)
        if payload_cls is None:
            raise UnknownEventTypeError(self.event_type)
        return payload_cls.model_validate(self.data)

    def to_wire(self) -> str:
        """JSON form published on the event channel."""
        return self.model_dump_json(by_alias=True)


# ---------------------------------------------------------------------------
# Projected state
# ---------------------------------------------------------------------------


class BookState(CamelModel):
    book_id: int
    name: str | None = None
    author: str | None = None
    isbn: str | None = None
    publication_date: str | None = None
    genre: str | None = None
    status: BookStatus = BookStatus.AVAILABLE
    reserved_by: str | None = None


class UserState(CamelModel):
    user_id: int
    username: str | None = None
    email: str | None = None
    city: str | None = None
    preferences: Any = None
