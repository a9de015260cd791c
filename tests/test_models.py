"""Tests for the event envelope and payload registry."""

import json

import pytest

from bookexchange.models import (
    EVENT_TYPES,
    BookAddedPayload,
    BookReservedPayload,
    BookStatus,
    BookUpdatedPayload,
    EventEnvelope,
    UnknownEventTypeError,
)
from tests.fixtures import at, book_added, book_updated


class TestEnvelopeWrap:
    def test_data_uses_camel_case_keys(self):
        event = book_added(book_id=3, publication_date="1965-08-01")
        assert event.data["bookId"] == 3
        assert event.data["publicationDate"] == "1965-08-01"
        assert "book_id" not in event.data

    def test_partial_payload_only_carries_supplied_keys(self):
        event = book_updated(book_id=1, status=BookStatus.RESERVED)
        assert event.data == {"bookId": 1, "status": "RESERVED"}

    def test_default_version(self):
        assert book_added().version == "1.0"


class TestTypedPayload:
    def test_every_event_type_is_registered(self):
        assert set(EVENT_TYPES) == {
            "BookAdded",
            "BookUpdated",
            "BookReserved",
            "BookReturned",
            "UserRegistered",
            "UserProfileUpdated",
        }

    def test_decodes_to_registered_model(self):
        payload = book_added(book_id=2, name="Dune").typed_payload()
        assert isinstance(payload, BookAddedPayload)
        assert payload.book_id == 2
        assert payload.name == "Dune"

    def test_decodes_status_enum(self):
        payload = book_updated(book_id=1, status=BookStatus.AVAILABLE).typed_payload()
        assert isinstance(payload, BookUpdatedPayload)
        assert payload.status is BookStatus.AVAILABLE

    def test_unknown_type_raises(self):
        event = EventEnvelope(event_type="BookBurned", timestamp=at(0), data={})
        with pytest.raises(UnknownEventTypeError):
            event.typed_payload()

    def test_payload_accepts_snake_case_too(self):
        payload = BookReservedPayload.model_validate({"book_id": 1, "user_id": "u1"})
        assert payload.user_id == "u1"


class TestWireFormat:
    def test_wire_form_is_camel_case_envelope(self):
        event = book_added(book_id=1, timestamp=at(0))
        event.sequence_num = 42
        wire = json.loads(event.to_wire())
        assert set(wire) == {"eventType", "version", "timestamp", "data"}
        assert wire["eventType"] == "BookAdded"
        assert wire["data"]["bookId"] == 1

    def test_wire_form_parses_back(self):
        event = book_added(book_id=1, timestamp=at(0))
        parsed = EventEnvelope.model_validate_json(event.to_wire())
        assert parsed.event_type == "BookAdded"
        assert parsed.timestamp == at(0)
        assert parsed.data == event.data
