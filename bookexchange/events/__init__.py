"""Event sourcing: append-only event store, projection and publication."""

from bookexchange.events.projector import BookProjector, UserProjector
from bookexchange.events.publisher import EventPublisher, PublishError
from bookexchange.events.store import EventStore

__all__ = ["BookProjector", "EventPublisher", "EventStore", "PublishError", "UserProjector"]
