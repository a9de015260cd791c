"""Append-only event store backed by SQLite."""

import json
from collections.abc import Sequence

from bookexchange.db.connection import Database, Transaction
from bookexchange.models import EventEnvelope

# Equal timestamps fall back to insertion order.
_ORDER_BY = "ORDER BY timestamp ASC, sequence_num ASC"


class EventStore:
    """Append-only event store. The write side of the CQRS pattern."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def append(self, envelope: EventEnvelope, tx: Transaction | None = None) -> int:
        """Append an event and return the assigned sequence_num.

        When ``tx`` is given the insert joins that transaction and is committed
        with it; otherwise it is committed on its own.
        """
        executor = tx if tx is not None else self._db
        cursor = await executor.execute(
            """
            INSERT INTO events (event_type, version, timestamp, data)
            VALUES (?, ?, ?, ?)
            """,
            (
                envelope.event_type,
                envelope.version,
                envelope.timestamp.isoformat(timespec="microseconds"),
                json.dumps(envelope.data),
            ),
        )
        assert cursor.lastrowid is not None
        envelope.sequence_num = cursor.lastrowid
        return cursor.lastrowid

    async def get_events(self, event_types: Sequence[str] | None = None) -> list[EventEnvelope]:
        """Get all events, optionally restricted to some types, in log order."""
        if not event_types:
            rows = await self._db.fetchall(f"SELECT * FROM events {_ORDER_BY}")
        else:
            placeholders = ", ".join("?" for _ in event_types)
            rows = await self._db.fetchall(
                f"SELECT * FROM events WHERE event_type IN ({placeholders}) {_ORDER_BY}",
                tuple(event_types),
            )
        return [self._row_to_envelope(row) for row in rows]

    async def get_events_for(
        self, entity_key: str, entity_id: int, event_types: Sequence[str]
    ) -> list[EventEnvelope]:
        """Get the events of one entity, matched on ``data.<entity_key>``, in log order."""
        placeholders = ", ".join("?" for _ in event_types)
        rows = await self._db.fetchall(
            f"SELECT * FROM events WHERE event_type IN ({placeholders}) "
            f"AND json_extract(data, '$.{entity_key}') = ? {_ORDER_BY}",
            (*event_types, entity_id),
        )
        return [self._row_to_envelope(row) for row in rows]

    @staticmethod
    def _row_to_envelope(row) -> EventEnvelope:
        """Convert a database row to an EventEnvelope."""
        return EventEnvelope(
            event_type=row["event_type"],
            version=row["version"],
            timestamp=row["timestamp"],
            data=json.loads(row["data"]),
            sequence_num=row["sequence_num"],
        )
