"""Schemas shared by the book and user services."""

from typing import Annotated

from fastapi import Path

from bookexchange.models import CamelModel, EventEnvelope

# SQLite INTEGER is a signed 64-bit value; store-assigned ids start at 1.
MAX_ROW_ID = 2**63 - 1

RowId = Annotated[int, Path(ge=1, le=MAX_ROW_ID)]


class EventResponse(CamelModel):
    message: str
    event: EventEnvelope
