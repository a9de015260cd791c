"""User service: registration, profile updates and lookups.

Profile updates run in one of two modes. In "snapshot" mode the users table is
updated alongside the event and reads come from the table. In "events" mode
only the event is appended and reads reconstruct the user from the event log.
"""

import json
from datetime import UTC, datetime

from bookexchange.db.connection import Database
from bookexchange.events.projector import UserProjector
from bookexchange.events.store import EventStore
from bookexchange.models import (
    USER_EVENT_TYPES,
    EventEnvelope,
    UserProfileUpdatedPayload,
    UserRegisteredPayload,
    UserState,
)
from bookexchange.schemas import EventResponse
from bookexchange.users.schemas import (
    CreateUserRequest,
    CreateUserResponse,
    UpdateUserRequest,
)


class UserService:
    """Coordinates event store, users snapshot and projector."""

    def __init__(self, db: Database, profile_update_mode: str = "snapshot") -> None:
        self._db = db
        self._store = EventStore(db)
        self._projector = UserProjector()
        self._apply_to_snapshot = profile_update_mode == "snapshot"

    async def create_user(self, request: CreateUserRequest) -> CreateUserResponse:
        """Insert the snapshot row and append UserRegistered together."""
        async with self._db.transaction() as tx:
            cursor = await tx.execute(
                """
                INSERT INTO users (username, email, city, preferences)
                VALUES (?, ?, ?, ?)
                """,
                (
                    request.username,
                    request.email,
                    request.city,
                    json.dumps(request.preferences),
                ),
            )
            assert cursor.lastrowid is not None
            payload = UserRegisteredPayload(user_id=cursor.lastrowid, **request.model_dump())
            event = EventEnvelope.wrap("UserRegistered", payload, datetime.now(UTC))
            await self._store.append(event, tx)

        return CreateUserResponse(
            message="User created and event stored",
            event=event,
            user=UserState(**payload.model_dump()),
        )

    async def update_user(self, user_id: int, request: UpdateUserRequest) -> EventResponse:
        """Append UserProfileUpdated; apply it to the snapshot in snapshot mode."""
        changes = request.model_dump(exclude_unset=True)
        payload = UserProfileUpdatedPayload(user_id=user_id, **changes)
        async with self._db.transaction() as tx:
            if self._apply_to_snapshot and changes:
                if "preferences" in changes:
                    changes["preferences"] = json.dumps(changes["preferences"])
                assignments = ", ".join(f"{column} = ?" for column in changes)
                await tx.execute(
                    f"UPDATE users SET {assignments} WHERE user_id = ?",
                    (*changes.values(), user_id),
                )
            event = EventEnvelope.wrap("UserProfileUpdated", payload, datetime.now(UTC))
            await self._store.append(event, tx)

        return EventResponse(message="UserProfileUpdated event stored", event=event)

    async def get_user(self, user_id: int) -> UserState:
        if not self._apply_to_snapshot:
            return await self._get_user_from_events(user_id)

        row = await self._db.fetchone("SELECT * FROM users WHERE user_id = ?", (user_id,))
        if row is None:
            raise UserNotFoundError(user_id)
        return UserState(
            user_id=row["user_id"],
            username=row["username"],
            email=row["email"],
            city=row["city"],
            preferences=json.loads(row["preferences"]) if row["preferences"] else None,
        )

    async def _get_user_from_events(self, user_id: int) -> UserState:
        events = await self._store.get_events_for("userId", user_id, USER_EVENT_TYPES)
        users = self._projector.fold(events)
        if user_id not in users:
            raise UserNotFoundError(user_id)
        return users[user_id]


class UserNotFoundError(Exception):
    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")
