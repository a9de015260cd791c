"""Request and response schemas for user endpoints."""

from typing import Any

from bookexchange.models import CamelModel, UserState
from bookexchange.schemas import EventResponse

# -- Requests --


class CreateUserRequest(CamelModel):
    username: str | None = None
    email: str | None = None
    city: str | None = None
    preferences: Any = None


class UpdateUserRequest(CamelModel):
    """Only fields present in the request body are changed."""

    city: str | None = None
    preferences: Any = None


# -- Responses --


class CreateUserResponse(EventResponse):
    user: UserState
