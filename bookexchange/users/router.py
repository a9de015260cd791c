"""FastAPI routes for user registration and profiles."""

import logging

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, status

from bookexchange.models import UserState
from bookexchange.schemas import EventResponse, RowId
from bookexchange.users.schemas import (
    CreateUserRequest,
    CreateUserResponse,
    UpdateUserRequest,
)
from bookexchange.users.service import UserNotFoundError, UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service() -> UserService:
    """Dependency placeholder — replaced at app startup."""
    raise RuntimeError("UserService not initialized")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: CreateUserRequest,
    service: UserService = Depends(get_user_service),
) -> CreateUserResponse:
    try:
        return await service.create_user(request)
    except aiosqlite.Error:
        logger.exception("Error creating user")
        raise HTTPException(status_code=500, detail="Failed to create user")


@router.get("/{user_id}")
async def get_user(
    user_id: RowId,
    service: UserService = Depends(get_user_service),
) -> UserState:
    try:
        return await service.get_user(user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except aiosqlite.Error:
        logger.exception("Error fetching user %d", user_id)
        raise HTTPException(status_code=500, detail="Failed to fetch user")


@router.put("/{user_id}", status_code=status.HTTP_201_CREATED)
async def update_user(
    user_id: RowId,
    request: UpdateUserRequest,
    service: UserService = Depends(get_user_service),
) -> EventResponse:
    try:
        return await service.update_user(user_id, request)
    except aiosqlite.Error:
        logger.exception("Error storing UserProfileUpdated for %d", user_id)
        raise HTTPException(status_code=500, detail="Failed to store event")
