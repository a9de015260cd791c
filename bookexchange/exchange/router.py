"""Exchange service routes. Only a liveness endpoint exists so far."""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["exchange"])


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Exchange Service is running"
