"""Main API router."""

from fastapi import APIRouter

from agent_bridge.routes.auth import router as auth_router
from agent_bridge.routes.chat import router as chat_router
from agent_bridge.routes.sessions import router as sessions_router

api_router = APIRouter()

api_router.include_router(
    auth_router, prefix="/auth", tags=["authentication"],
)
# Original unprefixed paths: /api/send-code, /api/verify-code
api_router.include_router(
    auth_router, tags=["authentication"], include_in_schema=False,
)
api_router.include_router(
    sessions_router, prefix="/sessions", tags=["sessions"],
)
api_router.include_router(chat_router, tags=["agents"])
