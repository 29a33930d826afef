"""Session API routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from agent_bridge.exceptions import NotFoundError
from agent_bridge.routes.dependencies import get_verification_service
from agent_bridge.schemas.auth import SessionDeleteResponse, SessionDetailResponse
from agent_bridge.services.verification_service import VerificationService

router = APIRouter()


@router.get("/{token}", response_model=SessionDetailResponse)
async def get_session(
    token: str,
    service: VerificationService = Depends(get_verification_service),
):
    """Get a session and its conversation history."""
    try:
        session, history = await service.get_session(token)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

    return {
        "session": session.to_public(),
        "history": [turn.to_public() for turn in history],
    }


@router.delete("/{token}", response_model=SessionDeleteResponse)
async def delete_session(
    token: str,
    service: VerificationService = Depends(get_verification_service),
):
    """Delete a session. Deleting an unknown token succeeds with ``deleted: false``."""
    deleted = await service.delete_session(token)
    return {"success": True, "deleted": deleted}
