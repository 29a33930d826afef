"""FastAPI dependencies resolving the services built during startup."""

from fastapi import HTTPException, Request, status

from agent_bridge.services.routing_service import RoutingService
from agent_bridge.services.verification_service import VerificationService


def get_verification_service(request: Request) -> VerificationService:
    service = getattr(request.app.state, "verification_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Verification service not initialised",
        )
    return service


def get_routing_service(request: Request) -> RoutingService:
    service = getattr(request.app.state, "routing_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Routing service not initialised",
        )
    return service
