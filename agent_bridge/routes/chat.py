"""Chat, chain and agent catalogue API routes."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from agent_bridge.exceptions import BadRequestError, CompletionError
from agent_bridge.routes.dependencies import get_routing_service
from agent_bridge.schemas.chat import (
    AgentInfo,
    ChainRequest,
    ChainResponse,
    ChainStepResponse,
    ChatRequest,
    ChatResponse,
)
from agent_bridge.services.agent_catalogue import list_categories
from agent_bridge.services.routing_service import ChainStep, RoutingService
from agent_bridge.utils.timezone import epoch_to_iso

router = APIRouter()

COMPLETION_ERROR_STATUS = {
    CompletionError.RATE_LIMITED: status.HTTP_503_SERVICE_UNAVAILABLE,
    CompletionError.AUTH_FAILED: status.HTTP_502_BAD_GATEWAY,
    CompletionError.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    CompletionError.MODEL_ERROR: status.HTTP_502_BAD_GATEWAY,
}


def completion_http_error(exc: CompletionError) -> HTTPException:
    """Translate a completion failure into a client-safe HTTP error."""
    headers = None
    if exc.kind == CompletionError.RATE_LIMITED:
        headers = {"Retry-After": str(exc.retry_after or 60)}
    return HTTPException(
        status_code=COMPLETION_ERROR_STATUS.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={"success": False, "error": exc.message, "kind": exc.kind},
        headers=headers,
    )


@router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    service: RoutingService = Depends(get_routing_service),
) -> ChatResponse:
    """Route a message to the best-matching specialist agent."""
    try:
        reply = await service.route(body.message, session_token=body.session_token, context=body.context)
    except BadRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except CompletionError as e:
        logger.warning(f"Chat failed: kind={e.kind}")
        raise completion_http_error(e)

    return ChatResponse(
        success=True,
        tool=reply.category.id,
        agent=reply.category.name,
        emoji=reply.category.emoji,
        result=reply.label,
        raw_response=reply.text,
        model=reply.model,
        timestamp=epoch_to_iso(reply.timestamp),
        usage=reply.usage,
    )


@router.post("/chain", response_model=ChainResponse, response_model_exclude_none=True)
async def chain(
    body: ChainRequest,
    service: RoutingService = Depends(get_routing_service),
) -> ChainResponse:
    """Run a sequence of agent tasks, each seeing the earlier results."""
    steps = [ChainStep(task=step.task, category=step.category) for step in body.steps]
    try:
        results = await service.chain(steps)
    except BadRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    completed = sum(1 for result in results if result.ok)
    halted = completed < len(steps)
    return ChainResponse(
        success=not halted,
        completed=completed,
        halted=halted,
        steps=[
            ChainStepResponse(
                index=result.index,
                task=result.task,
                category=result.category.id,
                agent=result.category.name,
                emoji=result.category.emoji,
                success=result.ok,
                output=result.output,
                usage=result.usage,
                error=result.error_message,
                kind=result.error_kind,
            )
            for result in results
        ],
    )


@router.get("/agents", response_model=List[AgentInfo])
async def list_agents() -> List[AgentInfo]:
    """List the agent catalogue, fallback orchestrator first."""
    return [AgentInfo(**category.to_public()) for category in list_categories()]
