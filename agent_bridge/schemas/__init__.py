"""Web API schemas package."""

from agent_bridge.schemas.auth import (
    SendCodeRequest,
    SendCodeResponse,
    SessionPayload,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from agent_bridge.schemas.chat import (
    AgentInfo,
    ChainRequest,
    ChainResponse,
    ChainStepRequest,
    ChainStepResponse,
    ChatRequest,
    ChatResponse,
)

__all__ = [
    "SendCodeRequest",
    "SendCodeResponse",
    "SessionPayload",
    "VerifyCodeRequest",
    "VerifyCodeResponse",
    "AgentInfo",
    "ChainRequest",
    "ChainResponse",
    "ChainStepRequest",
    "ChainStepResponse",
    "ChatRequest",
    "ChatResponse",
]
