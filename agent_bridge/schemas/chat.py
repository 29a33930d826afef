"""Chat, chain and agent catalogue Pydantic schemas."""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """Schema for a chat message."""
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(default="", description="User message")
    session_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("session_token", "sessionToken"),
        description="Session token from verify-code; omit for a stateless exchange",
    )
    context: Optional[str] = Field(default=None, description="Explicit project context")


class ChatResponse(BaseModel):
    """Schema for a routed reply."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    tool: str = Field(..., description="Agent category id")
    agent: str = Field(..., description="Agent display name")
    emoji: str
    result: str = Field(..., description="Reply wrapped in the agent label block")
    raw_response: str = Field(..., alias="rawResponse")
    model: str
    timestamp: str
    usage: Dict[str, Any] = Field(default_factory=dict)


class ChainStepRequest(BaseModel):
    """One step of an agent chain."""
    task: str
    category: Optional[str] = Field(default=None, description="Agent category id; classified from the task when absent")


class ChainRequest(BaseModel):
    steps: List[ChainStepRequest] = Field(default_factory=list)


class ChainStepResponse(BaseModel):
    index: int
    task: str
    category: str
    agent: str
    emoji: str
    success: bool
    output: Optional[str] = None
    usage: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    kind: Optional[str] = None


class ChainResponse(BaseModel):
    success: bool
    completed: int = Field(..., description="Steps that finished successfully")
    halted: bool
    steps: List[ChainStepResponse]


class AgentInfo(BaseModel):
    id: str
    name: str
    emoji: str
    keywords: List[str]
