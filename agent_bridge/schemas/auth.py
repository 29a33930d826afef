"""Verification and session Pydantic schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SendCodeRequest(BaseModel):
    """Schema for requesting a verification code."""
    email: str = Field(..., description="Identity the code is bound to")


class SendCodeResponse(BaseModel):
    """Schema for a code issuance response."""
    success: bool = True
    message: str
    code: Optional[str] = Field(default=None, description="Echoed when revealed or when delivery failed")
    display: bool = False
    fallback: bool = False
    expires_in: int = Field(..., description="Seconds until the code expires")
    email_id: Optional[str] = Field(default=None, description="Email provider delivery id")


class VerifyCodeRequest(BaseModel):
    """Schema for submitting a verification code."""
    email: str
    code: str


class SessionPayload(BaseModel):
    """Client-facing session."""
    token: str
    email: str
    created_at: str


class VerifyCodeResponse(BaseModel):
    """Schema for a successful verification."""
    success: bool = True
    message: str
    session: SessionPayload


class TurnPayload(BaseModel):
    role: str
    content: str
    agent: Optional[str] = None
    timestamp: str


class SessionDetailResponse(BaseModel):
    session: SessionPayload
    history: List[TurnPayload]


class SessionDeleteResponse(BaseModel):
    success: bool = True
    deleted: bool


class VerificationErrorDetail(BaseModel):
    """Body of ``detail`` on a failed verification."""
    error: str
    kind: str
    attempts_remaining: Optional[int] = None

    def to_detail(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
