"""
Custom exceptions for the Agent Bridge application
"""

from typing import Optional


class AgentBridgeError(Exception):
    """Base exception for Agent Bridge"""

    kind = "error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class BadRequestError(AgentBridgeError):
    """Exception raised for malformed input"""

    kind = "bad_request"


class NotFoundError(AgentBridgeError):
    """Exception raised for an unknown identity or session token"""

    kind = "not_found"


class VerificationError(AgentBridgeError):
    """Base for verification failures that a new code always resolves"""

    kind = "verification_failed"


class CodeExpiredError(VerificationError):
    """Exception raised when a verification code is past its window"""

    kind = "expired"


class TooManyAttemptsError(VerificationError):
    """Exception raised when the attempt budget for a code is exhausted"""

    kind = "too_many_attempts"


class CodeMismatchError(VerificationError):
    """Exception raised when a submitted code does not match"""

    kind = "mismatch"

    def __init__(self, message: str = "", attempts_remaining: int = 0):
        super().__init__(message)
        self.attempts_remaining = attempts_remaining


class CompletionError(AgentBridgeError):
    """Exception raised when the completion API call fails.

    ``kind`` is one of RATE_LIMITED, AUTH_FAILED, UNAVAILABLE, MODEL_ERROR.
    """

    RATE_LIMITED = "rate_limited"
    AUTH_FAILED = "auth_failed"
    UNAVAILABLE = "unavailable"
    MODEL_ERROR = "model_error"

    KINDS = (RATE_LIMITED, AUTH_FAILED, UNAVAILABLE, MODEL_ERROR)

    def __init__(self, kind: str, message: str = "", retry_after: Optional[int] = None):
        if kind not in self.KINDS:
            raise ValueError(f"Unknown completion error kind: {kind}")
        super().__init__(message)
        self.kind = kind
        self.retry_after = retry_after


class NotificationError(AgentBridgeError):
    """Exception raised when the email provider rejects or fails a delivery"""

    kind = "notification_failed"


class ConfigurationError(AgentBridgeError):
    """Exception raised for configuration errors"""

    kind = "configuration"
