import time
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# Context variables for async-safe storage
_correlation_id_context: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)
_agent_context: ContextVar[Optional["AgentContext"]] = ContextVar(
    "agent_context", default=None
)


@dataclass
class AgentCall:
    """Represents a single completion call made on behalf of an agent category."""

    agent_type: str  # category id, e.g. "backend_engineer"
    agent_name: str  # display name
    method: str  # "route" or "chain"
    start_time: float
    end_time: Optional[float] = None
    duration: Optional[float] = None
    status: str = "pending"  # "pending", "success", "error"
    error_type: Optional[str] = None

    def complete(self, status: str, error_type: Optional[str] = None):
        """Mark the agent call as complete."""
        self.end_time = time.time()
        self.duration = self.end_time - self.start_time
        self.status = status
        self.error_type = error_type

    def to_dict(self) -> Dict[str, Any]:
        """Convert agent call to dictionary."""
        return {
            "agent_type": self.agent_type,
            "agent_name": self.agent_name,
            "method": self.method,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "status": self.status,
            "error_type": self.error_type,
        }


@dataclass
class AgentContext:
    """Context for tracking agent calls within a request."""

    correlation_id: str
    agent_calls: List[AgentCall] = field(default_factory=list)
    start_time: float = field(default_factory=time.time)

    def add_agent_call(self, agent_type: str, agent_name: str, method: str) -> AgentCall:
        """Add a new agent call to the context."""
        agent_call = AgentCall(
            agent_type=agent_type,
            agent_name=agent_name,
            method=method,
            start_time=time.time(),
        )
        self.agent_calls.append(agent_call)
        return agent_call

    def get_agent_sequence(self) -> List[str]:
        """Get the sequence of agents called."""
        return [f"{call.agent_type}:{call.agent_name}" for call in self.agent_calls]


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context.

    Args:
        correlation_id: The correlation ID to set
    """
    _correlation_id_context.set(correlation_id)
    existing_agent_ctx = _agent_context.get()
    if existing_agent_ctx is None:
        _agent_context.set(AgentContext(correlation_id=correlation_id))
    else:
        existing_agent_ctx.correlation_id = correlation_id


def get_correlation_id() -> Optional[str]:
    """Get the correlation ID from the current context."""
    return _correlation_id_context.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID from the current context."""
    _correlation_id_context.set(None)
    _agent_context.set(None)


def get_agent_context() -> Optional[AgentContext]:
    """Get the agent context from the current context."""
    return _agent_context.get()


def track_agent_call(agent_type: str, agent_name: str, method: str) -> Optional[AgentCall]:
    """Track an agent call in the current request context.

    Args:
        agent_type: Category id the call is made for
        agent_name: Display name of the agent or component
        method: Operation name, e.g. "route" or "chain"

    Returns:
        The created AgentCall object, or None if no context is set
    """
    agent_ctx = get_agent_context()
    if agent_ctx:
        return agent_ctx.add_agent_call(agent_type, agent_name, method)
    return None
