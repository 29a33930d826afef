"""Test configuration and fixtures."""

import os

# Ensure tests run with the lightweight configuration before importing application modules.
os.environ.setdefault("AGENT_BRIDGE_ENVIRONMENT", "testing")
os.environ.setdefault("AGENT_BRIDGE_PROMETHEUS_ENABLED", "false")
os.environ.setdefault("AGENT_BRIDGE_STORE_BACKEND", "memory")
os.environ.setdefault("AGENT_BRIDGE_LOG_LEVEL", "WARNING")

from typing import List, Tuple
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from agent_bridge.application import get_app
from agent_bridge.database.base import InMemoryKeyValueStore
from agent_bridge.exceptions import NotificationError
from agent_bridge.routes.auth import reset_auth_rate_limits
from agent_bridge.routes.dependencies import get_routing_service, get_verification_service
from agent_bridge.services.ai_service import CompletionResult
from agent_bridge.services.routing_service import RoutingService
from agent_bridge.services.verification_service import VerificationService

START_TIME = 1_800_000_000.0


class FakeClock:
    """Controllable epoch clock."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeNotifier:
    """Records sent emails; raises NotificationError when ``fail`` is set."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Tuple[str, str, str]] = []
        self.configured = True

    async def send(self, to: str, subject: str, html: str) -> str:
        if self.fail:
            raise NotificationError("Email provider returned HTTP 500")
        self.sent.append((to, subject, html))
        return f"email_{len(self.sent)}"


def make_result(text: str = "Here is the plan.", total_tokens: int = 42) -> CompletionResult:
    return CompletionResult(
        text=text,
        model="llama-3.3-70b-versatile",
        usage={"prompt_tokens": 30, "completion_tokens": 12, "total_tokens": total_tokens},
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def stores():
    return {
        "verification": InMemoryKeyValueStore("verification"),
        "sessions": InMemoryKeyValueStore("sessions"),
        "histories": InMemoryKeyValueStore("histories"),
    }


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def completion():
    """Completion client double returning a fixed reply."""
    mock = AsyncMock()
    mock.complete.return_value = make_result()
    return mock


@pytest.fixture
def verification_service(stores, notifier, clock):
    return VerificationService(
        codes=stores["verification"],
        sessions=stores["sessions"],
        histories=stores["histories"],
        notifier=notifier,
        clock=clock,
    )


@pytest.fixture
def routing_service(stores, completion, verification_service, clock):
    return RoutingService(
        completion=completion,
        histories=stores["histories"],
        session_active=verification_service.is_active,
        clock=clock,
    )


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    reset_auth_rate_limits()
    yield
    reset_auth_rate_limits()


@pytest.fixture
def client(verification_service, routing_service):
    """Create test client wired to in-memory services and fake collaborators."""
    app = get_app()
    app.dependency_overrides[get_verification_service] = lambda: verification_service
    app.dependency_overrides[get_routing_service] = lambda: routing_service

    with TestClient(app) as test_client:
        yield test_client
