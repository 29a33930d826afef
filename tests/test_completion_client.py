"""Tests for the completion API client and its error classification."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from agent_bridge.exceptions import CompletionError
from agent_bridge.services import ai_service
from agent_bridge.services.ai_service import CompletionClient, classify_completion_error

URL = "https://api.groq.com/openai/v1/chat/completions"
REQUEST = httpx.Request("POST", URL)


def _response(status_code, headers=None):
    return httpx.Response(status_code, request=REQUEST, headers=headers)


def _completion(text="Answer", total_tokens=10):
    usage = MagicMock()
    usage.model_dump.return_value = {"prompt_tokens": 4, "completion_tokens": 6, "total_tokens": total_tokens}
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=usage,
        model="llama-3.3-70b-versatile",
    )


class TestClassifyCompletionError:
    """Mapping of openai exceptions onto completion error kinds."""

    def test_rate_limited_with_retry_after(self):
        exc = openai.RateLimitError("slow down", response=_response(429, {"retry-after": "7"}), body=None)
        error = classify_completion_error(exc)
        assert error.kind == CompletionError.RATE_LIMITED
        assert error.retry_after == 7

    def test_rate_limited_without_retry_after(self):
        exc = openai.RateLimitError("slow down", response=_response(429), body=None)
        assert classify_completion_error(exc).retry_after is None

    @pytest.mark.parametrize(
        "exc_type, status_code",
        [(openai.AuthenticationError, 401), (openai.PermissionDeniedError, 403)],
    )
    def test_auth_failed(self, exc_type, status_code):
        exc = exc_type("Invalid API Key gsk_secret", response=_response(status_code), body=None)
        error = classify_completion_error(exc)
        assert error.kind == CompletionError.AUTH_FAILED
        assert "gsk_secret" not in error.message

    def test_connection_error(self):
        error = classify_completion_error(openai.APIConnectionError(request=REQUEST))
        assert error.kind == CompletionError.UNAVAILABLE

    def test_timeout(self):
        error = classify_completion_error(openai.APITimeoutError(request=REQUEST))
        assert error.kind == CompletionError.UNAVAILABLE

    def test_model_not_found(self):
        exc = openai.NotFoundError("The model does not exist", response=_response(404), body=None)
        assert classify_completion_error(exc).kind == CompletionError.MODEL_ERROR

    def test_model_decommissioned(self):
        exc = openai.BadRequestError(
            "decommissioned",
            response=_response(400),
            body={"code": "model_decommissioned", "message": "decommissioned"},
        )
        assert classify_completion_error(exc).kind == CompletionError.MODEL_ERROR

    def test_invalid_model_param(self):
        exc = openai.BadRequestError(
            "invalid model",
            response=_response(400),
            body={"code": "invalid_request_error", "param": "model", "message": "invalid model"},
        )
        assert classify_completion_error(exc).kind == CompletionError.MODEL_ERROR

    def test_context_length_mentioning_model_is_unavailable(self):
        message = "This model's maximum context length is 8192 tokens."
        exc = openai.BadRequestError(
            message,
            response=_response(400),
            body={"code": "context_length_exceeded", "param": "messages", "message": message},
        )
        assert classify_completion_error(exc).kind == CompletionError.UNAVAILABLE

    def test_other_bad_request_is_unavailable(self):
        exc = openai.BadRequestError("context length exceeded", response=_response(400), body=None)
        assert classify_completion_error(exc).kind == CompletionError.UNAVAILABLE

    def test_server_error(self):
        exc = openai.InternalServerError("boom", response=_response(500), body=None)
        assert classify_completion_error(exc).kind == CompletionError.UNAVAILABLE


def test_unknown_kind_rejected():
    with pytest.raises(ValueError):
        CompletionError("exploded")


class TestCompletionClient:
    """Unit tests for CompletionClient.complete."""

    @pytest.mark.asyncio
    async def test_missing_key_is_auth_failed(self):
        client = CompletionClient(api_key=None)
        with pytest.raises(CompletionError) as exc_info:
            await client.complete("system", "user")
        assert exc_info.value.kind == CompletionError.AUTH_FAILED
        assert client.configured is False

    @pytest.mark.asyncio
    async def test_missing_key_records_metric(self, monkeypatch):
        recorded = MagicMock()
        monkeypatch.setattr(ai_service, "record_completion_call", recorded)
        client = CompletionClient(api_key=None, model="llama-3.3-70b-versatile")

        with pytest.raises(CompletionError):
            await client.complete("system", "user")

        recorded.assert_called_once_with("llama-3.3-70b-versatile", CompletionError.AUTH_FAILED, 0.0)

    @pytest.mark.asyncio
    async def test_success(self):
        client = CompletionClient(api_key="gsk_test", max_tokens=4096, temperature=0.7)
        fake = MagicMock()
        fake.chat.completions.create = AsyncMock(return_value=_completion("Answer", 10))
        client._openai = fake

        result = await client.complete("system prompt", "user prompt")

        assert result.text == "Answer"
        assert result.total_tokens == 10
        assert result.model == "llama-3.3-70b-versatile"
        kwargs = fake.chat.completions.create.call_args.kwargs
        assert kwargs["messages"] == [
            {"role": "system", "content": "system prompt"},
            {"role": "user", "content": "user prompt"},
        ]
        assert kwargs["max_tokens"] == 4096
        assert kwargs["temperature"] == 0.7
        assert kwargs["model"] == "llama-3.3-70b-versatile"

    @pytest.mark.asyncio
    async def test_upstream_failure_is_classified(self):
        client = CompletionClient(api_key="gsk_test")
        fake = MagicMock()
        fake.chat.completions.create = AsyncMock(
            side_effect=openai.RateLimitError("slow down", response=_response(429, {"retry-after": "3"}), body=None)
        )
        client._openai = fake

        with pytest.raises(CompletionError) as exc_info:
            await client.complete("system", "user", model="other-model")

        assert exc_info.value.kind == CompletionError.RATE_LIMITED
        assert exc_info.value.retry_after == 3
        assert fake.chat.completions.create.call_args.kwargs["model"] == "other-model"

    @pytest.mark.asyncio
    async def test_aclose(self):
        client = CompletionClient(api_key="gsk_test")
        fake = MagicMock()
        fake.close = AsyncMock()
        client._openai = fake

        await client.aclose()

        fake.close.assert_awaited_once()
        assert client._openai is None
