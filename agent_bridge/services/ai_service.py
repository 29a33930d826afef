"""Completion API client for agent responses."""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import openai
from loguru import logger

from agent_bridge.exceptions import CompletionError
from agent_bridge.monitoring.prometheus import record_completion_call
from agent_bridge.settings.settings import Settings


@dataclass
class CompletionResult:
    """Text and token usage returned by one completion call."""

    text: str
    model: str
    usage: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_tokens(self) -> Optional[int]:
        return self.usage.get("total_tokens")


def _retry_after(exc: openai.APIStatusError) -> Optional[int]:
    value = exc.response.headers.get("retry-after") if exc.response is not None else None
    if not value:
        return None
    try:
        return max(0, int(float(value)))
    except ValueError:
        return None


def _is_model_problem(exc: openai.APIStatusError) -> bool:
    code = (getattr(exc, "code", None) or "").lower()
    if code in ("model_not_found", "model_decommissioned"):
        return True
    return getattr(exc, "param", None) == "model"


def classify_completion_error(exc: Exception) -> CompletionError:
    """Map an ``openai`` exception to a :class:`CompletionError`.

    The upstream message is kept for logs only; callers receive a fixed,
    kind-specific message.
    """
    if isinstance(exc, openai.RateLimitError):
        return CompletionError(
            CompletionError.RATE_LIMITED,
            "Rate limit exceeded. Please wait a moment.",
            retry_after=_retry_after(exc),
        )
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return CompletionError(
            CompletionError.AUTH_FAILED, "Completion API authentication failed."
        )
    if isinstance(exc, openai.APIConnectionError):
        # Covers APITimeoutError
        return CompletionError(
            CompletionError.UNAVAILABLE, "AI service temporarily unavailable."
        )
    if isinstance(exc, openai.NotFoundError):
        return CompletionError(
            CompletionError.MODEL_ERROR, "The configured model is not available."
        )
    if isinstance(exc, openai.BadRequestError) and _is_model_problem(exc):
        return CompletionError(
            CompletionError.MODEL_ERROR, "The configured model rejected the request."
        )
    return CompletionError(
        CompletionError.UNAVAILABLE, "AI service temporarily unavailable."
    )


class CompletionClient:
    """Chat-completions client for an OpenAI-compatible endpoint (Groq by default)."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        model: str = "llama-3.3-70b-versatile",
        max_tokens: int = 4096,
        temperature: float = 0.7,
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._openai: Optional[openai.AsyncOpenAI] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionClient":
        return cls(
            api_key=settings.completion_api_key,
            base_url=settings.completion_base_url,
            model=settings.completion_model,
            max_tokens=settings.completion_max_tokens,
            temperature=settings.completion_temperature,
            timeout=settings.completion_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _client(self) -> openai.AsyncOpenAI:
        if not self.api_key:
            raise CompletionError(
                CompletionError.AUTH_FAILED, "Completion API key is not configured."
            )
        if self._openai is None:
            self._openai = openai.AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._openai

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> CompletionResult:
        """Run one chat completion.

        Args:
            system_prompt: Agent persona
            user_prompt: Composed task prompt
            model: Override for the configured model
            max_tokens: Override for the configured token limit
            temperature: Override for the configured temperature

        Returns:
            CompletionResult with the assistant text and token usage

        Raises:
            CompletionError: On any upstream failure
        """
        model = model or self.model
        start_time = time.time()

        try:
            client = self._client()
        except CompletionError as error:
            record_completion_call(model, error.kind, 0.0)
            logger.error(f"Completion call skipped: model={model}, kind={error.kind}, no API key configured")
            raise

        try:
            response = await client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=max_tokens or self.max_tokens,
                temperature=self.temperature if temperature is None else temperature,
            )
        except openai.OpenAIError as exc:
            error = classify_completion_error(exc)
            record_completion_call(model, error.kind, time.time() - start_time)
            logger.error(
                f"Completion call failed: model={model}, kind={error.kind}, "
                f"error={type(exc).__name__}: {exc}"
            )
            raise error from exc

        duration = time.time() - start_time
        text = (response.choices[0].message.content or "") if response.choices else ""
        usage: Dict[str, Any] = response.usage.model_dump() if response.usage else {}

        record_completion_call(
            model,
            "success",
            duration,
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
            total_tokens=usage.get("total_tokens"),
        )
        logger.info(
            f"Completion call succeeded: model={model}, duration={duration:.2f}s, "
            f"tokens={usage.get('total_tokens', 'N/A')}"
        )
        return CompletionResult(text=text, model=response.model or model, usage=usage)

    async def aclose(self) -> None:
        if self._openai is not None:
            await self._openai.close()
            self._openai = None
