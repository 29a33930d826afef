"""Agent routing: classify a message, compose the prompt and call the completion API."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from loguru import logger

from agent_bridge.database.base import KeyValueStore
from agent_bridge.exceptions import BadRequestError, CompletionError
from agent_bridge.models import Turn, trim_history
from agent_bridge.monitoring.prometheus import (
    record_agent_call,
    record_agent_chain,
    record_agent_error,
)
from agent_bridge.services.agent_catalogue import AgentCategory, classify, get_category
from agent_bridge.services.ai_service import CompletionClient
from agent_bridge.settings.context import get_agent_context, get_correlation_id, track_agent_call
from agent_bridge.utils.locks import KeyedLocks
from agent_bridge.utils.timezone import epoch_now

RESPONSE_INSTRUCTION = (
    "\n\nProvide a comprehensive, detailed response with specific examples "
    "and actionable next steps. Do not use placeholders."
)


@dataclass
class RoutedReply:
    """A completed exchange with one agent."""

    category: AgentCategory
    text: str
    label: str
    model: str
    usage: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = 0.0


@dataclass
class ChainStep:
    task: str
    category: Optional[str] = None


@dataclass
class StepResult:
    """Outcome of one chain step. ``error_kind`` is set only on the failed step."""

    index: int
    task: str
    category: AgentCategory
    output: Optional[str] = None
    usage: Dict[str, Any] = field(default_factory=dict)
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None


def compose_prompt(
    message: str,
    context: Optional[str] = None,
    history: Optional[List[Turn]] = None,
    snippet_chars: int = 200,
) -> str:
    """Build the task prompt.

    Explicit context wins over conversation history; with neither the task
    stands alone.
    """
    if context:
        return f"PROJECT CONTEXT: {context}\n\nTASK: {message}"
    if history:
        lines = "\n".join(f"{turn.speaker}: {turn.content[:snippet_chars]}" for turn in history)
        return f"CONVERSATION HISTORY:\n{lines}\n\nCURRENT TASK: {message}"
    return f"TASK: {message}"


def format_label(category: AgentCategory, text: str, model: str, usage: Dict[str, Any], when: datetime) -> str:
    tokens = usage.get("total_tokens") or "N/A"
    return (
        f"{category.emoji} **{category.name} Agent** [{when.strftime('%H:%M:%S')}]\n\n"
        f"{text}\n\n---\n"
        f"*Agent: {category.id} | Model: {model} | Tokens: {tokens}*"
    )


def summarize_results(results: List[StepResult], limit: int) -> str:
    """In-order ``[category] output`` blocks of completed steps, cut to ``limit`` chars."""
    summary = "\n\n".join(f"[{result.category.id}] {result.output}" for result in results if result.ok)
    return summary[:limit]


class RoutingService:
    """Routes messages to specialist agents and keeps per-session history."""

    def __init__(
        self,
        completion: CompletionClient,
        histories: KeyValueStore,
        history_limit: int = 50,
        history_window: int = 6,
        snippet_chars: int = 200,
        chain_context_chars: int = 1000,
        session_active: Optional[Callable[[str], Awaitable[bool]]] = None,
        clock: Callable[[], float] = epoch_now,
    ):
        """Initialize routing service.

        Args:
            completion: Completion API client (anything with an async ``complete``)
            histories: Store of conversation turns keyed by session token
            history_limit: Turns retained per session
            history_window: Most recent turns folded into the prompt
            snippet_chars: Per-turn character cap inside the prompt
            chain_context_chars: Cap on the previous-results block of a chain
            session_active: Optional check that a token still names a live session
            clock: Epoch time source
        """
        self.completion = completion
        self.histories = histories
        self.history_limit = history_limit
        self.history_window = history_window
        self.snippet_chars = snippet_chars
        self.chain_context_chars = chain_context_chars
        self.session_active = session_active
        self.clock = clock
        self._locks = KeyedLocks()

    def classify(self, message: str) -> AgentCategory:
        return classify(message)

    async def _load_history(self, token: Optional[str]) -> Optional[List[Turn]]:
        """Stored turns for ``token``, or None when the token has no conversation."""
        if not token:
            return None
        if self.session_active is not None and not await self.session_active(token):
            return None
        raw = await self.histories.get(token)
        if raw is None:
            return None
        return [Turn.from_dict(item) for item in raw]

    async def _call_agent(self, category: AgentCategory, prompt: str, method: str):
        agent_call = track_agent_call(agent_type=category.id, agent_name=category.name, method=method)
        try:
            result = await self.completion.complete(
                system_prompt=category.system_prompt,
                user_prompt=prompt + RESPONSE_INSTRUCTION,
            )
        except CompletionError as exc:
            if agent_call:
                agent_call.complete("error", exc.kind)
            record_agent_call(category.id, method, "error")
            record_agent_error(category.id, exc.kind)
            raise
        if agent_call:
            agent_call.complete("success")
        record_agent_call(category.id, method, "success")
        return result

    async def route(
        self,
        message: str,
        session_token: Optional[str] = None,
        context: Optional[str] = None,
    ) -> RoutedReply:
        """Answer ``message`` with the best-matching agent.

        An unknown or missing session token means a stateless exchange. On
        completion failure the history is left untouched.

        Raises:
            BadRequestError: Blank message
            CompletionError: Upstream failure
        """
        if not message or not message.strip():
            raise BadRequestError("No message provided")

        category = classify(message)
        logger.info(
            f"{category.emoji} {category.name} activated for: \"{message[:60]}...\" "
            f"correlation_id={get_correlation_id()}"
        )

        history = await self._load_history(session_token)
        window = history[-self.history_window:] if history else None
        prompt = compose_prompt(message, context=context, history=window, snippet_chars=self.snippet_chars)

        result = await self._call_agent(category, prompt, "route")
        now = self.clock()

        if history is not None:
            async with self._locks.hold(session_token):
                # Re-read so concurrent exchanges on one session both land.
                current = await self._load_history(session_token)
                if current is not None:
                    current.append(Turn(role="user", content=message, timestamp=now))
                    current.append(Turn(role="assistant", content=result.text, timestamp=now, agent=category.id))
                    current = trim_history(current, self.history_limit)
                    await self.histories.set(session_token, [turn.to_dict() for turn in current])

        when = datetime.fromtimestamp(now, tz=timezone.utc)
        return RoutedReply(
            category=category,
            text=result.text,
            label=format_label(category, result.text, result.model, result.usage, when),
            model=result.model,
            usage=result.usage,
            timestamp=now,
        )

    async def chain(self, steps: List[ChainStep]) -> List[StepResult]:
        """Run steps in order, feeding earlier outputs into later prompts.

        The first failing step halts the chain; the returned list holds the
        completed steps followed by the failed one.

        Raises:
            BadRequestError: Empty chain, blank task or unknown category id
        """
        if not steps:
            raise BadRequestError("At least one step is required")

        resolved: List[AgentCategory] = []
        for index, step in enumerate(steps):
            if not step.task or not step.task.strip():
                raise BadRequestError(f"Step {index + 1} has no task")
            if step.category:
                category = get_category(step.category)
                if category is None:
                    raise BadRequestError(f"Unknown agent category: {step.category}")
            else:
                category = classify(step.task)
            resolved.append(category)

        results: List[StepResult] = []
        for index, (step, category) in enumerate(zip(steps, resolved)):
            prompt = f"TASK: {step.task}"
            if results:
                summary = summarize_results(results, self.chain_context_chars)
                prompt = f"PREVIOUS RESULTS:\n{summary}\n\n{prompt}"

            try:
                result = await self._call_agent(category, prompt, "chain")
            except CompletionError as exc:
                logger.warning(f"Chain halted at step {index + 1}/{len(steps)}: kind={exc.kind}")
                results.append(
                    StepResult(
                        index=index,
                        task=step.task,
                        category=category,
                        error_kind=exc.kind,
                        error_message=exc.message,
                    )
                )
                break

            results.append(
                StepResult(index=index, task=step.task, category=category, output=result.text, usage=result.usage)
            )

        record_agent_chain(len(results))
        agent_ctx = get_agent_context()
        if agent_ctx:
            logger.info(f"Chain finished: {len(results)}/{len(steps)} steps, sequence={agent_ctx.get_agent_sequence()}")
        return results
