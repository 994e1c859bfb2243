"""Pydantic AI call gate implementation.

Wraps pydantic-ai Agents behind the CallGate contract. Every call streams
its text deltas (structured calls stream their JSON as it is produced) and
ends with one validated FinalOutput carrying usage and cost.
"""

import asyncio
import time
from collections.abc import AsyncIterable, AsyncIterator, Callable
from typing import Any

from pydantic_ai import Agent, RunContext
from pydantic_ai.agent import AgentRunResult
from pydantic_ai.messages import (
    AgentStreamEvent,
    PartDeltaEvent,
    PartStartEvent,
    TextPart,
    TextPartDelta,
    ToolCallPart,
    ToolCallPartDelta,
)
from pydantic_ai.models import KnownModelName, Model
from pydantic_ai.models.test import TestModel
from pydantic_ai.usage import UsageLimits

from scout.providers.base import CallGate, CallOptions, FinalOutput, GateEvent, PartialText
from scout.providers.claude_sdk_model import CLAUDE_SDK_AVAILABLE, ClaudeAgentSDKModel
from scout.providers.config import CLAUDE_SDK_MODEL
from scout.providers.pricing import calculate_cost
from scout.types import TokenUsage


def event_text(event: AgentStreamEvent) -> str:
    """Text carried by one model stream event.

    Text parts yield their content; output tool calls yield their JSON
    arguments, so structured calls stream too. Other events yield "".
    """
    if isinstance(event, PartStartEvent):
        part = event.part
        if isinstance(part, TextPart):
            return part.content
        if isinstance(part, ToolCallPart) and part.args:
            return part.args_as_json_str()
    elif isinstance(event, PartDeltaEvent):
        delta = event.delta
        if isinstance(delta, TextPartDelta):
            return delta.content_delta
        if isinstance(delta, ToolCallPartDelta) and isinstance(delta.args_delta, str):
            return delta.args_delta
    return ""


class PydanticAIGate(CallGate):
    """Pydantic AI implementation of CallGate.

    One Agent is built lazily per output type; the model is chosen per call
    from `CallOptions.model`, falling back to the gate's default.

    Example:
        gate = PydanticAIGate(model="anthropic:claude-sonnet-4-5")
        async for event in gate.submit("...", AnalysisReport):
            ...

        # claude-agent-sdk (Max subscription, no API key)
        gate = PydanticAIGate(model="claude-agent-sdk")
    """

    def __init__(
        self,
        model: Model | KnownModelName | TestModel | str,
        system_prompt: str = "",
    ) -> None:
        """Initialize gate with a default model.

        Args:
            model: Pydantic AI model (Model, shorthand string, TestModel, or "claude-agent-sdk")
            system_prompt: Optional system prompt shared by every call

        Raises:
            ImportError: If model="claude-agent-sdk" but SDK not installed
        """
        if model == CLAUDE_SDK_MODEL and not CLAUDE_SDK_AVAILABLE:  # pragma: no cover
            raise ImportError(
                "claude-agent-sdk is not installed. Install with: pip install scoutx[claude-sdk]"
            )
        self._default_model = model
        self._system_prompt = system_prompt
        self._agents: dict[Any, Agent[None, Any]] = {}

    def _agent_for(self, output_type: type[Any]) -> Agent[None, Any]:
        agent = self._agents.get(output_type)
        if agent is None:
            agent = Agent(output_type=output_type, system_prompt=self._system_prompt)
            self._agents[output_type] = agent
        return agent

    def _resolve_model(
        self, options: CallOptions, on_text: Callable[[str], None] | None = None
    ) -> Model | KnownModelName | TestModel | str:
        """Pick the model for one call, binding claude-agent-sdk to its directory."""
        model = options.model or self._default_model
        if model == CLAUDE_SDK_MODEL:
            return ClaudeAgentSDKModel(
                cwd=options.working_directory, max_turns=options.max_steps, on_text=on_text
            )
        return model

    @staticmethod
    def model_label(model: Model | KnownModelName | TestModel | str) -> str:
        """Bare model name used for pricing and result metadata.

        Args:
            model: Model specification

        Returns:
            Model name without the provider prefix
        """
        if isinstance(model, TestModel):
            return "test"
        if isinstance(model, Model):
            return model.model_name
        text = str(model)
        if ":" in text:
            return text.split(":", 1)[1]
        return text

    async def submit(
        self,
        prompt: str,
        output_type: type[Any],
        options: CallOptions | None = None,
    ) -> AsyncIterator[GateEvent]:
        """Run one call and stream its events.

        Args:
            prompt: Full prompt text
            output_type: Pydantic model class for structured output, or str
            options: Optional per-call options

        Yields:
            PartialText deltas as the model produces them, then one FinalOutput
        """
        options = options or CallOptions()
        partials: asyncio.Queue[PartialText | None] = asyncio.Queue()

        def on_text(text: str) -> None:
            if text:
                partials.put_nowait(PartialText(text=text))

        async def handle_events(
            ctx: RunContext[None], events: AsyncIterable[AgentStreamEvent]
        ) -> None:
            async for event in events:
                on_text(event_text(event))

        model = self._resolve_model(options, on_text)
        label = self.model_label(model)
        limits = UsageLimits(request_limit=options.max_steps) if options.max_steps else None
        agent = self._agent_for(output_type)

        async def run_agent() -> AgentRunResult[Any]:
            try:
                # claude-agent-sdk has no request stream; it reports text through on_text
                if isinstance(model, ClaudeAgentSDKModel):
                    return await agent.run(prompt, model=model, usage_limits=limits)
                return await agent.run(
                    prompt, model=model, usage_limits=limits, event_stream_handler=handle_events
                )
            finally:
                partials.put_nowait(None)

        start = time.monotonic()
        task = asyncio.create_task(run_agent())
        try:
            while (partial := await partials.get()) is not None:
                yield partial
            run = await task
        finally:
            if not task.done():
                task.cancel()
                await asyncio.wait([task])
        run_usage = run.usage()
        duration_ms = int((time.monotonic() - start) * 1000)

        input_tokens = run_usage.input_tokens or 0
        output_tokens = run_usage.output_tokens or 0
        usage = TokenUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=run_usage.total_tokens or 0,
            requests=run_usage.requests or 1,
            cost_usd=calculate_cost(
                TokenUsage(input_tokens=input_tokens, output_tokens=output_tokens), label
            ),
        )

        yield FinalOutput(output=run.output, usage=usage, model=label, duration_ms=duration_ms)
