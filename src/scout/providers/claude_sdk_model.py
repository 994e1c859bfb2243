"""Custom Pydantic AI model for claude-agent-sdk integration.

Lets analysis calls run through a local Claude Code installation (Max
subscription quota) behind the same pydantic-ai abstraction the gate uses for
API-key providers. Each instance is bound to one working directory and turn
budget, so the gate builds a fresh instance per call.
"""

from __future__ import annotations

import asyncio
import json
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart
from pydantic_ai.models import Model, ModelRequestParameters
from pydantic_ai.profiles import ModelProfile
from pydantic_ai.settings import ModelSettings
from pydantic_ai.usage import RequestUsage

from scout.providers.structured import parse_structured_text

try:
    from claude_agent_sdk import ClaudeAgentOptions, query

    CLAUDE_SDK_AVAILABLE = True
except ImportError:  # pragma: no cover
    CLAUDE_SDK_AVAILABLE = False
    ClaudeAgentOptions = None  # type: ignore
    query = None  # type: ignore


@dataclass(init=False)
class ClaudeAgentSDKModel(Model):
    """Pydantic AI model that wraps claude-agent-sdk's `query` stream.

    Structured output is requested through the SDK's `output_format`
    parameter; the SDK's `structured_output` result is preferred over
    assistant text when present. Otherwise JSON is extracted from the result
    text, then from the streamed text.

    Text deltas are reported to `on_text` as they arrive, since the model has
    no pydantic-ai request stream.

    Note: claude-agent-sdk must be installed separately:
        pip install scoutx[claude-sdk]
    """

    _model_name: str
    _cli_path: str | None
    _cwd: Path | None
    _max_turns: int | None
    _on_text: Callable[[str], None] | None

    def __init__(
        self,
        model_name: str = "claude-code-cli",
        cli_path: str | None = None,
        cwd: Path | None = None,
        max_turns: int | None = None,
        on_text: Callable[[str], None] | None = None,
    ):
        """Initialize the claude-agent-sdk model.

        Args:
            model_name: Display name for the model (default: claude-code-cli)
            cli_path: Optional path to Claude Code CLI binary
            cwd: Directory the agent may inspect while answering
            max_turns: Optional turn budget for the SDK session
            on_text: Optional callback receiving streamed text deltas
        """
        if not CLAUDE_SDK_AVAILABLE:  # pragma: no cover
            raise ImportError(
                "claude-agent-sdk is not installed. Install with: pip install scoutx[claude-sdk]"
            )

        self._model_name = model_name
        self._cli_path = cli_path
        self._cwd = cwd
        self._max_turns = max_turns
        self._on_text = on_text

        profile = ModelProfile(
            supports_tools=False,
            supports_json_schema_output=True,
            default_structured_output_mode="native",
        )

        super().__init__(profile=profile)

    async def request(
        self,
        messages: list[ModelMessage],
        model_settings: ModelSettings | None,
        model_request_parameters: ModelRequestParameters,
    ) -> ModelResponse:
        """Make a request to claude-agent-sdk.

        Args:
            messages: List of conversation messages
            model_settings: Optional model settings
            model_request_parameters: Request parameters (includes instructions)

        Returns:
            ModelResponse with completion text and estimated usage

        Raises:
            RuntimeError: If the SDK stream fails
            ValueError: If structured output was requested but no JSON could be extracted
        """
        # prepare_request may clear output_object for some model types
        output_object = model_request_parameters.output_object

        model_settings, model_request_parameters = self.prepare_request(
            model_settings, model_request_parameters
        )

        instructions = self._get_instructions(messages, model_request_parameters)
        full_prompt = self._build_prompt(messages, instructions)

        start = time.monotonic()
        options = self._build_options(output_object)
        result_text, streamed_text = await self._call_sdk_isolated(full_prompt, options)
        duration_ms = int((time.monotonic() - start) * 1000)

        if output_object is not None:
            result_text = self._extract_json(result_text, streamed_text)

        usage = self._estimate_usage(messages, result_text)
        usage.details["duration_ms"] = duration_ms
        usage.details["estimated"] = 1

        return ModelResponse(
            parts=[TextPart(content=result_text)],
            model_name=self._model_name,
            usage=usage,
        )

    @property
    def model_name(self) -> str:
        """The model name for display/logging."""
        return self._model_name

    @property
    def system(self) -> str:
        """The provider identifier."""
        return "claude-agent-sdk"

    def _build_options(self, output_object: object | None) -> ClaudeAgentOptions:
        """Build SDK options for one request.

        The SDK expects `{"type": "json_schema", "schema": {...}}` for
        structured output; `output_object` is either a BaseModel class or an
        OutputObjectDefinition carrying the schema.
        """
        kwargs: dict[str, object] = {"cli_path": self._cli_path}
        if self._cwd is not None:
            kwargs["cwd"] = str(self._cwd)
        if self._max_turns is not None:
            kwargs["max_turns"] = self._max_turns
        if self._on_text is not None:
            kwargs["include_partial_messages"] = True
        if output_object is not None:
            if hasattr(output_object, "model_json_schema"):
                schema = output_object.model_json_schema()
            else:
                schema = output_object.json_schema  # type: ignore[attr-defined]
            kwargs["output_format"] = {"type": "json_schema", "schema": schema}
        return ClaudeAgentOptions(**kwargs)

    @staticmethod
    def _extract_json(text: str, streamed_text: str = "") -> str:
        """Recover the JSON payload from result text, falling back to streamed text."""
        payload = parse_structured_text(text)
        if payload is None and streamed_text:
            payload = parse_structured_text(streamed_text)
        if payload is None:
            raise ValueError("claude-agent-sdk returned no parseable JSON for structured output")
        return json.dumps(payload)

    def _build_prompt(self, messages: list[ModelMessage], instructions: str | None) -> str:
        """Flatten instructions and message history into one prompt string."""
        prompt_parts = []

        if instructions:
            prompt_parts.append(f"System: {instructions}")

        for msg in messages:
            for part in getattr(msg, "parts", []):
                content = getattr(part, "content", None)
                if isinstance(content, str) and getattr(part, "part_kind", "") == "user-prompt":
                    prompt_parts.append(content)

        return "\n\n".join(prompt_parts)

    @staticmethod
    def _delta_text(chunk: object) -> str:
        """Text from a partial-message stream event, or ""."""
        event = getattr(chunk, "event", None)
        if not isinstance(event, dict) or event.get("type") != "content_block_delta":
            return ""
        delta = event.get("delta") or {}
        if delta.get("type") != "text_delta":
            return ""
        return delta.get("text") or ""

    @staticmethod
    def _message_text(chunk: object) -> str:
        """Text content of an assistant message; content may be a string or blocks."""
        content = getattr(chunk, "content", None)
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return "".join(
                block.text for block in content if isinstance(getattr(block, "text", None), str)
            )
        return ""

    async def _call_sdk_isolated(
        self, prompt: str, options: ClaudeAgentOptions
    ) -> tuple[str, str]:
        """Call claude-agent-sdk in an isolated task.

        Avoids cancel scope conflicts between claude-agent-sdk's anyio task
        groups and pydantic-graph's task management.

        Returns:
            (final text, streamed text). The final text is the structured
            output, the result text, or the streamed text, in that order.
        """

        def report(text: str) -> None:
            if text and self._on_text is not None:
                self._on_text(text)

        async def _consume_stream() -> tuple[str, str]:
            deltas: list[str] = []
            chunks: list[str] = []
            result_message = None
            async for chunk in query(prompt=prompt, options=options):
                kind = type(chunk).__name__
                if kind == "ResultMessage":
                    result_message = chunk
                elif kind == "StreamEvent":
                    text = self._delta_text(chunk)
                    deltas.append(text)
                    report(text)
                elif kind == "UserMessage":
                    continue
                elif isinstance(chunk, str) or hasattr(chunk, "content"):
                    text = chunk if isinstance(chunk, str) else self._message_text(chunk)
                    chunks.append(text)
                    # whole messages repeat the deltas when partial messages are on
                    if not any(deltas):
                        report(text)

            streamed = "".join(deltas) or "".join(chunks)
            if result_message is not None:
                structured = getattr(result_message, "structured_output", None)
                if structured is not None:
                    return json.dumps(structured), streamed
                result_text = getattr(result_message, "result", None)
                if isinstance(result_text, str) and result_text:
                    return result_text, streamed

            return streamed, streamed

        try:
            return await asyncio.create_task(_consume_stream())
        except Exception as e:
            raise RuntimeError(f"claude-agent-sdk call failed: {e}") from e

    @staticmethod
    def _estimate_string_tokens(text: str) -> int:
        """Estimate tokens using word-boundary splitting (same as TestModel)."""
        if not text:
            return 0
        tokens = re.split(r"\W+", text.strip())
        return len([t for t in tokens if t])

    def _estimate_usage(self, messages: list[ModelMessage], response_text: str) -> RequestUsage:
        """Estimate token usage; the SDK doesn't expose real counts."""
        input_tokens = 50
        for msg in messages:
            input_tokens += self._estimate_string_tokens(str(msg))

        return RequestUsage(
            input_tokens=input_tokens,
            output_tokens=self._estimate_string_tokens(response_text),
        )
