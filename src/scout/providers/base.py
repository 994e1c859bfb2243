"""Analysis call gate abstractions.

This module defines the contract every analysis backend implements:
- CallOptions: per-call model, working directory and step budget
- PartialText / FinalOutput: the events a submitted call yields
- CallGate: abstract base class for all gate implementations

Callers must tolerate zero or more PartialText events before exactly one
FinalOutput. A gate signals failure by raising from the iterator.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from scout.types import TokenUsage


class CallOptions(BaseModel):
    """Per-call options forwarded to the gate."""

    model: str | None = Field(
        default=None, description="Model override (pydantic-ai shorthand or 'claude-agent-sdk')"
    )
    working_directory: Path | None = Field(
        default=None, description="Directory the analysis may inspect"
    )
    max_steps: int | None = Field(
        default=None, ge=1, description="Upper bound on model requests/turns for the call"
    )

    model_config = ConfigDict(frozen=True)


class PartialText(BaseModel):
    """Incremental text streamed while a call is in flight."""

    text: str

    model_config = ConfigDict(frozen=True)


class FinalOutput(BaseModel):
    """Terminal event of a call.

    `output` is whatever the backend produced: a validated model instance, a
    plain dict, or raw text that still needs extraction.
    """

    output: Any
    usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str = "unknown"
    duration_ms: int = 0

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


GateEvent = PartialText | FinalOutput


class CallGate(ABC):
    """Abstract base class for analysis call backends."""

    @abstractmethod
    def submit(
        self,
        prompt: str,
        output_type: type[Any],
        options: CallOptions | None = None,
    ) -> AsyncIterator[GateEvent]:
        """Submit a prompt and stream its events.

        Args:
            prompt: Full prompt text
            output_type: Pydantic model class describing the output shape, or str
            options: Optional per-call options

        Returns:
            Async iterator of PartialText events ending in one FinalOutput
        """
        ...
