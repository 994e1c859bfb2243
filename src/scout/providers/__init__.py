"""Scout providers: the analysis call gate and its backends."""

from scout.providers.base import CallGate, CallOptions, FinalOutput, GateEvent, PartialText
from scout.providers.claude_sdk_model import CLAUDE_SDK_AVAILABLE, ClaudeAgentSDKModel
from scout.providers.config import (
    ModelRoster,
    ProviderConfig,
    resolve_default_model,
    resolve_roster,
)
from scout.providers.pricing import calculate_cost
from scout.providers.pydantic_ai import PydanticAIGate

__all__ = [
    "CLAUDE_SDK_AVAILABLE",
    "CallGate",
    "CallOptions",
    "ClaudeAgentSDKModel",
    "FinalOutput",
    "GateEvent",
    "ModelRoster",
    "PartialText",
    "ProviderConfig",
    "PydanticAIGate",
    "calculate_cost",
    "resolve_default_model",
    "resolve_roster",
]
