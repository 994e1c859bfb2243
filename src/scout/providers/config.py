"""Provider configuration models.

Defines per-provider configuration and the per-role model roster used by the
discovery orchestrator. Uses BaseModel (not BaseSettings); environment lookups
are explicit in resolve_default_model and resolve_roster.
"""

import os

from pydantic import BaseModel

CLAUDE_SDK_MODEL = "claude-agent-sdk"

# Per-role overrides on top of the default model
ROLE_MODEL_ENV = {
    "planning": "SCOUT_PLANNING_MODEL",
    "analysis": "SCOUT_ANALYSIS_MODEL",
    "synthesis": "SCOUT_SYNTHESIS_MODEL",
}


def resolve_default_model() -> str:
    """Resolve the default AI model based on available credentials.

    Checks in order:
    1. SCOUT_MODEL set → that value
    2. ANTHROPIC_API_KEY set → "anthropic:claude-sonnet-4-5"
    3. claude-agent-sdk importable → "claude-agent-sdk"
    4. Nothing → raise RuntimeError with clear instructions

    Returns:
        Full model string ready for PydanticAIGate.
    """
    override = os.environ.get("SCOUT_MODEL")
    if override:
        return override

    if os.environ.get("ANTHROPIC_API_KEY"):
        return "anthropic:claude-sonnet-4-5"

    try:
        import claude_agent_sdk  # noqa: F401

        return CLAUDE_SDK_MODEL
    except ImportError:
        msg = (
            "No AI provider configured. Either:\n"
            "  1. Set ANTHROPIC_API_KEY environment variable, or\n"
            "  2. Install claude-agent-sdk: pip install scoutx[claude-sdk], or\n"
            "  3. Pass --model explicitly (e.g. --model claude-agent-sdk)"
        )
        raise RuntimeError(msg) from None


class ProviderConfig(BaseModel):
    """Configuration for a single AI provider/model."""

    provider: str = "anthropic"
    model: str = "claude-sonnet-4-5"

    @classmethod
    def from_model_string(cls, value: str) -> "ProviderConfig":
        """Parse "provider:model", "claude-agent-sdk", or a bare model name."""
        if value == CLAUDE_SDK_MODEL:
            return cls(provider=CLAUDE_SDK_MODEL, model=CLAUDE_SDK_MODEL)
        provider, sep, model = value.partition(":")
        if not sep:
            return cls(provider="", model=value)
        return cls(provider=provider, model=model)

    @property
    def model_string(self) -> str:
        """Model in pydantic-ai shorthand, e.g. "anthropic:claude-sonnet-4-5"."""
        if self.provider == CLAUDE_SDK_MODEL:
            return CLAUDE_SDK_MODEL
        if not self.provider:
            return self.model
        return f"{self.provider}:{self.model}"


class ModelRoster(BaseModel):
    """Per-role model assignment for a discovery round.

    - planning: the meta-call that decides which analyses run (Sonnet)
    - analysis: each parallel specialist analysis (Sonnet)
    - synthesis: the merge call producing the interview result (Opus)
    """

    planning: ProviderConfig = ProviderConfig(model="claude-sonnet-4-5")
    analysis: ProviderConfig = ProviderConfig(model="claude-sonnet-4-5")
    synthesis: ProviderConfig = ProviderConfig(model="claude-opus-4-6")


def resolve_roster(default_model: str) -> ModelRoster:
    """Build the per-role roster used by the CLI.

    Every role runs on `default_model` unless SCOUT_PLANNING_MODEL,
    SCOUT_ANALYSIS_MODEL or SCOUT_SYNTHESIS_MODEL names another model.

    Args:
        default_model: Model string from --model or resolve_default_model()

    Returns:
        ModelRoster with one ProviderConfig per role
    """
    roles = {
        role: ProviderConfig.from_model_string(os.environ.get(env) or default_model)
        for role, env in ROLE_MODEL_ENV.items()
    }
    return ModelRoster(**roles)
