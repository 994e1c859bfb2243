"""Foundational types for analysis calls.

TokenUsage is attached to every final gate event and summed per round.
No dependencies on other scout modules (pure foundation layer).
"""

from pydantic import BaseModel, ConfigDict


class TokenUsage(BaseModel):
    """Token usage and cost for one or more analysis calls.

    Maps directly to Pydantic AI RunUsage. All counts default to 0 so partial
    information (e.g. estimated usage from claude-agent-sdk) is still valid.
    """

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    requests: int = 1
    cost_usd: float | None = None

    model_config = ConfigDict(frozen=True)

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        cost: float | None = None
        if self.cost_usd is not None or other.cost_usd is not None:
            cost = (self.cost_usd or 0.0) + (other.cost_usd or 0.0)
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
            requests=self.requests + other.requests,
            cost_usd=cost,
        )
