"""Cost calculation for token usage.

Prices are per 1M tokens (USD). Unknown models cost 0.0 so estimates never
break a round.
"""

from typing import Protocol


class UsageProtocol(Protocol):
    """Protocol for token usage to avoid circular imports with scout.types."""

    input_tokens: int
    output_tokens: int


PROVIDER_PRICES: dict[str, dict[str, float]] = {
    "claude-opus-4-6": {"input": 15.00, "output": 75.00},
    "claude-sonnet-4-5": {"input": 3.00, "output": 15.00},
    "claude-sonnet-4-5-20250929": {"input": 3.00, "output": 15.00},
    "claude-haiku-4-5": {"input": 0.80, "output": 4.00},
    "claude-haiku-4-5-20251001": {"input": 0.80, "output": 4.00},
}


def calculate_cost(usage: UsageProtocol, model: str) -> float:
    """Calculate cost in USD for the given usage and model.

    Args:
        usage: Token usage counts
        model: Bare model identifier (e.g., "claude-sonnet-4-5")

    Returns:
        Total cost in USD. Returns 0.0 for unknown models or zero tokens.
    """
    prices = PROVIDER_PRICES.get(model)
    if prices is None:
        return 0.0

    input_cost = (usage.input_tokens / 1_000_000) * prices["input"]
    output_cost = (usage.output_tokens / 1_000_000) * prices["output"]
    return input_cost + output_cost
