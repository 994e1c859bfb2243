"""Tests for cost calculation."""

import pytest

from scout.providers.pricing import PROVIDER_PRICES, calculate_cost
from scout.types import TokenUsage


class TestProviderPrices:
    """Test PROVIDER_PRICES constant."""

    def test_has_opus_4_6(self) -> None:
        prices = PROVIDER_PRICES["claude-opus-4-6"]
        assert prices["input"] == 15.00
        assert prices["output"] == 75.00

    def test_sonnet_alias_matches_dated_id(self) -> None:
        assert PROVIDER_PRICES["claude-sonnet-4-5"] == PROVIDER_PRICES["claude-sonnet-4-5-20250929"]

    def test_haiku_alias_matches_dated_id(self) -> None:
        assert PROVIDER_PRICES["claude-haiku-4-5"] == PROVIDER_PRICES["claude-haiku-4-5-20251001"]


class TestCalculateCost:
    """Test calculate_cost function."""

    def test_opus_cost(self) -> None:
        usage = TokenUsage(input_tokens=1_000_000, output_tokens=500_000)
        # (1M * 15.00) + (0.5M * 75.00) = 15 + 37.5
        assert calculate_cost(usage, "claude-opus-4-6") == pytest.approx(52.50)

    def test_sonnet_cost(self) -> None:
        usage = TokenUsage(input_tokens=2_000_000, output_tokens=1_000_000)
        assert calculate_cost(usage, "claude-sonnet-4-5") == pytest.approx(21.00)

    def test_unknown_model_is_free(self) -> None:
        usage = TokenUsage(input_tokens=1_000, output_tokens=1_000)
        assert calculate_cost(usage, "test") == 0.0

    def test_zero_tokens(self) -> None:
        assert calculate_cost(TokenUsage(), "claude-opus-4-6") == 0.0
