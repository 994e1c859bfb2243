"""Foundation types shared across scout modules."""

from scout.types.base import TokenUsage

__all__ = ["TokenUsage"]
