"""Shared test fixtures."""

import os
from collections.abc import Iterator

import pytest
from pydantic_ai import models


@pytest.fixture(autouse=True)
def _prevent_real_api_calls() -> Iterator[None]:
    """Safety: block real model requests in all tests."""
    original = models.ALLOW_MODEL_REQUESTS
    models.ALLOW_MODEL_REQUESTS = False
    yield
    models.ALLOW_MODEL_REQUESTS = original


@pytest.fixture(autouse=True)
def _isolate_scout_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer SCOUT_* overrides from leaking into config under test."""
    for name in list(os.environ):
        if name.startswith("SCOUT_"):
            monkeypatch.delenv(name, raising=False)
