"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
import os

from loguru import logger
import pytest

from pricerecon.core.config import ENV_PREFIX


@pytest.fixture(autouse=True)
def _clear_pricerecon_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove PRICERECON_* variables so config tests see only what they set."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def captured_logs() -> Iterator[list[str]]:
    """Collect formatted loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="DEBUG")
    yield messages
    logger.remove(handler_id)
