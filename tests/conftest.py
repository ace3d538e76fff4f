"""Shared fixtures."""

from __future__ import annotations

import pytest

_CONFIG_ENV_VARS = (
    "DIR",
    "COMMAND",
    "WORKERS",
    "POLL",
    "WEIGHT_PER_TEST",
    "BASE_WEIGHT",
    "BASE_DISPLAY_NUMBER",
    "VERBOSE",
    "CYPRESS_LOG",
    "USE_XVFB",
    "TIMEOUT",
    "PATTERNS",
)


@pytest.fixture(autouse=True)
def _clean_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of configuration-dependent tests."""
    for var in _CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
