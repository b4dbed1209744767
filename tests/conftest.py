"""Shared fixtures for the calculate test suite."""

from dataclasses import replace
from decimal import Decimal

import pytest

from calculate import MathEngine, config_manager
from calculate.Environment import new_environment
from calculate.config_manager import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def env():
    return new_environment()


@pytest.fixture
def calc(env, settings):
    """Evaluate an expression against the test's environment and default settings."""

    def _calc(text: str, **overrides) -> Decimal:
        return MathEngine.evaluate_expression(text, env, replace(settings, **overrides))

    return _calc


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Point config_manager at a throwaway config.json."""
    path = tmp_path / "config.json"
    monkeypatch.setattr(config_manager, "config_json", path)
    return path
