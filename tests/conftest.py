"""Pytest fixtures for Daybreak tests."""

import os
from datetime import UTC, datetime, timedelta

import pytest

from daybreak.foundation.clock import SequentialIds
from daybreak.foundation.config import DaybreakConfig, reset_config
from daybreak.planning import PlanEngine
from daybreak.quality.guardrails import AutonomyGuardrails, GuardrailPolicy, ResourceBudget


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep user config, env overrides and the config cache out of every test."""
    for name in list(os.environ):
        if name.startswith("DAYBREAK_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture
def guardrails(clock: FakeClock, ids: SequentialIds) -> AutonomyGuardrails:
    """Fresh guardrails per test; the kill switch never leaks between tests."""
    return AutonomyGuardrails(clock=clock, ids=ids)


@pytest.fixture
def engine(guardrails: AutonomyGuardrails, clock: FakeClock, ids: SequentialIds) -> PlanEngine:
    return PlanEngine(guardrails, clock=clock, ids=ids, config=DaybreakConfig())


@pytest.fixture
def small_policy() -> GuardrailPolicy:
    """Tight budget: 1000 tokens, 10 calls, 5 connector actions, 1 hour."""
    return GuardrailPolicy(
        escalation_threshold_pct=0.8,
        resource_budget=ResourceBudget(
            max_tokens=1000,
            max_api_calls=10,
            max_connector_actions=5,
            max_runtime_hours=1,
        ),
    )
