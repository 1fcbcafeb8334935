"""
Shared fixtures for the settlement engine tests.
"""

import logging

import pytest

from settlement_engine.config import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Fresh settings per test, with reports written under tmp_path."""
    monkeypatch.setenv("REPORTS_DIR", str(tmp_path / "reports"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

    # Drop handlers installed by setup_logging; they point at captured streams
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)


@pytest.fixture
def triangle_balances():
    """One creditor paid by two debtors."""
    return {"A": 100, "B": -40, "C": -60}


@pytest.fixture
def two_creditors_balances():
    """One debtor who has to pay two creditors."""
    return {"A": 50, "B": 50, "C": -100}


@pytest.fixture
def demo_balances():
    from settlement_engine.cli import DEMO_BALANCES
    return dict(DEMO_BALANCES)


class StepClock:
    """Fake monotonic clock advancing a fixed step on every read."""

    def __init__(self, step: float):
        self.step = step
        self.now = 0.0

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def step_clock():
    return StepClock
