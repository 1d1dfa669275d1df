"""Pytest configuration and fixtures for stepbar tests."""

from __future__ import annotations

from typing import Callable, Generator

import pytest

from stepbar.config import ProgressSettings
from stepbar.core.cancellation import CancellationReason
from stepbar.core.context import ProgressContext, reset_default_context

_ENV_VARS = (
    "STEPBAR_UPDATE_INTERVAL",
    "STEPBAR_AUTO_INTERVAL",
    "STEPBAR_AUTO_MODE",
    "STEPBAR_BUSY_RETRY_DELAY",
    "STEPBAR_PREEMPT_STOP_AFTER",
    "STEPBAR_CLOSE_TIMEOUT",
)


class FakeHost:
    """Host tick primitive that queues callbacks until the test runs them.

    Mirrors a one-shot UI timer: call_later(delay, cb) records the request,
    run_next() fires the oldest one.
    """

    def __init__(self) -> None:
        self.pending: list[tuple[float, Callable[[], None]]] = []
        self.delays: list[float] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> int:
        self.pending.append((delay, callback))
        self.delays.append(delay)
        return len(self.delays)

    def run_next(self) -> float:
        delay, callback = self.pending.pop(0)
        callback()
        return delay

    def drain(self, max_ticks: int = 1000) -> int:
        ticks = 0
        while self.pending and ticks < max_ticks:
            self.run_next()
            ticks += 1
        return ticks


class Outcomes:
    """Records on_complete / on_abort calls."""

    def __init__(self) -> None:
        self.completed = 0
        self.aborted: list[CancellationReason] = []

    def on_complete(self) -> None:
        self.completed += 1

    def on_abort(self, reason: CancellationReason) -> None:
        self.aborted.append(reason)

    @property
    def total(self) -> int:
        return self.completed + len(self.aborted)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """No STEPBAR_* env leakage and a fresh process-wide context per test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_default_context()
    yield
    reset_default_context()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def outcomes() -> Outcomes:
    return Outcomes()


@pytest.fixture
def context() -> ProgressContext:
    return ProgressContext()


@pytest.fixture
def settings() -> ProgressSettings:
    """Fast timings so watchdog threads wake quickly in tests."""
    return ProgressSettings(update_interval=0.01, auto_interval=0.05, close_timeout=2.0)
