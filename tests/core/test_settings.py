"""Tests for ProgressSettings defaults, presets and environment overrides."""

from __future__ import annotations

import pytest

from stepbar.config import (
    AUTO_MODE_FULL,
    DEFAULT_AUTO_INTERVAL,
    DEFAULT_BUSY_RETRY_DELAY,
    DEFAULT_UPDATE_INTERVAL,
    ProgressSettings,
)


def test_defaults() -> None:
    settings = ProgressSettings()
    assert settings.update_interval == DEFAULT_UPDATE_INTERVAL == 0.25
    assert settings.auto_interval == DEFAULT_AUTO_INTERVAL == 5.0
    assert settings.busy_retry_delay == DEFAULT_BUSY_RETRY_DELAY == 0.25
    assert settings.auto_mode is None
    assert not settings.full_auto
    assert settings.enable_redraw
    assert not settings.animate_cursor
    assert not settings.animate_label


def test_invalid_auto_mode_rejected() -> None:
    with pytest.raises(ValueError, match="auto_mode"):
        ProgressSettings(auto_mode="partial")


def test_full_auto() -> None:
    assert ProgressSettings(auto_mode=AUTO_MODE_FULL).full_auto


def test_spinner_presets() -> None:
    plain = ProgressSettings.spinner()
    assert plain.animate_cursor
    assert not plain.enable_redraw
    assert plain.auto_mode is None

    auto = ProgressSettings.spinner(auto=True, animate_label=True)
    assert auto.full_auto
    assert auto.auto_interval == 1.0
    assert auto.animate_label


def test_from_env_without_overrides() -> None:
    assert ProgressSettings.from_env() == ProgressSettings()


def test_from_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STEPBAR_UPDATE_INTERVAL", "0.5")
    monkeypatch.setenv("STEPBAR_AUTO_INTERVAL", "2")
    monkeypatch.setenv("STEPBAR_AUTO_MODE", "FULL")
    monkeypatch.setenv("STEPBAR_BUSY_RETRY_DELAY", "0.1")
    monkeypatch.setenv("STEPBAR_PREEMPT_STOP_AFTER", "4")
    monkeypatch.setenv("STEPBAR_CLOSE_TIMEOUT", "3")

    settings = ProgressSettings.from_env()
    assert settings.update_interval == 0.5
    assert settings.auto_interval == 2.0
    assert settings.auto_mode == AUTO_MODE_FULL
    assert settings.busy_retry_delay == 0.1
    assert settings.preempt_stop_after == 4
    assert settings.close_timeout == 3.0


@pytest.mark.parametrize(
    "name, raw",
    [
        ("STEPBAR_UPDATE_INTERVAL", "fast"),
        ("STEPBAR_UPDATE_INTERVAL", "-1"),
        ("STEPBAR_AUTO_INTERVAL", "0"),
        ("STEPBAR_PREEMPT_STOP_AFTER", "0"),
        ("STEPBAR_PREEMPT_STOP_AFTER", "two"),
        ("STEPBAR_AUTO_MODE", "sometimes"),
        ("STEPBAR_AUTO_MODE", "off"),
    ],
)
def test_from_env_invalid_falls_back(monkeypatch: pytest.MonkeyPatch, name: str, raw: str) -> None:
    monkeypatch.setenv(name, raw)
    assert ProgressSettings.from_env() == ProgressSettings()
