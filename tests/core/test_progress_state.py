"""Tests for ProgressState and ProgressOptions."""

from __future__ import annotations

import math
from decimal import Decimal
from fractions import Fraction

import pytest

from stepbar.core.errors import InvalidValue
from stepbar.core.state import ANIMATION_FRAMES, DEFAULT_LABEL, ProgressOptions, ProgressState


def test_defaults() -> None:
    state = ProgressState()
    assert state.value == 0.0
    assert state.label == DEFAULT_LABEL
    assert state.cursor_frame == 0
    assert state.label_frame == 0


@pytest.mark.parametrize(
    "percent, expected",
    [
        (0, 0.0),
        (10, 0.10),
        (25.5, 0.255),
        (100, 1.0),
        (Decimal("10"), 0.10),
        (Decimal("62.5"), 0.625),
        (Fraction(1, 2), 0.005),
    ],
)
def test_set_value_normalizes(percent: float, expected: float) -> None:
    state = ProgressState()
    state.set_value(percent)
    assert state.value == pytest.approx(expected)


def test_set_value_is_absolute() -> None:
    state = ProgressState()
    state.set_value(80)
    state.set_value(20)
    assert state.value == pytest.approx(0.20)


def test_advance_value_accumulates_and_clamps() -> None:
    state = ProgressState()
    state.advance_value(30)
    state.advance_value(30)
    assert state.value == pytest.approx(0.60)

    state.advance_value(60)
    assert state.value == 1.0


@pytest.mark.parametrize("bad", ["50", None, True, [], math.nan, 3 + 0j, Decimal("NaN"), Decimal("sNaN")])
def test_set_value_rejects_non_numeric(bad: object) -> None:
    state = ProgressState()
    state.set_value(40)
    with pytest.raises(InvalidValue):
        state.set_value(bad)  # type: ignore[arg-type]
    assert state.value == pytest.approx(0.40)


@pytest.mark.parametrize("bad", [-1, -0.001, 100.5, 1000])
def test_out_of_range_leaves_value_unchanged(bad: float) -> None:
    state = ProgressState()
    state.set_value(40)
    with pytest.raises(InvalidValue, match="between 0 and 100"):
        state.set_value(bad)
    with pytest.raises(InvalidValue):
        state.advance_value(bad)
    assert state.value == pytest.approx(0.40)


def test_invalid_value_is_a_value_error() -> None:
    state = ProgressState()
    with pytest.raises(ValueError):
        state.set_value(101)


def test_value_changes_emit_events() -> None:
    state = ProgressState()
    seen: list[float] = []

    def _on_value(value: float) -> None:
        seen.append(value)

    state.events.value.connect(_on_value)

    state.set_value(10)
    state.advance_value(15)

    assert seen == [pytest.approx(0.10), pytest.approx(0.25)]


def test_animation_frames_wrap() -> None:
    state = ProgressState()
    frames = [state.step_cursor() for _ in range(ANIMATION_FRAMES + 1)]
    assert frames[:3] == [1, 2, 3]
    assert frames[ANIMATION_FRAMES - 1] == 0
    assert frames[-1] == 1


def test_display_label() -> None:
    state = ProgressState(label="Working")
    assert state.display_label() == "Working"

    for _ in range(3):
        state.step_label()
    assert state.display_label(animate=True) == "Working >>>"

    state.label = None
    assert state.display_label(animate=True) is None


def test_options_defaults() -> None:
    options = ProgressOptions()
    assert options.location == (50, 30)
    assert options.width == 300
    assert options.height == 60
    assert options.bar_width == pytest.approx(285.0)


def test_options_bar_width_follows_width() -> None:
    options = ProgressOptions(width=200)
    assert options.bar_width == pytest.approx(190.0)


def test_options_update_merges() -> None:
    options = ProgressOptions()
    options.update({"width": 400, "box_color": (0, 0, 0)})
    assert options.width == 400
    assert options.box_color == (0, 0, 0)
    assert options.height == 60


def test_options_update_rejects_unknown_keys_without_merging() -> None:
    options = ProgressOptions()
    with pytest.raises(ValueError, match="Unknown progress options"):
        options.update({"width": 400, "no_such_option": 1})
    assert options.width == 300


def test_options_contains_is_strict() -> None:
    options = ProgressOptions()
    assert options.contains(60, 40)
    assert not options.contains(50, 40)
    assert not options.contains(350, 40)
    assert not options.contains(60, 90)
    assert not options.contains(10, 10)


def test_advance_value_accepts_decimal() -> None:
    state = ProgressState()
    state.advance_value(Decimal("12.5"))
    state.advance_value(Decimal("12.5"))
    assert state.value == pytest.approx(0.25)


@pytest.mark.parametrize("bad", [Decimal("-1"), Decimal("100.01"), Fraction(201, 2)])
def test_out_of_range_decimal_and_fraction(bad: object) -> None:
    state = ProgressState()
    with pytest.raises(InvalidValue, match="between 0 and 100"):
        state.set_value(bad)  # type: ignore[arg-type]
    assert state.value == 0.0
