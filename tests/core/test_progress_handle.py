"""Tests for the ProgressHandle knobs a task body can turn."""

from __future__ import annotations

import pytest

from stepbar.config import AUTO_MODE_FULL, ProgressSettings
from stepbar.core.errors import SuspendForbidden
from stepbar.core.runner import CooperativeTaskRunner


@pytest.fixture
def runner(host, outcomes, context) -> CooperativeTaskRunner:
    return CooperativeTaskRunner(
        outcomes.on_complete,
        outcomes.on_abort,
        lambda pbar: None,
        call_later=host.call_later,
        id="panelA",
        context=context,
        settings=ProgressSettings(),
    )


def test_progress_passthrough(runner: CooperativeTaskRunner) -> None:
    pbar = runner.handle
    pbar.set_value(30)
    pbar.advance_value(5)
    assert pbar.value == pytest.approx(0.35)
    assert pbar.state is runner.state

    pbar.label = "Step: 1"
    assert runner.state.label == "Step: 1"
    assert pbar.id == "panelA"


def test_options_setter_merges(runner: CooperativeTaskRunner) -> None:
    pbar = runner.handle
    pbar.options = {"width": 500, "fg_color": (0, 128, 0)}
    assert pbar.options is runner.options
    assert runner.options.width == 500
    assert runner.options.fg_color == (0, 128, 0)
    assert runner.options.height == 60

    with pytest.raises(ValueError):
        pbar.options = {"colour": (0, 0, 0)}


def test_knobs_write_through_to_runner_settings(runner: CooperativeTaskRunner) -> None:
    pbar = runner.handle
    pbar.animate_cursor = True
    pbar.animate_label = True
    pbar.enable_redraw = False
    pbar.update_interval = 0.5
    pbar.auto_interval = 2
    pbar.auto_mode = AUTO_MODE_FULL

    s = runner.settings
    assert (s.animate_cursor, s.animate_label, s.enable_redraw) == (True, True, False)
    assert s.update_interval == 0.5
    assert s.auto_interval == 2.0
    assert pbar.auto_mode == AUTO_MODE_FULL

    pbar.auto_mode = None
    assert not s.full_auto


def test_auto_mode_rejects_unknown(runner: CooperativeTaskRunner) -> None:
    with pytest.raises(ValueError):
        runner.handle.auto_mode = "half"


def test_yield_outside_running_task_is_forbidden(runner: CooperativeTaskRunner) -> None:
    with pytest.raises(SuspendForbidden):
        runner.handle.yield_to_host()


def test_should_update_false_before_first_tick(runner: CooperativeTaskRunner) -> None:
    assert runner.handle.should_update() is False
