"""The object a task body receives as its single argument."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Hashable, Iterator, Mapping, Optional

from stepbar.config import AUTO_MODE_FULL
from stepbar.core.state import ProgressOptions, ProgressState

if TYPE_CHECKING:
    from stepbar.core.runner import CooperativeTaskRunner


class ProgressHandle:
    """Task-facing surface of a running progress task.

    Example:
        def body(pbar: ProgressHandle) -> None:
            for count in range(1, 11):
                pbar.label = f"Step: {count}"
                pbar.set_value(count * 10)
                pbar.refresh()
    """

    def __init__(self, runner: "CooperativeTaskRunner") -> None:
        self._runner = runner

    # -----------------------------
    # Progress
    # -----------------------------
    @property
    def state(self) -> ProgressState:
        return self._runner.state

    @property
    def value(self) -> float:
        return self._runner.state.value

    @property
    def label(self) -> Optional[str]:
        return self._runner.state.label

    @label.setter
    def label(self, text: Optional[str]) -> None:
        self._runner.state.label = text

    def set_value(self, percent: float) -> None:
        self._runner.state.set_value(percent)

    def advance_value(self, percent: float) -> None:
        self._runner.state.advance_value(percent)

    # -----------------------------
    # Scheduling
    # -----------------------------
    def yield_to_host(self) -> None:
        """Suspend until the host's next tick.

        Raises:
            SuspendForbidden: inside a modal() region or off the task thread.
        """
        self._runner.suspend_task()

    def refresh(self) -> None:
        """Redraw point; same as yield_to_host()."""
        self._runner.suspend_task()

    def should_update(self) -> bool:
        """True at most once per watchdog tick; reading clears it."""
        return self._runner.consume_update()

    @contextmanager
    def modal(self, reason: str = "host_modal") -> Iterator[None]:
        """Region in which the task must not be suspended (e.g. a host API call)."""
        with self._runner.modal_gate.busy(reason):
            yield

    # -----------------------------
    # Per-task knobs
    # -----------------------------
    @property
    def id(self) -> Optional[Hashable]:
        return self._runner.id

    @property
    def options(self) -> ProgressOptions:
        return self._runner.options

    @options.setter
    def options(self, options: Mapping[str, Any]) -> None:
        self._runner.options.update(options)

    @property
    def animate_cursor(self) -> bool:
        return self._runner.settings.animate_cursor

    @animate_cursor.setter
    def animate_cursor(self, enabled: bool) -> None:
        self._runner.settings.animate_cursor = bool(enabled)

    @property
    def animate_label(self) -> bool:
        return self._runner.settings.animate_label

    @animate_label.setter
    def animate_label(self, enabled: bool) -> None:
        self._runner.settings.animate_label = bool(enabled)

    @property
    def enable_redraw(self) -> bool:
        return self._runner.settings.enable_redraw

    @enable_redraw.setter
    def enable_redraw(self, enabled: bool) -> None:
        self._runner.settings.enable_redraw = bool(enabled)

    @property
    def update_interval(self) -> float:
        return self._runner.settings.update_interval

    @update_interval.setter
    def update_interval(self, seconds: float) -> None:
        self._runner.settings.update_interval = float(seconds)

    @property
    def auto_interval(self) -> float:
        return self._runner.settings.auto_interval

    @auto_interval.setter
    def auto_interval(self, seconds: float) -> None:
        self._runner.settings.auto_interval = float(seconds)

    @property
    def auto_mode(self) -> Optional[str]:
        return self._runner.settings.auto_mode

    @auto_mode.setter
    def auto_mode(self, mode: Optional[str]) -> None:
        """Only takes effect before the first tick (the watchdog reads it once)."""
        if mode not in (None, AUTO_MODE_FULL):
            raise ValueError(f"auto_mode must be None or {AUTO_MODE_FULL!r}, got {mode!r}")
        self._runner.settings.auto_mode = mode
