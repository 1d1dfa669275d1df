"""NiceGUI presentation of a progress task and the matching host tick adapter."""

from __future__ import annotations

from typing import Callable, Optional

from nicegui import ui

from stepbar.core.state import ProgressOptions, ProgressState
from stepbar.core.utils.logging import get_logger

logger = get_logger(__name__)


def nicegui_call_later(delay: float, callback: Callable[[], None]) -> ui.timer:
    """Host tick primitive for NiceGUI: run `callback` once after `delay` seconds."""
    return ui.timer(max(0.0, float(delay)), callback, once=True)


def _rgb(color: tuple[int, int, int]) -> str:
    r, g, b = color
    return f"rgb({r}, {g}, {b})"


class ProgressBarView:
    """Label + linear progress bar inside a card, styled from ProgressOptions.

    Call build() inside a NiceGUI page/container, then pass the view as the
    runner's renderer. All updates happen in redraw() on the host thread.
    """

    def __init__(self, *, animate_label: bool = False) -> None:
        self.animate_label = animate_label
        self._card: Optional[ui.card] = None
        self._label: Optional[ui.label] = None
        self._bar: Optional[ui.linear_progress] = None

    def build(self) -> None:
        with ui.card().classes("fixed") as card:
            self._label = ui.label("")
            self._bar = ui.linear_progress(value=0.0, show_value=False).classes("w-full")
        self._card = card

    def redraw(self, state: ProgressState, options: ProgressOptions) -> None:
        if self._card is None or self._label is None or self._bar is None:
            return

        scale = options.screen_scale
        x, y = options.location
        self._card.style(
            f"left: {x * scale}px; top: {y * scale}px; "
            f"width: {options.width * scale}px; height: {options.height * scale}px; "
            f"background-color: {_rgb(options.box_color)}; "
            f"border: 1px solid {_rgb(options.outline_color)};"
        )

        text = state.display_label(self.animate_label)
        self._label.set_visibility(text is not None)
        self._label.set_text(text or "")
        self._bar.set_value(state.value)

    def close(self) -> None:
        if self._card is not None:
            self._card.delete()
        self._card = None
        self._label = None
        self._bar = None
