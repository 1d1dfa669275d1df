"""NiceGUI demo: a progress task that counts to ten, one step per UI tick.

Run with:
    stepbar-demo
    python -m stepbar.gui.app

Env vars:
    STEPBAR_LOG_LEVEL: console log level (default INFO)
    STEPBAR_GUI_RELOAD: 1/0 (default 0)
    HOST / PORT: bind address (default 127.0.0.1:8080)
"""

from __future__ import annotations

import os
import time
from typing import Optional

from nicegui import ui

from stepbar.config import ProgressSettings
from stepbar.core.cancellation import CancellationReason
from stepbar.core.handle import ProgressHandle
from stepbar.core.runner import CooperativeTaskRunner, start_task
from stepbar.core.utils.logging import get_log_file_path, get_logger, setup_logging
from stepbar.gui.progress_view import ProgressBarView, nicegui_call_later

logger = get_logger(__name__)

DEMO_ID = "demo"

# Simulated work per step (s).
_WORK_SECONDS = 0.2


def count_to_ten(pbar: ProgressHandle) -> None:
    for count in range(1, 11):
        pbar.label = f"Step: {count}"
        time.sleep(_WORK_SECONDS)
        pbar.set_value(count * 10)
        pbar.refresh()


class DemoPage:
    """Start/escape buttons, a status line and the progress card."""

    def __init__(self) -> None:
        self.view = ProgressBarView(animate_label=True)
        self.runner: Optional[CooperativeTaskRunner] = None
        self._status: Optional[ui.label] = None

    def build(self) -> None:
        ui.label("stepbar demo").classes("text-lg")
        with ui.row():
            ui.button("Start", on_click=self.start)
            ui.button("Escape", on_click=self.escape)
        self._status = ui.label("Idle")
        log_path = get_log_file_path()
        if log_path is not None:
            ui.label(f"Log: {log_path}").classes("text-xs")
        self.view.build()

    def set_status(self, text: str) -> None:
        logger.info(text)
        if self._status is not None:
            self._status.set_text(text)

    def start(self) -> None:
        runner = start_task(
            self.on_complete,
            self.on_abort,
            count_to_ten,
            call_later=nicegui_call_later,
            id=DEMO_ID,
            settings=ProgressSettings(animate_label=True),
            renderer=self.view,
        )
        if runner is None:
            ui.notify("A progress task is already running")
            return
        self.runner = runner
        self.set_status("Running")

    def escape(self) -> None:
        if self.runner is not None:
            self.runner.user_escape()

    def on_complete(self) -> None:
        self.set_status("Completed")

    def on_abort(self, reason: CancellationReason) -> None:
        self.set_status(f"Aborted: {reason}")


@ui.page("/")
def home() -> None:
    DemoPage().build()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def main(*, reload: Optional[bool] = None) -> None:
    """Configure logging and serve the demo page."""
    log_path = setup_logging()
    reload = _env_bool("STEPBAR_GUI_RELOAD", False) if reload is None else reload
    host = os.getenv("HOST", "127.0.0.1")
    port = _env_int("PORT", 8080)
    logger.info(f"Starting stepbar demo: host={host} port={port} reload={reload} log={log_path}")
    ui.run(host=host, port=port, reload=reload, title="stepbar demo")


if __name__ in {"__main__", "__mp_main__"}:
    main()
