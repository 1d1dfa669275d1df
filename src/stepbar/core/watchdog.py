"""Background timer that latches a best-effort "update due" flag.

The watchdog never touches the task. It communicates with the host timeline
through two single-writer flags: `update_due` (consumed by the task via
`consume_update()`) and, in full auto mode, a call to `on_auto_deadline`
that arms forced preemption.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from stepbar.core.utils.logging import get_logger

logger = get_logger(__name__)


class WatchdogTimer:
    """Sleep `update_interval + last_step_elapsed`, then latch `update_due`.

    The sleep backs off automatically when host steps are slow. While the host
    is busy, wakes are skipped without latching.

    Args:
        get_update_interval: Returns the current base interval; read on every wake
            so the task can retune it while running.
        auto_interval: Period of the auto deadline (full auto mode only).
        auto_mode_enabled: Track the auto deadline and call `on_auto_deadline`.
        is_host_busy: Predicate checked on every wake.
        on_auto_deadline: Called on the watchdog thread when the deadline passes.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        *,
        get_update_interval: Callable[[], float],
        auto_interval: float = 5.0,
        auto_mode_enabled: bool = False,
        is_host_busy: Callable[[], bool] = lambda: False,
        on_auto_deadline: Optional[Callable[[], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "stepbar-watchdog",
    ) -> None:
        self._get_update_interval = get_update_interval
        self.auto_interval = float(auto_interval)
        self.auto_mode_enabled = bool(auto_mode_enabled)
        self._is_host_busy = is_host_busy
        self._on_auto_deadline = on_auto_deadline
        self._clock = clock
        self._name = name

        self.last_step_elapsed: float = 0.0
        self.next_auto_deadline: Optional[float] = None
        self.update_due: bool = False
        self.latch_count: int = 0

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def update_interval(self) -> float:
        return float(self._get_update_interval())

    def is_running(self) -> bool:
        t = self._thread
        return bool(t and t.is_alive())

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("WatchdogTimer can only be started once")
        self._thread = threading.Thread(target=self._loop, name=self._name, daemon=True)
        self._thread.start()
        logger.debug(f"watchdog started (auto_mode={self.auto_mode_enabled})")

    def stop(self, timeout: float = 1.0) -> None:
        """Stop without waiting for the current sleep to finish."""
        self._stop_event.set()
        t = self._thread
        if t is not None and t is not threading.current_thread():
            t.join(timeout)
            if t.is_alive():
                logger.warning(f"watchdog thread {t.name} did not stop within {timeout}s")

    def consume_update(self) -> bool:
        """Read and clear the latched flag."""
        due = self.update_due
        self.update_due = False
        return due

    def _sleep_seconds(self) -> float:
        return max(0.0, self.update_interval + self.last_step_elapsed)

    def _loop(self) -> None:
        try:
            self.next_auto_deadline = self._clock() + self.auto_interval
            while not self._stop_event.wait(self._sleep_seconds()):
                if self._is_host_busy():
                    continue

                self.update_due = True
                self.latch_count += 1

                if not self.auto_mode_enabled or self.next_auto_deadline >= self._clock():
                    continue
                self.next_auto_deadline += self.auto_interval
                if self._on_auto_deadline is not None:
                    self._on_auto_deadline()
        except Exception:
            logger.debug("watchdog loop failed", exc_info=True)
