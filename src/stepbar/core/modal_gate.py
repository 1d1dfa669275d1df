"""Marks stretches of a task in which it must not be suspended."""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional


class ModalGate:
    """Counts open host-modal regions for one running task.

    A region is opened by the task body around host API calls
    (`ProgressHandle.modal()`) or by the host while it shows a menu or dialog
    (`CooperativeTaskRunner.host_modal()`). While any region is open:

    - `yield_to_host()` raises SuspendForbidden, which ends the task as a
      user menu-click abort;
    - forced preemption treats task lines as untracked and never suspends.

    Regions nest. The reason and start time of the outermost one are kept for
    `status()`. Host and task threads never run at the same time, but the
    watchdog-side preemption check reads `is_busy()` from the task thread, so
    the counter is guarded by a lock.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._busy_count = 0
        self._reason: Optional[str] = None
        self._since: float = 0.0

    @contextmanager
    def busy(self, reason: str = "host_modal") -> Iterator[None]:
        """Forbid suspension for the duration of the block."""
        self.enter(reason)
        try:
            yield
        finally:
            self.exit()

    def enter(self, reason: str = "host_modal") -> None:
        with self._lock:
            self._busy_count += 1
            # nested regions keep the outer reason
            if self._busy_count == 1:
                self._reason = reason
                self._since = time.monotonic()

    def exit(self) -> None:
        with self._lock:
            self._busy_count = max(0, self._busy_count - 1)
            if self._busy_count == 0:
                self._reason = None
                self._since = 0.0

    def is_busy(self) -> bool:
        with self._lock:
            return self._busy_count > 0

    def status(self) -> tuple[bool, Optional[str], float]:
        """Return (busy, reason, seconds_busy)."""
        with self._lock:
            if self._busy_count <= 0:
                return False, None, 0.0
            return True, self._reason, max(0.0, time.monotonic() - self._since)
