"""Force a running task body to suspend even where it does not yield.

Python has no way to suspend a plain function from the outside, but a trace
function runs *inside* the traced thread. `ForcedPreemption` installs one
with `sys.settrace` on the task thread. When armed (by the watchdog, from
another thread), the next `line` event in the tracked context calls
`on_preempt`, which blocks in the task's suspension point until the host
resumes it.

Granularity is one line of Python executed on the task thread. A long call
into C code is not interrupted until it returns to Python.

Frames from the modules in `skip_modules` (this package, the signal and
model libraries, the threading primitives) are never traced, so a task is
never suspended while one of them holds a lock the host may need.

If line events keep arriving from outside the tracked context (for instance
host code re-entered through a modal region), the hook disarms itself after
`stop_after` of them so an armed preemption cannot linger.
"""

from __future__ import annotations

import sys
from types import FrameType
from typing import Any, Callable, Optional

from stepbar.core.utils.logging import get_logger

logger = get_logger(__name__)

TraceFunction = Callable[[FrameType, str, Any], Optional[Callable[..., Any]]]

# Top-level module names whose frames are never traced.
DEFAULT_SKIP_MODULES: frozenset[str] = frozenset(
    {
        "stepbar",
        "psygnal",
        "pydantic",
        "pydantic_core",
        "threading",
        "queue",
        "logging",
        "contextlib",
        "importlib",
        "weakref",
        "_weakrefset",
    }
)


class ForcedPreemption:
    """Arm/disarm switch plus the trace hook that honours it.

    Args:
        is_tracked: True when the current line belongs to the task (checked
            only while armed, on the task thread).
        on_preempt: Called from inside the trace hook to suspend the task.
            Exceptions it raises propagate into the task body.
        is_ignored: True for lines that belong to neither the task nor the
            host, e.g. the suspension machinery itself. They neither preempt
            nor count down.
        stop_after: Untracked line events tolerated before self-disarming.
        skip_modules: Top-level module names whose frames are not traced.
    """

    def __init__(
        self,
        *,
        is_tracked: Callable[[], bool],
        on_preempt: Callable[[], None],
        is_ignored: Callable[[], bool] = lambda: False,
        stop_after: int = 2,
        skip_modules: frozenset[str] = DEFAULT_SKIP_MODULES,
    ) -> None:
        self._is_tracked = is_tracked
        self._on_preempt = on_preempt
        self._is_ignored = is_ignored
        self.stop_after = max(1, int(stop_after))
        self.skip_modules = frozenset(skip_modules)

        self._armed = False
        self._countdown = 0
        self._installed = False

        self.preempt_count = 0
        self.expired_count = 0

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def installed(self) -> bool:
        return self._installed

    def arm(self) -> None:
        """Request a suspension at the next tracked line. Safe from any thread."""
        self._countdown = self.stop_after
        self._armed = True

    def disarm(self) -> None:
        self._armed = False

    def install(self) -> None:
        """Install the hook on the calling thread (must be the task thread)."""
        sys.settrace(self._trace)
        self._installed = True

    def uninstall(self) -> None:
        """Remove the hook from the calling thread."""
        sys.settrace(None)
        self._installed = False
        self._armed = False

    def is_skipped(self, frame: FrameType) -> bool:
        module = frame.f_globals.get("__name__") or ""
        return module.partition(".")[0] in self.skip_modules

    def _trace(self, frame: FrameType, event: str, arg: Any) -> Optional[TraceFunction]:
        if event == "call":
            return None if self.is_skipped(frame) else self._trace
        if event == "line" and self._armed:
            self.on_line()
        return self._trace

    def on_line(self) -> None:
        """Handle one observed line event while armed."""
        if self._is_ignored():
            return

        if self._is_tracked():
            self._armed = False
            self.preempt_count += 1
            self._on_preempt()
            return

        self._countdown -= 1
        if self._countdown <= 0:
            self._armed = False
            self.expired_count += 1
            logger.debug("forced preemption expired outside the task context")
