"""Resumable execution unit for a task body.

A TaskFiber runs `body()` on its own daemon thread but never concurrently with
the host: `resume()` hands control to the task thread and blocks until the
body suspends, returns or raises. Control moves through two queues, so at any
moment exactly one of the two threads is executing.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from stepbar.core.errors import SuspendForbidden, TaskTerminated
from stepbar.core.preemption import ForcedPreemption
from stepbar.core.utils.logging import get_logger

logger = get_logger(__name__)


class _Outcome(str, Enum):
    SUSPENDED = "suspended"
    DONE = "done"
    FAILED = "failed"
    CLOSED = "closed"


@dataclass(frozen=True)
class _Report:
    outcome: _Outcome
    exc: Optional[BaseException] = None


_RESUME = "resume"
_CLOSE = "close"


class TaskFiber:
    """Suspend/resume wrapper around a zero-argument callable.

    Attributes:
        preemption: Optional ForcedPreemption whose trace hook is installed on
            the task thread for the lifetime of the body. Set before the first
            resume().
    """

    def __init__(self, body: Callable[[], None], *, name: str = "stepbar-task") -> None:
        self._body = body
        self._name = name
        self.preemption: Optional[ForcedPreemption] = None

        self._to_task: "queue.Queue[str]" = queue.Queue()
        self._to_host: "queue.Queue[_Report]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._ident: Optional[int] = None

        self._in_body = False
        self._suspending = False
        self._finished = False
        self._closed = False

    @property
    def started(self) -> bool:
        return self._thread is not None

    @property
    def alive(self) -> bool:
        """True between the first resume() and the end of the body."""
        return self.started and not self._finished

    @property
    def finished(self) -> bool:
        return self._finished

    def resume(self) -> bool:
        """Run the body until its next suspension point.

        Returns:
            True if the body suspended, False if it returned.

        Raises:
            Whatever the body raised (re-raised on the calling thread).
            RuntimeError if the fiber already finished or was closed.
        """
        if self._finished or self._closed:
            raise RuntimeError("cannot resume a finished task")

        if self._thread is None:
            self._thread = threading.Thread(target=self._entry, name=self._name, daemon=True)
            self._thread.start()
        else:
            self._to_task.put(_RESUME)

        report = self._to_host.get()
        if report.outcome is _Outcome.SUSPENDED:
            return True

        self._finished = True
        if report.exc is not None:
            raise report.exc
        return False

    def suspend(self) -> None:
        """Hand control back to the host until the next resume().

        Must be called by the body on the task thread.

        Raises:
            SuspendForbidden: called from any other thread.
            TaskTerminated: the fiber was closed while suspended.
        """
        if threading.get_ident() != self._ident or not self._in_body:
            raise SuspendForbidden("yield_to_host() called outside the running task")
        if self._closed:
            raise TaskTerminated()

        self._suspending = True
        try:
            self._to_host.put(_Report(_Outcome.SUSPENDED))
            command = self._to_task.get()
        finally:
            self._suspending = False

        if command == _CLOSE:
            raise TaskTerminated()

    def in_task_context(self) -> bool:
        """True when the calling code is the body itself, outside suspend()."""
        return self._in_body and not self._suspending and threading.get_ident() == self._ident

    def close(self, timeout: float = 1.0) -> bool:
        """Discard the fiber, unwinding a suspended body.

        TaskTerminated is raised at the body's suspension point so its
        `finally` blocks run.

        Returns:
            True if the task thread has exited (or never started).
        """
        if self._closed:
            return not self.is_thread_alive()
        self._closed = True

        t = self._thread
        if t is None or self._finished:
            return True

        self._to_task.put(_CLOSE)
        t.join(timeout)
        if t.is_alive():
            logger.warning(f"task thread {t.name} did not unwind within {timeout}s; abandoning it")
            return False
        self._finished = True
        return True

    def is_thread_alive(self) -> bool:
        t = self._thread
        return bool(t and t.is_alive())

    def _entry(self) -> None:
        self._ident = threading.get_ident()
        preemption = self.preemption
        if preemption is not None:
            preemption.install()

        try:
            self._in_body = True
            try:
                self._body()
            finally:
                self._in_body = False
        except TaskTerminated as exc:
            report = _Report(_Outcome.CLOSED, exc)
        except BaseException as exc:
            report = _Report(_Outcome.FAILED, exc)
        else:
            report = _Report(_Outcome.DONE)
        finally:
            if preemption is not None:
                preemption.uninstall()

        self._to_host.put(report)
