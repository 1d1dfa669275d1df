"""Exception taxonomy for stepbar (UI-agnostic)."""

from __future__ import annotations


class StepbarError(Exception):
    """Base class for stepbar errors."""


class TaskContractError(StepbarError, TypeError):
    """Raised when start_task() receives a handler or body with the wrong shape.

    Fatal and synchronous: no task is created.
    """


class InvalidValue(StepbarError, ValueError):
    """Raised by set_value()/advance_value() for a non-numeric or out-of-range percentage."""


class SuspendForbidden(StepbarError):
    """Raised when a task tries to suspend from a context the host cannot interrupt.

    Examples: inside a host-modal region, or from a thread other than the task's own.
    """


class TaskTerminated(BaseException):
    """Raised inside a discarded task body to unwind it.

    Derives from BaseException so `except Exception` in task code does not swallow it.
    """
