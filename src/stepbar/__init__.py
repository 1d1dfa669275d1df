# src/stepbar/__init__.py
"""Cooperative progress tasks for single-threaded host UI loops."""

from stepbar.config import ProgressSettings
from stepbar.core.cancellation import CancellationKind, CancellationReason
from stepbar.core.context import ProgressContext, default_context
from stepbar.core.errors import InvalidValue, StepbarError, SuspendForbidden, TaskContractError
from stepbar.core.handle import ProgressHandle
from stepbar.core.host import defer_once
from stepbar.core.runner import CooperativeTaskRunner, TaskPhase, start_task
from stepbar.core.state import ProgressOptions, ProgressState

__all__ = [
    "CancellationKind",
    "CancellationReason",
    "CooperativeTaskRunner",
    "InvalidValue",
    "ProgressContext",
    "ProgressHandle",
    "ProgressOptions",
    "ProgressSettings",
    "ProgressState",
    "StepbarError",
    "SuspendForbidden",
    "TaskContractError",
    "TaskPhase",
    "default_context",
    "defer_once",
    "start_task",
]
