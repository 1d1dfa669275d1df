"""Cooperative scheduler that runs a task body one increment per host tick.

Control flow:
    host tick -> CooperativeTaskRunner.step() -> body runs until it suspends,
    returns or raises -> runner schedules the next tick, or finalizes through
    exactly one of on_complete / on_abort (deferred onto the host schedule).

The watchdog and forced preemption live on a side timeline. They only set
flags or arm the preemption hook; they never resume the task themselves.
"""

from __future__ import annotations

import gc
import inspect
import time
from contextlib import contextmanager
from dataclasses import replace
from enum import Enum
from functools import partial
from typing import Any, Callable, Hashable, Iterator, Optional

from stepbar.config import ProgressSettings
from stepbar.core.cancellation import CancellationReason
from stepbar.core.context import ProgressContext, default_context
from stepbar.core.errors import SuspendForbidden, TaskContractError
from stepbar.core.fiber import TaskFiber
from stepbar.core.handle import ProgressHandle
from stepbar.core.host import CallLater, CursorRenderer, Renderer, defer_once
from stepbar.core.modal_gate import ModalGate
from stepbar.core.preemption import ForcedPreemption
from stepbar.core.state import ProgressOptions, ProgressState
from stepbar.core.utils.logging import get_logger
from stepbar.core.watchdog import WatchdogTimer

logger = get_logger(__name__)

OnComplete = Callable[[], None]
OnAbort = Callable[[CancellationReason], None]
TaskBody = Callable[[ProgressHandle], None]


class TaskPhase(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETED = "completed"
    ABORTED = "aborted"


def _check_arity(fn: Any, n_args: int, what: str) -> None:
    """Require `fn` to be callable with exactly `n_args` positional arguments."""
    plural = "argument" if n_args == 1 else "arguments"
    message = f"{what} must be a callable of arity {n_args} (takes exactly {n_args} {plural})"
    if not callable(fn):
        raise TaskContractError(message)
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        # builtins without an introspectable signature
        return
    try:
        sig.bind(*([None] * n_args))
    except TypeError:
        raise TaskContractError(message) from None
    try:
        sig.bind(*([None] * (n_args + 1)))
    except TypeError:
        return
    raise TaskContractError(message)


class CooperativeTaskRunner:
    """Owns one task: its state, its resumable unit, its watchdog.

    Lifecycle: IDLE -> ACTIVE -> COMPLETED | ABORTED. While ACTIVE the host may
    put the runner in a HostBusy sub-state (host_suspend/host_resume), which
    pauses ticking without touching the body.

    Args:
        on_complete: Zero-argument handler, called once if the body returns.
        on_abort: One-argument handler, called once with a CancellationReason
            on any other exit path.
        body: Callable taking the ProgressHandle.
        call_later: Host tick primitive, see `stepbar.core.host.CallLater`.
        id: Optional hashable key for the shared location cache.
        context: Shared services; defaults to the process-wide context.
        settings: Copied; defaults to `ProgressSettings.from_env()`.
        renderer: Optional presentation capability.
        clock: Monotonic clock for step timing.

    Raises:
        TaskContractError: malformed handlers, body or id.
    """

    def __init__(
        self,
        on_complete: OnComplete,
        on_abort: OnAbort,
        body: TaskBody,
        *,
        call_later: CallLater,
        id: Optional[Hashable] = None,
        context: Optional[ProgressContext] = None,
        settings: Optional[ProgressSettings] = None,
        renderer: Optional[Renderer] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        _check_arity(body, 1, "body")
        _check_arity(on_complete, 0, "on_complete")
        _check_arity(on_abort, 1, "on_abort")
        if not callable(call_later):
            raise TaskContractError("call_later must be callable")
        if id is not None:
            try:
                hash(id)
            except TypeError:
                raise TaskContractError(f"id must be hashable, got {type(id).__name__}") from None

        self._on_complete = on_complete
        self._on_abort = on_abort
        self._body = body
        self._call_later = call_later
        self.id = id
        self.context = context if context is not None else default_context()
        self.settings = replace(settings) if settings is not None else ProgressSettings.from_env()
        self.renderer = renderer
        self._clock = clock

        self.state = ProgressState()
        self.options = ProgressOptions()
        self.modal_gate = ModalGate()
        self.handle = ProgressHandle(self)

        self._phase = TaskPhase.IDLE
        self._active = False
        self._host_busy = False
        self._user_esc = False
        self._cancel_reason: Optional[CancellationReason] = None
        self.reason: Optional[CancellationReason] = None

        self._fiber: Optional[TaskFiber] = None
        self._watchdog: Optional[WatchdogTimer] = None
        self._preemption: Optional[ForcedPreemption] = None

        self._mouse_in_viewport = False
        self._dragging = False
        self._last_mouse: Optional[tuple[float, float]] = None

        self._step_started_at = self._clock()
        self.last_step_elapsed = 0.0
        self.step_count = 0

    # -----------------------------
    # Introspection
    # -----------------------------
    @property
    def phase(self) -> TaskPhase:
        return self._phase

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def host_busy(self) -> bool:
        return self._host_busy

    @property
    def watchdog(self) -> Optional[WatchdogTimer]:
        return self._watchdog

    @property
    def preemption(self) -> Optional[ForcedPreemption]:
        return self._preemption

    @property
    def fiber(self) -> Optional[TaskFiber]:
        return self._fiber

    # -----------------------------
    # Start
    # -----------------------------
    def start(self) -> bool:
        """Claim the single-active-task guard and schedule the first step.

        Returns:
            False (and does nothing) if another task is active or this runner
            was already started.
        """
        if self._phase is not TaskPhase.IDLE:
            return False
        if not self.context.guard.try_activate(self):
            logger.info("another progress task is active; start ignored")
            return False

        self.activate()
        logger.info(f"progress task started (id={self.id!r})")
        self._schedule_step()
        return True

    # -----------------------------
    # Host lifecycle signals
    # -----------------------------
    def activate(self) -> None:
        """Reset per-activation state and restore the cached screen location."""
        self._phase = TaskPhase.ACTIVE
        self._active = True
        self._host_busy = False
        self._user_esc = False
        self._cancel_reason = None

        if self.id is not None:
            cached = self.context.locations.get(self.id)
            if cached is not None:
                self.options.location = cached

    def deactivate(self, reason: Optional[CancellationReason] = None) -> None:
        """Host deactivated the task (e.g. tool switch). The next step aborts.

        `reason` defaults to TOOL_DEACTIVATED.
        """
        if self._phase is not TaskPhase.ACTIVE:
            return
        logger.debug("host deactivated the progress task")
        self._active = False
        self._host_busy = False
        self._cancel_reason = reason if reason is not None else CancellationReason.tool_deactivated()
        self.context.guard.deactivate(self)
        self._stop_watchdog()

    def user_escape(self) -> None:
        """User pressed escape; the next step aborts without resuming the body."""
        if self._phase is not TaskPhase.ACTIVE:
            return
        self._user_esc = True
        self._cancel_reason = CancellationReason.user_escape()

    def host_suspend(self) -> None:
        """Host entered a transient busy state (e.g. camera orbit)."""
        self._host_busy = True

    def host_resume(self) -> None:
        self._host_busy = False

    @contextmanager
    def host_modal(self, reason: str = "host_modal") -> Iterator[None]:
        """Host-side modal region: the task may not suspend while it is open."""
        with self.modal_gate.busy(reason):
            yield

    def mouse_entered(self) -> None:
        self._mouse_in_viewport = True

    def mouse_left(self) -> None:
        self._mouse_in_viewport = False

    # -----------------------------
    # Dragging the progress window
    # -----------------------------
    def mouse_down(self, x: float, y: float) -> None:
        if not self.options.contains(x, y):
            return
        self._last_mouse = (x, y)
        self._dragging = True

    def mouse_up(self) -> None:
        self._dragging = False

    def mouse_move(self, x: float, y: float) -> None:
        if not self._dragging or self._last_mouse is None:
            return
        left, top = self.options.location
        last_x, last_y = self._last_mouse
        new_location = (left + x - last_x, top + y - last_y)
        self._last_mouse = (x, y)
        self.options.location = new_location
        if self.id is not None:
            self.context.locations.set(self.id, new_location)
        self._redraw(force=True)

    # -----------------------------
    # Task-facing hooks (called through ProgressHandle)
    # -----------------------------
    def suspend_task(self) -> None:
        """Explicit suspension point for the body."""
        if self.modal_gate.is_busy():
            _, reason, _ = self.modal_gate.status()
            raise SuspendForbidden(f"cannot yield to the host inside a modal region ({reason})")
        fiber = self._fiber
        if fiber is None:
            raise SuspendForbidden("no running task to suspend")
        fiber.suspend()

    def consume_update(self) -> bool:
        wd = self._watchdog
        if wd is None:
            return False
        return wd.consume_update()

    # -----------------------------
    # The step
    # -----------------------------
    def step(self) -> None:
        """Advance the task by one increment. Never raises."""
        if self._phase is not TaskPhase.ACTIVE:
            return

        if self._active and self._host_busy:
            self._call_later(self.settings.busy_retry_delay, self.step)
            self._step_started_at = self._clock()
            return

        self._animate()

        self.last_step_elapsed = self._clock() - self._step_started_at
        if self._watchdog is not None:
            self._watchdog.last_step_elapsed = self.last_step_elapsed
        self.step_count += 1

        if self._user_esc or not self._active:
            reason = self._cancel_reason
            if reason is None:
                reason = (
                    CancellationReason.user_escape()
                    if self._user_esc
                    else CancellationReason.tool_deactivated()
                )
            self._abort(reason)
            return

        try:
            if self._fiber is None:
                self._fiber = self._create_fiber()
                self._start_watchdog()
            suspended = self._fiber.resume()
        except BaseException as exc:
            self._fail(exc)
            return

        if suspended:
            self._schedule_step()
        else:
            self._complete()

    # -----------------------------
    # Internals
    # -----------------------------
    def _schedule_step(self) -> None:
        self._redraw()
        self._call_later(0.0, self.step)
        self._step_started_at = self._clock()

    def _create_fiber(self) -> TaskFiber:
        name = "stepbar-task" if self.id is None else f"stepbar-task-{self.id}"
        fiber = TaskFiber(partial(self._body, self.handle), name=name)

        if self.settings.full_auto:
            self._preemption = ForcedPreemption(
                is_tracked=lambda: fiber.in_task_context() and not self.modal_gate.is_busy(),
                is_ignored=lambda: not fiber.in_task_context(),
                on_preempt=self._forced_suspend,
                stop_after=self.settings.preempt_stop_after,
            )
            fiber.preemption = self._preemption
        return fiber

    def _forced_suspend(self) -> None:
        if self._host_busy:
            return
        fiber = self._fiber
        if fiber is not None:
            fiber.suspend()

    def _start_watchdog(self) -> None:
        preemption = self._preemption
        self._watchdog = WatchdogTimer(
            get_update_interval=lambda: self.settings.update_interval,
            auto_interval=self.settings.auto_interval,
            auto_mode_enabled=self.settings.full_auto,
            is_host_busy=lambda: self._host_busy,
            on_auto_deadline=preemption.arm if preemption is not None else None,
        )
        self._watchdog.last_step_elapsed = self.last_step_elapsed
        self._watchdog.start()

    def _stop_watchdog(self) -> None:
        if self._preemption is not None:
            self._preemption.disarm()
        if self._watchdog is not None:
            self._watchdog.stop()

    def _complete(self) -> None:
        self._stop_watchdog()
        self._fiber = None
        gc.collect()
        self._finish(TaskPhase.COMPLETED)
        logger.info(f"progress task completed after {self.step_count} step(s)")
        defer_once(self._call_later, self._on_complete)

    def _fail(self, exc: BaseException) -> None:
        if isinstance(exc, SuspendForbidden):
            reason = CancellationReason.user_menu_click_abort(exc)
        else:
            reason = CancellationReason.task_exception(exc)
        logger.debug("progress task raised", exc_info=exc)
        self._abort(reason)

    def _abort(self, reason: CancellationReason) -> None:
        self._stop_watchdog()

        # Drop the execution unit (unwinding a suspended body) and force a
        # collection so resources it held are released before on_abort runs.
        fiber, self._fiber = self._fiber, None
        if fiber is not None:
            fiber.close(self.settings.close_timeout)
        gc.collect()

        self.reason = reason
        self._finish(TaskPhase.ABORTED)
        logger.info(f"progress task aborted: {reason}")
        defer_once(self._call_later, self._on_abort, reason)

    def _finish(self, phase: TaskPhase) -> None:
        self._phase = phase
        self._active = False
        self._dragging = False
        self.context.guard.deactivate(self)
        self._redraw(force=True)

    def _animate(self) -> None:
        if self.settings.animate_cursor:
            frame = self.state.step_cursor()
            if self._mouse_in_viewport and isinstance(self.renderer, CursorRenderer):
                try:
                    self.renderer.set_cursor(frame)
                except Exception:
                    logger.exception("renderer.set_cursor failed")
        if self.settings.animate_label:
            self.state.step_label()

    def _redraw(self, force: bool = False) -> None:
        if self.renderer is None or not (force or self.settings.enable_redraw):
            return
        try:
            self.renderer.redraw(self.state, self.options)
        except Exception:
            logger.exception("renderer.redraw failed")


def start_task(
    on_complete: OnComplete,
    on_abort: OnAbort,
    body: TaskBody,
    *,
    call_later: CallLater,
    id: Optional[Hashable] = None,
    context: Optional[ProgressContext] = None,
    settings: Optional[ProgressSettings] = None,
    renderer: Optional[Renderer] = None,
) -> Optional[CooperativeTaskRunner]:
    """Start a progress task, or do nothing if one is already active.

    Returns:
        The running CooperativeTaskRunner (the host sends lifecycle signals to
        it), or None when another task holds the single-active-task guard.

    Raises:
        TaskContractError: malformed handlers or body. No task is created.
    """
    context = context if context is not None else default_context()
    if context.guard.is_active:
        logger.info("another progress task is active; start_task ignored")
        return None

    runner = CooperativeTaskRunner(
        on_complete,
        on_abort,
        body,
        call_later=call_later,
        id=id,
        context=context,
        settings=settings,
        renderer=renderer,
    )
    if not runner.start():
        return None
    return runner
