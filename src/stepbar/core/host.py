"""What the runner needs from the host application, and nothing more."""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable

from stepbar.core.state import ProgressOptions, ProgressState

# "Invoke this callback once, after `delay` seconds, on the host's main schedule."
# Same shape as a UI timer factory: (delay_s, callback) -> timer handle.
CallLater = Callable[[float, Callable[[], None]], object]


@runtime_checkable
class Renderer(Protocol):
    """Presentation capability. The runner never knows how progress is painted."""

    def redraw(self, state: ProgressState, options: ProgressOptions) -> None:
        """Repaint the bar and label from `state`."""
        ...


@runtime_checkable
class CursorRenderer(Protocol):
    """Optional extra capability for renderers that own a busy cursor."""

    def set_cursor(self, frame: int) -> None:
        ...


def defer_once(call_later: CallLater, fn: Callable[..., Any], *args: Any, delay: float = 0.0) -> object:
    """Schedule `fn(*args)` on the host schedule, at most once.

    Some host timer primitives can fire a one-shot callback more than once
    (e.g. when re-entered from a modal dialog). The wrapper ignores every
    call after the first.

    Returns:
        Whatever `call_later` returned (the host's timer handle).
    """
    executed = False

    def _run_once() -> None:
        nonlocal executed
        if executed:
            return
        executed = True
        fn(*args)

    return call_later(delay, _run_once)
