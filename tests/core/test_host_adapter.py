"""Tests for defer_once and the renderer protocols."""

from __future__ import annotations

from stepbar.core.host import CursorRenderer, Renderer, defer_once
from stepbar.core.state import ProgressOptions, ProgressState


def test_defer_once_runs_at_most_once(host) -> None:
    calls: list[tuple] = []

    def handler(*args: object) -> None:
        calls.append(args)

    defer_once(host.call_later, handler, "a", 1)
    assert calls == []

    (_, callback), = host.pending
    callback()
    callback()

    assert calls == [("a", 1)]


def test_defer_once_forwards_delay_and_handle(host) -> None:
    handle = defer_once(host.call_later, lambda: None, delay=0.5)
    assert host.delays == [0.5]
    assert handle == 1


class _BarOnly:
    def redraw(self, state: ProgressState, options: ProgressOptions) -> None:
        pass


class _WithCursor(_BarOnly):
    def set_cursor(self, frame: int) -> None:
        pass


def test_renderer_protocols() -> None:
    assert isinstance(_BarOnly(), Renderer)
    assert not isinstance(_BarOnly(), CursorRenderer)
    assert isinstance(_WithCursor(), CursorRenderer)
