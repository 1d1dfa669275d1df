"""Tests for CancellationReason."""

from __future__ import annotations

from stepbar.core.cancellation import CancellationKind, CancellationReason
from stepbar.core.errors import SuspendForbidden


def test_user_reasons() -> None:
    escape = CancellationReason.user_escape()
    assert escape.kind is CancellationKind.USER_ESCAPE
    assert str(escape) == "User Escape"
    assert escape.payload is None
    assert escape.is_user_action

    tool = CancellationReason.tool_deactivated()
    assert tool.kind is CancellationKind.TOOL_DEACTIVATED
    assert tool.message == "Deactivate - Tool Change"


def test_menu_click_keeps_cause() -> None:
    cause = SuspendForbidden("modal")
    reason = CancellationReason.user_menu_click_abort(cause)
    assert reason.kind is CancellationKind.USER_MENU_CLICK_ABORT
    assert reason.message == "User Menu-Click Abort"
    assert reason.payload is cause


def test_task_exception_preserves_payload() -> None:
    err = ZeroDivisionError("division by zero")
    reason = CancellationReason.task_exception(err)
    assert reason.kind is CancellationKind.TASK_EXCEPTION
    assert reason.payload is err
    assert reason.message == "ZeroDivisionError: division by zero"
    assert not reason.is_user_action
