"""Why a task ended without completing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CancellationKind(str, Enum):
    USER_ESCAPE = "user_escape"
    USER_MENU_CLICK_ABORT = "user_menu_click_abort"
    TOOL_DEACTIVATED = "tool_deactivated"
    TASK_EXCEPTION = "task_exception"


_MESSAGES = {
    CancellationKind.USER_ESCAPE: "User Escape",
    CancellationKind.USER_MENU_CLICK_ABORT: "User Menu-Click Abort",
    CancellationKind.TOOL_DEACTIVATED: "Deactivate - Tool Change",
}


@dataclass(frozen=True, slots=True)
class CancellationReason:
    """Tagged reason passed to the abort handler, exactly once per terminated task.

    Attributes:
        kind: Which exit path ended the task.
        message: Human readable description.
        payload: The original exception for TASK_EXCEPTION (and for
            USER_MENU_CLICK_ABORT, the SuspendForbidden that triggered it).
    """

    kind: CancellationKind
    message: str
    payload: Optional[BaseException] = None

    @classmethod
    def user_escape(cls) -> "CancellationReason":
        return cls(CancellationKind.USER_ESCAPE, _MESSAGES[CancellationKind.USER_ESCAPE])

    @classmethod
    def tool_deactivated(cls) -> "CancellationReason":
        return cls(CancellationKind.TOOL_DEACTIVATED, _MESSAGES[CancellationKind.TOOL_DEACTIVATED])

    @classmethod
    def user_menu_click_abort(cls, cause: Optional[BaseException] = None) -> "CancellationReason":
        return cls(
            CancellationKind.USER_MENU_CLICK_ABORT,
            _MESSAGES[CancellationKind.USER_MENU_CLICK_ABORT],
            cause,
        )

    @classmethod
    def task_exception(cls, exc: BaseException) -> "CancellationReason":
        return cls(CancellationKind.TASK_EXCEPTION, f"{type(exc).__name__}: {exc}", exc)

    @property
    def is_user_action(self) -> bool:
        """True for escape, menu-click and tool change; False for task failures."""
        return self.kind is not CancellationKind.TASK_EXCEPTION

    def __str__(self) -> str:
        return self.message
