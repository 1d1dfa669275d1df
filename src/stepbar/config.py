"""Runner settings with environment overrides.

Defaults match the behaviour of a plain progress bar: redraw on every tick,
update flag every 0.25 s, no forced preemption. Presets cover the spinner
variants (cursor animation only, optionally in full auto mode).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from stepbar.core.utils.logging import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "STEPBAR"

AUTO_MODE_FULL = "full"

DEFAULT_UPDATE_INTERVAL: float = 0.25
DEFAULT_AUTO_INTERVAL: float = 5.0
DEFAULT_BUSY_RETRY_DELAY: float = 0.25
DEFAULT_PREEMPT_STOP_AFTER: int = 2
DEFAULT_CLOSE_TIMEOUT: float = 1.0


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env_float(name: str, default: float, *, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default
    if value < minimum:
        logger.warning(f"{name}={value} is below {minimum}, using default {default}")
        return default
    return value


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default
    if value < minimum:
        logger.warning(f"{name}={value} is below {minimum}, using default {default}")
        return default
    return value


def _env_auto_mode(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    v = raw.strip().lower()
    if v == AUTO_MODE_FULL:
        return AUTO_MODE_FULL
    if v in {"", "0", "off", "none", "false"}:
        return None
    logger.warning(f"Invalid {name}={raw!r}, auto mode disabled")
    return None


@dataclass
class ProgressSettings:
    """Per-task timing and presentation switches.

    Each runner copies the settings it is given; the task body may change its
    copy (e.g. `handle.update_interval = 0.5`) without touching the defaults.

    Attributes:
        update_interval: Base watchdog sleep between "update due" latches (s).
        auto_interval: Period of forced preemption in full auto mode (s).
        auto_mode: None, or "full" to enable forced preemption. Read when
            the watchdog starts (first step).
        busy_retry_delay: Re-tick delay while the host is busy (s).
        preempt_stop_after: Line events outside the task before an armed
            preemption disarms itself.
        close_timeout: How long to wait for a discarded task to unwind (s).
        animate_cursor: Step the busy cursor on every tick.
        animate_label: Step the label animation on every tick.
        enable_redraw: Ask the renderer to redraw on every tick.
    """

    update_interval: float = DEFAULT_UPDATE_INTERVAL
    auto_interval: float = DEFAULT_AUTO_INTERVAL
    auto_mode: Optional[str] = None
    busy_retry_delay: float = DEFAULT_BUSY_RETRY_DELAY
    preempt_stop_after: int = DEFAULT_PREEMPT_STOP_AFTER
    close_timeout: float = DEFAULT_CLOSE_TIMEOUT
    animate_cursor: bool = False
    animate_label: bool = False
    enable_redraw: bool = True

    def __post_init__(self) -> None:
        if self.auto_mode not in (None, AUTO_MODE_FULL):
            raise ValueError(f"auto_mode must be None or {AUTO_MODE_FULL!r}, got {self.auto_mode!r}")

    @property
    def full_auto(self) -> bool:
        return self.auto_mode == AUTO_MODE_FULL

    @classmethod
    def from_env(cls) -> "ProgressSettings":
        return cls(
            update_interval=_env_float(_k("UPDATE_INTERVAL"), DEFAULT_UPDATE_INTERVAL),
            auto_interval=_env_float(_k("AUTO_INTERVAL"), DEFAULT_AUTO_INTERVAL, minimum=0.001),
            auto_mode=_env_auto_mode(_k("AUTO_MODE")),
            busy_retry_delay=_env_float(_k("BUSY_RETRY_DELAY"), DEFAULT_BUSY_RETRY_DELAY),
            preempt_stop_after=_env_int(_k("PREEMPT_STOP_AFTER"), DEFAULT_PREEMPT_STOP_AFTER),
            close_timeout=_env_float(_k("CLOSE_TIMEOUT"), DEFAULT_CLOSE_TIMEOUT),
        )

    @classmethod
    def spinner(cls, *, auto: bool = False, animate_label: bool = False) -> "ProgressSettings":
        """Busy-cursor only: no bar redraw.

        auto=True spins once per second even if the task never yields.
        """
        return cls(
            auto_mode=AUTO_MODE_FULL if auto else None,
            auto_interval=1.0 if auto else DEFAULT_AUTO_INTERVAL,
            animate_cursor=True,
            animate_label=animate_label,
            enable_redraw=False,
        )
