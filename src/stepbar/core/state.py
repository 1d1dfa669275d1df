"""Psygnal-powered progress state read by the presentation layer."""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Tuple

from psygnal import EventedModel
from pydantic import Field

from stepbar.core.errors import InvalidValue

# Number of frames in the cursor and label animations.
ANIMATION_FRAMES: int = 8

DEFAULT_LABEL: str = "Thinking"

Color = Tuple[int, int, int]
Point = Tuple[float, float]


def _check_percent(percent: Any) -> float:
    # Decimal registers only as numbers.Number; complex is Number but not Real.
    is_complex = isinstance(percent, numbers.Complex) and not isinstance(percent, numbers.Real)
    if isinstance(percent, bool) or is_complex or not isinstance(percent, numbers.Number):
        raise InvalidValue("Value must be a Numeric type")
    try:
        percent = float(percent)
    except (TypeError, ValueError):
        raise InvalidValue("Value must be a Numeric type") from None
    if math.isnan(percent) or percent < 0.0 or percent > 100.0:
        raise InvalidValue("Value must be between 0 and 100")
    return percent


class ProgressState(EventedModel):
    """Normalized progress value, label and animation counters for one task.

    Mutated by the task body (set_value/advance_value/label) and by the runner's
    animation stepping. Every field assignment emits on `state.events.<field>`.

    Attributes:
        value: Progress between 0.0 and 1.0.
        label: Free-form text shown next to the bar, or None for no label.
        cursor_frame: Busy-cursor animation frame in [0, 8).
        label_frame: Label animation frame in [0, 8).
    """

    value: float = Field(default=0.0, ge=0.0, le=1.0, description="Normalized progress")
    label: Optional[str] = Field(default=DEFAULT_LABEL, description="Text drawn with the bar")
    cursor_frame: int = Field(default=0, ge=0, lt=ANIMATION_FRAMES)
    label_frame: int = Field(default=0, ge=0, lt=ANIMATION_FRAMES)

    def set_value(self, percent: float) -> None:
        """Place the bar at `percent` (0-100 inclusive).

        Raises:
            InvalidValue: percent is not a real number or lies outside [0, 100].
                The stored value is left unchanged.
        """
        percent = _check_percent(percent)
        self.value = min(percent / 100.0, 1.0)

    def advance_value(self, percent: float) -> None:
        """Advance the bar by `percent` (0-100 inclusive), clamped to 1.0."""
        percent = _check_percent(percent)
        self.value = min(self.value + percent / 100.0, 1.0)

    def step_cursor(self) -> int:
        self.cursor_frame = (self.cursor_frame + 1) % ANIMATION_FRAMES
        return self.cursor_frame

    def step_label(self) -> int:
        self.label_frame = (self.label_frame + 1) % ANIMATION_FRAMES
        return self.label_frame

    def display_label(self, animate: bool = False) -> Optional[str]:
        """Label text as drawn: with a trailing run of '>' when animating."""
        if self.label is None:
            return None
        if animate:
            return f"{self.label} {'>' * self.label_frame}"
        return self.label


@dataclass
class ProgressOptions:
    """Geometry and styling forwarded untouched to the renderer.

    The core only reads `location`, `width` and `height` (to hit-test drags).
    """

    location: Point = (50, 30)
    width: float = 300
    height: float = 60
    screen_scale: float = 1.0
    box_color: Color = (240, 240, 240)
    outline_color: Color = (180, 180, 180)
    bar_location: Point = (10, 35)
    bar_width: float = 0.0
    bar_height: float = 10
    fg_color: Color = (120, 120, 200)
    bg_color: Color = (210, 210, 210)
    text_location: Point = (15, 8)
    text_options: Dict[str, Any] = field(default_factory=lambda: {"size": 13, "color": (80, 80, 80)})

    def __post_init__(self) -> None:
        if not self.bar_width:
            self.bar_width = self.width * 0.95

    def update(self, options: Mapping[str, Any]) -> None:
        """Merge `options` into this object.

        Raises:
            ValueError: for keys that are not recognized options. Nothing is
                merged in that case.
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ValueError(f"Unknown progress options: {unknown}")
        for key, value in options.items():
            setattr(self, key, value)

    def contains(self, x: float, y: float) -> bool:
        """Strict hit-test of a screen point against the progress window."""
        left, top = self.location
        return left < x < left + self.width and top < y < top + self.height
