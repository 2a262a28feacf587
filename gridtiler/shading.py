"""
Height to grayscale shade mapping.

The floor maps to white (255) and the ceiling to black (0), linearly in
between. Heights outside [floor, ceiling] clamp to the nearest end.
"""

import logging
import math
from typing import Optional

import numpy as np


logger = logging.getLogger(__name__)

SHADE_LEVELS = 256
MAX_SHADE = SHADE_LEVELS - 1


class ShadeTracker:
    """Running min/max of the shades produced during one render."""

    def __init__(self):
        self.min_shade: Optional[int] = None
        self.max_shade: Optional[int] = None

    def __repr__(self) -> str:
        return f"ShadeTracker(min_shade={self.min_shade}, max_shade={self.max_shade})"

    def reset(self) -> None:
        self.min_shade = None
        self.max_shade = None

    def observe(self, shade: int) -> None:
        if self.max_shade is None or shade > self.max_shade:
            self.max_shade = shade
        if self.min_shade is None or shade < self.min_shade:
            self.min_shade = shade

    def observe_array(self, shades: np.ndarray) -> None:
        if shades.size == 0:
            return
        self.observe(int(shades.min()))
        self.observe(int(shades.max()))


def _check_bounds(floor: float, ceiling: float) -> None:
    if not ceiling > floor:
        raise ValueError(f"ceiling ({ceiling}) must be greater than floor ({floor})")


def shade(floor: float, ceiling: float, height: float, tracker: Optional[ShadeTracker] = None) -> int:
    """Shade (0-255) for a height between floor (255) and ceiling (0)."""
    _check_bounds(floor, ceiling)
    scaled = (height - floor) * SHADE_LEVELS / (ceiling - floor)
    # NaN shades as the floor, infinities clamp like any other out of range height
    if math.isnan(scaled) or scaled <= 0:
        level = 0
    elif scaled >= MAX_SHADE:
        level = MAX_SHADE
    else:
        level = math.floor(scaled)
    result = MAX_SHADE - level

    logger.debug("shade %f -> %d", height, result)
    if tracker is not None:
        tracker.observe(result)
    return result


def shade_array(floor: float, ceiling: float, heights: np.ndarray,
                tracker: Optional[ShadeTracker] = None) -> np.ndarray:
    """Vectorised shade(): same mapping applied to every element, returns uint8."""
    _check_bounds(floor, ceiling)
    span = float(ceiling) - float(floor)
    levels = np.floor((np.asarray(heights, dtype=np.float64) - floor) * SHADE_LEVELS / span)
    levels = np.clip(np.nan_to_num(levels, nan=0.0), 0, MAX_SHADE)
    shades = (MAX_SHADE - levels).astype(np.uint8)

    if tracker is not None:
        tracker.observe_array(shades)
    return shades
