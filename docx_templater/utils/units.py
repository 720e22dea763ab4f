"""Unit conversion helpers for WordprocessingML and DrawingML measurements."""
from __future__ import annotations

EMU_PER_PIXEL = 9525
HALF_POINTS_PER_POINT = 2
POINTS_PER_PIXEL = 0.75


def pixels_to_emu(value: int) -> int:
    """Convert screen pixels to English Metric Units."""
    return int(value) * EMU_PER_PIXEL


def points_to_half_points(value: float) -> int:
    """Convert typographic points to the half-point values used by ``w:sz``."""
    return int(round(value * HALF_POINTS_PER_POINT))


def pixels_to_points(value: float) -> float:
    """Convert CSS pixels to points."""
    return value * POINTS_PER_PIXEL
