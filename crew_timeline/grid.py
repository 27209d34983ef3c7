"""Grid quantization helpers shared by the timeline and placement code."""

import math

# Grid resolution in minutes. Every travel block boundary lands on a multiple of it.
GRID_MINUTES = 15

MIN_TRAVEL_RENDER_MINUTES = 15
DEFAULT_TRAVEL_DURATION_MINUTES = 30


def minutes_to_grid_slots(minutes: float) -> int:
    """Convert minutes to grid slots, rounding up so travel is never truncated."""
    assert GRID_MINUTES > 0, "grid resolution must be positive"
    assert minutes >= 0, f"minutes must be non-negative, got {minutes}"  # NaN fails here too
    return math.ceil(minutes / GRID_MINUTES)


def grid_slots_to_minutes(slots: int) -> int:
    return slots * GRID_MINUTES


def quantize_minutes(minutes: float) -> int:
    """Snap a duration up to the grid. E.g. 10 -> 15, 22 -> 30, 45 -> 45."""
    return grid_slots_to_minutes(minutes_to_grid_slots(minutes))

