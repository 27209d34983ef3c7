"""
Drag/drop placement: snap-forward resolution and precomputed placement windows.
"""

import logging
from typing import Iterable, List, Optional

from .grid import quantize_minutes
from .models import (
    OccupiedInterval, OccupiedKind, PlacementOutcome, PlacementResult, PlacementWindow, SnapReason,
)
from .util.time_utils import date_key


logger = logging.getLogger(__name__)

DEFAULT_WORKDAY_END_MINUTES = 720


def resolve_placement(
    desired_start_minutes: int,
    duration_minutes: int,
    occupancy: Iterable[OccupiedInterval],
    workday_end_minutes: int = DEFAULT_WORKDAY_END_MINUTES,
) -> PlacementResult:
    """
    Resolve where a dragged job lands, snapping forward only.

    Walks the occupancy in start order and moves the start to the end of every
    interval it overlaps, so the final start is clear of all of them. This is
    not a search for the earliest free slot: the start never moves backward.
    A placement that ends past the workday is rejected rather than clamped;
    its `snapped` flag reports only whether the start advanced before that.
    """
    assert duration_minutes >= 0, f"duration must be non-negative, got {duration_minutes}"

    start = desired_start_minutes
    snapped = False
    reason: Optional[SnapReason] = None

    for block in sorted(occupancy, key=lambda b: b.start_minutes):
        if block.overlaps(start, start + duration_minutes):
            start = block.end_minutes
            snapped = True
            # Last advance wins
            reason = SnapReason.TRAVEL if block.kind == OccupiedKind.TRAVEL else SnapReason.JOB

    if start + duration_minutes > workday_end_minutes:
        logger.debug(
            f"Placement at {desired_start_minutes} for {duration_minutes} min rejected: "
            f"would end at {start + duration_minutes} > {workday_end_minutes}"
        )
        return PlacementResult(
            outcome=PlacementOutcome.REJECTED,
            start_minutes=None,
            snapped=snapped,
            snap_reason=SnapReason.OUT_OF_BOUNDS,
        )

    return PlacementResult(
        outcome=PlacementOutcome.RESOLVED_WITH_SNAP if snapped else PlacementOutcome.RESOLVED,
        start_minutes=start,
        snapped=snapped,
        snap_reason=reason,
        snap_delta=start - desired_start_minutes,
    )


def compute_placement_windows(
    occupancy: Iterable[OccupiedInterval],
    duration_minutes: int,
    crew_id: str,
    date,
    workday_start_minutes: int = 0,
    workday_end_minutes: int = DEFAULT_WORKDAY_END_MINUTES,
) -> List[PlacementWindow]:
    """
    Earliest grid-aligned slot for the job in every free gap of the day.

    Gaps are the spaces between occupied intervals, from the workday start to
    the workday end. A window is produced when the job fits in the gap after
    aligning its start up to the grid. A zero duration has no windows, since
    an empty window contains no time point.
    """
    assert duration_minutes >= 0, f"duration must be non-negative, got {duration_minutes}"
    day = date_key(date)
    windows: List[PlacementWindow] = []
    if duration_minutes == 0:
        return windows

    def _fit(gap_start: int, gap_end: int) -> None:
        if gap_end - gap_start < duration_minutes:
            return
        start = quantize_minutes(gap_start)
        end = min(start + quantize_minutes(duration_minutes), gap_end)
        if end - start >= duration_minutes:
            windows.append(PlacementWindow(crew_id=crew_id, date=day, start_minutes=start, end_minutes=end))

    cursor = workday_start_minutes
    for block in sorted(occupancy, key=lambda b: b.start_minutes):
        _fit(cursor, block.start_minutes)
        cursor = max(cursor, block.end_minutes)

    _fit(cursor, workday_end_minutes)
    return windows


def is_time_in_placement_window(minutes: int, windows: Iterable[PlacementWindow]) -> bool:
    return any(window.contains(minutes) for window in windows)


def find_placement_window(minutes: int, windows: Iterable[PlacementWindow]) -> Optional[PlacementWindow]:
    """The window containing a time point, if any."""
    return next((window for window in windows if window.contains(minutes)), None)
