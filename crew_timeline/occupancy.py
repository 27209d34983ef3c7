"""
Occupancy checks over the unified job + travel interval view.
Travel is occupied time exactly like a job; nothing here special-cases the kind.
"""

from typing import Iterable, List

from .models import OccupiedInterval


def is_placement_valid(start_minutes: int, duration_minutes: int, occupied: Iterable[OccupiedInterval]) -> bool:
    """
    True if [start, start + duration) overlaps none of the occupied intervals.

    A predicate only: it never snaps, shifts or corrects the placement.
    """
    assert duration_minutes >= 0, f"duration must be non-negative, got {duration_minutes}"
    end_minutes = start_minutes + duration_minutes
    return not any(block.overlaps(start_minutes, end_minutes) for block in occupied)


def find_conflicts(
    start_minutes: int,
    duration_minutes: int,
    occupied: Iterable[OccupiedInterval],
) -> List[OccupiedInterval]:
    """The intervals a placement would overlap, in start order."""
    end_minutes = start_minutes + duration_minutes
    conflicts = [block for block in occupied if block.overlaps(start_minutes, end_minutes)]
    return sorted(conflicts, key=lambda block: block.start_minutes)


def assert_non_overlapping(intervals: Iterable[OccupiedInterval]) -> None:
    """Raise AssertionError if any two intervals overlap."""
    ordered = sorted(intervals, key=lambda block: (block.start_minutes, block.end_minutes))
    for previous, current in zip(ordered, ordered[1:]):
        assert current.start_minutes >= previous.end_minutes, (
            f"{previous.kind.value} {previous.id} [{previous.start_minutes}, {previous.end_minutes}) overlaps "
            f"{current.kind.value} {current.id} [{current.start_minutes}, {current.end_minutes})"
        )
