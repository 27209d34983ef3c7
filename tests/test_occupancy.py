"""
Tests for the occupancy predicate and conflict listing.
"""

import pytest

from crew_timeline.models import OccupiedInterval, OccupiedKind
from crew_timeline.occupancy import assert_non_overlapping, find_conflicts, is_placement_valid


def job(block_id, start, end):
    return OccupiedInterval(kind=OccupiedKind.JOB, id=block_id, start_minutes=start, end_minutes=end)


def travel(block_id, start, end):
    return OccupiedInterval(kind=OccupiedKind.TRAVEL, id=block_id, start_minutes=start, end_minutes=end)


def test_empty_occupancy_is_always_valid():
    assert is_placement_valid(100, 30, [])


def test_touching_intervals_do_not_overlap():
    """Half-open intervals: ending where a block starts is fine, and vice versa."""
    occupied = [job("a", 60, 120)]
    assert is_placement_valid(30, 30, occupied)
    assert is_placement_valid(120, 30, occupied)


def test_overlap_by_one_minute_is_invalid():
    occupied = [job("a", 60, 120)]
    assert not is_placement_valid(31, 30, occupied)
    assert not is_placement_valid(119, 30, occupied)


def test_travel_blocks_like_jobs():
    """Travel is occupied time exactly like a job."""
    assert not is_placement_valid(70, 10, [travel("t", 60, 90)])
    assert not is_placement_valid(70, 10, [job("j", 60, 90)])


def test_placement_containing_a_block_is_invalid():
    assert not is_placement_valid(0, 300, [travel("t", 60, 90)])


def test_predicate_does_not_mutate_input():
    occupied = [job("b", 200, 260), job("a", 60, 120)]
    snapshot = list(occupied)
    is_placement_valid(100, 30, occupied)
    assert occupied == snapshot


def test_find_conflicts_returns_overlaps_in_start_order():
    occupied = [job("b", 120, 180), travel("t", 90, 120), job("a", 0, 90)]
    conflicts = find_conflicts(80, 50, occupied)
    assert [c.id for c in conflicts] == ["a", "t", "b"]


def test_assert_non_overlapping():
    assert_non_overlapping([job("a", 0, 60), travel("t", 60, 90), job("b", 90, 120)])
    with pytest.raises(AssertionError):
        assert_non_overlapping([job("a", 0, 60), travel("t", 45, 90)])
