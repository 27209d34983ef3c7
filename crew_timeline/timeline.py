"""
Travel-aware timeline builder.

Builds the canonical per crew/day sequence of assignments with derived travel
blocks inserted between them and at home-base boundaries. Pure and synchronous:
durations come from a TravelDurationCache that was populated beforehand, and a
missing entry simply means the default duration.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from .cache import TravelDurationCache, between_leg_key, home_base_leg_key
from .grid import quantize_minutes
from .models import (
    Assignment, AssignmentBlock, HomeBaseDirection, OccupiedInterval, OccupiedKind,
    TimelineItem, TravelBlock, TravelKind, is_assignment, is_travel_block,
)
from .schemas import AppConfig
from .util.time_utils import date_key


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HomeBaseGapFit:
    """How a gap is split between a home-base end leg and the next start leg."""
    end_leg_minutes: int
    start_leg_minutes: int


def fit_home_base_gap(end_leg_minutes: int, start_leg_minutes: Optional[int], gap_minutes: int) -> HomeBaseGapFit:
    """
    Split the gap after a job that returns to home base.

    The end leg is fitted first and takes up to the whole gap; the next job's
    start leg (if it starts from home base) only gets what remains.
    """
    gap = max(0, gap_minutes)
    end_part = min(end_leg_minutes, gap)
    start_part = 0
    if start_leg_minutes is not None:
        start_part = min(start_leg_minutes, gap - end_part)
    return HomeBaseGapFit(end_leg_minutes=end_part, start_leg_minutes=start_part)


@dataclass(frozen=True)
class _Leg:
    raw: int
    quantized: int
    defaulted: bool


class TimelineBuilder:
    """Derives travel blocks for crew/day groups of assignments."""

    def __init__(
        self,
        cache: Optional[TravelDurationCache] = None,
        config: Optional[AppConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or AppConfig()
        self.cache = cache if cache is not None else TravelDurationCache(
            default_minutes=self.config.travel.default_minutes
        )
        self.logger = logger or logging.getLogger(__name__)
        self.min_render_minutes = self.config.travel.min_render_minutes
        self.workday_total_minutes = self.config.workday.total_minutes

    def _leg(self, key: str) -> _Leg:
        raw, defaulted = self.cache.minutes_for(key)
        return _Leg(raw=raw, quantized=quantize_minutes(raw), defaulted=defaulted)

    def _travel_block(
        self,
        block_id: str,
        assignment: Assignment,
        start: int,
        end: int,
        kind: TravelKind,
        leg: _Leg,
        source_id: Optional[str] = None,
        target_id: Optional[str] = None,
    ) -> TravelBlock:
        return TravelBlock(
            id=block_id,
            crew_id=assignment.crew_id,
            date=assignment.date,
            start_minutes=start,
            end_minutes=end,
            kind=kind,
            source_assignment_id=source_id,
            target_assignment_id=target_id,
            raw_resolved_minutes=leg.raw,
            quantized_minutes=leg.quantized,
            defaulted=leg.defaulted,
        )

    def _home_start_block(self, assignment: Assignment, start: int, leg: _Leg) -> TravelBlock:
        return self._travel_block(
            f"travel-hq-start-{assignment.id}", assignment, start, assignment.start_minutes,
            TravelKind.HOME_BASE_START, leg, target_id=assignment.id,
        )

    def _build_group(self, assignments: List[Assignment]) -> List[TimelineItem]:
        """Build one crew/day group. Input order breaks start-time ties."""
        ordered = sorted(assignments, key=lambda a: a.start_minutes)
        timeline: List[TimelineItem] = []
        fitted_starts: Set[str] = set()
        gaps: List[int] = []
        travel_count = 0

        for i, current in enumerate(ordered):
            nxt = ordered[i + 1] if i + 1 < len(ordered) else None
            floor = ordered[i - 1].end_minutes if i > 0 else 0

            if current.starts_at_home_base and current.id not in fitted_starts:
                leg = self._leg(home_base_leg_key(current.id, HomeBaseDirection.START))
                block_end = current.start_minutes
                block_start = max(0, floor, block_end - leg.quantized)
                if block_end - block_start >= self.min_render_minutes:
                    timeline.append(self._home_start_block(current, block_start, leg))
                    travel_count += 1

            timeline.append(AssignmentBlock(current))

            if nxt is not None:
                gaps.append(nxt.start_minutes - current.end_minutes)

            if current.ends_at_home_base:
                leg = self._leg(home_base_leg_key(current.id, HomeBaseDirection.END))
                block_start = current.end_minutes

                if nxt is None:
                    block_end = min(self.workday_total_minutes, block_start + leg.quantized)
                    start_leg, fit = None, None
                else:
                    start_leg = None
                    if nxt.starts_at_home_base:
                        start_leg = self._leg(home_base_leg_key(nxt.id, HomeBaseDirection.START))
                        fitted_starts.add(nxt.id)
                    fit = fit_home_base_gap(
                        leg.quantized,
                        start_leg.quantized if start_leg else None,
                        nxt.start_minutes - current.end_minutes,
                    )
                    block_end = block_start + fit.end_leg_minutes

                if block_end - block_start >= self.min_render_minutes:
                    timeline.append(self._travel_block(
                        f"travel-hq-end-{current.id}", current, block_start, block_end,
                        TravelKind.HOME_BASE_END, leg, source_id=current.id,
                    ))
                    travel_count += 1

                if start_leg is not None and fit.start_leg_minutes >= self.min_render_minutes:
                    timeline.append(self._home_start_block(
                        nxt, nxt.start_minutes - fit.start_leg_minutes, start_leg
                    ))
                    travel_count += 1

            elif nxt is not None and not nxt.starts_at_home_base:
                gap = nxt.start_minutes - current.end_minutes
                # Tiny gaps stay unlabeled; zero/negative gaps never get travel
                if gap >= self.min_render_minutes:
                    leg = self._leg(between_leg_key(current.crew_id, current.date, current.id, nxt.id))
                    # Clamp to the gap so travel never overlaps the next job
                    duration = min(leg.quantized, gap)
                    timeline.append(self._travel_block(
                        f"travel-{current.id}-{nxt.id}", current,
                        current.end_minutes, current.end_minutes + duration,
                        TravelKind.BETWEEN, leg, source_id=current.id, target_id=nxt.id,
                    ))
                    travel_count += 1

        if ordered and self.logger.isEnabledFor(logging.DEBUG):
            first = ordered[0]
            self.logger.debug(
                f"[TRAVEL] {first.crew_id}:{date_key(first.date)}: {len(ordered)} assignments, "
                f"gaps=[{','.join(str(g) for g in gaps)}], travelBlocks={travel_count}"
            )

        return timeline

    def build_schedule_timeline(self, assignments: Iterable[Assignment]) -> List[TimelineItem]:
        """
        Build timelines for every crew/day present in the input.

        Groups appear in first-seen order; within a group items are in time order.
        Assignments without a crew are not on anyone's timeline and are skipped.
        """
        grouped: "OrderedDict[Tuple[str, str], List[Assignment]]" = OrderedDict()
        for assignment in assignments:
            if not assignment.crew_id:
                continue
            key = (assignment.crew_id, date_key(assignment.date))
            grouped.setdefault(key, []).append(assignment)

        timeline: List[TimelineItem] = []
        for group in grouped.values():
            timeline.extend(self._build_group(group))
        return timeline

    def build_crew_day_timeline(self, assignments: Iterable[Assignment], crew_id: str, date) -> List[TimelineItem]:
        """Timeline for one crew on one day."""
        day = date_key(date)
        crew_assignments = [
            a for a in assignments
            if a.crew_id == crew_id and date_key(a.date) == day
        ]
        return self._build_group(crew_assignments)

    def build_occupied_timeline(
        self,
        assignments: Iterable[Assignment],
        crew_id: str,
        date,
        exclude_assignment_id: Optional[str] = None,
    ) -> List[OccupiedInterval]:
        """
        Occupied intervals (jobs + travel) for one crew/day, ordered by start.

        The assignment being dragged is excluded so it cannot block itself.
        """
        remaining = [a for a in assignments if a.id != exclude_assignment_id]
        return to_occupied_intervals(self.build_crew_day_timeline(remaining, crew_id, date))

    def total_travel_minutes(self, assignments: Iterable[Assignment], crew_id: str, date) -> int:
        """Total travel time for a crew on a day."""
        timeline = self.build_crew_day_timeline(assignments, crew_id, date)
        return sum(block.duration_minutes for block in get_travel_blocks(timeline))


def get_travel_blocks(timeline: Iterable[TimelineItem]) -> List[TravelBlock]:
    return [item for item in timeline if is_travel_block(item)]


def get_assignments(timeline: Iterable[TimelineItem]) -> List[AssignmentBlock]:
    return [item for item in timeline if is_assignment(item)]


def to_occupied_intervals(timeline: Iterable[TimelineItem]) -> List[OccupiedInterval]:
    """Reduce timeline items to the unified occupancy view, sorted by start."""
    intervals = [
        OccupiedInterval(
            kind=OccupiedKind.TRAVEL if is_travel_block(item) else OccupiedKind.JOB,
            id=item.id,
            start_minutes=item.start_minutes,
            end_minutes=item.end_minutes,
        )
        for item in timeline
    ]
    return sorted(intervals, key=lambda interval: interval.start_minutes)
