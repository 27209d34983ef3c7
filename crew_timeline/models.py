"""
Core data models for the crew timeline engine.
Assignments are read-only inputs; travel blocks and occupied intervals are derived per build.
"""

from datetime import date
from enum import Enum
from typing import List, Optional, Union
from dataclasses import dataclass


class TravelKind(str, Enum):
    """Which leg a travel block represents."""
    BETWEEN = "between"
    HOME_BASE_START = "home_base_start"
    HOME_BASE_END = "home_base_end"


class HomeBaseDirection(str, Enum):
    """Direction of a home-base leg relative to the assignment."""
    START = "start"  # home base -> job
    END = "end"      # job -> home base


class OccupiedKind(str, Enum):
    JOB = "job"
    TRAVEL = "travel"


class SnapReason(str, Enum):
    """Why a placement moved (or was refused)."""
    TRAVEL = "TRAVEL"
    JOB = "JOB"
    OUT_OF_BOUNDS = "OUT_OF_BOUNDS"


class PlacementOutcome(str, Enum):
    RESOLVED = "resolved"
    RESOLVED_WITH_SNAP = "resolved_with_snap"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Assignment:
    """A crew's booking for a job on one day, owned by the scheduling store."""
    id: str
    crew_id: str
    date: date
    start_minutes: int
    end_minutes: int
    starts_at_home_base: bool = False
    ends_at_home_base: bool = False
    address: Optional[str] = None
    job_id: Optional[str] = None

    def __post_init__(self):
        assert self.start_minutes >= 0, f"assignment {self.id} starts before the workday"
        assert self.end_minutes >= self.start_minutes, f"assignment {self.id} ends before it starts"

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes


@dataclass(frozen=True)
class AssignmentBlock:
    """An assignment as it appears on the rendered timeline."""
    assignment: Assignment

    @property
    def id(self) -> str:
        return self.assignment.id

    @property
    def start_minutes(self) -> int:
        return self.assignment.start_minutes

    @property
    def end_minutes(self) -> int:
        return self.assignment.end_minutes


@dataclass(frozen=True)
class TravelBlock:
    """Travel time between assignments or to/from home base. Never persisted."""
    id: str
    crew_id: str
    date: date
    start_minutes: int
    end_minutes: int
    kind: TravelKind
    source_assignment_id: Optional[str] = None
    target_assignment_id: Optional[str] = None
    raw_resolved_minutes: Optional[int] = None  # before quantization, for tooltips
    quantized_minutes: Optional[int] = None     # grid value before clamping
    defaulted: bool = False

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    def tooltip(self) -> str:
        """Human-readable raw vs. snapped duration."""
        label = {
            TravelKind.BETWEEN: "Travel",
            TravelKind.HOME_BASE_START: "Travel from home base",
            TravelKind.HOME_BASE_END: "Travel to home base",
        }[self.kind]
        if self.raw_resolved_minutes is None:
            return f"{label}: {self.duration_minutes} min"
        source = "default" if self.defaulted else "estimated"
        text = f"{label}: {self.duration_minutes} min ({source} {self.raw_resolved_minutes} min"
        if self.quantized_minutes is not None and self.quantized_minutes != self.duration_minutes:
            text += f", snapped {self.quantized_minutes} min, clamped to gap"
        return text + ")"


TimelineItem = Union[AssignmentBlock, TravelBlock]


def is_travel_block(item: TimelineItem) -> bool:
    return isinstance(item, TravelBlock)


def is_assignment(item: TimelineItem) -> bool:
    return isinstance(item, AssignmentBlock)


@dataclass(frozen=True)
class OccupiedInterval:
    """Job or travel time treated identically for overlap checks."""
    kind: OccupiedKind
    id: str
    start_minutes: int
    end_minutes: int

    def overlaps(self, start_minutes: int, end_minutes: int) -> bool:
        """Half-open overlap test; touching intervals do not overlap."""
        return start_minutes < self.end_minutes and end_minutes > self.start_minutes


@dataclass(frozen=True)
class TravelPair:
    """A travel leg to resolve, carrying its own cache key."""
    cache_key: str
    origin: str
    destination: str
    crew_id: Optional[str] = None
    date: Optional[str] = None
    from_assignment_id: Optional[str] = None
    to_assignment_id: Optional[str] = None
    assignment_id: Optional[str] = None
    direction: Optional[HomeBaseDirection] = None


@dataclass(frozen=True)
class PlacementResult:
    """Outcome of a snap-forward placement request."""
    outcome: PlacementOutcome
    start_minutes: Optional[int]
    snapped: bool = False
    snap_reason: Optional[SnapReason] = None
    snap_delta: int = 0

    @property
    def accepted(self) -> bool:
        return self.outcome != PlacementOutcome.REJECTED


@dataclass(frozen=True)
class PlacementWindow:
    """A grid-aligned slot where a job of the requested duration fits."""
    crew_id: str
    date: str
    start_minutes: int
    end_minutes: int

    def contains(self, minutes: int) -> bool:
        return self.start_minutes <= minutes < self.end_minutes


__all__: List[str] = [
    "TravelKind",
    "HomeBaseDirection",
    "OccupiedKind",
    "SnapReason",
    "PlacementOutcome",
    "Assignment",
    "AssignmentBlock",
    "TravelBlock",
    "TimelineItem",
    "is_travel_block",
    "is_assignment",
    "OccupiedInterval",
    "TravelPair",
    "PlacementResult",
    "PlacementWindow",
]
