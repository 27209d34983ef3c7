"""
Crew timeline package.
Travel-aware occupancy timelines and drag/drop placement for field crews.
"""

__version__ = "0.1.0"

from .cache import TravelDurationCache, between_leg_key, home_base_leg_key, collect_travel_pairs
from .grid import GRID_MINUTES, MIN_TRAVEL_RENDER_MINUTES, DEFAULT_TRAVEL_DURATION_MINUTES
from .occupancy import is_placement_valid
from .placement import resolve_placement, compute_placement_windows
from .service import CrewTimelineService
from .timeline import TimelineBuilder
from .models import *

__all__ = [
    "CrewTimelineService",
    "TimelineBuilder",
    "TravelDurationCache",
    "between_leg_key",
    "home_base_leg_key",
    "collect_travel_pairs",
    "is_placement_valid",
    "resolve_placement",
    "compute_placement_windows",
    "GRID_MINUTES",
    "MIN_TRAVEL_RENDER_MINUTES",
    "DEFAULT_TRAVEL_DURATION_MINUTES",
]
