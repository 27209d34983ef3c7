"""
Service layer for crew timelines.
Wires the travel provider, duration cache, timeline builder and placement rules.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import yaml

from .cache import TravelDurationCache, collect_travel_pairs
from .models import Assignment, OccupiedInterval, PlacementResult, PlacementWindow, TimelineItem
from .placement import compute_placement_windows, resolve_placement
from .provider import TravelTimeProvider, build_provider
from .schemas import AppConfig, Settings
from .timeline import TimelineBuilder

logger = logging.getLogger(__name__)


class CrewTimelineService:
    """Main service for travel-aware crew timelines."""

    def __init__(
        self,
        config_path: Optional[str] = "config/params.yaml",
        provider: Optional[TravelTimeProvider] = None,
        config: Optional[AppConfig] = None,
        settings: Optional[Settings] = None,
    ):
        """Initialize service with configuration."""
        self.config = config or self._load_config(config_path)
        self.settings = settings or Settings()

        # Setup logging
        self._setup_logging()

        # Initialize components
        self.provider = provider or build_provider(self.config, self.settings)
        self.cache = TravelDurationCache(
            self.provider,
            concurrency=self.config.travel.resolve_concurrency,
            timeout_seconds=self.config.travel.request_timeout_seconds,
            default_minutes=self.config.travel.default_minutes,
        )
        builder_logger = logging.getLogger("crew_timeline.timeline")
        if self.config.dev.debug_travel or self.settings.debug_travel:
            builder_logger.setLevel(logging.DEBUG)
        self.builder = TimelineBuilder(self.cache, self.config, logger=builder_logger)

    def _load_config(self, config_path: Optional[str]) -> AppConfig:
        """Load configuration from YAML file, or defaults when there is none."""
        if config_path is None or not Path(config_path).exists():
            logger.info(f"No configuration at {config_path}; using defaults")
            return AppConfig()
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
            return AppConfig(**config_data)
        except Exception as e:
            logger.error(f"Failed to load configuration: {e}")
            raise

    def _setup_logging(self) -> None:
        """Setup logging configuration."""
        logging.basicConfig(
            level=getattr(logging, self.config.logging.level),
            format=self.config.logging.format
        )

    @property
    def workday_end_minutes(self) -> int:
        return self.config.workday.total_minutes

    async def prepare(self, assignments: Iterable[Assignment]) -> Dict[str, int]:
        """Resolve every travel leg the assignments need before building timelines."""
        pairs = collect_travel_pairs(assignments, self.config.home_base_address)
        if not pairs:
            return {}
        return await self.cache.resolve(pairs)

    def timeline_for(self, assignments: Iterable[Assignment], crew_id: str, date) -> List[TimelineItem]:
        return self.builder.build_crew_day_timeline(assignments, crew_id, date)

    def occupancy_for(
        self,
        assignments: Iterable[Assignment],
        crew_id: str,
        date,
        exclude_assignment_id: Optional[str] = None,
    ) -> List[OccupiedInterval]:
        return self.builder.build_occupied_timeline(assignments, crew_id, date, exclude_assignment_id)

    def place(
        self,
        assignments: Iterable[Assignment],
        crew_id: str,
        date,
        desired_start_minutes: int,
        duration_minutes: int,
        exclude_assignment_id: Optional[str] = None,
    ) -> PlacementResult:
        """Resolve a drop of a job onto a crew's day."""
        occupancy = self.occupancy_for(assignments, crew_id, date, exclude_assignment_id)
        result = resolve_placement(desired_start_minutes, duration_minutes, occupancy, self.workday_end_minutes)
        logger.info(
            f"Placement for crew {crew_id} at {desired_start_minutes} ({duration_minutes} min): "
            f"{result.outcome.value} start={result.start_minutes}"
        )
        return result

    def windows_for(
        self,
        assignments: Iterable[Assignment],
        crew_id: str,
        date,
        duration_minutes: int,
        exclude_assignment_id: Optional[str] = None,
    ) -> List[PlacementWindow]:
        occupancy = self.occupancy_for(assignments, crew_id, date, exclude_assignment_id)
        return compute_placement_windows(
            occupancy, duration_minutes, crew_id, date,
            workday_start_minutes=0, workday_end_minutes=self.workday_end_minutes,
        )

    def clear_cache(self) -> None:
        self.cache.clear()

    async def close(self):
        """Clean up resources."""
        await self.provider.close()
