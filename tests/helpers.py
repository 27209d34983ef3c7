"""Shared builders for crew timeline tests."""

import asyncio
from datetime import date

from crew_timeline.models import Assignment

DAY = date(2026, 3, 2)


def make_assignment(assignment_id, start, end, crew_id="crew-1", day=DAY, **kwargs):
    """Build an assignment with sensible defaults."""
    return Assignment(
        id=assignment_id,
        crew_id=crew_id,
        date=day,
        start_minutes=start,
        end_minutes=end,
        **kwargs,
    )


class FakeProvider:
    """Records calls; answers from a dict keyed by (origin, destination)."""

    def __init__(self, durations=None, delay=0.0, failures=()):
        self.durations = durations or {}
        self.delay = delay
        self.failures = set(failures)
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def estimate_travel_minutes(self, origin, destination):
        self.calls.append((origin, destination))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if (origin, destination) in self.failures:
                raise RuntimeError("provider exploded")
            return self.durations.get((origin, destination))
        finally:
            self.in_flight -= 1

    async def close(self):
        self.closed = True
