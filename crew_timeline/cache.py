"""
Assignment-scoped travel duration cache.

Keys identify a specific leg, never an address pair, so two assignments that
happen to share addresses never reuse each other's entries:

- between-job legs: ``between:{crew_id}:{date}:{from_id}:{to_id}``
- home-base legs:   ``home:{assignment_id}:{start|end}``

Entries are a performance aid only. A missing or unresolved entry resolves to
DEFAULT_TRAVEL_DURATION_MINUTES, so a cold cache still yields a valid timeline.
"""

import asyncio
import logging
import threading
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from .grid import DEFAULT_TRAVEL_DURATION_MINUTES
from .models import Assignment, HomeBaseDirection, TravelPair
from .provider import TravelTimeProvider
from .util.time_utils import date_key


logger = logging.getLogger(__name__)

# Cached for a key whose lookup failed; distinct from "never looked up".
UNRESOLVED = object()

BETWEEN_PREFIX = "between"
HOME_BASE_PREFIX = "home"

RESOLVE_CONCURRENCY = 5
REQUEST_TIMEOUT_SECONDS = 5.0


def between_leg_key(crew_id: str, date, from_assignment_id: str, to_assignment_id: str) -> str:
    return f"{BETWEEN_PREFIX}:{crew_id}:{date_key(date)}:{from_assignment_id}:{to_assignment_id}"


def home_base_leg_key(assignment_id: str, direction) -> str:
    direction = HomeBaseDirection(direction)
    return f"{HOME_BASE_PREFIX}:{assignment_id}:{direction.value}"


class TravelDurationCache:
    """Resolves and memoizes travel durations per leg."""

    def __init__(
        self,
        provider: Optional[TravelTimeProvider] = None,
        concurrency: int = RESOLVE_CONCURRENCY,
        timeout_seconds: float = REQUEST_TIMEOUT_SECONDS,
        default_minutes: int = DEFAULT_TRAVEL_DURATION_MINUTES,
    ):
        assert concurrency >= 1, "concurrency limit must be at least 1"
        self.provider = provider
        self.concurrency = concurrency
        self.timeout_seconds = timeout_seconds
        self.default_minutes = default_minutes
        self._entries: Dict[str, object] = {}
        self._lock = threading.Lock()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def seed(self, key: str, minutes: Optional[int]) -> None:
        """Store a known duration (None stores the unresolved marker)."""
        assert minutes is None or minutes >= 0, f"negative travel minutes for {key}"
        self._store(key, UNRESOLVED if minutes is None else minutes)

    def _store(self, key: str, value: object) -> None:
        with self._lock:
            self._entries[key] = value

    def raw_minutes(self, key: str) -> Optional[int]:
        """Resolved minutes, or None for absent and unresolved keys."""
        with self._lock:
            value = self._entries.get(key)
        if value is None or value is UNRESOLVED:
            return None
        return value

    def minutes_for(self, key: str) -> Tuple[int, bool]:
        """(minutes, defaulted) for a key; never fails."""
        raw = self.raw_minutes(key)
        if raw is None:
            return self.default_minutes, True
        return raw, False

    async def _resolve_one(self, pair: TravelPair, semaphore: asyncio.Semaphore) -> None:
        async with semaphore:
            value: object = UNRESOLVED
            if not (pair.origin or "").strip() or not (pair.destination or "").strip():
                logger.warning(f"Travel leg {pair.cache_key} has no origin or destination; using default")
            elif self.provider is None:
                logger.warning(f"No travel provider configured; {pair.cache_key} uses default")
            else:
                try:
                    minutes = await asyncio.wait_for(
                        self.provider.estimate_travel_minutes(pair.origin, pair.destination),
                        timeout=self.timeout_seconds,
                    )
                except asyncio.TimeoutError:
                    logger.warning(f"Travel lookup timed out for {pair.cache_key}; using default")
                    minutes = None
                except Exception as e:
                    logger.warning(f"Travel lookup failed for {pair.cache_key}: {e}; using default")
                    minutes = None

                if minutes is None:
                    logger.warning(f"Travel leg {pair.cache_key} unresolved; using default {self.default_minutes} min")
                else:
                    value = int(minutes)

            self._store(pair.cache_key, value)
            logger.debug(f"Resolved {pair.cache_key} => {value if value is not UNRESOLVED else 'unresolved'}")

    async def resolve(self, pairs: Iterable[TravelPair]) -> Dict[str, int]:
        """
        Resolve every pair, calling the provider only for uncached keys.

        Returns a map of cache key -> minutes covering every requested key,
        with the default duration standing in for unresolved legs.
        """
        pairs = list(pairs)

        uncached: Dict[str, TravelPair] = {}
        for pair in pairs:
            if pair.cache_key not in self and pair.cache_key not in uncached:
                uncached[pair.cache_key] = pair

        if uncached:
            logger.info(f"Resolving {len(uncached)} travel legs ({len(pairs) - len(uncached)} cached)")
            semaphore = asyncio.Semaphore(self.concurrency)
            await asyncio.gather(*(self._resolve_one(p, semaphore) for p in uncached.values()))

        return {pair.cache_key: self.minutes_for(pair.cache_key)[0] for pair in pairs}


def collect_travel_pairs(
    assignments: Iterable[Assignment],
    home_base_address: Optional[str] = None,
) -> List[TravelPair]:
    """
    Build the travel legs a set of assignments needs resolved.

    Between-job legs join consecutive assignments of each crew/day where both
    have an address; home-base legs are produced for flagged assignments when
    a home-base address is known.
    """
    groups: Dict[Tuple[str, str], List[Assignment]] = defaultdict(list)
    for assignment in assignments:
        groups[(assignment.crew_id, date_key(assignment.date))].append(assignment)

    home = (home_base_address or "").strip()
    pairs: List[TravelPair] = []

    for (crew_id, day), group in groups.items():
        ordered = sorted(group, key=lambda a: a.start_minutes)

        for current, nxt in zip(ordered, ordered[1:]):
            if not (current.address or "").strip() or not (nxt.address or "").strip():
                continue
            pairs.append(TravelPair(
                cache_key=between_leg_key(crew_id, day, current.id, nxt.id),
                origin=current.address,
                destination=nxt.address,
                crew_id=crew_id,
                date=day,
                from_assignment_id=current.id,
                to_assignment_id=nxt.id,
            ))

        if not home:
            continue

        for assignment in ordered:
            address = (assignment.address or "").strip()
            if not address:
                continue
            if assignment.starts_at_home_base:
                pairs.append(TravelPair(
                    cache_key=home_base_leg_key(assignment.id, HomeBaseDirection.START),
                    origin=home,
                    destination=address,
                    assignment_id=assignment.id,
                    direction=HomeBaseDirection.START,
                ))
            if assignment.ends_at_home_base:
                pairs.append(TravelPair(
                    cache_key=home_base_leg_key(assignment.id, HomeBaseDirection.END),
                    origin=address,
                    destination=home,
                    assignment_id=assignment.id,
                    direction=HomeBaseDirection.END,
                ))

    return pairs
