"""
Unit tests for the assignment-scoped travel duration cache.
"""
import asyncio
import unittest

from crew_timeline.cache import (
    BETWEEN_PREFIX, HOME_BASE_PREFIX, TravelDurationCache, between_leg_key, collect_travel_pairs,
    home_base_leg_key,
)
from crew_timeline.models import HomeBaseDirection, TravelPair
from tests.helpers import DAY, FakeProvider, make_assignment


def between_pair(from_id, to_id, origin, destination, crew_id="crew-1"):
    return TravelPair(
        cache_key=between_leg_key(crew_id, DAY, from_id, to_id),
        origin=origin,
        destination=destination,
        crew_id=crew_id,
        date=DAY.isoformat(),
        from_assignment_id=from_id,
        to_assignment_id=to_id,
    )


class TestTravelDurationCache(unittest.TestCase):
    """Resolution, defaults and isolation of cached travel legs."""

    def setUp(self):
        self.provider = FakeProvider(durations={("1 Main St", "9 Elm St"): 22})
        self.cache = TravelDurationCache(self.provider)

    def test_resolves_and_reuses_entries(self):
        pair = between_pair("A", "B", "1 Main St", "9 Elm St")

        first = asyncio.run(self.cache.resolve([pair]))
        second = asyncio.run(self.cache.resolve([pair]))

        self.assertEqual(first, {pair.cache_key: 22})
        self.assertEqual(second, {pair.cache_key: 22})
        self.assertEqual(len(self.provider.calls), 1)
        self.assertEqual(self.cache.minutes_for(pair.cache_key), (22, False))

    def test_unresolved_leg_defaults_and_is_not_retried(self):
        pair = between_pair("A", "B", "1 Main St", "Nowhere")

        result = asyncio.run(self.cache.resolve([pair]))
        asyncio.run(self.cache.resolve([pair]))

        self.assertEqual(result[pair.cache_key], 30)
        self.assertIn(pair.cache_key, self.cache)
        self.assertIsNone(self.cache.raw_minutes(pair.cache_key))
        self.assertEqual(self.cache.minutes_for(pair.cache_key), (30, True))
        self.assertEqual(len(self.provider.calls), 1)

    def test_provider_exception_is_absorbed(self):
        provider = FakeProvider(failures=[("1 Main St", "9 Elm St")])
        cache = TravelDurationCache(provider)
        pair = between_pair("A", "B", "1 Main St", "9 Elm St")

        with self.assertLogs("crew_timeline.cache", level="WARNING"):
            result = asyncio.run(cache.resolve([pair]))

        self.assertEqual(result, {pair.cache_key: 30})

    def test_slow_provider_times_out_to_default(self):
        provider = FakeProvider(durations={("1 Main St", "9 Elm St"): 22}, delay=1.0)
        cache = TravelDurationCache(provider, timeout_seconds=0.05)
        pair = between_pair("A", "B", "1 Main St", "9 Elm St")

        result = asyncio.run(cache.resolve([pair]))

        self.assertEqual(result[pair.cache_key], 30)
        self.assertEqual(cache.minutes_for(pair.cache_key), (30, True))

    def test_concurrency_is_bounded(self):
        provider = FakeProvider(delay=0.01)
        cache = TravelDurationCache(provider, concurrency=5)
        pairs = [between_pair(f"A{i}", f"B{i}", f"{i} Main St", f"{i} Elm St") for i in range(12)]

        asyncio.run(cache.resolve(pairs))

        self.assertEqual(len(provider.calls), 12)
        self.assertEqual(provider.max_in_flight, 5)
        self.assertEqual(len(cache), 12)

    def test_blank_address_skips_provider(self):
        pair = between_pair("A", "B", "   ", "9 Elm St")

        result = asyncio.run(self.cache.resolve([pair]))

        self.assertEqual(result[pair.cache_key], 30)
        self.assertEqual(self.provider.calls, [])

    def test_duplicate_keys_resolved_once(self):
        pair = between_pair("A", "B", "1 Main St", "9 Elm St")

        result = asyncio.run(self.cache.resolve([pair, pair, pair]))

        self.assertEqual(result, {pair.cache_key: 22})
        self.assertEqual(len(self.provider.calls), 1)

    def test_no_provider_falls_back_to_default(self):
        cache = TravelDurationCache()
        pair = between_pair("A", "B", "1 Main St", "9 Elm St")

        self.assertEqual(asyncio.run(cache.resolve([pair])), {pair.cache_key: 30})

    def test_clear_forces_new_lookups(self):
        pair = between_pair("A", "B", "1 Main St", "9 Elm St")
        asyncio.run(self.cache.resolve([pair]))

        self.cache.clear()

        self.assertEqual(len(self.cache), 0)
        self.assertNotIn(pair.cache_key, self.cache)
        asyncio.run(self.cache.resolve([pair]))
        self.assertEqual(len(self.provider.calls), 2)

    def test_seed_and_absent_keys(self):
        key = home_base_leg_key("A", "start")
        self.cache.seed(key, 12)

        self.assertEqual(self.cache.minutes_for(key), (12, False))
        self.assertEqual(self.cache.minutes_for("home:missing:end"), (30, True))


class TestLegKeys(unittest.TestCase):
    """Between-job and home-base keys never collide."""

    def test_key_shapes(self):
        self.assertEqual(between_leg_key("crew-1", DAY, "A", "B"), "between:crew-1:2026-03-02:A:B")
        self.assertEqual(between_leg_key("crew-1", "2026-03-02", "A", "B"), "between:crew-1:2026-03-02:A:B")
        self.assertEqual(home_base_leg_key("A", HomeBaseDirection.START), "home:A:start")
        self.assertEqual(home_base_leg_key("A", "end"), "home:A:end")

    def test_namespaces_are_disjoint(self):
        self.assertNotEqual(BETWEEN_PREFIX, HOME_BASE_PREFIX)
        keys = {
            between_leg_key("crew-1", DAY, "A", "B"),
            home_base_leg_key("A", "end"),
            home_base_leg_key("B", "start"),
        }
        self.assertEqual(len(keys), 3)

    def test_home_leg_not_satisfied_by_between_entry(self):
        cache = TravelDurationCache()
        cache.seed(between_leg_key("crew-1", DAY, "A", "B"), 10)

        self.assertEqual(cache.minutes_for(home_base_leg_key("A", "end")), (30, True))
        self.assertEqual(cache.minutes_for(home_base_leg_key("B", "start")), (30, True))

    def test_invalid_direction_rejected(self):
        with self.assertRaises(ValueError):
            home_base_leg_key("A", "sideways")


class TestCollectTravelPairs(unittest.TestCase):
    """Leg collection from a set of assignments."""

    def test_between_pairs_follow_start_order(self):
        assignments = [
            make_assignment("B", 120, 180, address="9 Elm St"),
            make_assignment("A", 0, 60, address="1 Main St"),
            make_assignment("C", 240, 300, address="5 Oak Ave"),
        ]

        pairs = collect_travel_pairs(assignments)

        self.assertEqual(
            [(p.cache_key, p.origin, p.destination) for p in pairs],
            [
                ("between:crew-1:2026-03-02:A:B", "1 Main St", "9 Elm St"),
                ("between:crew-1:2026-03-02:B:C", "9 Elm St", "5 Oak Ave"),
            ],
        )

    def test_missing_address_skips_leg(self):
        assignments = [
            make_assignment("A", 0, 60, address="1 Main St"),
            make_assignment("B", 120, 180),
            make_assignment("C", 240, 300, address="5 Oak Ave"),
        ]
        self.assertEqual(collect_travel_pairs(assignments), [])

    def test_crews_and_days_are_separate(self):
        assignments = [
            make_assignment("A", 0, 60, crew_id="crew-a", address="1 Main St"),
            make_assignment("B", 120, 180, crew_id="crew-b", address="9 Elm St"),
        ]
        self.assertEqual(collect_travel_pairs(assignments), [])

    def test_home_base_legs(self):
        assignments = [
            make_assignment("A", 60, 120, address="1 Main St", starts_at_home_base=True, ends_at_home_base=True),
            make_assignment("B", 200, 260, starts_at_home_base=True),
        ]

        pairs = collect_travel_pairs(assignments, home_base_address="100 Depot Rd")

        self.assertEqual(
            [(p.cache_key, p.origin, p.destination, p.direction) for p in pairs],
            [
                ("home:A:start", "100 Depot Rd", "1 Main St", HomeBaseDirection.START),
                ("home:A:end", "1 Main St", "100 Depot Rd", HomeBaseDirection.END),
            ],
        )

    def test_no_home_base_address_means_no_home_legs(self):
        assignments = [make_assignment("A", 60, 120, address="1 Main St", starts_at_home_base=True)]
        self.assertEqual(collect_travel_pairs(assignments, home_base_address="  "), [])


if __name__ == '__main__':
    unittest.main()
