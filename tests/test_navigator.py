"""
Unit tests for the navigation tracker
Covers waypoint advancement, arrival detection, skipping and lifecycle
"""
import unittest

from navigation.algorithms.geo_utils import GeoUtils
from navigation.core.data_types import CoordinateMode, TrackerStatus, Waypoint
from navigation.navigator import NavigationTracker
from tests.fakes import geodesic_estimate, planar_estimate


def planar_route(*points):
    return [Waypoint(x=x, y=y, name=f"WP{i + 1}") for i, (x, y) in enumerate(points)]


class TestTrackerLifecycle(unittest.TestCase):
    def setUp(self):
        self.tracker = NavigationTracker()
        self.states = []
        self.tracker.subscribe(self.states.append)

    def test_empty_route_stays_idle(self):
        self.assertFalse(self.tracker.start([]))
        self.assertEqual(self.tracker.get_state().status, TrackerStatus.IDLE)

    def test_updates_while_idle_are_ignored(self):
        state = self.tracker.on_position_update(planar_estimate(0, 0))
        self.assertEqual(state.status, TrackerStatus.IDLE)
        self.assertEqual(self.states, [])

    def test_start_publishes_navigating_state(self):
        self.assertTrue(self.tracker.start(planar_route((0, 0), (0, 30))))
        self.assertEqual(len(self.states), 1)
        state = self.states[0]
        self.assertEqual(state.status, TrackerStatus.NAVIGATING)
        self.assertEqual(state.waypoint_index, 0)
        self.assertEqual(state.total_waypoints, 2)
        self.assertIsNone(state.distance_to_next)

    def test_skip_origin_starts_at_second_waypoint(self):
        self.tracker.start(planar_route((0, 0), (0, 30), (0, 60)), skip_origin=True)
        self.assertEqual(self.tracker.get_state().waypoint_index, 1)
        self.assertEqual(self.tracker.get_state().target.name, "WP2")

    def test_mode_is_inferred_from_waypoints(self):
        self.tracker.start([Waypoint(latitude=52.0, longitude=21.0)])
        self.assertEqual(self.tracker.mode, CoordinateMode.GEODESIC)
        self.tracker.start(planar_route((0, 0)))
        self.assertEqual(self.tracker.mode, CoordinateMode.PLANAR)

    def test_waypoints_without_mode_coordinates_are_dropped(self):
        route = [Waypoint(x=0, y=0), Waypoint(latitude=52.0, longitude=21.0), Waypoint(x=0, y=30)]
        self.assertTrue(self.tracker.start(route, mode=CoordinateMode.PLANAR))
        self.assertEqual(self.tracker.dropped_waypoints, 1)
        self.assertEqual(self.tracker.get_state().total_waypoints, 2)

    def test_route_from_dicts(self):
        self.assertTrue(self.tracker.start([{'x': 0, 'y': 0, 'id': 'A'}, {'x': 0, 'y': 30, 'id': 'B'}]))
        self.assertEqual(self.tracker.get_waypoints()[1].node_id, 'B')

    def test_stop_is_idempotent_and_silences_updates(self):
        self.tracker.start(planar_route((0, 0), (0, 30)), skip_origin=True)
        self.tracker.stop()
        self.tracker.stop()
        published = len(self.states)

        state = self.tracker.on_position_update(planar_estimate(0, 29))
        self.assertEqual(state.status, TrackerStatus.IDLE)
        self.assertEqual(len(self.states), published)


class TestTrackerAdvancement(unittest.TestCase):
    def setUp(self):
        self.tracker = NavigationTracker()
        self.route = planar_route((0, 0), (0, 30), (0, 60))

    def test_poor_accuracy_widens_threshold(self):
        self.tracker.start(self.route, skip_origin=True)
        state = self.tracker.on_position_update(planar_estimate(0, 4, accuracy_m=20, timestamp_ms=1))
        self.assertEqual(state.waypoint_index, 1)
        self.assertAlmostEqual(state.distance_to_next, 26)

        state = self.tracker.on_position_update(planar_estimate(0, 5.1, accuracy_m=20, timestamp_ms=2))
        self.assertEqual(state.waypoint_index, 2)
        self.assertEqual(state.advancements, 1)

    def test_good_accuracy_uses_base_threshold(self):
        self.tracker.start(self.route, skip_origin=True)
        state = self.tracker.on_position_update(planar_estimate(0, 19.5, accuracy_m=2, timestamp_ms=1))
        self.assertEqual(state.waypoint_index, 1)

        state = self.tracker.on_position_update(planar_estimate(0, 20, accuracy_m=2, timestamp_ms=2))
        self.assertEqual(state.waypoint_index, 1)

        state = self.tracker.on_position_update(planar_estimate(0, 20.1, accuracy_m=2, timestamp_ms=3))
        self.assertEqual(state.waypoint_index, 2)

    def test_missing_accuracy_defaults(self):
        self.tracker.start(self.route, skip_origin=True)
        state = self.tracker.on_position_update(planar_estimate(0, 20.5, accuracy_m=None))
        self.assertEqual(state.waypoint_index, 2)

    def test_passed_waypoints_cascade_in_one_update(self):
        self.tracker.start(planar_route((0, 0), (0, 3), (0, 6), (0, 100)), skip_origin=True)
        state = self.tracker.on_position_update(planar_estimate(0, 5, accuracy_m=3))
        self.assertEqual(state.waypoint_index, 3)
        self.assertEqual(state.advancements, 2)
        self.assertAlmostEqual(state.distance_to_next, 95)

    def test_cascade_can_reach_arrival(self):
        self.tracker.start(planar_route((0, 0), (0, 3), (0, 4)), skip_origin=True)
        state = self.tracker.on_position_update(planar_estimate(0, 3.5, accuracy_m=3))
        self.assertTrue(state.arrived)
        self.assertEqual(state.status, TrackerStatus.ARRIVED)

    def test_outdated_estimate_is_ignored(self):
        self.tracker.start(self.route, skip_origin=True)
        self.tracker.on_position_update(planar_estimate(0, 0, timestamp_ms=100))
        state = self.tracker.on_position_update(planar_estimate(0, 29, timestamp_ms=50))
        self.assertEqual(state.waypoint_index, 1)
        self.assertAlmostEqual(state.distance_to_next, 30)

    def test_estimate_without_route_coordinates_is_ignored(self):
        self.tracker.start(self.route, skip_origin=True)
        before = self.tracker.get_state()
        state = self.tracker.on_position_update(geodesic_estimate(52.0, 21.0))
        self.assertIs(state, before)


class TestTrackerArrival(unittest.TestCase):
    def setUp(self):
        self.tracker = NavigationTracker()
        self.tracker.start(planar_route((0, 0), (0, 20)), skip_origin=True)

    def test_final_waypoint_requires_close_approach(self):
        state = self.tracker.on_position_update(planar_estimate(0, 13, accuracy_m=3, timestamp_ms=1))
        self.assertFalse(state.arrived)
        state = self.tracker.on_position_update(planar_estimate(0, 15, accuracy_m=3, timestamp_ms=2))
        self.assertFalse(state.arrived)
        state = self.tracker.on_position_update(planar_estimate(0, 16, accuracy_m=3, timestamp_ms=3))
        self.assertTrue(state.arrived)
        self.assertEqual(state.status, TrackerStatus.ARRIVED)

    def test_final_threshold_ignores_accuracy(self):
        state = self.tracker.on_position_update(planar_estimate(0, 13, accuracy_m=30))
        self.assertFalse(state.arrived)

    def test_updates_after_arrival_are_no_ops(self):
        arrived = self.tracker.on_position_update(planar_estimate(0, 20, timestamp_ms=1))
        received = []
        self.tracker.subscribe(received.append)
        state = self.tracker.on_position_update(planar_estimate(0, 0, timestamp_ms=2))
        self.assertIs(state, arrived)
        self.assertEqual(received, [])


class TestTrackerSkipAndBearing(unittest.TestCase):
    def setUp(self):
        self.tracker = NavigationTracker()
        self.tracker.start(planar_route((0, 0), (0, 30), (30, 30)), skip_origin=True)

    def test_skip_to_next_and_past_final(self):
        state = self.tracker.skip_to_next()
        self.assertEqual(state.waypoint_index, 2)
        self.assertEqual(state.skipped_waypoints, 1)
        self.assertEqual(self.tracker.skipped_waypoints, 1)

        state = self.tracker.skip_to_next()
        self.assertEqual(state.status, TrackerStatus.ARRIVED)
        self.assertEqual(state.skipped_waypoints, 2)

    def test_skip_while_idle_is_no_op(self):
        self.tracker.stop()
        self.assertEqual(self.tracker.skip_to_next().status, TrackerStatus.IDLE)

    def test_relative_bearing(self):
        state = self.tracker.on_position_update(planar_estimate(0, 0, heading=90))
        self.assertAlmostEqual(state.bearing_to_next, 0)
        self.assertAlmostEqual(state.relative_bearing, -90)

        state = self.tracker.on_position_update(planar_estimate(0, 0, heading=270, timestamp_ms=1))
        self.assertAlmostEqual(state.relative_bearing, 90)

        state = self.tracker.on_position_update(planar_estimate(0, 0, heading=180, timestamp_ms=2))
        self.assertAlmostEqual(state.relative_bearing, 180)

    def test_relative_bearing_without_heading(self):
        state = self.tracker.on_position_update(planar_estimate(0, 0, heading=None))
        self.assertIsNone(state.relative_bearing)
        self.assertIsNotNone(state.bearing_to_next)

    def test_stale_flag_is_copied(self):
        state = self.tracker.on_position_update(planar_estimate(0, 0, is_stale=True))
        self.assertTrue(state.is_stale)


class TestTrackerGeodesic(unittest.TestCase):
    def test_geodesic_distance_and_bearing(self):
        tracker = NavigationTracker()
        route = [Waypoint(latitude=52.0, longitude=21.0), Waypoint(latitude=52.001, longitude=21.0)]
        tracker.start(route, skip_origin=True)
        state = tracker.on_position_update(geodesic_estimate(52.0, 21.0))
        self.assertAlmostEqual(state.distance_to_next,
                               GeoUtils.haversine_distance(52.0, 21.0, 52.001, 21.0))
        self.assertAlmostEqual(state.bearing_to_next, 0, places=6)


if __name__ == '__main__':
    unittest.main()
