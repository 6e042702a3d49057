import itertools
import math
import unittest

from navigation.algorithms.geo_utils import GeoUtils
from navigation.algorithms.path_planner import AStarPathPlanner, build_graph
from navigation.core.data_types import CoordinateMode, Edge, Graph, LocationNode, Waypoint
from navigation.core.errors import GraphInvariantError


def planar_locations(coords):
    return [{'id': node_id, 'x': x, 'y': y, 'name': node_id} for node_id, (x, y) in coords.items()]


def connections(pairs):
    return [{'from': a, 'to': b} for a, b in pairs]


def brute_force_shortest(graph, start, goal):
    """Length of the shortest simple path by exhaustive search"""
    best = math.inf

    def walk(node, visited, cost):
        nonlocal best
        if cost >= best:
            return
        if node == goal:
            best = cost
            return
        for edge in graph.neighbors(node):
            neighbor = edge.other(node)
            if neighbor not in visited:
                walk(neighbor, visited | {neighbor}, cost + edge.cost)

    walk(start, {start}, 0.0)
    return best


class TestBuildGraph(unittest.TestCase):
    def test_planar_graph_with_euclidean_costs(self):
        graph = build_graph(planar_locations({'A': (0, 0), 'B': (3, 4)}), connections([('A', 'B')]))
        self.assertEqual(graph.mode, CoordinateMode.PLANAR)
        self.assertEqual(len(graph.edges), 1)
        self.assertAlmostEqual(graph.edges[0].cost, 5.0)

    def test_geodesic_graph_when_planar_coordinates_missing(self):
        locations = [
            {'id': 'A', 'latitude': 52.0, 'longitude': 21.0},
            {'id': 'B', 'latitude': 52.001, 'longitude': 21.0},
        ]
        graph = build_graph(locations, connections([('A', 'B')]))
        self.assertEqual(graph.mode, CoordinateMode.GEODESIC)
        self.assertAlmostEqual(graph.edges[0].cost,
                               GeoUtils.haversine_distance(52.0, 21.0, 52.001, 21.0))

    def test_malformed_entries_are_dropped_and_counted(self):
        locations = [
            {'id': 'A', 'x': 0, 'y': 0, 'latitude': 52.0, 'longitude': 21.0},
            {'id': 'B', 'latitude': 52.001, 'longitude': 21.0},
            {'id': 'C', 'x': 5, 'y': 5},  # no lat/lon in a geodesic graph
            {'name': 'no id'},
            {'id': 'A', 'latitude': 1.0, 'longitude': 1.0},  # duplicate id
        ]
        pairs = [('A', 'B'), ('A', 'C'), ('A', 'Z'), ('B', 'B'), ('B', 'A')]
        graph = build_graph(locations, connections(pairs) + [{'from': 'A'}])

        self.assertEqual(sorted(graph.nodes), ['A', 'B'])
        self.assertEqual(graph.skipped_nodes, 3)
        self.assertEqual(len(graph.edges), 1)
        self.assertEqual(graph.skipped_edges, 5)

    def test_negative_cost_is_rejected(self):
        nodes = {'A': LocationNode(id='A', x=0, y=0), 'B': LocationNode(id='B', x=1, y=0)}
        with self.assertRaises(GraphInvariantError):
            Graph(nodes=nodes, edges=[Edge('A', 'B', -1.0)], mode=CoordinateMode.PLANAR)

    def test_nan_cost_is_rejected(self):
        nodes = {'A': LocationNode(id='A', x=0, y=0), 'B': LocationNode(id='B', x=1, y=0)}
        with self.assertRaises(GraphInvariantError):
            Graph(nodes=nodes, edges=[Edge('A', 'B', float('nan'))], mode=CoordinateMode.PLANAR)


class TestAStarPathPlanner(unittest.TestCase):
    def setUp(self):
        self.planner = AStarPathPlanner()
        self.coords = {
            'A': (0, 0), 'B': (4, 1), 'C': (2, 5), 'D': (7, 4),
            'E': (5, 8), 'F': (10, 9), 'G': (1, 10),
        }
        self.pairs = [
            ('A', 'B'), ('A', 'C'), ('B', 'C'), ('B', 'D'), ('C', 'E'),
            ('D', 'E'), ('D', 'F'), ('E', 'F'), ('C', 'G'), ('G', 'E'),
        ]
        self.graph = build_graph(planar_locations(self.coords), connections(self.pairs))

    def test_paths_are_optimal(self):
        for start, goal in itertools.permutations(self.coords, 2):
            result = self.planner.find_path(self.graph, start, goal)
            self.assertIsNotNone(result, f"{start}->{goal}")
            self.assertAlmostEqual(result.distance, brute_force_shortest(self.graph, start, goal))
            self.assertEqual(result.node_ids[0], start)
            self.assertEqual(result.node_ids[-1], goal)

    def test_distance_matches_waypoint_legs(self):
        result = self.planner.find_path(self.graph, 'A', 'F')
        legs = sum(GeoUtils.planar_distance(a.x, a.y, b.x, b.y)
                   for a, b in zip(result.waypoints, result.waypoints[1:]))
        self.assertAlmostEqual(result.distance, legs)
        self.assertEqual(result.steps, len(result.waypoints) - 1)

    def test_results_are_deterministic(self):
        first = self.planner.find_path(self.graph, 'A', 'F')
        for _ in range(5):
            graph = build_graph(planar_locations(self.coords), connections(self.pairs))
            self.assertEqual(self.planner.find_path(graph, 'A', 'F').node_ids, first.node_ids)

    def test_equal_cost_tie_follows_insertion_order(self):
        graph = build_graph(
            planar_locations({'A': (0, 0), 'B': (1, 0), 'C': (0, 1), 'D': (1, 1)}),
            connections([('A', 'B'), ('A', 'C'), ('B', 'D'), ('C', 'D')]),
        )
        result = self.planner.find_path(graph, 'A', 'D')
        self.assertEqual(result.node_ids, ['A', 'B', 'D'])
        self.assertAlmostEqual(result.distance, 2.0)

    def test_disconnected_nodes_return_none(self):
        graph = build_graph(planar_locations({'A': (0, 0), 'B': (1, 0), 'C': (5, 5)}),
                            connections([('A', 'B')]))
        self.assertIsNone(self.planner.find_path(graph, 'A', 'C'))

    def test_unknown_node_returns_none(self):
        self.assertIsNone(self.planner.find_path(self.graph, 'A', 'missing'))
        self.assertIsNone(self.planner.find_path(self.graph, 'missing', 'A'))

    def test_same_start_and_goal(self):
        result = self.planner.find_path(self.graph, 'C', 'C')
        self.assertEqual(result.node_ids, ['C'])
        self.assertEqual(result.distance, 0.0)
        self.assertEqual(result.steps, 0)

    def test_heading_and_distance_helpers(self):
        a, b = self.graph.nodes['A'], self.graph.nodes['C']
        wa, wb = Waypoint.from_node(a), Waypoint.from_node(b)
        self.assertAlmostEqual(self.planner.calculate_distance(wa, wb, CoordinateMode.PLANAR),
                               math.hypot(2, 5))
        self.assertAlmostEqual(self.planner.calculate_heading(wa, wb, CoordinateMode.PLANAR),
                               math.degrees(math.atan2(2, 5)))


if __name__ == '__main__':
    unittest.main()
