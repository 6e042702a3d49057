"""A* path planner over the location graph"""
import heapq
import logging
from typing import Dict, Iterable, List, Optional, Union, Any

from ..core.interfaces import PathPlanner
from ..core.data_types import (
    CoordinateMode, Edge, Graph, LocationNode, PathResult, Waypoint
)
from .geo_utils import GeoUtils

logger = logging.getLogger(__name__)


def _node_distance(a: Union[LocationNode, Waypoint], b: Union[LocationNode, Waypoint],
                   mode: CoordinateMode) -> float:
    if mode == CoordinateMode.PLANAR:
        return GeoUtils.planar_distance(a.x, a.y, b.x, b.y)
    return GeoUtils.haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude)


def _coerce_node(location: Union[LocationNode, Dict[str, Any]]) -> Optional[LocationNode]:
    if isinstance(location, LocationNode):
        return location
    try:
        return LocationNode.from_dict(location)
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        logger.debug(f"Dropping unusable location record {location!r}: {e}")
        return None


def build_graph(locations: Iterable[Union[LocationNode, Dict[str, Any]]],
                connections: Iterable[Dict[str, Any]]) -> Graph:
    """
    Build a weighted graph from location records and {from, to} connections

    The graph is planar when every usable node carries x/y, geodesic
    otherwise. Nodes without coordinates for that mode, connections to
    unknown nodes, self-loops and duplicate connections are dropped and
    counted in ``skipped_nodes`` / ``skipped_edges``.

    Args:
        locations: LocationNode objects or location dicts
        connections: Mappings with 'from' and 'to' node ids

    Returns:
        Graph ready for path finding
    """
    candidates: List[LocationNode] = []
    skipped_nodes = 0
    for location in locations:
        node = _coerce_node(location)
        if node is None:
            skipped_nodes += 1
            continue
        candidates.append(node)

    if candidates and all(node.has_planar for node in candidates):
        mode = CoordinateMode.PLANAR
    else:
        mode = CoordinateMode.GEODESIC

    nodes: Dict[str, LocationNode] = {}
    for node in candidates:
        usable = node.has_planar if mode == CoordinateMode.PLANAR else node.has_geodesic
        if not usable or node.id in nodes:
            skipped_nodes += 1
            continue
        nodes[node.id] = node

    edges: List[Edge] = []
    seen = set()
    skipped_edges = 0
    for connection in connections:
        try:
            source = str(connection['from'])
            target = str(connection['to'])
        except (KeyError, TypeError):
            skipped_edges += 1
            continue

        key = frozenset((source, target))
        if source == target or source not in nodes or target not in nodes or key in seen:
            skipped_edges += 1
            continue

        seen.add(key)
        edges.append(Edge(source=source, target=target,
                          cost=_node_distance(nodes[source], nodes[target], mode)))

    return Graph(nodes=nodes, edges=edges, mode=mode,
                 skipped_nodes=skipped_nodes, skipped_edges=skipped_edges)


class AStarPathPlanner(PathPlanner):
    """
    A* shortest path planner

    The heuristic is the straight-line distance to the goal in the graph's
    coordinate mode. Edge costs are straight-line distances too, so the
    heuristic is admissible and consistent and returned paths are optimal.
    """

    def find_path(self, graph: Graph, start_id: str, goal_id: str) -> Optional[PathResult]:
        """
        Find the shortest path between two node ids

        Args:
            graph: Graph built by build_graph()
            start_id: Starting node id
            goal_id: Goal node id

        Returns:
            PathResult from start to goal inclusive, or None when either node
            is missing or the nodes are not connected
        """
        if start_id not in graph or goal_id not in graph:
            logger.debug(f"Path request {start_id} -> {goal_id}: unknown node")
            return None

        if start_id == goal_id:
            node = graph.nodes[start_id]
            return PathResult(node_ids=[start_id], waypoints=[Waypoint.from_node(node)],
                              distance=0.0, mode=graph.mode)

        goal = graph.nodes[goal_id]
        counter = 0
        open_set: list = []
        heapq.heappush(open_set, (self._heuristic(graph, start_id, goal), counter, start_id))
        came_from: Dict[str, Optional[str]] = {start_id: None}
        cost_so_far: Dict[str, float] = {start_id: 0.0}
        closed = set()

        while open_set:
            _, _, current = heapq.heappop(open_set)
            if current in closed:
                continue
            if current == goal_id:
                return self._build_result(graph, came_from, goal_id, cost_so_far[goal_id])
            closed.add(current)

            for edge in graph.neighbors(current):
                neighbor = edge.other(current)
                if neighbor in closed:
                    continue
                new_cost = cost_so_far[current] + edge.cost
                if neighbor not in cost_so_far or new_cost < cost_so_far[neighbor]:
                    cost_so_far[neighbor] = new_cost
                    came_from[neighbor] = current
                    counter += 1
                    heapq.heappush(
                        open_set,
                        (new_cost + self._heuristic(graph, neighbor, goal), counter, neighbor)
                    )

        logger.debug(f"Path request {start_id} -> {goal_id}: nodes not connected")
        return None

    def calculate_heading(self, current: Waypoint, target: Waypoint, mode: CoordinateMode) -> float:
        """
        Calculate required heading to target

        Returns:
            Heading in degrees (0-360)
        """
        if mode == CoordinateMode.PLANAR:
            return GeoUtils.planar_bearing(current.x, current.y, target.x, target.y)
        return GeoUtils.calculate_bearing(current.latitude, current.longitude,
                                          target.latitude, target.longitude)

    def calculate_distance(self, point1: Waypoint, point2: Waypoint, mode: CoordinateMode) -> float:
        """Calculate distance between two points in meters"""
        return _node_distance(point1, point2, mode)

    @staticmethod
    def _heuristic(graph: Graph, node_id: str, goal: LocationNode) -> float:
        return _node_distance(graph.nodes[node_id], goal, graph.mode)

    @staticmethod
    def _build_result(graph: Graph, came_from: Dict[str, Optional[str]],
                      goal_id: str, distance: float) -> PathResult:
        node_ids = []
        current: Optional[str] = goal_id
        while current is not None:
            node_ids.append(current)
            current = came_from[current]
        node_ids.reverse()
        waypoints = [Waypoint.from_node(graph.nodes[node_id]) for node_id in node_ids]
        return PathResult(node_ids=node_ids, waypoints=waypoints,
                          distance=distance, mode=graph.mode)
