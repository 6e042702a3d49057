"""Data structures for navigation system"""
import math
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Sequence, Tuple
from enum import Enum

from .errors import GraphInvariantError


class CoordinateMode(Enum):
    """Coordinate space used by a graph, a route or a navigation session"""
    PLANAR = "planar"
    GEODESIC = "geodesic"


class TrackerStatus(Enum):
    """Current navigation tracker status"""
    IDLE = "idle"
    NAVIGATING = "navigating"
    ARRIVED = "arrived"


def _optional_float(value) -> Optional[float]:
    if value is None or value == '':
        return None
    return float(value)


@dataclass(frozen=True)
class LocationNode:
    """A known location in the navigation graph"""
    id: str
    x: Optional[float] = None
    y: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    floor: Optional[int] = None
    name: Optional[str] = None
    category: Optional[str] = None
    building: Optional[str] = None

    @property
    def has_planar(self) -> bool:
        return self.x is not None and self.y is not None

    @property
    def has_geodesic(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LocationNode':
        """
        Build a node from a location record

        Accepts either flat ``x``/``y`` keys or a ``coordinates`` mapping.
        Raises KeyError/ValueError/TypeError on unusable records.
        """
        coordinates = data.get('coordinates') or {}
        floor = data.get('floor')
        return cls(
            id=str(data['id']),
            x=_optional_float(data.get('x', coordinates.get('x'))),
            y=_optional_float(data.get('y', coordinates.get('y'))),
            latitude=_optional_float(data.get('latitude')),
            longitude=_optional_float(data.get('longitude')),
            floor=int(floor) if floor is not None else None,
            name=data.get('name'),
            category=data.get('category'),
            building=data.get('building'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'x': self.x,
            'y': self.y,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'floor': self.floor,
            'name': self.name,
            'category': self.category,
            'building': self.building,
        }


@dataclass(frozen=True)
class Edge:
    """Undirected weighted connection between two nodes"""
    source: str
    target: str
    cost: float

    def other(self, node_id: str) -> str:
        return self.target if node_id == self.source else self.source


@dataclass(frozen=True)
class Waypoint:
    """Represents one point along a planned route"""
    x: Optional[float] = None
    y: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    node_id: Optional[str] = None
    name: Optional[str] = None
    floor: Optional[int] = None

    @property
    def has_planar(self) -> bool:
        return self.x is not None and self.y is not None

    @property
    def has_geodesic(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def supports(self, mode: CoordinateMode) -> bool:
        """True if the waypoint carries coordinates for the given mode"""
        if mode == CoordinateMode.PLANAR:
            return self.has_planar
        return self.has_geodesic

    @classmethod
    def from_node(cls, node: LocationNode) -> 'Waypoint':
        return cls(
            x=node.x,
            y=node.y,
            latitude=node.latitude,
            longitude=node.longitude,
            node_id=node.id,
            name=node.name,
            floor=node.floor,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Waypoint':
        """Build a waypoint from a planner or external directions payload"""
        return cls(
            x=_optional_float(data.get('x')),
            y=_optional_float(data.get('y')),
            latitude=_optional_float(data.get('latitude', data.get('lat'))),
            longitude=_optional_float(data.get('longitude', data.get('lon'))),
            node_id=data.get('node_id', data.get('id')),
            name=data.get('name'),
            floor=data.get('floor'),
        )

    def to_dict(self):
        return {
            'x': self.x,
            'y': self.y,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'node_id': self.node_id,
            'name': self.name,
            'floor': self.floor,
        }


@dataclass(frozen=True)
class PathResult:
    """Shortest path returned by the route planner"""
    node_ids: List[str]
    waypoints: List[Waypoint]
    distance: float
    mode: CoordinateMode

    @property
    def steps(self) -> int:
        return max(0, len(self.waypoints) - 1)

    def to_dict(self):
        return {
            'node_ids': list(self.node_ids),
            'waypoints': [wp.to_dict() for wp in self.waypoints],
            'distance': self.distance,
            'steps': self.steps,
            'mode': self.mode.value,
        }


@dataclass(frozen=True)
class FixSample:
    """Absolute position fix from satellite positioning"""
    latitude: float
    longitude: float
    accuracy_m: float
    timestamp_ms: float


@dataclass(frozen=True)
class MotionSample:
    """Relative motion sample: linear acceleration (gravity removed) plus orientation"""
    acceleration: Tuple[float, float, float]
    timestamp_ms: float
    heading: Optional[float] = None
    rotation_matrix: Optional[Sequence[Sequence[float]]] = None


@dataclass(frozen=True)
class HeadingSample:
    """Device compass heading in degrees (0 = north)"""
    heading: float
    timestamp_ms: float


@dataclass(frozen=True)
class PositionEstimate:
    """Immutable snapshot of the fused position estimate"""
    x: Optional[float]
    y: Optional[float]
    latitude: Optional[float]
    longitude: Optional[float]
    accuracy_m: Optional[float]
    heading: Optional[float]
    timestamp_ms: float
    is_stale: bool = False
    step_count: int = 0

    def supports(self, mode: CoordinateMode) -> bool:
        if mode == CoordinateMode.PLANAR:
            return self.x is not None and self.y is not None
        return self.latitude is not None and self.longitude is not None

    def to_dict(self):
        return {
            'x': self.x,
            'y': self.y,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'accuracy_m': self.accuracy_m,
            'heading': self.heading,
            'timestamp_ms': self.timestamp_ms,
            'is_stale': self.is_stale,
            'step_count': self.step_count,
        }


@dataclass(frozen=True)
class NavigationState:
    """Complete navigation state handed to the presentation layer"""
    status: TrackerStatus
    waypoint_index: int
    total_waypoints: int
    distance_to_next: Optional[float] = None  # meters
    bearing_to_next: Optional[float] = None  # degrees, 0-360
    relative_bearing: Optional[float] = None  # degrees, (-180, 180]
    arrived: bool = False
    target: Optional[Waypoint] = None
    heading: Optional[float] = None
    accuracy_m: Optional[float] = None
    is_stale: bool = False
    advancements: int = 0
    skipped_waypoints: int = 0

    @classmethod
    def idle(cls) -> 'NavigationState':
        return cls(status=TrackerStatus.IDLE, waypoint_index=0, total_waypoints=0)

    def to_dict(self):
        return {
            'status': self.status.value,
            'waypoint_index': self.waypoint_index,
            'total_waypoints': self.total_waypoints,
            'distance_to_next': self.distance_to_next,
            'bearing_to_next': self.bearing_to_next,
            'relative_bearing': self.relative_bearing,
            'arrived': self.arrived,
            'target': self.target.to_dict() if self.target else None,
            'heading': self.heading,
            'accuracy_m': self.accuracy_m,
            'is_stale': self.is_stale,
            'advancements': self.advancements,
            'skipped_waypoints': self.skipped_waypoints,
        }


@dataclass
class Graph:
    """
    Weighted location graph for a single route request

    Built fresh per request and not mutated afterwards. Adjacency lists keep
    edge insertion order so that A* expansion is reproducible.
    """
    nodes: Dict[str, LocationNode]
    edges: List[Edge]
    mode: CoordinateMode
    skipped_nodes: int = 0
    skipped_edges: int = 0
    _adjacency: Dict[str, List[Edge]] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        valid_edges = []
        for edge in self.edges:
            if math.isnan(edge.cost) or edge.cost < 0:
                raise GraphInvariantError(
                    f"Edge {edge.source}-{edge.target} has invalid cost {edge.cost}"
                )
            if edge.source not in self.nodes or edge.target not in self.nodes:
                self.skipped_edges += 1
                continue
            valid_edges.append(edge)
            self._adjacency.setdefault(edge.source, []).append(edge)
            self._adjacency.setdefault(edge.target, []).append(edge)
        self.edges = valid_edges

    def neighbors(self, node_id: str) -> List[Edge]:
        return self._adjacency.get(node_id, [])

    def __contains__(self, node_id: str) -> bool:
        return node_id in self.nodes
