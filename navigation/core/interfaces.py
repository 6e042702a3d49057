"""Navigation system interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List, Callable
from .data_types import (
    Waypoint, Graph, PathResult, PositionEstimate, NavigationState, CoordinateMode
)


class PathPlanner(ABC):
    """Interface for path planning algorithms"""

    @abstractmethod
    def find_path(self, graph: Graph, start_id: str, goal_id: str) -> Optional[PathResult]:
        """Shortest path from start to goal, or None when no path exists"""
        pass

    @abstractmethod
    def calculate_heading(self, current: Waypoint, target: Waypoint, mode: CoordinateMode) -> float:
        """Calculate required heading to target (in degrees)"""
        pass

    @abstractmethod
    def calculate_distance(self, point1: Waypoint, point2: Waypoint, mode: CoordinateMode) -> float:
        """Calculate distance between two waypoints (in meters)"""
        pass


class PositionEstimatorInterface(ABC):
    """Fuses absolute fixes and motion samples into one position estimate"""

    @abstractmethod
    def anchor(self, latitude: float, longitude: float, planar_x: float, planar_y: float):
        """Map one absolute coordinate onto one planar coordinate"""
        pass

    @abstractmethod
    def ingest_fix(self, latitude: float, longitude: float, accuracy_m: float,
                   timestamp_ms: float) -> bool:
        """Blend an absolute fix into the estimate"""
        pass

    @abstractmethod
    def ingest_motion(self, acceleration, orientation, timestamp_ms: float) -> bool:
        """Integrate a relative motion sample"""
        pass

    @abstractmethod
    def current_estimate(self) -> PositionEstimate:
        """Get latest estimate snapshot"""
        pass

    @abstractmethod
    def subscribe(self, callback: Callable[[PositionEstimate], None]):
        """Register for estimate updates; returns a subscription handle"""
        pass


class NavigationInterface(ABC):
    """Main navigation tracker interface"""

    @abstractmethod
    def start(self, route: List[Waypoint], skip_origin: bool = False,
              mode: Optional[CoordinateMode] = None) -> bool:
        """Start navigation along a route"""
        pass

    @abstractmethod
    def on_position_update(self, estimate: PositionEstimate) -> NavigationState:
        """Recompute navigation state from a new position estimate"""
        pass

    @abstractmethod
    def skip_to_next(self) -> NavigationState:
        """Force advancement to the next waypoint"""
        pass

    @abstractmethod
    def get_state(self) -> NavigationState:
        """Get current navigation state"""
        pass

    @abstractmethod
    def stop(self):
        """Stop navigation"""
        pass
