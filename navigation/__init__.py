"""Pedestrian navigation core"""
from .navigator import NavigationTracker
from .position_estimator import PositionEstimator
from .session import NavigationSession
from .waypoint_manager import RouteWaypointManager
from .algorithms.path_planner import AStarPathPlanner, build_graph

__all__ = ['NavigationTracker', 'PositionEstimator', 'NavigationSession',
           'RouteWaypointManager', 'AStarPathPlanner', 'build_graph']
