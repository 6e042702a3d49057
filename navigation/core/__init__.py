"""Navigation core interfaces and data structures"""
from .interfaces import NavigationInterface, PathPlanner, PositionEstimatorInterface
from .data_types import (
    CoordinateMode, TrackerStatus, LocationNode, Edge, Graph, Waypoint, PathResult,
    FixSample, MotionSample, HeadingSample, PositionEstimate, NavigationState
)
from .errors import NavigationError, UncalibratedError, GraphInvariantError

__all__ = [
    'NavigationInterface',
    'PathPlanner',
    'PositionEstimatorInterface',
    'CoordinateMode',
    'TrackerStatus',
    'LocationNode',
    'Edge',
    'Graph',
    'Waypoint',
    'PathResult',
    'FixSample',
    'MotionSample',
    'HeadingSample',
    'PositionEstimate',
    'NavigationState',
    'NavigationError',
    'UncalibratedError',
    'GraphInvariantError',
]
