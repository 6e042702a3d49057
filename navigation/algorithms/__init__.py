"""Navigation algorithms implementations"""
from .geo_utils import GeoUtils, LocalProjection
from .path_planner import AStarPathPlanner, build_graph
from .heading_filter import HeadingFilter
from .step_detector import StepDetector

__all__ = ['GeoUtils', 'LocalProjection', 'AStarPathPlanner', 'build_graph',
           'HeadingFilter', 'StepDetector']
