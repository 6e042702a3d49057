"""Human readable route instructions and display formatting"""
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .core.data_types import CoordinateMode, LocationNode, Waypoint
from .algorithms.geo_utils import GeoUtils

DEFAULT_WALKING_SPEED = 1.4  # m/s

CARDINAL_DIRECTIONS = ['north', 'northeast', 'east', 'southeast',
                       'south', 'southwest', 'west', 'northwest']


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _infer_mode(points: Sequence[Waypoint]) -> CoordinateMode:
    if all(point.has_planar for point in points):
        return CoordinateMode.PLANAR
    return CoordinateMode.GEODESIC


def leg_distance(a: Waypoint, b: Waypoint, mode: CoordinateMode) -> float:
    if mode == CoordinateMode.PLANAR:
        return GeoUtils.planar_distance(a.x, a.y, b.x, b.y)
    return GeoUtils.haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude)


def leg_bearing(a: Waypoint, b: Waypoint, mode: CoordinateMode) -> float:
    if mode == CoordinateMode.PLANAR:
        return GeoUtils.planar_bearing(a.x, a.y, b.x, b.y)
    return GeoUtils.calculate_bearing(a.latitude, a.longitude, b.latitude, b.longitude)


def generate_turn_instruction(current_bearing: float, next_bearing: float) -> str:
    """
    Turn instruction for a change of bearing

    Args:
        current_bearing: Bearing of the leg being walked (degrees)
        next_bearing: Bearing of the following leg (degrees)

    Returns:
        One of "Continue straight", "Slight left/right", "Turn left/right", "Turn around"
    """
    angle_diff = GeoUtils.normalize_angle(next_bearing - current_bearing)
    abs_angle = abs(angle_diff)

    if abs_angle < 15:
        return 'Continue straight'
    if abs_angle < 45:
        return 'Slight right' if angle_diff > 0 else 'Slight left'
    if abs_angle < 135:
        return 'Turn right' if angle_diff > 0 else 'Turn left'
    return 'Turn around'


def generate_path_instructions(waypoints: Sequence[Waypoint],
                               mode: Optional[CoordinateMode] = None) -> List[Dict[str, Any]]:
    """
    Step-by-step instructions for a route

    One entry per leg (instruction, leg distance, target waypoint, step index)
    followed by an arrival entry. The first leg is always "Continue straight".

    Args:
        waypoints: Route waypoints in travel order
        mode: Coordinate mode, inferred from the waypoints when omitted
    """
    if not waypoints or len(waypoints) < 2:
        return [{'instruction': 'You have arrived', 'distance': 0.0}]

    mode = mode or _infer_mode(waypoints)
    instructions = []
    for i in range(len(waypoints) - 1):
        current = waypoints[i]
        following = waypoints[i + 1]
        instruction = 'Continue straight'
        if i > 0:
            previous = waypoints[i - 1]
            instruction = generate_turn_instruction(
                leg_bearing(previous, current, mode),
                leg_bearing(current, following, mode),
            )
        instructions.append({
            'instruction': instruction,
            'distance': leg_distance(current, following, mode),
            'waypoint': following.to_dict(),
            'step_index': i + 1,
        })

    instructions.append({
        'instruction': 'You have arrived at your destination',
        'distance': 0.0,
        'waypoint': waypoints[-1].to_dict(),
        'step_index': len(waypoints),
    })
    return instructions


def cardinal_direction(bearing: float) -> str:
    """8-point compass name for a bearing (0 = north)"""
    index = int((GeoUtils.normalize_heading(bearing) + 22.5) // 45) % 8
    return CARDINAL_DIRECTIONS[index]


def format_distance(distance: float) -> str:
    """Format a distance in meters for display: 50cm, 5.7m, 1.5km"""
    if distance < 1:
        return f"{int(_round_half_up(distance * 100))}cm"
    if distance < 1000:
        return f"{_round_half_up(distance, 1):g}m"
    return f"{_round_half_up(distance / 1000, 1):g}km"


def format_time(seconds: Union[int, float]) -> str:
    """Format a duration for display: 30s, 2min, 1h 5min"""
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}min"
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    return f"{hours}h {minutes}min"


def estimate_walking_time(distance: float, walking_speed: float = DEFAULT_WALKING_SPEED) -> int:
    """Walking time in whole seconds, rounded up"""
    if walking_speed <= 0:
        raise ValueError(f"walking_speed must be positive, got {walking_speed}")
    return int(math.ceil(distance / walking_speed))


def calculate_map_bounds(locations: Iterable[Union[LocationNode, Dict[str, Any]]]) -> Optional[Dict[str, float]]:
    """
    Geographic bounds and planar extent of a set of locations

    Returns:
        Dict with north/south/east/west and map_width/map_height, or None
        when fewer than two locations carry latitude/longitude
    """
    nodes = [loc if isinstance(loc, LocationNode) else LocationNode.from_dict(loc)
             for loc in locations]
    geo = [node for node in nodes if node.has_geodesic]
    if len(geo) < 2:
        return None

    latitudes = [node.latitude for node in geo]
    longitudes = [node.longitude for node in geo]
    xs = [node.x for node in nodes if node.has_planar]
    ys = [node.y for node in nodes if node.has_planar]

    return {
        'north': max(latitudes),
        'south': min(latitudes),
        'east': max(longitudes),
        'west': min(longitudes),
        'map_width': max(xs) - min(xs) if xs else 0.0,
        'map_height': max(ys) - min(ys) if ys else 0.0,
    }
