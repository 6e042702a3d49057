"""Route waypoint cursor"""
from typing import List, Optional
from .core.data_types import Waypoint
import logging

logger = logging.getLogger(__name__)


class RouteWaypointManager:
    """Ordered waypoint list with a forward-only cursor"""

    def __init__(self):
        self._waypoints: List[Waypoint] = []
        self._current_index = 0

    def load(self, waypoints: List[Waypoint], start_index: int = 0):
        """
        Replace the route and position the cursor

        Args:
            waypoints: Route waypoints in travel order
            start_index: Index of the first target
        """
        self._waypoints = list(waypoints)
        self._current_index = min(max(0, start_index), len(self._waypoints))
        logger.info(f"🗺️  Route loaded with {len(self._waypoints)} waypoints, "
                    f"first target #{self._current_index + 1}")

    @property
    def current_index(self) -> int:
        return self._current_index

    def get_current_waypoint(self) -> Optional[Waypoint]:
        """Get current target without advancing"""
        if self._current_index < len(self._waypoints):
            return self._waypoints[self._current_index]
        return None

    def is_last(self) -> bool:
        """True when the current target is the final waypoint"""
        return self._current_index == len(self._waypoints) - 1

    def advance_to_next(self) -> bool:
        """
        Move to next waypoint in route

        Returns:
            True if advanced, False if the current target is already the last one
        """
        if self._current_index < len(self._waypoints) - 1:
            self._current_index += 1
            current_wp = self._waypoints[self._current_index]
            logger.info(f"⏭️  Advanced to waypoint #{self._current_index + 1}/{len(self._waypoints)}: "
                        f"'{current_wp.name or current_wp.node_id or 'Unnamed'}'")
            return True
        return False

    def clear(self):
        """Clear all waypoints"""
        count = len(self._waypoints)
        self._waypoints = []
        self._current_index = 0
        if count:
            logger.info(f"🗑️  Cleared {count} waypoint(s) from route")

    def get_all_waypoints(self) -> List[Waypoint]:
        return self._waypoints.copy()

    def get_remaining_count(self) -> int:
        """Number of waypoints remaining (including current)"""
        return max(0, len(self._waypoints) - self._current_index)

    def __len__(self) -> int:
        return len(self._waypoints)
