"""Navigation tracker implementation"""
import logging
import threading
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .core.interfaces import NavigationInterface
from .core.data_types import (
    CoordinateMode, NavigationState, PathResult, PositionEstimate,
    TrackerStatus, Waypoint
)
from .core.subscriptions import SubscriberList, Subscription
from .algorithms.geo_utils import GeoUtils
from .algorithms.path_planner import AStarPathPlanner
from .waypoint_manager import RouteWaypointManager

logger = logging.getLogger(__name__)

RouteInput = Union[PathResult, Sequence[Union[Waypoint, dict]]]


class NavigationTracker(NavigationInterface):
    """
    Follows a planned route against a stream of position estimates

    Holds the route, the index of the current target and the latest
    NavigationState. Every position update recomputes distance and bearing to
    the target, advances through waypoints that are within the adaptive
    threshold and detects arrival at the final waypoint.
    """

    def __init__(self,
                 base_threshold_m: float = 10.0,
                 accuracy_margin_m: float = 5.0,
                 final_threshold_m: float = 5.0,
                 arrival_confirm_m: float = 8.0,
                 default_accuracy_m: float = 5.0):
        """
        Initialize navigation tracker

        Args:
            base_threshold_m: Minimum pass radius for intermediate waypoints
            accuracy_margin_m: Added to the estimate accuracy for the pass radius
            final_threshold_m: Arrival radius for the final waypoint
            arrival_confirm_m: Secondary arrival check for the final waypoint
            default_accuracy_m: Accuracy assumed when the estimate carries none
        """
        self.base_threshold_m = base_threshold_m
        self.accuracy_margin_m = accuracy_margin_m
        self.final_threshold_m = final_threshold_m
        self.arrival_confirm_m = arrival_confirm_m
        self.default_accuracy_m = default_accuracy_m

        # Components
        self.path_planner = AStarPathPlanner()
        self.waypoint_manager = RouteWaypointManager()

        # State
        self._status = TrackerStatus.IDLE
        self._mode = CoordinateMode.PLANAR
        self._state = NavigationState.idle()
        self._last_estimate: Optional[PositionEstimate] = None
        self._advancements = 0
        self._skipped_waypoints = 0
        self.dropped_waypoints = 0

        # Thread safety; reentrant so subscribers may read state during delivery
        self._lock = threading.RLock()
        self._subscribers: SubscriberList[NavigationState] = SubscriberList("NavigationTracker")

        logger.info(f"Navigation tracker initialized (pass radius max({base_threshold_m}, "
                    f"accuracy + {accuracy_margin_m})m, arrival < {final_threshold_m}m)")

    # ------------------------------------------------------------------
    # Route lifecycle
    # ------------------------------------------------------------------

    def start(self, route: RouteInput, skip_origin: bool = False,
              mode: Optional[CoordinateMode] = None) -> bool:
        """
        Start navigation along a route

        Args:
            route: PathResult or sequence of Waypoint objects / waypoint dicts
            skip_origin: First waypoint is the user's current location, begin at index 1
            mode: Coordinate mode; inferred from the waypoints when omitted

        Returns:
            True if navigation started, False if the route has no usable waypoint
        """
        if isinstance(route, PathResult):
            mode = mode or route.mode
            route = route.waypoints
        waypoints = [wp if isinstance(wp, Waypoint) else Waypoint.from_dict(wp) for wp in route or []]

        if mode is None:
            mode = (CoordinateMode.PLANAR
                    if waypoints and all(wp.has_planar for wp in waypoints)
                    else CoordinateMode.GEODESIC)

        usable = [wp for wp in waypoints if wp.supports(mode)]
        dropped = len(waypoints) - len(usable)

        with self._lock:
            if self._status == TrackerStatus.NAVIGATING:
                logger.info("Replacing active route")

            self._reset()
            self.dropped_waypoints = dropped
            if dropped:
                logger.warning(f"⚠️  Dropped {dropped} waypoint(s) without {mode.value} coordinates")

            if not usable:
                logger.warning("No waypoints to navigate to")
                return False

            start_index = 1 if skip_origin and len(usable) > 1 else 0
            self._mode = mode
            self.waypoint_manager.load(usable, start_index)
            self._status = TrackerStatus.NAVIGATING
            self._state = self._build_state()

            target = self.waypoint_manager.get_current_waypoint()
            logger.info(f"🚀 Navigation started ({mode.value}) - first target: "
                        f"'{target.name or target.node_id or 'Unnamed'}'")
            self._subscribers.publish(self._state)
            return True

    def stop(self):
        """
        Stop navigation

        Idempotent. Once it returns no further state is published until the
        next start().
        """
        with self._lock:
            if self._status == TrackerStatus.IDLE and not len(self.waypoint_manager):
                logger.debug("Navigation tracker already stopped - OK")
                return
            self._reset()
            logger.info("Navigation tracker stopped")

    def _reset(self):
        self._status = TrackerStatus.IDLE
        self.waypoint_manager.clear()
        self._last_estimate = None
        self._advancements = 0
        self._skipped_waypoints = 0
        self.dropped_waypoints = 0
        self._state = NavigationState.idle()

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def on_position_update(self, estimate: PositionEstimate) -> NavigationState:
        """
        Recompute navigation state from a new position estimate

        Waypoints passed by this estimate are advanced in the same call, so a
        single update may move several waypoints ahead or reach arrival.

        Returns:
            The new (or unchanged) NavigationState
        """
        with self._lock:
            if self._status != TrackerStatus.NAVIGATING:
                return self._state

            if not estimate.supports(self._mode):
                logger.debug(f"Estimate without {self._mode.value} coordinates ignored")
                return self._state

            if (self._last_estimate is not None
                    and estimate.timestamp_ms < self._last_estimate.timestamp_ms):
                logger.debug(f"Outdated estimate ignored ({estimate.timestamp_ms:.0f} < "
                             f"{self._last_estimate.timestamp_ms:.0f})")
                return self._state

            self._last_estimate = estimate
            self._advance_through_passed(estimate)
            self._state = self._build_state()
            self._subscribers.publish(self._state)
            return self._state

    def skip_to_next(self) -> NavigationState:
        """
        Force advancement to the next waypoint

        From the final waypoint this completes navigation (ARRIVED).
        """
        with self._lock:
            if self._status != TrackerStatus.NAVIGATING:
                return self._state

            self._skipped_waypoints += 1
            if self.waypoint_manager.advance_to_next():
                logger.info(f"⏭️  Waypoint skipped ({self.waypoint_manager.get_remaining_count()} remaining)")
                if self._last_estimate is not None:
                    self._advance_through_passed(self._last_estimate)
            else:
                self._status = TrackerStatus.ARRIVED
                logger.info("🏁 Final waypoint skipped - navigation complete")

            self._state = self._build_state()
            self._subscribers.publish(self._state)
            return self._state

    def _advance_through_passed(self, estimate: PositionEstimate):
        """Advance past every waypoint the estimate is within range of"""
        accuracy = estimate.accuracy_m if estimate.accuracy_m is not None else self.default_accuracy_m
        pass_radius = max(self.base_threshold_m, accuracy + self.accuracy_margin_m)

        while self._status == TrackerStatus.NAVIGATING:
            target = self.waypoint_manager.get_current_waypoint()
            distance, _ = self._measure(estimate, target)
            name = target.name or target.node_id or 'Unnamed'

            if self.waypoint_manager.is_last():
                if distance < self.final_threshold_m and distance < self.arrival_confirm_m:
                    self._status = TrackerStatus.ARRIVED
                    logger.info(f"🏁 Arrived at '{name}' ({distance:.1f}m)")
                return

            if distance >= pass_radius:
                return

            logger.info(f"✅ Waypoint {self.waypoint_manager.current_index + 1}/"
                        f"{len(self.waypoint_manager)} reached: '{name}' "
                        f"({distance:.1f}m < {pass_radius:.1f}m)")
            self.waypoint_manager.advance_to_next()
            self._advancements += 1

    def _measure(self, estimate: PositionEstimate, target: Waypoint) -> Tuple[float, float]:
        """Distance (m) and bearing (degrees) from the estimate to the target"""
        current = Waypoint(x=estimate.x, y=estimate.y,
                           latitude=estimate.latitude, longitude=estimate.longitude)
        distance = self.path_planner.calculate_distance(current, target, self._mode)
        bearing = self.path_planner.calculate_heading(current, target, self._mode)
        return distance, bearing

    def _build_state(self) -> NavigationState:
        """Assemble an immutable snapshot; caller holds the lock"""
        target = self.waypoint_manager.get_current_waypoint()
        estimate = self._last_estimate
        distance = bearing = relative = None

        if estimate is not None and target is not None:
            distance, bearing = self._measure(estimate, target)
            if estimate.heading is not None:
                relative = GeoUtils.normalize_angle(bearing - estimate.heading)

        return NavigationState(
            status=self._status,
            waypoint_index=self.waypoint_manager.current_index,
            total_waypoints=len(self.waypoint_manager),
            distance_to_next=distance,
            bearing_to_next=bearing,
            relative_bearing=relative,
            arrived=self._status == TrackerStatus.ARRIVED,
            target=target,
            heading=estimate.heading if estimate else None,
            accuracy_m=estimate.accuracy_m if estimate else None,
            is_stale=estimate.is_stale if estimate else False,
            advancements=self._advancements,
            skipped_waypoints=self._skipped_waypoints,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_state(self) -> NavigationState:
        """Get latest immutable navigation state"""
        with self._lock:
            return self._state

    @property
    def status(self) -> TrackerStatus:
        return self._status

    @property
    def mode(self) -> CoordinateMode:
        return self._mode

    @property
    def skipped_waypoints(self) -> int:
        return self._skipped_waypoints

    def get_waypoints(self) -> List[Waypoint]:
        with self._lock:
            return self.waypoint_manager.get_all_waypoints()

    def subscribe(self, callback: Callable[[NavigationState], None]) -> Subscription:
        """Register for navigation state updates"""
        return self._subscribers.add(callback)
