"""Navigation session wiring sensor streams, estimator and tracker"""
import logging
import threading
from typing import Callable, List, Optional

from .core.data_types import (
    FixSample, HeadingSample, MotionSample, NavigationState, PositionEstimate, TrackerStatus
)
from .core.subscriptions import Subscription
from .position_estimator import PositionEstimator
from .navigator import NavigationTracker, RouteInput
from config.settings import estimator_config, tracker_kwargs
from telemetry.metrics import NavigationMetrics

logger = logging.getLogger(__name__)


class NavigationSession:
    """
    One navigation attempt

    Owns the subscriptions between the sensor sources, the position
    estimator and the navigation tracker. Sessions are created explicitly per
    attempt; nothing is shared through module globals.
    """

    def __init__(self,
                 estimator: Optional[PositionEstimator] = None,
                 tracker: Optional[NavigationTracker] = None,
                 fix_source=None,
                 motion_source=None,
                 heading_source=None,
                 metrics: Optional[NavigationMetrics] = None):
        """
        Initialize navigation session

        Args:
            estimator: Position estimator (built from estimator_config if omitted)
            tracker: Navigation tracker (built from navigation_config if omitted)
            fix_source: Stream of FixSample, optional
            motion_source: Stream of MotionSample, optional
            heading_source: Stream of HeadingSample, optional
            metrics: Metrics collector (a new one is created if omitted)
        """
        self.estimator = estimator or PositionEstimator(**estimator_config)
        self.tracker = tracker or NavigationTracker(**tracker_kwargs())
        self.fix_source = fix_source
        self.motion_source = motion_source
        self.heading_source = heading_source
        self.metrics = metrics or NavigationMetrics()

        self._subscriptions: List[Subscription] = []
        self._active = False
        self._last_stale = False
        self._last_advancements = 0
        self._last_skipped = 0
        self._lock = threading.Lock()

    @property
    def is_active(self) -> bool:
        return self._active

    def start(self, route: RouteInput, skip_origin: bool = False) -> bool:
        """
        Start navigating a route

        Subscribes the estimator to the sensor sources and the tracker to the
        estimator. Calling start() on an active session replaces the route.

        Returns:
            True if the tracker accepted the route
        """
        with self._lock:
            if self._active:
                logger.info("Session already active - replacing route")
                self._last_advancements = 0
                self._last_skipped = 0
                return self.tracker.start(route, skip_origin=skip_origin)

            if not self.tracker.start(route, skip_origin=skip_origin):
                return False

            self._active = True
            self._last_stale = False
            self._last_advancements = 0
            self._last_skipped = 0
            self._subscriptions.append(self.tracker.subscribe(self._on_state))
            self._subscriptions.append(self.estimator.subscribe(self._on_estimate))
            if self.fix_source is not None:
                self._subscriptions.append(self.fix_source.subscribe(self._on_fix))
            if self.motion_source is not None:
                self._subscriptions.append(self.motion_source.subscribe(self._on_motion))
            if self.heading_source is not None:
                self._subscriptions.append(self.heading_source.subscribe(self._on_heading))

            logger.info(f"🚀 Navigation session started ({len(self._subscriptions)} subscriptions)")

        self._feed_current_estimate()
        return True

    def stop(self):
        """
        Stop the session

        Synchronous and idempotent: every subscription is released and the
        tracker is stopped before returning, so no tracker update happens
        afterwards.
        """
        with self._lock:
            if not self._active:
                return
            self._active = False
            subscriptions, self._subscriptions = self._subscriptions, []

        for subscription in reversed(subscriptions):
            subscription.unsubscribe()
        self.tracker.stop()

        self.metrics.samples_dropped = self.estimator.dropped_out_of_order
        self.metrics.update_steps(self.estimator.step_count)
        self.metrics.finish()
        logger.info(f"🛑 Navigation session stopped - {self.metrics.to_dict()}")

    def calibrate(self, latitude: float, longitude: float, planar_x: float = 0.0,
                  planar_y: float = 0.0, accuracy_m: Optional[float] = None):
        """Anchor the estimator at a confirmed reference point"""
        self.estimator.anchor(latitude, longitude, planar_x, planar_y, accuracy_m=accuracy_m)

    def skip_to_next(self) -> NavigationState:
        return self.tracker.skip_to_next()

    def get_state(self) -> NavigationState:
        """Latest navigation state, re-checking estimate freshness first"""
        self.check_freshness()
        return self.tracker.get_state()

    def check_freshness(self) -> bool:
        """
        Re-evaluate the estimate age against the wall clock

        Pushed estimates are fresh when published; one that has not been
        replaced within stale_after_ms only turns stale with time. When the
        stale flag changes the estimate is handed to the tracker again so the
        navigation state carries it.

        Returns:
            True if the current estimate is stale
        """
        if not self._active or not self.estimator.is_calibrated:
            return False
        estimate = self.estimator.current_estimate()
        if estimate.is_stale != self._last_stale:
            self._on_estimate(estimate)
        return estimate.is_stale

    def current_estimate(self) -> PositionEstimate:
        return self.estimator.current_estimate()

    def subscribe(self, callback: Callable[[NavigationState], None]) -> Subscription:
        """Register for navigation state updates"""
        return self.tracker.subscribe(callback)

    def _feed_current_estimate(self):
        """Evaluate the route against an estimate that already exists"""
        if not self.estimator.is_calibrated:
            return
        self._on_estimate(self.estimator.current_estimate())

    # ------------------------------------------------------------------
    # Stream handlers
    # ------------------------------------------------------------------

    def _on_fix(self, sample: FixSample):
        self.metrics.fixes_received += 1
        self.estimator.ingest_fix(sample.latitude, sample.longitude,
                                  sample.accuracy_m, sample.timestamp_ms)

    def _on_motion(self, sample: MotionSample):
        self.metrics.motion_samples += 1
        orientation = sample.rotation_matrix if sample.rotation_matrix is not None else sample.heading
        self.estimator.ingest_motion(sample.acceleration, orientation, sample.timestamp_ms)

    def _on_heading(self, sample: HeadingSample):
        self.metrics.heading_samples += 1
        self.estimator.ingest_heading(sample.heading, sample.timestamp_ms)

    def _on_estimate(self, estimate: PositionEstimate):
        if not self._active:
            return
        self.metrics.add_accuracy_sample(estimate.accuracy_m)
        self.metrics.update_steps(estimate.step_count)
        if estimate.is_stale and not self._last_stale:
            self.metrics.add_stale_event()
            logger.warning("⚠️  Position estimate is stale")
        self._last_stale = estimate.is_stale
        self.tracker.on_position_update(estimate)

    def _on_state(self, state: NavigationState):
        if state.advancements > self._last_advancements:
            self.metrics.add_waypoints_reached(state.advancements - self._last_advancements)
        if state.skipped_waypoints > self._last_skipped:
            self.metrics.add_waypoints_skipped(state.skipped_waypoints - self._last_skipped)
        self._last_advancements = state.advancements
        self._last_skipped = state.skipped_waypoints
        if state.status == TrackerStatus.ARRIVED:
            self.metrics.add_arrival()
            logger.info("🏁 Destination reached")
