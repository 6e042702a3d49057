"""Position estimator fusing absolute fixes with pedestrian dead reckoning"""
import logging
import math
import threading
import time
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

from .core.interfaces import PositionEstimatorInterface
from .core.data_types import PositionEstimate
from .core.errors import UncalibratedError
from .core.subscriptions import SubscriberList, Subscription
from .algorithms.geo_utils import GeoUtils, LocalProjection
from .algorithms.heading_filter import HeadingFilter
from .algorithms.step_detector import StepDetector

logger = logging.getLogger(__name__)


def _wall_clock_ms() -> float:
    return time.time() * 1000.0


def heading_from_rotation_matrix(matrix: Sequence[Sequence[float]]) -> float:
    """
    Azimuth of a device-to-world rotation matrix (row-major, world = east/north/up)

    Returns:
        Heading in degrees [0, 360), 0 = north
    """
    azimuth = math.degrees(math.atan2(matrix[0][1], matrix[1][1]))
    return GeoUtils.normalize_heading(azimuth)


class PositionEstimator(PositionEstimatorInterface):
    """
    Single best-estimate position for one navigation session

    Dead reckoning runs in the planar map frame (x = east, y = north).
    Absolute fixes are projected into that frame through a one-time anchor
    and blended in with a weight taken from their accuracy radius. Every
    applied sample produces a new immutable PositionEstimate which replaces
    the previous one as a whole and is pushed to subscribers.
    """

    def __init__(self,
                 step_length: float = 0.5,
                 step_threshold: float = 1.5,
                 step_debounce_ms: float = 300.0,
                 movement_threshold: float = 0.15,
                 velocity_decay: float = 0.95,
                 max_velocity: float = 2.0,
                 heading_smoothing: float = 0.2,
                 stale_after_ms: float = 5000.0,
                 max_motion_gap_ms: float = 1000.0,
                 high_accuracy_m: float = 5.0,
                 low_accuracy_m: float = 15.0,
                 high_accuracy_weight: float = 0.8,
                 medium_accuracy_weight: float = 0.5,
                 step_drift_m: float = 0.05,
                 anchor_accuracy_m: float = 1.0,
                 auto_anchor: bool = True,
                 clock: Optional[Callable[[], float]] = None):
        """
        Initialize position estimator

        Args:
            step_length: Distance advanced per detected step (meters)
            step_threshold: Acceleration magnitude that counts as a step (m/s^2)
            step_debounce_ms: Minimum interval between two steps
            movement_threshold: Horizontal acceleration below which velocity decays
            velocity_decay: Per-sample velocity multiplier while not moving
            max_velocity: Cap on the integrated velocity (m/s)
            heading_smoothing: EMA factor for heading readings
            stale_after_ms: Age after which the estimate is flagged stale
            max_motion_gap_ms: Motion gap after which carried velocity is dropped
            high_accuracy_m: Fixes at or below this radius get the high weight
            low_accuracy_m: Fixes above this radius are ignored
            high_accuracy_weight: Blend weight for high accuracy fixes
            medium_accuracy_weight: Blend weight for medium accuracy fixes
            step_drift_m: Accuracy radius growth per dead-reckoned step
            anchor_accuracy_m: Accuracy radius right after an explicit anchor
            auto_anchor: Anchor on the first usable fix when no anchor was set
            clock: Wall clock in milliseconds (defaults to time.time())
        """
        self.step_length = step_length
        self.movement_threshold = movement_threshold
        self.velocity_decay = velocity_decay
        self.max_velocity = max_velocity
        self.stale_after_ms = stale_after_ms
        self.max_motion_gap_ms = max_motion_gap_ms
        self.high_accuracy_m = high_accuracy_m
        self.low_accuracy_m = low_accuracy_m
        self.high_accuracy_weight = high_accuracy_weight
        self.medium_accuracy_weight = medium_accuracy_weight
        self.step_drift_m = step_drift_m
        self.anchor_accuracy_m = anchor_accuracy_m
        self.auto_anchor = auto_anchor
        self._clock = clock or _wall_clock_ms

        self._heading_filter = HeadingFilter(smoothing=heading_smoothing)
        self._step_detector = StepDetector(threshold=step_threshold, debounce_ms=step_debounce_ms)

        # State
        self._projection: Optional[LocalProjection] = None
        self._x = 0.0
        self._y = 0.0
        self._vx = 0.0
        self._vy = 0.0
        self._accuracy: Optional[float] = None
        self._last_sample_ms: Optional[float] = None  # sensor time, for ordering
        self._last_motion_ms: Optional[float] = None
        self._last_update_clock_ms: Optional[float] = None  # wall clock, for staleness
        self._latest: Optional[PositionEstimate] = None

        # Counters
        self.fixes_applied = 0
        self.fixes_ignored = 0
        self.dropped_out_of_order = 0

        self._lock = threading.Lock()
        self._subscribers: SubscriberList[PositionEstimate] = SubscriberList("PositionEstimator")

        logger.info(f"Position estimator initialized (step={step_length}m, "
                    f"fix weights {high_accuracy_weight}/{medium_accuracy_weight}, "
                    f"ignore fixes > {low_accuracy_m}m)")

    # ------------------------------------------------------------------
    # Calibration
    # ------------------------------------------------------------------

    @property
    def is_calibrated(self) -> bool:
        return self._projection is not None

    def anchor(self, latitude: float, longitude: float, planar_x: float = 0.0,
               planar_y: float = 0.0, accuracy_m: Optional[float] = None):
        """
        Pin an absolute coordinate onto a planar map coordinate

        Called when a known reference point (e.g. a scanned marker) is
        confirmed. Resets position and carried velocity to the anchor.
        """
        with self._lock:
            self._set_anchor(latitude, longitude, planar_x, planar_y,
                             accuracy_m if accuracy_m is not None else self.anchor_accuracy_m)
            timestamp = self._last_sample_ms if self._last_sample_ms is not None else self._clock()
            snapshot = self._publish_snapshot(timestamp)
        logger.info(f"📍 Anchored ({latitude:.7f}, {longitude:.7f}) -> map ({planar_x:.2f}, {planar_y:.2f})")
        self._subscribers.publish(snapshot)

    def _set_anchor(self, latitude: float, longitude: float, planar_x: float,
                    planar_y: float, accuracy_m: float):
        self._projection = LocalProjection(latitude, longitude, planar_x, planar_y)
        self._x = planar_x
        self._y = planar_y
        self._vx = 0.0
        self._vy = 0.0
        self._accuracy = accuracy_m

    # ------------------------------------------------------------------
    # Absolute fixes
    # ------------------------------------------------------------------

    def fusion_weight(self, accuracy_m: float) -> float:
        """
        Blend weight of a fix with the given accuracy radius

        Returns:
            High weight at or below high_accuracy_m, medium weight up to
            low_accuracy_m, 0.0 above it
        """
        if accuracy_m is None or math.isnan(accuracy_m) or accuracy_m < 0:
            return 0.0
        if accuracy_m <= self.high_accuracy_m:
            return self.high_accuracy_weight
        if accuracy_m <= self.low_accuracy_m:
            return self.medium_accuracy_weight
        return 0.0

    def ingest_fix(self, latitude: float, longitude: float, accuracy_m: float,
                   timestamp_ms: float) -> bool:
        """
        Blend an absolute fix into the estimate

        Args:
            latitude, longitude: Fix coordinates in degrees
            accuracy_m: Accuracy radius in meters (lower is better)
            timestamp_ms: Sensor timestamp

        Returns:
            True if the fix moved the estimate, False if it was dropped or ignored
        """
        with self._lock:
            if not self._accept_timestamp(timestamp_ms, "fix"):
                return False

            weight = self.fusion_weight(accuracy_m)

            if self._projection is None:
                if not self.auto_anchor or weight == 0.0:
                    self.fixes_ignored += 1
                    logger.debug(f"Fix ignored before calibration (accuracy {accuracy_m}m)")
                    return False
                self._set_anchor(latitude, longitude, 0.0, 0.0, accuracy_m)
                self.fixes_applied += 1
                logger.info(f"📍 Auto-anchored on first fix ({latitude:.7f}, {longitude:.7f}), "
                            f"accuracy {accuracy_m:.1f}m")
                snapshot = self._publish_snapshot(timestamp_ms)
            elif weight == 0.0:
                self.fixes_ignored += 1
                logger.debug(f"⚠️ Fix accuracy too low ({accuracy_m}m) - dead reckoning only")
                return False
            else:
                fix_x, fix_y = self._projection.to_planar(latitude, longitude)
                self._x = self._x * (1 - weight) + fix_x * weight
                self._y = self._y * (1 - weight) + fix_y * weight
                if self._accuracy is None:
                    self._accuracy = accuracy_m
                else:
                    self._accuracy = self._accuracy * (1 - weight) + accuracy_m * weight
                self.fixes_applied += 1
                logger.debug(f"Fix fused (weight {weight}, accuracy {accuracy_m}m) -> "
                             f"({self._x:.2f}, {self._y:.2f})")
                snapshot = self._publish_snapshot(timestamp_ms)

        self._subscribers.publish(snapshot)
        return True

    # ------------------------------------------------------------------
    # Relative motion
    # ------------------------------------------------------------------

    def ingest_motion(self, acceleration: Sequence[float], orientation: Any,
                      timestamp_ms: float) -> bool:
        """
        Integrate a motion sample

        Args:
            acceleration: (x, y, z) linear acceleration in the device frame,
                gravity removed; y points forward, x to the right
            orientation: Heading in degrees, a 3x3 rotation matrix, or a
                mapping with 'heading' or 'rotation_matrix'
            timestamp_ms: Sensor timestamp

        Returns:
            True if the sample was applied to the position
        """
        acceleration = self._as_vector(acceleration)
        raw_heading = self._heading_from_orientation(orientation)

        with self._lock:
            if not self._accept_timestamp(timestamp_ms, "motion"):
                return False

            if raw_heading is not None:
                self._heading_filter.update(raw_heading)

            dt = self._motion_interval(timestamp_ms)
            self._last_motion_ms = timestamp_ms

            if self._projection is None:
                return False

            heading = self._heading_filter.heading or 0.0
            heading_rad = math.radians(heading)

            if self._step_detector.detect(acceleration, timestamp_ms):
                self._x += math.sin(heading_rad) * self.step_length
                self._y += math.cos(heading_rad) * self.step_length
                if self._accuracy is not None:
                    self._accuracy += self.step_drift_m
                logger.debug(f"👣 Step {self._step_detector.step_count} detected, heading {heading:.0f}°")

            ax, ay = acceleration[0], acceleration[1]
            if math.hypot(ax, ay) > self.movement_threshold:
                # Device frame (right, forward) to world frame (east, north)
                world_ax = ax * math.cos(heading_rad) + ay * math.sin(heading_rad)
                world_ay = -ax * math.sin(heading_rad) + ay * math.cos(heading_rad)
                self._vx += world_ax * dt
                self._vy += world_ay * dt
                speed = math.hypot(self._vx, self._vy)
                if speed > self.max_velocity:
                    self._vx = self._vx / speed * self.max_velocity
                    self._vy = self._vy / speed * self.max_velocity
            else:
                self._vx *= self.velocity_decay
                self._vy *= self.velocity_decay

            self._x += self._vx * dt
            self._y += self._vy * dt
            snapshot = self._publish_snapshot(timestamp_ms)

        self._subscribers.publish(snapshot)
        return True

    def ingest_heading(self, heading: float, timestamp_ms: float) -> bool:
        """
        Blend a compass heading reading into the smoothed heading

        Returns:
            True if the reading was applied
        """
        with self._lock:
            if not self._accept_timestamp(timestamp_ms, "heading"):
                return False
            self._heading_filter.update(heading)
            if self._projection is None:
                return True
            snapshot = self._publish_snapshot(timestamp_ms)

        self._subscribers.publish(snapshot)
        return True

    def _motion_interval(self, timestamp_ms: float) -> float:
        """Seconds since the previous motion sample; 0 after a gap"""
        if self._last_motion_ms is None:
            return 0.0
        gap_ms = timestamp_ms - self._last_motion_ms
        if gap_ms > self.max_motion_gap_ms:
            if self._vx or self._vy:
                logger.debug(f"Motion gap {gap_ms:.0f}ms - dropping carried velocity")
            self._vx = 0.0
            self._vy = 0.0
            return 0.0
        return gap_ms / 1000.0

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    @property
    def heading(self) -> Optional[float]:
        return self._heading_filter.heading

    @property
    def step_count(self) -> int:
        return self._step_detector.step_count

    def current_estimate(self) -> PositionEstimate:
        """
        Get latest estimate snapshot with a fresh staleness flag

        Raises:
            UncalibratedError: No anchor has been established yet
        """
        with self._lock:
            if self._projection is None or self._latest is None:
                raise UncalibratedError("No anchor set - waiting for initial fix")
            latest = self._latest
            stale = self._is_stale()
        if latest.is_stale == stale:
            return latest
        return PositionEstimate(
            x=latest.x, y=latest.y, latitude=latest.latitude, longitude=latest.longitude,
            accuracy_m=latest.accuracy_m, heading=latest.heading,
            timestamp_ms=latest.timestamp_ms, is_stale=stale, step_count=latest.step_count,
        )

    def subscribe(self, callback: Callable[[PositionEstimate], None]) -> Subscription:
        """Register for estimate updates"""
        return self._subscribers.add(callback)

    def stats(self) -> dict:
        return {
            'calibrated': self.is_calibrated,
            'fixes_applied': self.fixes_applied,
            'fixes_ignored': self.fixes_ignored,
            'dropped_out_of_order': self.dropped_out_of_order,
            'steps': self._step_detector.step_count,
            'subscribers': len(self._subscribers),
        }

    def _accept_timestamp(self, timestamp_ms: float, kind: str) -> bool:
        if self._last_sample_ms is not None and timestamp_ms < self._last_sample_ms:
            self.dropped_out_of_order += 1
            logger.warning(f"Out-of-order {kind} sample dropped "
                           f"({timestamp_ms:.0f} < {self._last_sample_ms:.0f})")
            return False
        self._last_sample_ms = timestamp_ms
        return True

    def _is_stale(self) -> bool:
        if self._last_update_clock_ms is None:
            return True
        return self._clock() - self._last_update_clock_ms > self.stale_after_ms

    def _publish_snapshot(self, timestamp_ms: float) -> PositionEstimate:
        """Build a new snapshot and swap it in; caller holds the lock"""
        self._last_update_clock_ms = self._clock()
        latitude, longitude = self._projection.to_geodesic(self._x, self._y)
        self._latest = PositionEstimate(
            x=self._x,
            y=self._y,
            latitude=latitude,
            longitude=longitude,
            accuracy_m=self._accuracy,
            heading=self._heading_filter.heading,
            timestamp_ms=timestamp_ms,
            is_stale=False,
            step_count=self._step_detector.step_count,
        )
        return self._latest

    @staticmethod
    def _as_vector(acceleration: Any) -> Tuple[float, float, float]:
        if isinstance(acceleration, Mapping):
            return (float(acceleration.get('x', 0.0) or 0.0),
                    float(acceleration.get('y', 0.0) or 0.0),
                    float(acceleration.get('z', 0.0) or 0.0))
        x, y, z = acceleration
        return float(x), float(y), float(z)

    @staticmethod
    def _heading_from_orientation(orientation: Any) -> Optional[float]:
        if orientation is None:
            return None
        if isinstance(orientation, (int, float)):
            return float(orientation)
        if isinstance(orientation, Mapping):
            if orientation.get('heading') is not None:
                return float(orientation['heading'])
            if orientation.get('rotation_matrix') is not None:
                return heading_from_rotation_matrix(orientation['rotation_matrix'])
            return None
        return heading_from_rotation_matrix(orientation)
