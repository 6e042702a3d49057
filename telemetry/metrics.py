"""Telemetry and metrics collection for navigation sessions"""
from dataclasses import dataclass, field
from typing import List, Optional
from datetime import datetime
import statistics


@dataclass
class NavigationMetrics:
    """Metrics for one navigation session"""

    # Waypoint metrics
    waypoints_reached: int = 0
    waypoints_skipped: int = 0
    arrivals: int = 0

    # Sensor input
    fixes_received: int = 0
    motion_samples: int = 0
    heading_samples: int = 0
    samples_dropped: int = 0

    # Estimate quality
    accuracy_samples: List[float] = field(default_factory=list)
    average_accuracy: float = 0.0  # meters
    stale_events: int = 0
    steps: int = 0

    # Session info
    session_start: datetime = field(default_factory=datetime.now)
    session_end: Optional[datetime] = None

    def add_waypoints_reached(self, count: int = 1):
        """Record waypoints passed by position updates"""
        self.waypoints_reached += count

    def add_waypoints_skipped(self, count: int = 1):
        self.waypoints_skipped += count

    def add_arrival(self):
        self.arrivals += 1

    def add_accuracy_sample(self, accuracy: Optional[float]):
        """Record estimate accuracy radius"""
        if accuracy is None:
            return
        self.accuracy_samples.append(accuracy)
        self.average_accuracy = statistics.mean(self.accuracy_samples)

    def add_stale_event(self):
        """Record estimate turning stale"""
        self.stale_events += 1

    def update_steps(self, steps: int):
        if steps > self.steps:
            self.steps = steps

    def finish(self):
        if self.session_end is None:
            self.session_end = datetime.now()

    def to_dict(self) -> dict:
        """Convert metrics to dictionary"""
        end = self.session_end or datetime.now()
        return {
            'waypoints_reached': self.waypoints_reached,
            'waypoints_skipped': self.waypoints_skipped,
            'arrivals': self.arrivals,
            'fixes_received': self.fixes_received,
            'motion_samples': self.motion_samples,
            'heading_samples': self.heading_samples,
            'samples_dropped': self.samples_dropped,
            'average_accuracy_m': round(self.average_accuracy, 2),
            'stale_events': self.stale_events,
            'steps': self.steps,
            'session_start': self.session_start.isoformat(),
            'session_duration_s': (end - self.session_start).total_seconds()
        }
