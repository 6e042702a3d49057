"""Footstep detection from linear acceleration peaks"""
import math
from typing import Optional, Sequence


class StepDetector:
    """
    Flags a step when acceleration magnitude crosses a threshold

    A minimum interval between steps debounces the several samples that one
    footfall produces.
    """

    def __init__(self, threshold: float = 1.5, debounce_ms: float = 300.0):
        """
        Initialize step detector

        Args:
            threshold: Linear acceleration magnitude (m/s^2) that counts as a step
            debounce_ms: Minimum time between two detected steps
        """
        self.threshold = threshold
        self.debounce_ms = debounce_ms
        self._last_step_ms: Optional[float] = None
        self._step_count = 0

    @property
    def step_count(self) -> int:
        return self._step_count

    @staticmethod
    def magnitude(acceleration: Sequence[float]) -> float:
        return math.sqrt(sum(component * component for component in acceleration))

    def detect(self, acceleration: Sequence[float], timestamp_ms: float) -> bool:
        """
        Check one acceleration sample for a step

        Args:
            acceleration: (x, y, z) linear acceleration, gravity removed
            timestamp_ms: Sample time in milliseconds

        Returns:
            True if this sample is a new step
        """
        if self.magnitude(acceleration) <= self.threshold:
            return False
        if self._last_step_ms is not None and timestamp_ms - self._last_step_ms < self.debounce_ms:
            return False

        self._last_step_ms = timestamp_ms
        self._step_count += 1
        return True

    def reset(self):
        """Reset detector state"""
        self._last_step_ms = None
        self._step_count = 0
