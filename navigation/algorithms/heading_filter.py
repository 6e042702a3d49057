"""Exponential smoothing for compass headings"""
from typing import Optional

from .geo_utils import GeoUtils


class HeadingFilter:
    """
    Exponential moving average over headings that wraps at 0/360

    Blending is done on the signed shortest angular difference, so a jump
    from 350 to 10 moves through north (20 degrees), never the long way round.
    """

    def __init__(self, smoothing: float = 0.2):
        """
        Initialize heading filter

        Args:
            smoothing: Weight of each new reading (0.0 to 1.0)
        """
        if not 0.0 < smoothing <= 1.0:
            raise ValueError(f"smoothing must be in (0, 1], got {smoothing}")
        self.smoothing = smoothing
        self._heading: Optional[float] = None

    @property
    def heading(self) -> Optional[float]:
        return self._heading

    def update(self, raw_heading: float) -> float:
        """
        Blend a raw heading reading into the smoothed value

        Returns:
            Smoothed heading in degrees [0, 360)
        """
        raw_heading = GeoUtils.normalize_heading(raw_heading)
        if self._heading is None:
            self._heading = raw_heading
            return self._heading

        diff = GeoUtils.calculate_angle_difference(self._heading, raw_heading)
        self._heading = GeoUtils.normalize_heading(self._heading + diff * self.smoothing)
        return self._heading

    def reset(self):
        """Reset filter state"""
        self._heading = None
