"""Geographic and planar utility functions for navigation"""
import math
from typing import Tuple


class GeoUtils:
    """Utilities for geographic and planar map calculations"""

    EARTH_RADIUS = 6371000  # meters
    METERS_PER_DEGREE_LAT = 111320.0

    @staticmethod
    def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """
        Calculate distance between two GPS coordinates using Haversine formula

        Args:
            lat1, lon1: First point coordinates
            lat2, lon2: Second point coordinates

        Returns:
            Distance in meters
        """
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        delta_lat = math.radians(lat2 - lat1)
        delta_lon = math.radians(lon2 - lon1)

        a = (math.sin(delta_lat / 2) ** 2 +
             math.cos(lat1_rad) * math.cos(lat2_rad) *
             math.sin(delta_lon / 2) ** 2)
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return GeoUtils.EARTH_RADIUS * c

    @staticmethod
    def calculate_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """
        Calculate initial great-circle bearing from point 1 to point 2

        Returns:
            Bearing in degrees (0-360, where 0 is North)
        """
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        delta_lon = math.radians(lon2 - lon1)

        x = math.sin(delta_lon) * math.cos(lat2_rad)
        y = (math.cos(lat1_rad) * math.sin(lat2_rad) -
             math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(delta_lon))

        bearing_deg = math.degrees(math.atan2(x, y))
        return (bearing_deg + 360) % 360

    @staticmethod
    def planar_distance(x1: float, y1: float, x2: float, y2: float) -> float:
        """Euclidean distance in map units"""
        return math.hypot(x2 - x1, y2 - y1)

    @staticmethod
    def planar_bearing(x1: float, y1: float, x2: float, y2: float) -> float:
        """
        Compass bearing between two map points

        The map frame is x = east, y = north, so 0 is +y and 90 is +x.
        """
        bearing_deg = math.degrees(math.atan2(x2 - x1, y2 - y1))
        return (bearing_deg + 360) % 360

    @staticmethod
    def normalize_angle(angle: float) -> float:
        """Normalize angle to the (-180, 180] range"""
        angle = math.fmod(angle, 360.0)
        if angle > 180:
            angle -= 360
        elif angle <= -180:
            angle += 360
        return angle

    @staticmethod
    def normalize_heading(heading: float) -> float:
        """Normalize heading to the [0, 360) range"""
        heading = heading % 360.0
        return 0.0 if heading >= 360.0 else heading

    @staticmethod
    def calculate_angle_difference(current: float, target: float) -> float:
        """
        Calculate shortest angle difference between current and target heading

        Returns:
            Angle difference (-180 to 180, negative = turn left, positive = turn right)
        """
        return GeoUtils.normalize_angle(target - current)


class LocalProjection:
    """
    Flat-Earth mapping between absolute coordinates and the planar map frame

    One anchor pins a latitude/longitude onto a planar (x, y). Meters per
    degree of latitude are constant; meters per degree of longitude scale by
    the cosine of the anchor latitude. Valid for campus-sized areas.
    """

    def __init__(self, latitude: float, longitude: float, planar_x: float = 0.0, planar_y: float = 0.0):
        self.latitude = latitude
        self.longitude = longitude
        self.planar_x = planar_x
        self.planar_y = planar_y
        self.meters_per_deg_lat = GeoUtils.METERS_PER_DEGREE_LAT
        self.meters_per_deg_lon = GeoUtils.METERS_PER_DEGREE_LAT * math.cos(math.radians(latitude))

    def to_planar(self, latitude: float, longitude: float) -> Tuple[float, float]:
        """Project an absolute coordinate into the planar frame"""
        offset_x = (longitude - self.longitude) * self.meters_per_deg_lon
        offset_y = (latitude - self.latitude) * self.meters_per_deg_lat
        return self.planar_x + offset_x, self.planar_y + offset_y

    def to_geodesic(self, x: float, y: float) -> Tuple[float, float]:
        """Inverse projection from the planar frame"""
        latitude = self.latitude + (y - self.planar_y) / self.meters_per_deg_lat
        if self.meters_per_deg_lon == 0:
            return latitude, self.longitude
        longitude = self.longitude + (x - self.planar_x) / self.meters_per_deg_lon
        return latitude, longitude
