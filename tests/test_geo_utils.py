import math
import unittest

from navigation.algorithms.geo_utils import GeoUtils, LocalProjection


class TestGeoUtils(unittest.TestCase):
    def test_normalize_angle_range(self):
        self.assertEqual(GeoUtils.normalize_angle(270), -90)
        self.assertEqual(GeoUtils.normalize_angle(-270), 90)
        self.assertEqual(GeoUtils.normalize_angle(180), 180)
        self.assertEqual(GeoUtils.normalize_angle(-180), 180)
        self.assertEqual(GeoUtils.normalize_angle(720), 0)

    def test_normalize_heading_range(self):
        self.assertEqual(GeoUtils.normalize_heading(-10), 350)
        self.assertEqual(GeoUtils.normalize_heading(360), 0)
        self.assertEqual(GeoUtils.normalize_heading(725), 5)

    def test_planar_bearing_is_compass_convention(self):
        self.assertAlmostEqual(GeoUtils.planar_bearing(0, 0, 0, 1), 0)
        self.assertAlmostEqual(GeoUtils.planar_bearing(0, 0, 1, 0), 90)
        self.assertAlmostEqual(GeoUtils.planar_bearing(0, 0, 0, -1), 180)
        self.assertAlmostEqual(GeoUtils.planar_bearing(0, 0, -1, 0), 270)

    def test_angle_difference_takes_short_arc(self):
        self.assertAlmostEqual(GeoUtils.calculate_angle_difference(350, 10), 20)
        self.assertAlmostEqual(GeoUtils.calculate_angle_difference(10, 350), -20)

    def test_haversine_one_degree_of_latitude(self):
        expected = GeoUtils.EARTH_RADIUS * math.pi / 180
        self.assertAlmostEqual(GeoUtils.haversine_distance(0, 0, 1, 0), expected, places=3)

    def test_great_circle_bearing(self):
        self.assertAlmostEqual(GeoUtils.calculate_bearing(52.0, 21.0, 52.1, 21.0), 0, places=6)
        self.assertAlmostEqual(GeoUtils.calculate_bearing(0.0, 21.0, 0.0, 21.1), 90, places=6)


class TestLocalProjection(unittest.TestCase):
    def setUp(self):
        self.projection = LocalProjection(52.0, 21.0, planar_x=10.0, planar_y=-5.0)

    def test_anchor_maps_to_planar_origin(self):
        self.assertEqual(self.projection.to_planar(52.0, 21.0), (10.0, -5.0))

    def test_latitude_offset_uses_constant_scale(self):
        x, y = self.projection.to_planar(52.001, 21.0)
        self.assertAlmostEqual(x, 10.0)
        self.assertAlmostEqual(y, -5.0 + 111.32, places=6)

    def test_longitude_offset_scales_with_latitude(self):
        x, _ = self.projection.to_planar(52.0, 21.001)
        self.assertAlmostEqual(x, 10.0 + 111.32 * math.cos(math.radians(52.0)), places=6)

    def test_round_trip(self):
        lat, lon = self.projection.to_geodesic(*self.projection.to_planar(52.0013, 20.9987))
        self.assertAlmostEqual(lat, 52.0013, places=9)
        self.assertAlmostEqual(lon, 20.9987, places=9)


if __name__ == '__main__':
    unittest.main()
