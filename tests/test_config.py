import os
import unittest
from unittest import mock

from config.settings import (
    ConfigurationError, NAVIGATION_DEFAULTS, _load_configs, estimator_config, navigation_config,
    nmea_config, tracker_kwargs, validate_navigation_config
)
from navigation.navigator import NavigationTracker
from navigation.position_estimator import PositionEstimator
from navigation.session import NavigationSession
from sensors.nmea_source import NMEAFixSource


class TestNavigationConfig(unittest.TestCase):
    def test_defaults_are_valid(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertTrue(validate_navigation_config())

    def test_invalid_heading_smoothing_is_rejected(self):
        with mock.patch.dict(os.environ, {"EST_HEADING_SMOOTHING": "2"}):
            with self.assertRaises(ConfigurationError):
                validate_navigation_config()

    def test_non_numeric_value_is_rejected(self):
        with mock.patch.dict(os.environ, {"NAV_BASE_THRESHOLD_M": "ten"}):
            with self.assertRaises(ConfigurationError):
                validate_navigation_config()

    def test_environment_overrides(self):
        with mock.patch.dict(os.environ, {"NAV_BASE_THRESHOLD_M": "12", "EST_AUTO_ANCHOR": "false"}):
            navigation, estimator = _load_configs(use_env=True)
        self.assertEqual(navigation["base_threshold_m"], 12.0)
        self.assertFalse(estimator["auto_anchor"])

    def test_defaults_ignore_environment(self):
        with mock.patch.dict(os.environ, {"NAV_BASE_THRESHOLD_M": "12"}):
            navigation, _ = _load_configs(use_env=False)
        self.assertEqual(navigation["base_threshold_m"], NAVIGATION_DEFAULTS["NAV_BASE_THRESHOLD_M"])

    def test_configs_build_components(self):
        navigation, estimator = _load_configs(use_env=False)
        kwargs = tracker_kwargs(navigation)
        self.assertNotIn("walking_speed_mps", kwargs)
        self.assertIsInstance(NavigationTracker(**kwargs), NavigationTracker)
        self.assertFalse(PositionEstimator(**estimator).is_calibrated)

    def test_default_session_uses_environment(self):
        overrides = {"NAV_BASE_THRESHOLD_M": "12", "EST_STEP_LENGTH_M": "0.7"}
        with mock.patch.dict(os.environ, overrides):
            navigation, estimator = _load_configs(use_env=True)
        with mock.patch.dict(navigation_config, navigation), mock.patch.dict(estimator_config, estimator):
            session = NavigationSession()
        self.assertEqual(session.tracker.base_threshold_m, 12.0)
        self.assertEqual(session.estimator.step_length, 0.7)

    def test_nmea_source_uses_configured_uere(self):
        with mock.patch.dict(nmea_config, {"uere_m": 5.0}):
            self.assertEqual(NMEAFixSource().uere_m, 5.0)
        self.assertEqual(NMEAFixSource(uere_m=2.0).uere_m, 2.0)


if __name__ == '__main__':
    unittest.main()
