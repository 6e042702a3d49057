import os
import logging
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()


class ConfigurationError(Exception):
    """Raised when configuration is invalid or incomplete"""
    pass


NAVIGATION_DEFAULTS = {
    "NAV_BASE_THRESHOLD_M": 10.0,
    "NAV_ACCURACY_MARGIN_M": 5.0,
    "NAV_FINAL_THRESHOLD_M": 5.0,
    "NAV_ARRIVAL_CONFIRM_M": 8.0,
    "NAV_DEFAULT_ACCURACY_M": 5.0,
    "NAV_WALKING_SPEED_MPS": 1.4,
}

ESTIMATOR_DEFAULTS = {
    "EST_STEP_LENGTH_M": 0.5,
    "EST_STEP_THRESHOLD": 1.5,
    "EST_STEP_DEBOUNCE_MS": 300.0,
    "EST_MOVEMENT_THRESHOLD": 0.15,
    "EST_VELOCITY_DECAY": 0.95,
    "EST_MAX_VELOCITY": 2.0,
    "EST_HEADING_SMOOTHING": 0.2,
    "EST_STALE_AFTER_MS": 5000.0,
    "EST_MAX_MOTION_GAP_MS": 1000.0,
    "EST_HIGH_ACCURACY_M": 5.0,
    "EST_LOW_ACCURACY_M": 15.0,
}


def _env_float(name: str, default: float) -> float:
    """Float from environment, default when unset or unparsable"""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def validate_navigation_config():
    """Validate navigation and estimator environment variables"""
    errors = []
    warnings = []

    values = {}
    for name, default in {**NAVIGATION_DEFAULTS, **ESTIMATOR_DEFAULTS}.items():
        raw = os.getenv(name, "").strip()
        if not raw:
            values[name] = default
            continue
        try:
            values[name] = float(raw)
        except ValueError:
            errors.append(f"{name} must be a number, got '{raw}'")
            values[name] = default
            continue
        if values[name] < 0:
            errors.append(f"{name} must not be negative, got {values[name]}")

    if values["NAV_FINAL_THRESHOLD_M"] > values["NAV_BASE_THRESHOLD_M"]:
        warnings.append("NAV_FINAL_THRESHOLD_M is larger than NAV_BASE_THRESHOLD_M - "
                        "final waypoint will be easier to reach than intermediate ones")
    if values["NAV_WALKING_SPEED_MPS"] <= 0:
        errors.append("NAV_WALKING_SPEED_MPS must be positive")
    if not 0.0 < values["EST_HEADING_SMOOTHING"] <= 1.0:
        errors.append(f"EST_HEADING_SMOOTHING must be in (0, 1], got {values['EST_HEADING_SMOOTHING']}")
    if not 0.0 <= values["EST_VELOCITY_DECAY"] <= 1.0:
        errors.append(f"EST_VELOCITY_DECAY must be in [0, 1], got {values['EST_VELOCITY_DECAY']}")
    if values["EST_HIGH_ACCURACY_M"] > values["EST_LOW_ACCURACY_M"]:
        errors.append("EST_HIGH_ACCURACY_M must not exceed EST_LOW_ACCURACY_M")

    graph_file = os.getenv("GRAPH_FILE", "").strip()
    if graph_file and not os.path.exists(graph_file):
        warnings.append(f"GRAPH_FILE '{graph_file}' does not exist - location graph will be empty")

    # Log results
    if errors:
        error_msg = "Navigation configuration validation failed:\n" + "\n".join(f"  - {err}" for err in errors)
        logger.error(error_msg)
        raise ConfigurationError(error_msg)

    if warnings:
        warning_msg = "Navigation configuration warnings:\n" + "\n".join(f"  - {warn}" for warn in warnings)
        logger.warning(warning_msg)

    logger.debug("Navigation configuration validation passed")
    return True


def _load_configs(use_env: bool = True):
    nav = {name: (_env_float(name, default) if use_env else default)
           for name, default in NAVIGATION_DEFAULTS.items()}
    est = {name: (_env_float(name, default) if use_env else default)
           for name, default in ESTIMATOR_DEFAULTS.items()}

    navigation = {
        "base_threshold_m": nav["NAV_BASE_THRESHOLD_M"],
        "accuracy_margin_m": nav["NAV_ACCURACY_MARGIN_M"],
        "final_threshold_m": nav["NAV_FINAL_THRESHOLD_M"],
        "arrival_confirm_m": nav["NAV_ARRIVAL_CONFIRM_M"],
        "default_accuracy_m": nav["NAV_DEFAULT_ACCURACY_M"],
        "walking_speed_mps": nav["NAV_WALKING_SPEED_MPS"],
    }

    estimator = {
        "step_length": est["EST_STEP_LENGTH_M"],
        "step_threshold": est["EST_STEP_THRESHOLD"],
        "step_debounce_ms": est["EST_STEP_DEBOUNCE_MS"],
        "movement_threshold": est["EST_MOVEMENT_THRESHOLD"],
        "velocity_decay": est["EST_VELOCITY_DECAY"],
        "max_velocity": est["EST_MAX_VELOCITY"],
        "heading_smoothing": est["EST_HEADING_SMOOTHING"],
        "stale_after_ms": est["EST_STALE_AFTER_MS"],
        "max_motion_gap_ms": est["EST_MAX_MOTION_GAP_MS"],
        "high_accuracy_m": est["EST_HIGH_ACCURACY_M"],
        "low_accuracy_m": est["EST_LOW_ACCURACY_M"],
        "auto_anchor": _env_bool("EST_AUTO_ANCHOR", True) if use_env else True,
    }
    return navigation, estimator


# Validate configuration on import
try:
    config_valid = validate_navigation_config()
except ConfigurationError as e:
    logger.error(f"Navigation configuration invalid: {e}")
    logger.info("System will start with default navigation settings")
    config_valid = False

# Tracker thresholds and walking speed for time estimates
# Position estimator tuning (PositionEstimator keyword arguments)
navigation_config, estimator_config = _load_configs(use_env=config_valid)

# NMEA fix source
nmea_config = {
    "uere_m": _env_float("NMEA_UERE_M", 3.0),
}

# HTTP application
app_config = {
    "graph_file": os.getenv("GRAPH_FILE", "").strip() or None,
    "host": os.getenv("FLASK_HOST", "0.0.0.0"),
    "port": int(_env_float("FLASK_PORT", 5000)),
    "debug": _env_bool("FLASK_DEBUG", False),
}


def tracker_kwargs(config: dict = None) -> dict:
    """NavigationTracker keyword arguments from a navigation config dict"""
    config = config or navigation_config
    return {key: value for key, value in config.items() if key != "walking_speed_mps"}
