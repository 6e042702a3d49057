#!/usr/bin/env python3
import sys
import os
import logging
import signal
from pathlib import Path

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from app import create_app
from config.settings import app_config


def setup_logging():
    """Setup logging configuration"""
    log_level = logging.DEBUG if app_config["debug"] else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]

    # Add file handler if enabled
    if os.getenv('LOG_TO_FILE', 'False').lower() == 'true':
        log_dir = PROJECT_ROOT / 'logs'
        log_dir.mkdir(exist_ok=True)
        file_handler = logging.FileHandler(log_dir / 'waypoint_navigation.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )
    # Reduce noisy third-party loggers
    logging.getLogger('pynmeagps.nmeareader').setLevel(logging.ERROR)
    logging.getLogger('pynmeagps').setLevel(logging.ERROR)


def setup_signal_handlers():
    """Setup graceful shutdown signal handlers"""
    def signal_handler(signum, frame):
        logging.info(f"Received signal {signum}, shutting down gracefully...")
        logging.info("Shutdown complete")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def validate_environment():
    """Validate environment and configuration"""
    errors = []
    warnings = []

    if sys.version_info < (3, 8):
        errors.append(f"Python 3.8+ required, got {sys.version}")

    env_file = PROJECT_ROOT / '.env'
    if not env_file.exists():
        warnings.append(".env file not found - using defaults")

    graph_file = app_config["graph_file"]
    if not graph_file:
        warnings.append("GRAPH_FILE not set - route requests will find no locations")
    elif not Path(graph_file).exists():
        errors.append(f"GRAPH_FILE '{graph_file}' does not exist")

    if errors:
        for error in errors:
            logging.error(f"❌ {error}")
        logging.error("Cannot start application due to validation errors")
        sys.exit(1)

    if warnings:
        for warning in warnings:
            logging.warning(f"⚠️  {warning}")

    logging.info("✅ Environment validation passed")


def main():
    """Main application entry point"""
    setup_logging()

    logger = logging.getLogger(__name__)
    logger.info("Waypoint navigation service starting...")

    try:
        validate_environment()

        logger.info("🗺️  Loading location graph...")
        app = create_app()

        setup_signal_handlers()

        host = app_config["host"]
        port = app_config["port"]
        debug = app_config["debug"]

        logger.info("🌐 Web interface configuration:")
        logger.info(f"   Host: {host}")
        logger.info(f"   Port: {port}")
        logger.info(f"   Debug: {debug}")
        logger.info(f"   URLs: http://{host}:{port}")
        if host == '0.0.0.0':
            logger.info(f"         http://localhost:{port}")

        logger.info("🚀 Starting Flask development server...")
        app.run(
            host=host,
            port=port,
            debug=debug,
            threaded=True,
            use_reloader=False
        )

    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
    except Exception as e:
        logger.error(f"Failed to start application: {e}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
