from flask import Flask, jsonify, request
from datetime import datetime, timezone
import logging
import os

from config.settings import app_config, navigation_config
from navigation.core.errors import NavigationError
from navigation.algorithms.path_planner import AStarPathPlanner
from navigation.instructions import (
    cardinal_direction, estimate_walking_time, format_time,
    generate_path_instructions, leg_bearing, calculate_map_bounds
)
from .graph_store import GraphStore

logger = logging.getLogger(__name__)

NO_ROUTE_MESSAGE = "No route available, try a different start"


def create_app(graph_document=None):
    """
    Flask application factory

    Args:
        graph_document: Location graph ``{"locations": [...], "connections": [...]}``;
            loaded from GRAPH_FILE when omitted
    """
    app = Flask(__name__)

    app.config.update(
        SECRET_KEY=os.getenv('FLASK_SECRET_KEY', os.urandom(24)),
        DEBUG=app_config["debug"],
        WALKING_SPEED_MPS=navigation_config["walking_speed_mps"],
    )

    if graph_document is not None:
        store = GraphStore(graph_document)
    else:
        store = GraphStore.from_file(app_config["graph_file"])
    app.extensions['graph_store'] = store
    app.extensions['path_planner'] = AStarPathPlanner()

    _register_error_handlers(app)
    _register_routes(app)

    logger.info("Flask application created")
    return app


def _register_error_handlers(app):
    """Register global error handlers"""

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({"success": False, "error": "Bad request"}), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"success": False, "error": "Endpoint not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"success": False, "error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {error}", exc_info=True)
        return jsonify({"success": False, "error": "Internal server error"}), 500

    @app.errorhandler(NavigationError)
    def navigation_error(error):
        logger.error(f"Navigation error: {error}")
        return jsonify({"success": False, "error": str(error)}), 500


def _format_path(path):
    """Path entries with the compass direction of the leg that leaves each node"""
    waypoints = path.waypoints
    formatted = []
    for index, waypoint in enumerate(waypoints):
        direction = None
        if index + 1 < len(waypoints):
            direction = cardinal_direction(leg_bearing(waypoint, waypoints[index + 1], path.mode))
        entry = waypoint.to_dict()
        entry['direction'] = direction
        entry['is_destination'] = index == len(waypoints) - 1
        formatted.append(entry)
    return formatted


def _register_routes(app):
    """Register Flask routes"""

    @app.route('/api/health')
    def api_health():
        """Service health with graph size"""
        store = app.extensions['graph_store']
        return jsonify({
            "status": "healthy",
            "locations": len(store.locations()),
            "connections": store.connection_count,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        })

    @app.route('/api/locations')
    def api_locations():
        locations = [node.to_dict() for node in app.extensions['graph_store'].locations()]
        return jsonify({"success": True, "count": len(locations), "data": locations})

    @app.route('/api/locations/bounds')
    def api_location_bounds():
        bounds = calculate_map_bounds(app.extensions['graph_store'].locations())
        if bounds is None:
            return jsonify({"success": False,
                            "error": "At least two geo-located locations are required"}), 404
        return jsonify({"success": True, "data": bounds})

    @app.route('/api/route', methods=['POST'])
    def api_route():
        """Shortest route between two locations"""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"success": False, "error": "No data provided"}), 400

        source = data.get('source')
        destination = data.get('destination')
        if not source or not destination:
            return jsonify({"success": False,
                            "error": "Source and destination are required"}), 400

        graph = app.extensions['graph_store'].build_graph()
        path = app.extensions['path_planner'].find_path(graph, str(source), str(destination))
        if path is None:
            logger.info(f"No route {source} -> {destination}")
            return jsonify({"success": False, "error": NO_ROUTE_MESSAGE}), 404

        estimated_time = estimate_walking_time(path.distance, app.config['WALKING_SPEED_MPS'])
        logger.info(f"🗺️  Route {source} -> {destination}: {path.steps} steps, {path.distance:.1f}m")
        return jsonify({
            "success": True,
            "data": {
                "path": _format_path(path),
                "distance": round(path.distance, 2),
                "steps": path.steps,
                "mode": path.mode.value,
                "estimated_time_s": estimated_time,
                "estimated_time": format_time(estimated_time),
                "instructions": generate_path_instructions(path.waypoints, path.mode),
            }
        })
