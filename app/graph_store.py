"""Location graph document storage for the HTTP surface"""
import json
import logging
import os
from typing import Any, Dict, List, Optional

from navigation.core.data_types import Graph, LocationNode
from navigation.algorithms.path_planner import build_graph

logger = logging.getLogger(__name__)


class GraphStore:
    """
    Holds the location graph document

    The document has the shape ``{"locations": [...], "connections": [...]}``.
    A fresh Graph is built for every route request so concurrent requests
    never share mutable search state.
    """

    def __init__(self, document: Optional[Dict[str, Any]] = None):
        document = document or {}
        self._locations: List[Dict[str, Any]] = list(document.get('locations') or [])
        self._connections: List[Dict[str, Any]] = list(document.get('connections') or [])

    @classmethod
    def from_file(cls, path: Optional[str]) -> 'GraphStore':
        """Load a graph document from JSON; empty store when the file is unusable"""
        if not path:
            logger.warning("GRAPH_FILE not configured - location graph is empty")
            return cls()
        if not os.path.exists(path):
            logger.warning(f"Graph file not found: {path}")
            return cls()
        try:
            with open(path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load graph file {path}: {e}")
            return cls()

        if not isinstance(document, dict):
            logger.error(f"Graph file {path} must hold a JSON object")
            return cls()

        store = cls(document)
        logger.info(f"🗺️  Loaded graph from {path}: {len(store._locations)} locations, "
                    f"{len(store._connections)} connections")
        return store

    def build_graph(self) -> Graph:
        graph = build_graph(self._locations, self._connections)
        if graph.skipped_nodes or graph.skipped_edges:
            logger.warning(f"⚠️  Graph built with {graph.skipped_nodes} dropped location(s) and "
                           f"{graph.skipped_edges} dropped connection(s)")
        return graph

    def locations(self) -> List[LocationNode]:
        """Usable location records, in document order"""
        nodes = []
        for record in self._locations:
            try:
                nodes.append(LocationNode.from_dict(record))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.debug(f"Skipping unusable location record: {e}")
        return nodes

    @property
    def connection_count(self) -> int:
        return len(self._connections)
