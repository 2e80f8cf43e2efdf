"""LangGraph integration service: graph registry and per-thread compilation"""
import json
import importlib.util
import logging
from typing import Dict, Any, Optional
from pathlib import Path

from langgraph.checkpoint.memory import InMemorySaver

logger = logging.getLogger(__name__)


class LangGraphService:
    """Service to work with LangGraph CLI configuration and graphs"""

    def __init__(self, config_path: str = "langgraph.json"):
        self.config_path = Path(config_path)
        self.config: Optional[Dict[str, Any]] = None
        self._graph_registry: Dict[str, Any] = {}
        self._base_graphs: Dict[str, Any] = {}

    async def initialize(self):
        """Load langgraph.json configuration and setup graph registry"""
        if not self.config_path.exists():
            raise ValueError(f"LangGraph config not found: {self.config_path}")

        with open(self.config_path) as f:
            self.config = json.load(f)

        self._load_graph_registry()
        logger.info(f"Loaded graphs from {self.config_path}: {', '.join(self._graph_registry)}")

    def _load_graph_registry(self):
        """Load graph definitions from langgraph.json"""
        graphs_config = self.config.get("graphs", {})

        for graph_id, graph_path in graphs_config.items():
            # Parse path format: "./graphs/agent_executor.py:graph"
            if ":" not in graph_path:
                raise ValueError(f"Invalid graph path format: {graph_path}")

            file_path, export_name = graph_path.split(":", 1)
            # Relative paths resolve against the directory holding langgraph.json
            resolved = Path(file_path)
            if not resolved.is_absolute():
                resolved = self.config_path.parent / resolved
            self._graph_registry[graph_id] = {
                "file_path": str(resolved),
                "export_name": export_name,
            }

    def _get_base_graph(self, graph_id: str):
        if graph_id not in self._graph_registry:
            raise ValueError(f"Graph not found: {graph_id}")

        if graph_id not in self._base_graphs:
            self._base_graphs[graph_id] = self._load_graph_from_file(graph_id, self._graph_registry[graph_id])
        return self._base_graphs[graph_id]

    def build_thread_graph(self, graph_id: str):
        """Compile a graph instance owned by a single thread.

        Each instance gets its own in-memory checkpointer, so evicting the
        thread drops its conversation state with it.
        """
        base_graph = self._get_base_graph(graph_id)
        checkpointer = InMemorySaver()

        if hasattr(base_graph, "compile"):
            # The module exported an *uncompiled* StateGraph
            return base_graph.compile(checkpointer=checkpointer)

        # Pre-compiled graph: keep its interrupts, swap in our checkpointer
        return base_graph.copy(update={"checkpointer": checkpointer})

    def _load_graph_from_file(self, graph_id: str, graph_info: Dict[str, str]):
        """Load graph from filesystem"""
        file_path = Path(graph_info["file_path"])
        if not file_path.exists():
            raise ValueError(f"Graph file not found: {file_path}")

        # Dynamic import of graph module
        spec = importlib.util.spec_from_file_location(
            f"graphs.{graph_id}",
            str(file_path.resolve())
        )
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        export_name = graph_info["export_name"]
        if not hasattr(module, export_name):
            raise ValueError(f"Graph export not found: {export_name} in {file_path}")

        logger.debug(f"Loaded graph '{graph_id}' from {file_path}")
        return getattr(module, export_name)

    def list_graphs(self) -> Dict[str, str]:
        """List all available graphs"""
        return {
            graph_id: info["file_path"]
            for graph_id, info in self._graph_registry.items()
        }

    def get_config(self) -> Optional[Dict[str, Any]]:
        """Get full langgraph.json configuration"""
        return self.config


# Global service instance
_langgraph_service = None


def get_langgraph_service() -> LangGraphService:
    """Get global LangGraph service instance"""
    global _langgraph_service
    if _langgraph_service is None:
        from ..core.config import get_settings
        _langgraph_service = LangGraphService(get_settings().langgraph_config)
    return _langgraph_service


def create_run_config(thread_id: str, run_id: str) -> Dict[str, Any]:
    """Create LangGraph configuration for a specific run"""
    return {
        "configurable": {
            "thread_id": thread_id,
            "run_id": run_id,
        }
    }
