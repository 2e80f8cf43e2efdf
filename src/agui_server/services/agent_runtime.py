"""Process-wide run orchestration wiring (registry, orchestrator, streaming)"""
import logging
from typing import Optional

from ..core.config import get_settings
from .input_builder import MessagesInputBuilder
from .langgraph_service import get_langgraph_service
from .run_orchestrator import RunOrchestrator
from .streaming_service import StreamingService
from .thread_registry import ThreadRegistry

logger = logging.getLogger(__name__)

_thread_registry: Optional[ThreadRegistry] = None
_streaming_service: Optional[StreamingService] = None


def get_thread_registry() -> ThreadRegistry:
    """Get global thread registry instance"""
    global _thread_registry
    if _thread_registry is None:
        _thread_registry = ThreadRegistry(max_idle_seconds=get_settings().thread_ttl_seconds)
    return _thread_registry


def build_orchestrator(registry: ThreadRegistry) -> RunOrchestrator:
    settings = get_settings()
    langgraph_service = get_langgraph_service()

    def graph_factory():
        return langgraph_service.build_thread_graph(settings.graph_id)

    return RunOrchestrator(
        registry=registry,
        graph_factory=graph_factory,
        input_builder=MessagesInputBuilder(settings.system_prompt),
    )


def get_streaming_service() -> StreamingService:
    """Get global streaming service instance"""
    global _streaming_service
    if _streaming_service is None:
        _streaming_service = StreamingService(build_orchestrator(get_thread_registry()))
    return _streaming_service
