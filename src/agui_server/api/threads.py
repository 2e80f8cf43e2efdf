"""Thread inspection and eviction endpoints"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from ..models import ThreadInfo
from ..services.agent_runtime import get_thread_registry
from ..services.thread_registry import ThreadRegistry

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/threads/{thread_id}", response_model=ThreadInfo)
async def get_thread(thread_id: str, registry: ThreadRegistry = Depends(get_thread_registry)):
    """Get the run state of a thread"""
    state = registry.get(thread_id)
    if state is None:
        raise HTTPException(404, f"Thread '{thread_id}' not found")

    return ThreadInfo(
        thread_id=thread_id,
        interrupted=state.interrupted,
        busy=state.busy,
        idle_seconds=round(state.idle_seconds(), 3),
    )


@router.delete("/threads/{thread_id}", status_code=204)
async def delete_thread(thread_id: str, registry: ThreadRegistry = Depends(get_thread_registry)):
    """Evict a thread and its conversation state"""
    state = registry.get(thread_id)
    if state is None:
        raise HTTPException(404, f"Thread '{thread_id}' not found")
    if state.busy:
        raise HTTPException(409, f"Thread '{thread_id}' has a run in progress")

    registry.evict(thread_id)
    logger.info(f"Deleted thread {thread_id}")
    return Response(status_code=204)
