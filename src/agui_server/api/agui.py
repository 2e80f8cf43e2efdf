"""AG-UI run endpoint"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from ..core.sse import get_sse_headers
from ..models import RunAgentInput
from ..services.agent_runtime import get_streaming_service
from ..services.input_builder import truncate_for_log
from ..services.streaming_service import StreamingService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/agui/run")
async def run_agent(
    request: RunAgentInput,
    streaming_service: StreamingService = Depends(get_streaming_service),
):
    """Run the agent for one turn and stream AG-UI events"""
    if streaming_service.orchestrator.is_thread_busy(request.thread_id):
        raise HTTPException(409, f"Thread '{request.thread_id}' already has a run in progress")

    logger.info(
        f"Run {request.run_id} on thread {request.thread_id} with {len(request.messages)} message(s)"
    )
    for message in request.messages:
        content = getattr(message, "content", None) or getattr(message, "result", None)
        logger.debug(f"  {message.role} {message.id}: {truncate_for_log(content or '')}")

    return StreamingResponse(
        streaming_service.stream_run(request),
        media_type="text/event-stream",
        headers=get_sse_headers(),
    )
