"""Streaming service: AG-UI runs as SSE frames"""
import asyncio
import logging
from typing import AsyncIterator

from ..constants import AGENT_ERROR_CODE
from ..core.sse import format_protocol_event
from ..models import RunAgentInput, RunErrorEvent
from .error_classifier import classify, iter_cause_chain
from .run_orchestrator import RunOrchestrator

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Sorry, something went wrong while processing your message. Please try again."

_ERROR_MESSAGES = [
    (
        ("connection refused", "connect to", "broken pipe", "connection reset"),
        "The assistant service is unreachable right now. Please try again in a moment.",
    ),
    (
        ("401", "unauthorized", "api key", "forbidden", "403"),
        "The assistant could not authenticate with the model provider. Please contact support.",
    ),
    (
        ("503", "service unavailable", "overloaded"),
        "The assistant service is temporarily overloaded. Please try again shortly.",
    ),
    (
        ("timeout", "timed out"),
        "The assistant took too long to respond. Please try again.",
    ),
]


def describe_error(error: BaseException) -> str:
    """Pick a user-facing message for a failed run from its cause chain"""
    text = " ".join(str(e).lower() for e in iter_cause_chain(error))
    if any(isinstance(e, ConnectionError) for e in iter_cause_chain(error)):
        return _ERROR_MESSAGES[0][1]
    for needles, message in _ERROR_MESSAGES:
        if any(needle in text for needle in needles):
            return message
    if any(isinstance(e, TimeoutError) for e in iter_cause_chain(error)):
        return _ERROR_MESSAGES[3][1]
    return GENERIC_ERROR_MESSAGE


class StreamingService:
    """Service to handle SSE streaming of agent runs"""

    def __init__(self, orchestrator: RunOrchestrator):
        self.orchestrator = orchestrator

    async def stream_run(self, run_input: RunAgentInput) -> AsyncIterator[str]:
        """Stream one run as SSE frames; a failure ends the stream with RUN_ERROR"""
        run_id = run_input.run_id
        events = self.orchestrator.run(run_input)
        try:
            async for event in events:
                yield format_protocol_event(event)
        except asyncio.CancelledError:
            # Handle client disconnect gracefully
            logger.debug(f"Stream cancelled for run {run_id}")
            raise
        except Exception as e:
            chain = " <- ".join(f"{type(err).__name__}: {err}" for err in iter_cause_chain(e))
            logger.exception(f"Run {run_id} on thread {run_input.thread_id} failed ({classify(e)}): {chain}")
            yield format_protocol_event(RunErrorEvent(message=describe_error(e), code=AGENT_ERROR_CODE))
        finally:
            await events.aclose()
