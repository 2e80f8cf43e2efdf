"""Per-conversation agent run orchestration.

A run drives the thread's graph and yields AG-UI events in order:

    RUN_STARTED
    TEXT_MESSAGE_* for every streamed fragment and finished node
    TOOL_CALL_START / ARGS / END per pending approval (suspended runs only)
    RUN_FINISHED

A thread whose previous run suspended before the approval gate is resumed
instead of restarted: the client must send the tool result, the graph state is
marked approved and the graph continues from its checkpoint.
"""
import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Callable, Optional

from ..constants import RUN_STREAM_MODES
from ..core.errors import ApprovalPreconditionError
from ..models import (
    BaseEvent,
    RunAgentInput,
    RunFinishedEvent,
    RunStartedEvent,
    ToolCallArgsEvent,
    ToolCallEndEvent,
    ToolCallStartEvent,
)
from .approval_bridge import build_resume_marker, extract_approvals
from .event_translator import EventTranslator, to_step_outputs
from .input_builder import InputBuilder
from .langgraph_service import create_run_config
from .thread_registry import ThreadRegistry, ThreadState

logger = logging.getLogger(__name__)


class RunOrchestrator:
    """Runs agent turns against per-thread graphs held in a ThreadRegistry"""

    def __init__(
        self,
        registry: ThreadRegistry,
        graph_factory: Callable[[], Any],
        input_builder: InputBuilder,
    ):
        self.registry = registry
        self.graph_factory = graph_factory
        self.input_builder = input_builder

    def is_thread_busy(self, thread_id: str) -> bool:
        state = self.registry.get(thread_id)
        return state is not None and state.busy

    async def run(self, run_input: RunAgentInput) -> AsyncIterator[BaseEvent]:
        """Execute one run, yielding protocol events.

        Errors propagate to the caller after RUN_STARTED; the interruption
        flag is left as it was when a run fails.
        """
        thread_id = run_input.thread_id
        run_id = run_input.run_id

        yield RunStartedEvent(thread_id=thread_id, run_id=run_id)

        thread = self.registry.get_or_create(thread_id, self.graph_factory)
        thread.busy = True
        thread.touch()
        try:
            async with aclosing(self._drive(thread, run_input)) as events:
                async for event in events:
                    yield event
        finally:
            thread.busy = False
            thread.touch()

        yield RunFinishedEvent(thread_id=thread_id, run_id=run_id)

    async def _drive(self, thread: ThreadState, run_input: RunAgentInput) -> AsyncIterator[BaseEvent]:
        graph = thread.graph
        config = create_run_config(thread.thread_id, run_input.run_id)

        graph_input: Optional[dict]
        if thread.interrupted:
            if run_input.last_result_message() is None:
                raise ApprovalPreconditionError(thread.thread_id)
            logger.info(f"Resuming thread {thread.thread_id} after approval")
            await graph.aupdate_state(config, build_resume_marker())
            graph_input = None
        else:
            graph_input = self.input_builder.build(run_input)

        translator = EventTranslator(run_input.run_id)
        async with aclosing(graph.astream(graph_input, config, stream_mode=RUN_STREAM_MODES)) as steps:
            async for raw_step in steps:
                for step in to_step_outputs(raw_step):
                    for event in translator.translate(step):
                        yield event

        for event in translator.finish():
            yield event

        snapshot = await graph.aget_state(config)
        if snapshot.next:
            approvals = extract_approvals(snapshot.values)
            self.registry.set_interrupted(thread.thread_id, True)
            logger.info(
                f"Run {run_input.run_id} suspended before {list(snapshot.next)} "
                f"with {len(approvals)} pending approval(s)"
            )
            for approval in approvals:
                yield ToolCallStartEvent(tool_call_id=approval.tool_id, tool_call_name=approval.tool_name)
                yield ToolCallArgsEvent(tool_call_id=approval.tool_id, delta=approval.tool_args)
                yield ToolCallEndEvent(tool_call_id=approval.tool_id)
        else:
            self.registry.set_interrupted(thread.thread_id, False)
            logger.debug(f"Run {run_input.run_id} completed")
