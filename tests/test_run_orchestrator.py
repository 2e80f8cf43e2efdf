import pytest

from agui_server.core.errors import ApprovalPreconditionError, ConstructionError, TranslationError
from agui_server.models import EventType, RunAgentInput
from agui_server.services.run_orchestrator import RunOrchestrator
from agui_server.services.thread_registry import ThreadRegistry
from tests.utils.test_helpers import (
    FakeGraph,
    FakeRun,
    event_types,
    interrupt_event,
    messages_event,
    pending_tool_call_state,
    run_payload,
    tool_message_event,
    tool_result_message,
    updates_event,
)


class RecordingInputBuilder:
    def __init__(self):
        self.inputs = []

    def build(self, run_input):
        self.inputs.append(run_input)
        return {"messages": ["prompt"], "approval_result": None}


def make_input(**kwargs) -> RunAgentInput:
    return RunAgentInput.model_validate(run_payload(**kwargs))


def make_orchestrator(*graphs):
    """Orchestrator whose factory hands out ``graphs`` in order"""
    remaining = list(graphs)
    registry = ThreadRegistry()
    builder = RecordingInputBuilder()
    orchestrator = RunOrchestrator(registry, lambda: remaining.pop(0), builder)
    return orchestrator, registry, builder


async def collect(orchestrator, run_input):
    return [event async for event in orchestrator.run(run_input)]


SUSPENDING_RUN = FakeRun(
    events=[messages_event(""), updates_event("agent"), interrupt_event()],
    next_nodes=["approval"],
    values=pending_tool_call_state({"name": "show_return_form", "args": {"type": "return"}, "id": "call_1"}),
)


@pytest.mark.asyncio
async def test_completed_run_streams_text_between_start_and_finish():
    graph = FakeGraph([FakeRun(events=[messages_event("Hel"), messages_event("lo"), updates_event("agent")])])
    orchestrator, registry, builder = make_orchestrator(graph)

    events = await collect(orchestrator, make_input())

    assert event_types(events) == [
        "RUN_STARTED",
        "TEXT_MESSAGE_START",
        "TEXT_MESSAGE_CONTENT",
        "TEXT_MESSAGE_CONTENT",
        "TEXT_MESSAGE_END",
        "RUN_FINISHED",
    ]
    assert events[0].thread_id == "t1" and events[0].run_id == "r1"
    assert events[-1].thread_id == "t1" and events[-1].run_id == "r1"
    assert "".join(e.delta for e in events if e.type == EventType.TEXT_MESSAGE_CONTENT) == "Hello"
    assert graph.inputs == [{"messages": ["prompt"], "approval_result": None}]
    assert graph.stream_modes == [["messages", "updates"]]
    assert graph.configs[0]["configurable"] == {"thread_id": "t1", "run_id": "r1"}
    assert len(builder.inputs) == 1
    assert registry.get("t1").interrupted is False
    assert registry.get("t1").busy is False


@pytest.mark.asyncio
async def test_unclosed_block_is_closed_before_finish():
    graph = FakeGraph([FakeRun(events=[messages_event("dangling")])])
    orchestrator, _, _ = make_orchestrator(graph)

    events = await collect(orchestrator, make_input())

    assert event_types(events)[-2:] == ["TEXT_MESSAGE_END", "RUN_FINISHED"]


@pytest.mark.asyncio
async def test_tool_messages_in_stream_do_not_produce_text():
    graph = FakeGraph([FakeRun(events=[tool_message_event("return"), updates_event("action")])])
    orchestrator, _, _ = make_orchestrator(graph)

    events = await collect(orchestrator, make_input())

    assert event_types(events) == ["RUN_STARTED", "TEXT_MESSAGE_START", "TEXT_MESSAGE_END", "RUN_FINISHED"]


@pytest.mark.asyncio
async def test_suspended_run_emits_tool_call_triple_and_marks_thread():
    graph = FakeGraph([SUSPENDING_RUN])
    orchestrator, registry, _ = make_orchestrator(graph)

    events = await collect(orchestrator, make_input())

    assert event_types(events) == [
        "RUN_STARTED",
        "TEXT_MESSAGE_START",
        "TEXT_MESSAGE_END",
        "TOOL_CALL_START",
        "TOOL_CALL_ARGS",
        "TOOL_CALL_END",
        "RUN_FINISHED",
    ]
    start, args, end = events[3:6]
    assert start.tool_call_id == args.tool_call_id == end.tool_call_id == "call_1"
    assert start.tool_call_name == "show_return_form"
    assert args.delta == '{"type": "return"}'
    assert registry.get("t1").interrupted is True


@pytest.mark.asyncio
async def test_multiple_approvals_emitted_in_order():
    run = FakeRun(
        next_nodes=["approval"],
        values=pending_tool_call_state(
            {"name": "show_return_form", "args": {"type": "return"}, "id": "a"},
            {"name": "show_return_form", "args": {"type": "complaint"}, "id": "b"},
        ),
    )
    orchestrator, _, _ = make_orchestrator(FakeGraph([run]))

    events = await collect(orchestrator, make_input())

    tool_events = [(e.type.value, e.tool_call_id) for e in events if e.type.value.startswith("TOOL_CALL")]
    assert tool_events == [
        ("TOOL_CALL_START", "a"), ("TOOL_CALL_ARGS", "a"), ("TOOL_CALL_END", "a"),
        ("TOOL_CALL_START", "b"), ("TOOL_CALL_ARGS", "b"), ("TOOL_CALL_END", "b"),
    ]


@pytest.mark.asyncio
async def test_resume_marks_approved_and_streams_without_input():
    graph = FakeGraph([SUSPENDING_RUN, FakeRun(events=[messages_event("Thanks!"), updates_event("agent")])])
    orchestrator, registry, builder = make_orchestrator(graph)
    await collect(orchestrator, make_input())

    resume = make_input(
        run_id="r2",
        messages=[{"id": "m1", "role": "user", "content": "Hello"}, tool_result_message("call_1")],
    )
    events = await collect(orchestrator, resume)

    assert event_types(events) == [
        "RUN_STARTED", "TEXT_MESSAGE_START", "TEXT_MESSAGE_CONTENT", "TEXT_MESSAGE_END", "RUN_FINISHED",
    ]
    assert graph.state_updates == [{"approval_result": "APPROVED"}]
    assert graph.inputs[1] is None
    assert len(builder.inputs) == 1
    assert registry.get("t1").interrupted is False


@pytest.mark.asyncio
async def test_resume_without_result_message_fails_before_touching_graph():
    graph = FakeGraph([SUSPENDING_RUN])
    orchestrator, registry, _ = make_orchestrator(graph)
    await collect(orchestrator, make_input())

    seen = []
    with pytest.raises(ApprovalPreconditionError):
        async for event in orchestrator.run(make_input(run_id="r2")):
            seen.append(event)

    assert event_types(seen) == ["RUN_STARTED"]
    assert graph.state_updates == []
    assert len(graph.inputs) == 1
    assert registry.get("t1").interrupted is True
    assert registry.get("t1").busy is False


@pytest.mark.asyncio
async def test_graph_is_built_once_per_thread():
    built = []

    def factory():
        graph = FakeGraph([FakeRun(), FakeRun()])
        built.append(graph)
        return graph

    orchestrator = RunOrchestrator(ThreadRegistry(), factory, RecordingInputBuilder())

    await collect(orchestrator, make_input(run_id="r1"))
    await collect(orchestrator, make_input(run_id="r2"))
    await collect(orchestrator, make_input(thread_id="t2"))

    assert len(built) == 2
    assert len(built[0].inputs) == 2


@pytest.mark.asyncio
async def test_threads_do_not_share_interruption_state():
    orchestrator, registry, _ = make_orchestrator(FakeGraph([SUSPENDING_RUN]), FakeGraph([FakeRun()]))

    await collect(orchestrator, make_input(thread_id="a"))
    await collect(orchestrator, make_input(thread_id="b"))

    assert registry.get("a").interrupted is True
    assert registry.get("b").interrupted is False


@pytest.mark.asyncio
async def test_construction_failure_raised_after_run_started():
    def factory():
        raise FileNotFoundError("graphs/agent_executor.py")

    orchestrator = RunOrchestrator(ThreadRegistry(), factory, RecordingInputBuilder())

    seen = []
    with pytest.raises(ConstructionError) as exc_info:
        async for event in orchestrator.run(make_input()):
            seen.append(event)

    assert event_types(seen) == ["RUN_STARTED"]
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)


@pytest.mark.asyncio
async def test_stream_failure_propagates_and_keeps_flag():
    error = RuntimeError("model exploded")
    graph = FakeGraph([SUSPENDING_RUN, FakeRun(events=[messages_event("partial")], error=error)])
    orchestrator, registry, _ = make_orchestrator(graph)
    await collect(orchestrator, make_input())

    seen = []
    with pytest.raises(RuntimeError) as exc_info:
        async for event in orchestrator.run(make_input(run_id="r2", messages=[tool_result_message()])):
            seen.append(event)

    assert exc_info.value is error
    assert "RUN_FINISHED" not in event_types(seen)
    assert "TOOL_CALL_START" not in event_types(seen)
    assert registry.get("t1").interrupted is True
    assert registry.get("t1").busy is False
    assert graph.streams_closed == 2


@pytest.mark.asyncio
async def test_bad_suspended_state_emits_no_partial_tool_calls():
    run = FakeRun(next_nodes=["approval"], values={"approval_result": None})
    orchestrator, registry, _ = make_orchestrator(FakeGraph([run]))

    seen = []
    with pytest.raises(TranslationError):
        async for event in orchestrator.run(make_input()):
            seen.append(event)

    assert not any(e.type.value.startswith("TOOL_CALL") for e in seen)
    assert registry.get("t1").interrupted is False


@pytest.mark.asyncio
async def test_closing_run_early_closes_graph_stream():
    graph = FakeGraph([FakeRun(events=[messages_event("a"), messages_event("b"), updates_event("agent")])])
    orchestrator, registry, _ = make_orchestrator(graph)

    events = orchestrator.run(make_input())
    assert (await events.__anext__()).type == EventType.RUN_STARTED
    assert (await events.__anext__()).type == EventType.TEXT_MESSAGE_START
    await events.aclose()

    assert graph.streams_closed == 1
    assert registry.get("t1").busy is False


@pytest.mark.asyncio
async def test_thread_is_busy_while_streaming():
    graph = FakeGraph([FakeRun(events=[messages_event("a"), updates_event("agent")])])
    orchestrator, _, _ = make_orchestrator(graph)

    events = orchestrator.run(make_input())
    await events.__anext__()
    await events.__anext__()

    assert orchestrator.is_thread_busy("t1") is True
    await events.aclose()
    assert orchestrator.is_thread_busy("t1") is False
    assert orchestrator.is_thread_busy("unknown") is False


@pytest.mark.asyncio
async def test_suspension_without_output_goes_straight_to_tool_calls():
    run = FakeRun(next_nodes=["approval"], values=pending_tool_call_state({"name": "showForm", "args": {}, "id": "t1"}))
    orchestrator, registry, _ = make_orchestrator(FakeGraph([run]))

    events = await collect(orchestrator, make_input(messages=[{"id": "m1", "role": "user", "content": "Hello"}]))

    assert event_types(events) == ["RUN_STARTED", "TOOL_CALL_START", "TOOL_CALL_ARGS", "TOOL_CALL_END", "RUN_FINISHED"]
    assert (events[1].tool_call_id, events[1].tool_call_name) == ("t1", "showForm")
    assert (events[2].tool_call_id, events[2].delta) == ("t1", "{}")
    assert events[3].tool_call_id == "t1"
    assert registry.get("t1").interrupted is True
