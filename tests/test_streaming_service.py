import pytest
from pydantic import TypeAdapter

from agui_server.models import ProtocolEvent, RunAgentInput, TextMessageContentEvent
from agui_server.services.run_orchestrator import RunOrchestrator
from agui_server.services.streaming_service import GENERIC_ERROR_MESSAGE, StreamingService, describe_error
from agui_server.services.thread_registry import ThreadRegistry
from tests.utils.test_helpers import (
    FakeGraph,
    FakeRun,
    event_types,
    messages_event,
    parse_sse,
    run_payload,
    updates_event,
)


PROTOCOL_EVENTS = TypeAdapter(ProtocolEvent)


class StaticInputBuilder:
    def build(self, run_input):
        return {"messages": [], "approval_result": None}


def make_service(factory) -> StreamingService:
    return StreamingService(RunOrchestrator(ThreadRegistry(), factory, StaticInputBuilder()))


async def stream(service, **payload):
    frames = [frame async for frame in service.stream_run(RunAgentInput.model_validate(run_payload(**payload)))]
    return frames, parse_sse("".join(frames))


@pytest.mark.asyncio
async def test_frames_are_single_data_lines():
    graph = FakeGraph([FakeRun(events=[messages_event("Hi"), updates_event("agent")])])
    service = make_service(lambda: graph)

    frames, events = await stream(service)

    assert all(frame.startswith("data: ") and frame.endswith("\n\n") for frame in frames)
    assert event_types(events) == [
        "RUN_STARTED", "TEXT_MESSAGE_START", "TEXT_MESSAGE_CONTENT", "TEXT_MESSAGE_END", "RUN_FINISHED",
    ]
    assert events[0] == {"type": "RUN_STARTED", "threadId": "t1", "runId": "r1"}
    assert events[2] == {"type": "TEXT_MESSAGE_CONTENT", "messageId": "r1_msg_1", "delta": "Hi"}
    assert events[1]["role"] == "assistant"

    decoded = [PROTOCOL_EVENTS.validate_python(e) for e in events]
    assert isinstance(decoded[2], TextMessageContentEvent)
    assert decoded[2].message_id == "r1_msg_1"


@pytest.mark.asyncio
async def test_failure_becomes_single_run_error():
    graph = FakeGraph([FakeRun(events=[messages_event("par")], error=RuntimeError("401 Unauthorized"))])
    service = make_service(lambda: graph)

    _, events = await stream(service)

    assert event_types(events) == ["RUN_STARTED", "TEXT_MESSAGE_START", "TEXT_MESSAGE_CONTENT", "RUN_ERROR"]
    assert events[-1]["code"] == "AGENT_ERROR"
    assert "authenticate" in events[-1]["message"]


@pytest.mark.asyncio
async def test_construction_failure_reported_after_run_started():
    def factory():
        raise RuntimeError("no graph")

    _, events = await stream(make_service(factory))

    assert event_types(events) == ["RUN_STARTED", "RUN_ERROR"]
    assert events[1]["message"] == GENERIC_ERROR_MESSAGE


@pytest.mark.parametrize(
    "error, fragment",
    [
        (ConnectionRefusedError("[Errno 111]"), "unreachable"),
        (RuntimeError("Failed to connect to localhost:11434"), "unreachable"),
        (RuntimeError("Error code: 403 - forbidden"), "authenticate"),
        (RuntimeError("Incorrect API key provided"), "authenticate"),
        (RuntimeError("503 Service Unavailable"), "overloaded"),
        (RuntimeError("model is overloaded"), "overloaded"),
        (RuntimeError("Request timed out."), "too long"),
        (TimeoutError(), "too long"),
    ],
)
def test_describe_error_categories(error, fragment):
    assert fragment in describe_error(error)


def test_describe_error_looks_at_causes():
    try:
        try:
            raise RuntimeError("401 Unauthorized")
        except RuntimeError as inner:
            raise ValueError("model call failed") from inner
    except ValueError as outer:
        assert "authenticate" in describe_error(outer)


def test_describe_error_falls_back_to_generic_message():
    assert describe_error(ValueError("last user message not found")) == GENERIC_ERROR_MESSAGE
