"""AG-UI protocol Pydantic models"""

from .messages import Message, TextMessage, ActionExecutionMessage, ResultMessage
from .runs import RunAgentInput
from .events import (
    EventType,
    BaseEvent,
    ProtocolEvent,
    RunStartedEvent,
    RunFinishedEvent,
    RunErrorEvent,
    TextMessageStartEvent,
    TextMessageContentEvent,
    TextMessageEndEvent,
    ToolCallStartEvent,
    ToolCallArgsEvent,
    ToolCallEndEvent,
)
from .threads import ThreadInfo
from .errors import AgentProtocolError, get_error_type

__all__ = [
    # Messages
    "Message", "TextMessage", "ActionExecutionMessage", "ResultMessage",
    # Runs
    "RunAgentInput",
    # Events
    "EventType", "BaseEvent", "ProtocolEvent", "RunStartedEvent", "RunFinishedEvent", "RunErrorEvent",
    "TextMessageStartEvent", "TextMessageContentEvent", "TextMessageEndEvent",
    "ToolCallStartEvent", "ToolCallArgsEvent", "ToolCallEndEvent",
    # Threads
    "ThreadInfo",
    # Errors
    "AgentProtocolError", "get_error_type",
]
