"""Translation of LangGraph step outputs into AG-UI text message events.

A run's step outputs are either incremental text fragments streamed by the
model or opaque node events (one per finished node). Fragments are grouped into
a single open text block; the next node event closes that block. A node event
arriving while no block is open gets its own start/end pair, even when empty.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Union

from ..core.errors import TranslationError
from ..models import (
    BaseEvent,
    TextMessageContentEvent,
    TextMessageEndEvent,
    TextMessageStartEvent,
)

logger = logging.getLogger(__name__)

INTERRUPT_KEY = "__interrupt__"


@dataclass(frozen=True)
class Fragment:
    """Incremental text streamed by the model"""
    text: str


@dataclass(frozen=True)
class NodeEvent:
    """A graph node finished; ``payload`` is the node's state update"""
    node: str
    payload: Any = field(default=None, compare=False)
    text: Optional[str] = None


StepOutput = Union[Fragment, NodeEvent]


def content_to_text(content: Any) -> str:
    """Extract text from message content (string or list of content blocks)"""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    raise TranslationError(f"Unsupported message content type: {type(content).__name__}")


def _is_assistant_message(message: Any) -> bool:
    return getattr(message, "type", None) in ("AIMessageChunk", "ai")


def _assistant_text(update: Any) -> Optional[str]:
    # Text of an assistant message a node returned without streaming it
    if not isinstance(update, dict):
        return None
    messages = update.get("messages") or []
    if not isinstance(messages, list):
        messages = [messages]
    for message in reversed(messages):
        if _is_assistant_message(message):
            return content_to_text(message.content) or None
    return None


def to_step_outputs(raw_event: Any) -> List[StepOutput]:
    """Convert one raw ``astream(stream_mode=[...])`` item into step outputs.

    ``("messages", (chunk, metadata))`` becomes a Fragment when the chunk comes
    from the model; tool messages echoed in messages mode are dropped.
    ``("updates", {node: update})`` becomes one NodeEvent per node; the
    interrupt marker LangGraph emits on suspension is dropped.
    """
    if not isinstance(raw_event, tuple) or len(raw_event) != 2:
        raise TranslationError(f"Unexpected graph step output: {raw_event!r}")

    stream_mode, payload = raw_event
    if stream_mode == "messages":
        if not isinstance(payload, tuple) or len(payload) != 2:
            raise TranslationError(f"Unexpected messages payload: {payload!r}")
        chunk, _metadata = payload
        if not _is_assistant_message(chunk):
            return []
        return [Fragment(content_to_text(chunk.content))]

    if stream_mode == "updates":
        if not isinstance(payload, dict):
            raise TranslationError(f"Unexpected updates payload: {payload!r}")
        return [
            NodeEvent(node=node, payload=update, text=_assistant_text(update))
            for node, update in payload.items()
            if node != INTERRUPT_KEY
        ]

    raise TranslationError(f"Unsupported stream mode: {stream_mode!r}")


def _render_node_text(event: NodeEvent) -> Optional[str]:
    return event.text


class EventTranslator:
    """Per-run translator holding the open text block state"""

    def __init__(self, run_id: str, render_node: Optional[Callable[[NodeEvent], Optional[str]]] = None):
        self.run_id = run_id
        self._render_node = render_node or _render_node_text
        self._counter = 0
        self._open_message_id: Optional[str] = None

    @property
    def open_message_id(self) -> Optional[str]:
        return self._open_message_id

    def _new_message_id(self) -> str:
        self._counter += 1
        return f"{self.run_id}_msg_{self._counter}"

    def translate(self, step: StepOutput) -> List[BaseEvent]:
        if isinstance(step, Fragment):
            return self._on_fragment(step)
        if isinstance(step, NodeEvent):
            return self._on_node_event(step)
        raise TranslationError(f"Cannot translate step output of type {type(step).__name__}")

    def _on_fragment(self, fragment: Fragment) -> List[BaseEvent]:
        events: List[BaseEvent] = []
        message_id = self._open_message_id
        if message_id is None:
            logger.debug("STREAMING START")
            message_id = self._open_message_id = self._new_message_id()
            events.append(TextMessageStartEvent(message_id=message_id))

        if fragment.text:
            events.append(TextMessageContentEvent(message_id=message_id, delta=fragment.text))
        else:
            logger.debug("STREAMING CHUNK IS EMPTY")
        return events

    def _on_node_event(self, event: NodeEvent) -> List[BaseEvent]:
        if self._open_message_id is not None:
            logger.debug(f"STREAMING END (node '{event.node}')")
            message_id, self._open_message_id = self._open_message_id, None
            return [TextMessageEndEvent(message_id=message_id)]

        logger.debug(f"NODE '{event.node}'")
        message_id = self._new_message_id()
        events: List[BaseEvent] = [TextMessageStartEvent(message_id=message_id)]
        text = self._render_node(event)
        if text:
            events.append(TextMessageContentEvent(message_id=message_id, delta=text))
        events.append(TextMessageEndEvent(message_id=message_id))
        return events

    def finish(self) -> List[BaseEvent]:
        """Close a text block left open when the graph stopped streaming"""
        if self._open_message_id is None:
            return []
        message_id, self._open_message_id = self._open_message_id, None
        return [TextMessageEndEvent(message_id=message_id)]
