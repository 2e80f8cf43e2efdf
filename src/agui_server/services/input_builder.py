"""Initial graph state built from an AG-UI run request"""
import logging
from typing import Any, Dict, Protocol

from langchain_core.messages import HumanMessage, SystemMessage

from ..constants import APPROVAL_RESULT_PROPERTY
from ..models import RunAgentInput

logger = logging.getLogger(__name__)

LOG_PREVIEW_CHARS = 80


class InputBuilder(Protocol):
    def build(self, run_input: RunAgentInput) -> Dict[str, Any]: ...


def truncate_for_log(value: Any, keep: int = LOG_PREVIEW_CHARS) -> str:
    """Shorten long values (inline images, large payloads) for log lines"""
    text = value if isinstance(value, str) else str(value)
    if len(text) <= keep:
        return text
    return f"{text[:keep]}...[{len(text)} chars]"


class MessagesInputBuilder:
    """System prompt plus the latest user message.

    Earlier turns live in the thread's checkpoint, so only the newest user
    message is sent. ``approval_result`` is cleared so a fresh turn never
    inherits the previous approval.
    """

    def __init__(self, system_prompt: str):
        self.system_prompt = system_prompt

    def build(self, run_input: RunAgentInput) -> Dict[str, Any]:
        user_message = run_input.last_user_message()
        if user_message is None:
            raise ValueError("last user message not found")

        content = user_message.content or ""
        logger.debug(f"Graph input for thread {run_input.thread_id}: {truncate_for_log(content)}")
        return {
            "messages": [
                SystemMessage(content=self.system_prompt),
                HumanMessage(content=content, id=user_message.id),
            ],
            APPROVAL_RESULT_PROPERTY: None,
        }
