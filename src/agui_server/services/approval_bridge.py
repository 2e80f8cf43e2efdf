"""Bridge between graph suspensions and client-side tool approvals"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping
from uuid import uuid4

from ..constants import APPROVAL_RESULT_PROPERTY, APPROVED
from ..core.errors import TranslationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Approval:
    """A pending tool call the client has to approve (e.g. by filling a form)"""
    tool_id: str
    tool_name: str
    tool_args: str


def _args_to_json(args: Any) -> str:
    if args is None:
        return "{}"
    if isinstance(args, str):
        return args
    return json.dumps(args, ensure_ascii=False)


def _is_assistant_message(message: Any) -> bool:
    return getattr(message, "type", None) in ("ai", "AIMessageChunk")


def extract_approvals(state_values: Mapping[str, Any]) -> List[Approval]:
    """Map the tool calls proposed by the last assistant message to approvals.

    Tool calls with a blank id get a fresh uuid so every approval can be
    referenced by the client. Returns an empty list when the last message is
    not an assistant message or proposes no tool calls.
    """
    if "messages" not in state_values:
        raise TranslationError("messages not found in suspended graph state")

    messages = state_values["messages"] or []
    if not messages:
        return []

    last = messages[-1]
    if not _is_assistant_message(last):
        return []

    approvals = []
    for tool_call in getattr(last, "tool_calls", None) or []:
        tool_id = tool_call.get("id") or ""
        if not tool_id.strip():
            tool_id = str(uuid4())
        approvals.append(
            Approval(
                tool_id=tool_id,
                tool_name=tool_call["name"],
                tool_args=_args_to_json(tool_call.get("args")),
            )
        )
    logger.debug(f"Extracted {len(approvals)} approval(s) from suspended state")
    return approvals


def build_resume_marker() -> Dict[str, str]:
    """State update that routes a resumed graph past its approval gate.

    The tool result payload itself is never forwarded here.
    """
    return {APPROVAL_RESULT_PROPERTY: APPROVED}
