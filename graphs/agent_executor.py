"""Customer service agent graph with human approval for form tools.

Flow:
    agent -> (gated tool call)   -> approval -> action -> agent
          -> (other tool calls)  -> action -> agent
          -> (plain answer)      -> END

The graph is compiled with ``interrupt_before=["approval"]``: a run that
proposes ``show_return_form`` suspends there and the client renders the form.
When the next run resumes the thread with ``approval_result = "APPROVED"`` the
tool executes; any other value feeds a rejection back to the agent.
"""
from functools import lru_cache
from typing import Annotated, List, Literal, Optional, TypedDict

from langchain_core.messages import AIMessage, BaseMessage, ToolMessage, message_chunk_to_message
from langchain_core.runnables import RunnableConfig
from langchain_core.tools import tool
from langgraph.graph import StateGraph, add_messages, END
from langgraph.prebuilt import ToolNode

from agui_server.constants import APPROVAL_RESULT_PROPERTY, APPROVED
from agui_server.core.config import get_settings
from agui_server.services.model_presets import resolve_model_chain

REJECTION_MESSAGE = "The user did not approve this action."


class AgentState(TypedDict):
    """Conversation messages plus the approval decision for the pending tool call"""
    messages: Annotated[List[BaseMessage], add_messages]
    approval_result: Optional[str]


@tool
def show_return_form(type: str) -> str:
    """Show the return or complaint form to the user.

    Args:
        type: "return" for a product return, "complaint" for a complaint.
    """
    return type


TOOLS = [show_return_form]
APPROVAL_GATED_TOOLS = {"show_return_form"}


@lru_cache(maxsize=1)
def get_model_chain():
    """Fallback chain with the agent tools bound, built on first use"""
    return resolve_model_chain(get_settings()).bind_tools(TOOLS)


async def call_model(state: AgentState, config: RunnableConfig | None = None) -> AgentState:
    """Stream the model's answer; chunks surface through the messages stream mode"""
    response = None
    async for chunk in get_model_chain().astream(state["messages"], config=config):
        response = chunk if response is None else response + chunk
    if response is None:
        response = AIMessage(content="")
    return {"messages": [message_chunk_to_message(response)]}


def approval_gate(state: AgentState) -> AgentState:
    """Runs only after resume; records a rejection for every pending call"""
    if state.get(APPROVAL_RESULT_PROPERTY) == APPROVED:
        return {}
    last = state["messages"][-1]
    return {
        "messages": [
            ToolMessage(content=REJECTION_MESSAGE, tool_call_id=call["id"], name=call["name"])
            for call in last.tool_calls
        ]
    }


def route_after_agent(state: AgentState) -> Literal["approval", "action", "__end__"]:
    last = state["messages"][-1]
    tool_calls = getattr(last, "tool_calls", None) or []
    if not tool_calls:
        return END
    if any(call["name"] in APPROVAL_GATED_TOOLS for call in tool_calls):
        return "approval"
    return "action"


def route_after_approval(state: AgentState) -> Literal["action", "agent"]:
    if state.get(APPROVAL_RESULT_PROPERTY) == APPROVED:
        return "action"
    return "agent"


def build_workflow() -> StateGraph:
    workflow = StateGraph(AgentState)

    workflow.add_node("agent", call_model)
    workflow.add_node("approval", approval_gate)
    workflow.add_node("action", ToolNode(TOOLS))

    workflow.set_entry_point("agent")
    workflow.add_conditional_edges("agent", route_after_agent)
    workflow.add_conditional_edges("approval", route_after_approval)
    workflow.add_edge("action", "agent")
    return workflow


# Compile the graph for export; the server gives each thread its own checkpointer
graph = build_workflow().compile(interrupt_before=["approval"])
