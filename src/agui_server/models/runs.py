"""Run-related Pydantic models for the AG-UI protocol"""
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field

from .messages import Message, ResultMessage, TextMessage


class RunAgentInput(BaseModel):
    """Request body of a single agent run"""
    thread_id: str = Field(..., alias="threadId", description="Conversation the run belongs to")
    run_id: str = Field(..., alias="runId", description="Client-generated run identifier")
    state: Optional[Any] = Field(None, description="Client-side agent state")
    messages: List[Message] = Field(default_factory=list, description="Conversation messages, oldest first")
    tools: List[Dict[str, Any]] = Field(default_factory=list, description="Client-side tool definitions")
    context: List[Any] = Field(default_factory=list, description="Auxiliary context entries")
    forwarded_props: Optional[Any] = Field(None, alias="forwardedProps")

    class Config:
        populate_by_name = True

    def last_user_message(self) -> Optional[TextMessage]:
        for message in reversed(self.messages):
            if isinstance(message, TextMessage) and message.is_user:
                return message
        return None

    def last_result_message(self) -> Optional[ResultMessage]:
        for message in reversed(self.messages):
            if isinstance(message, ResultMessage):
                return message
        return None
