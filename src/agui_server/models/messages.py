"""AG-UI input message models.

Messages arrive role-discriminated: ``user``/``assistant``/``system``/``developer``
decode as TextMessage, ``tool`` as ResultMessage and ``action`` as
ActionExecutionMessage. A message without a role falls back to TextMessage and
is then rejected for the missing role. Unknown fields are ignored.
"""
from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Discriminator, Field, Tag


class TextMessage(BaseModel):
    """Plain text message authored by the user, assistant, system or developer"""
    id: str
    role: Literal["user", "assistant", "system", "developer"]
    content: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    parent_message_id: Optional[str] = Field(None, alias="parentMessageId")

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def is_user(self) -> bool:
        return self.role == "user"


class ActionExecutionMessage(BaseModel):
    """A tool invocation recorded on the client side"""
    id: str
    role: Literal["action"] = "action"
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    parent_message_id: Optional[str] = Field(None, alias="parentMessageId")

    class Config:
        populate_by_name = True
        frozen = True


class ResultMessage(BaseModel):
    """Result of a tool call submitted by the client (e.g. a filled-in form)"""
    id: str
    role: Literal["tool"] = "tool"
    action_execution_id: str = Field(..., alias="toolCallId")
    action_name: Optional[str] = Field(None, alias="name")
    result: Optional[str] = Field(None, alias="content")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Config:
        populate_by_name = True
        frozen = True


def _message_kind(value: Any) -> str:
    role = value.get("role") if isinstance(value, dict) else getattr(value, "role", None)
    if role == "tool":
        return "result"
    if role == "action":
        return "action"
    return "text"


Message = Annotated[
    Union[
        Annotated[TextMessage, Tag("text")],
        Annotated[ActionExecutionMessage, Tag("action")],
        Annotated[ResultMessage, Tag("result")],
    ],
    Discriminator(_message_kind),
]

