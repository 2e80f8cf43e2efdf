"""Thread-related Pydantic models"""
from typing import Optional
from pydantic import BaseModel, Field


class ThreadInfo(BaseModel):
    """Registry view of a conversation thread"""
    thread_id: str
    interrupted: bool = Field(False, description="Last run suspended awaiting tool approval")
    busy: bool = Field(False, description="A run is currently in flight")
    idle_seconds: Optional[float] = Field(None, description="Seconds since the thread was last used")
