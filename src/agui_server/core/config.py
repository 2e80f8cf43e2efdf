"""Runtime configuration read from the environment and ``.env``"""
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful and friendly customer service assistant. "
    "Answer questions about returns, complaints, products, store locations and payment options. "
    "When the user clearly wants to return a product or file a complaint, call the "
    "show_return_form tool with type 'return' or 'complaint'. When the intent is ambiguous, "
    "ask one clarifying question first. Respond in the user's language."
)


class Settings(BaseSettings):
    """Server settings; empty variables fall back to the defaults below"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
        populate_by_name=True,
    )

    langgraph_config: str = Field(default="langgraph.json", alias="LANGGRAPH_CONFIG")
    graph_id: str = Field(default="agent", alias="AGUI_GRAPH_ID")

    # Model chain
    primary_model: Optional[str] = Field(default=None, alias="AGUI_PRIMARY_MODEL")
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    github_models_token: Optional[str] = Field(default=None, alias="GITHUB_MODELS_TOKEN")
    ollama_base_url: str = Field(default="http://localhost:11434", alias="OLLAMA_BASE_URL")
    retry_delay_seconds: float = Field(default=1.0, ge=0, alias="AGUI_RETRY_DELAY_SECONDS")
    model_timeout_seconds: float = Field(default=30.0, gt=0, alias="AGUI_MODEL_TIMEOUT_SECONDS")

    thread_ttl_seconds: Optional[float] = Field(default=3600.0, alias="AGUI_THREAD_TTL_SECONDS")
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, alias="AGUI_SYSTEM_PROMPT")

    @field_validator("thread_ttl_seconds")
    @classmethod
    def _zero_ttl_disables_eviction(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            return None
        return value


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings so every module shares one instance"""
    return Settings()
