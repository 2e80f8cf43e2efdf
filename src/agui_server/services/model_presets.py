"""Chat model presets and resolution of the fallback chain"""
import logging
from typing import Callable, Dict, List

from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from ..core.config import Settings
from .model_chain import FallbackModelChain

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"
GITHUB_MODELS_BASE_URL = "https://models.github.ai/inference"


def _openai_compatible(model: str, base_url: str, api_key: str, settings: Settings) -> ChatOpenAI:
    # Retries are owned by FallbackModelChain, so the client must not retry on its own.
    return ChatOpenAI(
        model=model,
        base_url=base_url,
        api_key=api_key,
        temperature=0.1,
        timeout=settings.model_timeout_seconds,
        max_retries=0,
    )


def _ollama(model: str) -> Callable[[Settings], BaseChatModel]:
    def build(settings: Settings) -> BaseChatModel:
        # Ollama serves an OpenAI-compatible API under /v1; the key is ignored but required.
        base_url = settings.ollama_base_url.rstrip("/") + "/v1"
        return _openai_compatible(model, base_url, "ollama", settings)
    return build


def _openai_gpt_4o_mini(settings: Settings) -> BaseChatModel:
    if not settings.openai_api_key:
        raise ValueError("OPENAI_API_KEY is not set")
    return _openai_compatible("gpt-4o-mini", OPENAI_BASE_URL, settings.openai_api_key, settings)


def _github_models_gpt_4o_mini(settings: Settings) -> BaseChatModel:
    if not settings.github_models_token:
        raise ValueError("GITHUB_MODELS_TOKEN is not set")
    return _openai_compatible("gpt-4o-mini", GITHUB_MODELS_BASE_URL, settings.github_models_token, settings)


MODEL_PRESETS: Dict[str, Callable[[Settings], BaseChatModel]] = {
    "openai-gpt-4o-mini": _openai_gpt_4o_mini,
    "github-models-gpt-4o-mini": _github_models_gpt_4o_mini,
    "ollama-qwen2.5-7b": _ollama("qwen2.5:7b"),
    "ollama-qwen3-14b": _ollama("qwen3:14b"),
    "ollama-kimi-k2.5-cloud": _ollama("kimi-k2.5:cloud"),
}

FINAL_FALLBACK = "ollama-qwen2.5-7b"


def build_preset(name: str, settings: Settings) -> BaseChatModel:
    if name not in MODEL_PRESETS:
        raise ValueError(f"Unknown model preset: {name}. Available: {', '.join(MODEL_PRESETS)}")
    return MODEL_PRESETS[name](settings)


def resolve_model_chain(settings: Settings) -> FallbackModelChain:
    """Build the fallback chain: primary, OpenAI, GitHub Models, then local Ollama.

    Optional entries that fail to build are logged and skipped; the Ollama
    preset is always appended last.
    """
    models: List[BaseChatModel] = []

    if settings.primary_model:
        try:
            models.append(build_preset(settings.primary_model, settings))
            logger.info(f"Primary model configured: {settings.primary_model}")
        except Exception as e:
            logger.warning(f"Primary model {settings.primary_model} failed to initialize: {e}")

    if settings.openai_api_key:
        try:
            models.append(build_preset("openai-gpt-4o-mini", settings))
            logger.info("OpenAI fallback added to chain")
        except Exception as e:
            logger.warning(f"OpenAI fallback could not be added: {e}")

    if settings.github_models_token:
        try:
            models.append(build_preset("github-models-gpt-4o-mini", settings))
            logger.info("GitHub Models fallback added to chain")
        except Exception as e:
            logger.warning(f"GitHub Models fallback could not be added: {e}")

    models.append(build_preset(FINAL_FALLBACK, settings))
    logger.info(f"Ollama qwen2.5 added as final fallback. Fallback chain length: {len(models)}")

    return FallbackModelChain(models, retry_delay=settings.retry_delay_seconds)
