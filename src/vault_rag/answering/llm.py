"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — key from settings or from the caller.
2. **OpenAI-compatible endpoint** — set ``LLM_BASE_URL``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from vault_rag.errors import LLMCallError, ValidationError

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

    from vault_rag.config import Settings

logger = logging.getLogger(__name__)

# Display names sent by the web client.
MODEL_ALIASES = {
    "GPT 3.5 Turbo": "gpt-3.5-turbo",
    "GPT 4": "gpt-4",
    "GPT 4o": "gpt-4o",
}
# Completion-only models with no chat endpoint.
RETIRED_MODELS = frozenset({"GPT Davinci", "text-davinci-003"})
STOP_SEQUENCES = ["Human:", "AI:"]


def ensure_supported_model(model: str | None) -> None:
    """Raise :class:`ValidationError` for models the chat API cannot serve."""
    if model in RETIRED_MODELS:
        raise ValidationError(f"Model {model!r} is no longer supported")


def resolve_model(model: str | None, default: str) -> str:
    """Map a display name to an API model id; empty means *default*."""
    ensure_supported_model(model)
    if not model:
        return default
    return MODEL_ALIASES.get(model, model)


def get_llm(settings: Settings, model: str | None = None, api_key: str | None = None) -> ChatOpenAI:
    """Return the configured chat model.

    *api_key* overrides ``settings.openai_api_key`` for a single request.

    Raises
    ------
    LLMCallError
        If the client cannot be built, e.g. no API key is available.
    """
    kwargs: dict = {
        "model": resolve_model(model, settings.llm_model_name),
        "temperature": settings.llm_temperature,
        "max_tokens": settings.llm_max_tokens,
        "top_p": 1.0,
        "frequency_penalty": 0.0,
        "presence_penalty": 0.6,
        "api_key": api_key or settings.openai_api_key,
    }
    if settings.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.llm_base_url)
        kwargs["base_url"] = settings.llm_base_url
    try:
        return ChatOpenAI(**kwargs)
    except Exception as exc:
        raise LLMCallError(f"Error creating language model client: {exc}") from exc


def call_llm(llm: BaseChatModel, prompt: str, instructions: str) -> tuple[str, int]:
    """Send *prompt* with system *instructions*; return ``(text, total_tokens)``.

    Raises
    ------
    LLMCallError
        If the client raises.
    """
    messages = [SystemMessage(content=instructions), HumanMessage(content=prompt)]
    try:
        response = llm.invoke(messages, stop=STOP_SEQUENCES)
    except Exception as exc:
        raise LLMCallError(f"Error calling language model: {exc}") from exc

    content = response.content if isinstance(response.content, str) else str(response.content)
    usage = getattr(response, "usage_metadata", None) or {}
    tokens = int(usage.get("total_tokens", 0))
    return content, tokens
