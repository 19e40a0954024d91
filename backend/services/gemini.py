"""Shared Gemini model access for the AI endpoints."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Awaitable, Callable, List, Union

import google.generativeai as genai

from backend.errors import UpstreamError
from backend.settings import get_settings

logger = logging.getLogger(__name__)

Contents = Union[str, List[dict]]
TextGenerator = Callable[..., Awaitable[str]]


class GeminiInitializationError(UpstreamError):
    """Raised when the Gemini client cannot be configured."""


@lru_cache(maxsize=1)
def _configured_model_name() -> str:
    settings = get_settings()
    if not settings.gemini_api_key:
        raise GeminiInitializationError("GEMINI_API_KEY is not set; AI features are disabled")
    genai.configure(api_key=settings.gemini_api_key)
    logger.info("Configured Gemini client: model=%s", settings.gemini_model)
    return settings.gemini_model


@lru_cache(maxsize=1)
def get_gemini_model():
    return genai.GenerativeModel(_configured_model_name())


def clear_model_cache() -> None:
    get_gemini_model.cache_clear()
    _configured_model_name.cache_clear()


async def generate_text(contents: Contents, system_instruction: str | None = None) -> str:
    """Send one prompt (or a chat history) to Gemini and return the reply text.

    Every failure surfaces as :class:`UpstreamError`.
    """
    try:
        if system_instruction:
            model = genai.GenerativeModel(_configured_model_name(), system_instruction=system_instruction)
        else:
            model = get_gemini_model()
        response = await model.generate_content_async(contents)
        text = response.text
    except UpstreamError:
        raise
    except Exception as exc:
        raise UpstreamError(f"Gemini request failed: {exc.__class__.__name__}") from exc
    if not text:
        raise UpstreamError("Gemini returned an empty response")
    return text


def get_text_generator() -> TextGenerator:
    return generate_text
