"""
Wires concrete services into a ChatSessionController from Settings.
UI entry points call build_controller() once per browser session.
"""

from __future__ import annotations
import logging
from typing import Optional

from .config import Settings, get_settings
from .controller import ChatSessionController
from .interfaces import CompletionService
from .persistence.session_store import LocalSessionStore
from .services.completion import HttpCompletionClient
from .services.llm_openai import OpenAILLMClient
from .services.voice import make_transcriber

logger = logging.getLogger(__name__)


def build_completion(settings: Settings) -> CompletionService:
    """Remote endpoint when one is configured, otherwise the provider directly."""
    if settings.completion_endpoint:
        logger.info("Using completion endpoint %s", settings.completion_endpoint)
        return HttpCompletionClient(
            settings.completion_endpoint, timeout=settings.request_timeout
        )
    return OpenAILLMClient(
        settings.api_key,
        api_base=settings.api_base,
        settings=settings.llm.to_settings(),
        stream=settings.stream,
        timeout=settings.request_timeout,
    )


def build_controller(settings: Optional[Settings] = None) -> ChatSessionController:
    settings = settings or get_settings()
    return ChatSessionController.from_store(
        LocalSessionStore(settings.storage_dir),
        build_completion(settings),
        transcriber=make_transcriber(
            settings.api_key,
            api_base=settings.api_base,
            model=settings.transcription_model,
        ),
    )
