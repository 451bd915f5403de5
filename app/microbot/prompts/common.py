"""Shared prompt helpers used across prompt modules."""

from __future__ import annotations
from typing import Optional

from ..models import LLMSettings

SHORT_PROMPT_WORDS = 8
SHORT_REPLY_TOKENS = 300


def latest_user_text(messages: list[dict[str, str]]) -> str:
    return next(
        (m["content"] for m in reversed(messages) if m.get("role") == "user"),
        "",
    )


def response_budget(user_text: str, settings: LLMSettings) -> int:
    """Short questions get a short reply budget."""
    if len(user_text.split()) < SHORT_PROMPT_WORDS:
        return min(settings.max_tokens, SHORT_REPLY_TOKENS)
    return settings.max_tokens


def assemble(
    *, system: Optional[str], history: list[dict[str, str]]
) -> list[dict[str, str]]:
    head = [{"role": "system", "content": system}] if system else []
    return [*head, *history]
