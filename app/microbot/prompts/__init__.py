"""Facade over the prompt modules; the one place clients build payloads from."""

from __future__ import annotations
from typing import Optional

from ..models import LLMSettings
from . import assistant as _assistant
from .common import (
    assemble as _assemble,
    latest_user_text,
    response_budget as _response_budget,
)


class DefaultPromptFactory:
    def build_system(self, *, user_text: str) -> str:
        return _assistant.build_assistant_system(user_text)

    def response_budget(self, *, user_text: str, settings: LLMSettings) -> int:
        return _response_budget(user_text, settings)

    def assemble(
        self, *, system: Optional[str], history: list[dict[str, str]]
    ) -> list[dict[str, str]]:
        return _assemble(system=system, history=history)

    def for_history(
        self, history: list[dict[str, str]], settings: LLMSettings
    ) -> tuple[list[dict[str, str]], int]:
        """System-prefixed payload and the reply token budget for a history."""
        user_text = latest_user_text(history)
        system = self.build_system(user_text=user_text)
        return (
            self.assemble(system=system, history=history),
            self.response_budget(user_text=user_text, settings=settings),
        )
