"""
Purpose: Guardrails for inputs reaching the completion endpoint.
Content: early, predictable failures; prevent oversized requests and junk roles.
"""

from __future__ import annotations

MAX_INPUT_CHARS = 8000
MAX_HISTORY_MESSAGES = 100


class InputRejected(ValueError):
    """Request payload fails validation; reported to the caller as 4xx."""


class DefaultSecurity:
    def sanitize_for_prompt(self, text: str) -> str:
        return (text or "").replace("\x00", "").strip()

    def validate_user_input(self, text: str) -> None:
        if not text.strip():
            raise InputRejected("Please enter a non-empty message.")
        if len(text) > MAX_INPUT_CHARS:
            raise InputRejected("Your message is too long.")

    def clean_history(self, messages: list[dict]) -> list[dict[str, str]]:
        """
        Drop entries without role/content, coerce unknown roles to "user",
        keep the most recent MAX_HISTORY_MESSAGES.
        """
        cleaned = []
        for m in messages:
            role = (m.get("role") or "").strip()
            content = self.sanitize_for_prompt(str(m.get("content") or ""))
            if not role or not content:
                continue
            cleaned.append(
                {
                    "role": "assistant" if role == "assistant" else "user",
                    "content": content,
                }
            )
        return cleaned[-MAX_HISTORY_MESSAGES:]
