"""
Canonical data shapes, shared truth for typing/validation between layers.

Typical contents:
- Message (id, role, content, timestamp, error).
- ChatSession (id, title, timestamp, preview, messages).
- ChatState (sessions, active session id, sidebar preference).
- LLMSettings (model, temperature, top_p, max_tokens, penalties).

Message and ChatSession are frozen: every change produces a new object via
dataclasses.replace, so the collection is always swapped whole.
"""

from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


DEFAULT_TITLE = "New Chat"
DEFAULT_PREVIEW = "Start a conversation..."
TITLE_MAX_WORDS = 6
PREVIEW_MAX_CHARS = 100


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=utcnow)
    error: bool = False

    def as_payload(self) -> dict[str, str]:
        """The {role, content} pair sent to completion backends."""
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class ChatSession:
    id: str = field(default_factory=new_id)
    title: str = DEFAULT_TITLE
    timestamp: datetime = field(default_factory=utcnow)
    preview: str = DEFAULT_PREVIEW
    messages: tuple[Message, ...] = ()


@dataclass
class ChatState:
    sessions: tuple[ChatSession, ...] = ()
    active_id: Optional[str] = None
    sidebar_collapsed: bool = True


@dataclass
class Turn:
    """Per-session interaction bookkeeping: idle / pending / error."""

    pending: bool = False
    error: Optional[str] = None
    draft: Optional[str] = None


@dataclass
class LLMSettings:
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    top_p: float = 0.8
    max_tokens: int = 1024
    frequency_penalty: float = 1.0
    presence_penalty: float = 0.3


def title_from(text: str) -> str:
    words = text.split()
    if len(words) <= TITLE_MAX_WORDS:
        return text.strip()
    return " ".join(words[:TITLE_MAX_WORDS]) + "..."


def preview_from(text: str) -> str:
    if len(text) <= PREVIEW_MAX_CHARS:
        return text
    return text[: PREVIEW_MAX_CHARS - 3] + "..."
