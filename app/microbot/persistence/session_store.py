"""
Purpose: Session transcript & UI preference storage.
Why: Reopen chats after a restart, the way the browser app kept them in local storage.

What is inside:
- LocalSessionStore: one text file per storage key under a directory.
  "microbot-sessions" holds a JSON array of sessions (ISO timestamps),
  "microbot-sidebar-collapsed" holds a JSON boolean.
- InMemorySessionStore: same protocol, nothing durable.

Loading never raises: unreadable or corrupt payloads are logged and replaced
by defaults. Saving is best-effort.

Testing:
Local: tmp directory fixture; corrupt-file tests.
In-memory: simple state tests.
"""

from __future__ import annotations
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..models import ChatSession, Message, Role

logger = logging.getLogger(__name__)

SESSIONS_KEY = "microbot-sessions"
SIDEBAR_KEY = "microbot-sidebar-collapsed"
DEFAULT_SIDEBAR_COLLAPSED = True


def _ts_to_text(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.isoformat()


def _ts_from_text(raw: str) -> datetime:
    ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def message_to_dict(msg: Message) -> dict[str, Any]:
    return {
        "id": msg.id,
        "role": msg.role.value,
        "content": msg.content,
        "timestamp": _ts_to_text(msg.timestamp),
        "error": msg.error,
    }


def message_from_dict(data: dict[str, Any]) -> Message:
    return Message(
        id=str(data["id"]),
        role=Role(data["role"]),
        content=str(data["content"]),
        timestamp=_ts_from_text(data["timestamp"]),
        error=bool(data.get("error", False)),
    )


def session_to_dict(session: ChatSession) -> dict[str, Any]:
    return {
        "id": session.id,
        "title": session.title,
        "timestamp": _ts_to_text(session.timestamp),
        "preview": session.preview,
        "messages": [message_to_dict(m) for m in session.messages],
    }


def session_from_dict(data: dict[str, Any]) -> ChatSession:
    return ChatSession(
        id=str(data["id"]),
        title=str(data["title"]),
        timestamp=_ts_from_text(data["timestamp"]),
        preview=str(data.get("preview", "")),
        messages=tuple(message_from_dict(m) for m in data.get("messages") or []),
    )


def dumps_sessions(sessions: tuple[ChatSession, ...]) -> str:
    return json.dumps([session_to_dict(s) for s in sessions], ensure_ascii=False)


def loads_sessions(text: str) -> tuple[ChatSession, ...]:
    raw = json.loads(text)
    if not isinstance(raw, list):
        raise ValueError("Expected a JSON array of sessions.")
    return tuple(session_from_dict(item) for item in raw)


class LocalSessionStore:
    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def _read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, key: str, text: str) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            tmp = self._path(key).with_suffix(".part")
            tmp.write_text(text, encoding="utf-8")
            tmp.replace(self._path(key))
        except OSError:
            logger.exception("Could not write %s", key)

    def load(self) -> tuple[tuple[ChatSession, ...], bool]:
        sessions: tuple[ChatSession, ...] = ()
        collapsed = DEFAULT_SIDEBAR_COLLAPSED

        try:
            text = self._read(SESSIONS_KEY)
            if text is not None:
                sessions = loads_sessions(text)
        except Exception:
            logger.exception("Error loading sessions, starting empty")
            sessions = ()

        try:
            text = self._read(SIDEBAR_KEY)
            if text is not None:
                value = json.loads(text)
                if isinstance(value, bool):
                    collapsed = value
                else:
                    logger.warning("Ignoring non-boolean sidebar preference %r", value)
        except Exception:
            logger.exception("Error loading sidebar preference")

        logger.info("Loaded %d session(s) from %s", len(sessions), self.root)
        return sessions, collapsed

    def save(self, sessions: tuple[ChatSession, ...]) -> None:
        self._write(SESSIONS_KEY, dumps_sessions(sessions))

    def save_preference(self, sidebar_collapsed: bool) -> None:
        self._write(SIDEBAR_KEY, json.dumps(bool(sidebar_collapsed)))


class InMemorySessionStore:
    def __init__(self) -> None:
        self._sessions: tuple[ChatSession, ...] = ()
        self._collapsed: bool = DEFAULT_SIDEBAR_COLLAPSED

    def load(self) -> tuple[tuple[ChatSession, ...], bool]:
        return self._sessions, self._collapsed

    def save(self, sessions: tuple[ChatSession, ...]) -> None:
        self._sessions = tuple(sessions)

    def save_preference(self, sidebar_collapsed: bool) -> None:
        self._collapsed = bool(sidebar_collapsed)
