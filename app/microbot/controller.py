"""
Purpose: The single orchestration point for chat sessions. Owns ChatState
(session collection, active session, sidebar preference) and per-session
turn bookkeeping (pending / error / restored draft).
Prevents UI from knowing how completion backends or storage work.

Key responsibilities:
- create / select / rename / delete sessions; keep the active id valid.
- send_message: append the user message, call the CompletionService with the
  full history, append the reply (or an error-flagged reply).
- retry_last_turn: drop the trailing [user, assistant] pair and hand the user
  text back as a draft.
- Persist the collection through the SessionStore after every change.

Every update swaps the whole sessions tuple; a reply that lands after the
user switched chats is still appended to the session it was sent from.

Testing: Pure unit tests with fakes: fake CompletionService and
InMemorySessionStore. Verify invariants on the active id, message counts,
and error handling.
"""

from __future__ import annotations
import logging
from dataclasses import replace
from typing import Callable, Optional

from .errors import EmptyReplyError, MicroBotError
from .interfaces import CompletionService, SessionStore, Transcriber
from .models import (
    DEFAULT_TITLE,
    ChatSession,
    ChatState,
    Message,
    Role,
    Turn,
    preview_from,
    title_from,
)
from .persistence.session_store import InMemorySessionStore

logger = logging.getLogger(__name__)

ERROR_REPLY = (
    "Sorry, I encountered an error: {error}. "
    "Please check your connection and try again."
)


class ChatSessionController:
    def __init__(
        self,
        completion: CompletionService,
        *,
        store: Optional[SessionStore] = None,
        state: Optional[ChatState] = None,
        transcriber: Optional[Transcriber] = None,
    ):
        self.completion = completion
        self.store: SessionStore = store or InMemorySessionStore()
        self.state = state or ChatState()
        self.transcriber = transcriber
        self._turns: dict[str, Turn] = {}

    @classmethod
    def from_store(
        cls,
        store: SessionStore,
        completion: CompletionService,
        *,
        transcriber: Optional[Transcriber] = None,
    ) -> "ChatSessionController":
        """Restore sessions and preference; the newest session becomes active."""
        sessions, collapsed = store.load()
        state = ChatState(
            sessions=sessions,
            active_id=sessions[0].id if sessions else None,
            sidebar_collapsed=collapsed,
        )
        return cls(completion, store=store, state=state, transcriber=transcriber)

    # ---------------------------
    # Read side
    # ---------------------------
    @property
    def sessions(self) -> tuple[ChatSession, ...]:
        return self.state.sessions

    @property
    def active_id(self) -> Optional[str]:
        return self.state.active_id

    @property
    def active_session(self) -> Optional[ChatSession]:
        return self.get_session(self.state.active_id)

    def get_session(self, session_id: Optional[str]) -> Optional[ChatSession]:
        if session_id is None:
            return None
        return next((s for s in self.state.sessions if s.id == session_id), None)

    def is_pending(self, session_id: str) -> bool:
        turn = self._turns.get(session_id)
        return bool(turn and turn.pending)

    def error_for(self, session_id: str) -> Optional[str]:
        turn = self._turns.get(session_id)
        return turn.error if turn else None

    def dismiss_error(self, session_id: str) -> None:
        if session_id in self._turns:
            self._turns[session_id].error = None

    def take_draft(self, session_id: str) -> Optional[str]:
        """Return the text restored by retry_last_turn, once."""
        turn = self._turns.get(session_id)
        if not turn:
            return None
        draft, turn.draft = turn.draft, None
        return draft

    # ---------------------------
    # Session lifecycle
    # ---------------------------
    def create_session(self) -> ChatSession:
        session = ChatSession()
        self._commit((session, *self.state.sessions))
        self.state.active_id = session.id
        logger.info("Created session %s", session.id)
        return session

    def select_session(self, session_id: str) -> None:
        if self.get_session(session_id) is None:
            logger.debug("Ignoring select of unknown session %s", session_id)
            return
        self.state.active_id = session_id

    def delete_session(self, session_id: str) -> None:
        remaining = tuple(s for s in self.state.sessions if s.id != session_id)
        if len(remaining) == len(self.state.sessions):
            return
        self._commit(remaining)
        self._turns.pop(session_id, None)
        if self.state.active_id == session_id:
            self.state.active_id = remaining[0].id if remaining else None
        logger.info("Deleted session %s", session_id)

    def rename_session(self, session_id: str, new_title: str) -> None:
        title = (new_title or "").strip()
        if not title:
            return
        self._update(session_id, lambda s: replace(s, title=title))

    # ---------------------------
    # Conversation turns
    # ---------------------------
    def send_message(
        self,
        session_id: str,
        text: str,
        *,
        on_chunk: Optional[Callable[[str], None]] = None,
    ) -> Optional[Message]:
        """
        One user turn. Returns the appended assistant message, or None when
        the call was ignored (blank text, unknown session, turn already pending).
        Completion failures never raise: they become an error-flagged reply.
        """
        content = (text or "").strip()
        if not content:
            return None
        session = self.get_session(session_id)
        if session is None:
            return None
        turn = self._turns.setdefault(session_id, Turn())
        if turn.pending:
            logger.debug("Session %s already has a request in flight", session_id)
            return None

        user_msg = Message(role=Role.USER, content=content)
        retitle = not session.messages and session.title == DEFAULT_TITLE

        def add_user(s: ChatSession) -> ChatSession:
            return replace(
                s,
                title=title_from(content) if retitle else s.title,
                preview=preview_from(content),
                timestamp=user_msg.timestamp,
                messages=(*s.messages, user_msg),
            )

        self._update(session_id, add_user)
        history = [m.as_payload() for m in self.get_session(session_id).messages]

        turn.pending = True
        turn.error = None
        turn.draft = None
        try:
            parts: list[str] = []
            for chunk in self.completion.complete(history):
                parts.append(chunk)
                if on_chunk:
                    on_chunk(chunk)
            reply_text = "".join(parts)
            if not reply_text:
                raise EmptyReplyError()
            reply = Message(role=Role.ASSISTANT, content=reply_text)
        except MicroBotError as e:
            logger.warning(
                "Completion failed for session %s: %s: %s",
                session_id,
                type(e).__name__,
                e,
            )
            turn.error = str(e)
            reply = Message(
                role=Role.ASSISTANT,
                content=ERROR_REPLY.format(error=e),
                error=True,
            )
        finally:
            turn.pending = False

        self._update(session_id, lambda s: replace(s, messages=(*s.messages, reply)))
        return reply

    def retry_last_turn(self, session_id: str) -> Optional[str]:
        """
        Drop the trailing [user, assistant] pair and keep the user text as a
        draft for resubmission. Returns the restored text, or None if the
        session does not end with such a pair.
        """
        session = self.get_session(session_id)
        if session is None or self.is_pending(session_id):
            return None
        msgs = session.messages
        if len(msgs) < 2:
            return None
        last_user, last_reply = msgs[-2], msgs[-1]
        if last_user.role is not Role.USER or last_reply.role is not Role.ASSISTANT:
            return None

        self._update(session_id, lambda s: replace(s, messages=s.messages[:-2]))
        turn = self._turns.setdefault(session_id, Turn())
        turn.error = None
        turn.draft = last_user.content
        return last_user.content

    # ---------------------------
    # UI preference & voice
    # ---------------------------
    @property
    def sidebar_collapsed(self) -> bool:
        return self.state.sidebar_collapsed

    def set_sidebar_collapsed(self, collapsed: bool) -> None:
        self.state.sidebar_collapsed = bool(collapsed)
        self.store.save_preference(self.state.sidebar_collapsed)

    def toggle_sidebar(self) -> bool:
        self.set_sidebar_collapsed(not self.state.sidebar_collapsed)
        return self.state.sidebar_collapsed

    @property
    def has_voice_input(self) -> bool:
        return self.transcriber is not None

    def voice_to_text(self, wav_bytes: bytes) -> str:
        """Transcript of recorded audio; "" when unavailable or on failure."""
        if not self.transcriber or not wav_bytes:
            return ""
        return self.transcriber.transcribe(wav_bytes)

    # ---------------------------
    # Internals
    # ---------------------------
    def _commit(self, sessions: tuple[ChatSession, ...]) -> None:
        self.state.sessions = sessions
        self.store.save(sessions)

    def _update(
        self, session_id: str, fn: Callable[[ChatSession], ChatSession]
    ) -> bool:
        if self.get_session(session_id) is None:
            return False
        self._commit(
            tuple(fn(s) if s.id == session_id else s for s in self.state.sessions)
        )
        return True
