"""
Abstractions for pluggable services. Inversion of control: the controller
depends on interfaces, not concrete services. Enables fakes/mocks and swaps
between completion backends and storage.

Common protocols:
- CompletionService.complete(messages) -> Iterator[str]
- SessionStore.load() -> (sessions, sidebar_collapsed), save(...), save_preference(...)
- Transcriber.transcribe(wav_bytes) -> str

Testing: Use simple fake implementations to test the controller without network calls.
"""

from __future__ import annotations
from typing import Iterator, Protocol

from .models import ChatSession


class CompletionService(Protocol):
    def complete(self, messages: list[dict[str, str]]) -> Iterator[str]:
        """
        Lazy sequence of reply chunks for the given history. A non-streaming
        backend yields exactly one chunk. Failures are raised while iterating
        as MicroBotError subclasses.
        """
        ...


class SessionStore(Protocol):
    def load(self) -> tuple[tuple[ChatSession, ...], bool]: ...

    def save(self, sessions: tuple[ChatSession, ...]) -> None: ...

    def save_preference(self, sidebar_collapsed: bool) -> None: ...


class Transcriber(Protocol):
    def transcribe(self, wav_bytes: bytes) -> str:
        """Final transcript of the recording; "" when recognition fails."""
        ...
