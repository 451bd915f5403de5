"""
Purpose: Error taxonomy for completion calls.
Every failure a completion backend can produce is raised as one of these, so
the controller can turn them into an error-flagged assistant message without
knowing which transport was used.
"""

from __future__ import annotations
from typing import Optional


class MicroBotError(Exception):
    """Base class for failures surfaced to the chat as an error message."""


class ConfigurationError(MicroBotError):
    """Upstream credential or endpoint is missing."""


class UpstreamError(MicroBotError):
    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class EmptyReplyError(MicroBotError):
    def __init__(self, message: str = "No reply received from API"):
        super().__init__(message)


class NetworkError(MicroBotError):
    """The request could not be completed (connect failure, timeout)."""
