"""
Purpose: Thin client wrapper around an OpenAI-compatible chat completions API
(AIML API by default, any base URL works). One place for auth, model options,
system prompt selection and error normalization.

Implements CompletionService: complete(messages) yields reply chunks.
- stream=True: one chunk per delta from the SSE stream.
- stream=False: exactly one chunk.
No automatic retries; a failed call is reported, and retry is the user's choice.

Testing: Mock SDK calls; assert it maps errors and empty replies correctly.
"""

from __future__ import annotations
import logging
from typing import Any, Iterator, Optional

from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    OpenAI,
)

from ..errors import ConfigurationError, EmptyReplyError, NetworkError, UpstreamError
from ..models import LLMSettings
from ..prompts import DefaultPromptFactory

logger = logging.getLogger(__name__)


def _error_message(body: Any, fallback: str) -> str:
    if isinstance(body, dict):
        err = body.get("error", body)
        if isinstance(err, dict):
            return str(err.get("message") or fallback)
        if isinstance(err, str) and err:
            return err
        if body.get("message"):
            return str(body["message"])
    return fallback


def translate_api_error(exc: APIError) -> Exception:
    """Map an SDK exception onto the MicroBot error taxonomy."""
    if isinstance(exc, APITimeoutError):
        return NetworkError("Request timed out")
    if isinstance(exc, APIConnectionError):
        return NetworkError(f"Could not reach the completion API: {exc}")
    if isinstance(exc, APIStatusError):
        return UpstreamError(
            _error_message(exc.body, exc.message),
            status_code=exc.status_code,
            details=str(exc.body) if exc.body is not None else None,
        )
    return UpstreamError(exc.message or "Completion API error")


class OpenAILLMClient:
    def __init__(
        self,
        api_key: Optional[str],
        *,
        api_base: Optional[str] = None,
        settings: Optional[LLMSettings] = None,
        stream: bool = True,
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.api_base = api_base
        self.settings = settings or LLMSettings()
        self.stream = stream
        self.timeout = timeout
        self.prompts = DefaultPromptFactory()
        self._client: Optional[OpenAI] = None

    @property
    def client(self) -> OpenAI:
        if not self.api_key:
            raise ConfigurationError("API key not configured")
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.api_base,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def complete(self, messages: list[dict[str, str]]) -> Iterator[str]:
        client = self.client
        payload, max_tokens = self.prompts.for_history(messages, self.settings)
        s = self.settings

        try:
            resp = client.chat.completions.create(
                model=s.model,
                messages=payload,
                temperature=s.temperature,
                top_p=s.top_p,
                max_tokens=max_tokens,
                frequency_penalty=s.frequency_penalty,
                presence_penalty=s.presence_penalty,
                stream=self.stream,
            )

            if not self.stream:
                text = resp.choices[0].message.content if resp.choices else None
                usage = getattr(resp, "usage", None)
                if usage:
                    logger.debug(
                        "model=%s tokens_in=%s tokens_out=%s",
                        resp.model,
                        usage.prompt_tokens,
                        usage.completion_tokens,
                    )
                if not text:
                    raise EmptyReplyError()
                yield text
                return

            produced = False
            for chunk in resp:
                if chunk.choices and chunk.choices[0].delta.content:
                    produced = True
                    yield chunk.choices[0].delta.content
            if not produced:
                raise EmptyReplyError()
        except APIError as e:
            logger.warning("Completion API call failed: %s", e)
            raise translate_api_error(e) from e
