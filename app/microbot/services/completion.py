"""
Purpose: Client for a MicroBot completion endpoint (see server.py, or any
endpoint speaking the same contract).

Contract:
- POST {"messages": [{"role", "content"}, ...]}
- success: JSON {"reply": text}, an OpenAI-style SSE stream, or a plain text stream
- failure: non-2xx with JSON {"error": text, "details"?: text}

The call is bounded by a wall-clock deadline covering the whole body, and is
never retried here.
"""

from __future__ import annotations
import json
import logging
import time
from typing import Iterator, Optional

import requests

from ..errors import EmptyReplyError, NetworkError, UpstreamError

logger = logging.getLogger(__name__)

SSE_DONE = "[DONE]"


def error_from_response(resp: requests.Response) -> UpstreamError:
    """Build an UpstreamError, using the body's error text when it parses."""
    message = f"HTTP {resp.status_code}"
    details = None
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict):
            err = err.get("message")
        if err:
            message = str(err)
        if data.get("details"):
            details = str(data["details"])
    if details and details != message:
        message = f"{message} ({details})"
    return UpstreamError(message, status_code=resp.status_code, details=details)


def iter_sse_text(lines: Iterator[str]) -> Iterator[str]:
    """Yield delta contents from OpenAI-style `data: {...}` event lines."""
    for line in lines:
        if not line or not line.startswith("data:"):
            continue
        data = line[len("data:"):].strip()
        if data == SSE_DONE:
            return
        try:
            event = json.loads(data)
        except ValueError:
            logger.debug("Skipping undecodable SSE event: %r", data)
            continue
        choices = event.get("choices") if isinstance(event, dict) else None
        if not choices or not isinstance(choices, list) or not isinstance(choices[0], dict):
            logger.debug("Skipping SSE event without choices: %r", data)
            continue
        delta = choices[0].get("delta")
        content = delta.get("content") if isinstance(delta, dict) else None
        if content and isinstance(content, str):
            yield content


class HttpCompletionClient:
    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self.http = session or requests.Session()

    def _check_deadline(self, deadline: float) -> None:
        if time.monotonic() > deadline:
            raise NetworkError(f"Request timed out after {self.timeout:g}s")

    def _body_chunks(self, resp: requests.Response, deadline: float) -> Iterator[str]:
        content_type = resp.headers.get("Content-Type", "").lower()

        if "application/json" in content_type:
            try:
                data = resp.json()
            except ValueError as e:
                raise UpstreamError("Malformed response from completion service") from e
            if not isinstance(data, dict):
                raise UpstreamError("Malformed response from completion service")
            if data.get("error"):
                raise UpstreamError(str(data["error"]), status_code=resp.status_code)
            reply = data.get("reply")
            if not isinstance(reply, str):
                raise UpstreamError("Malformed response from completion service")
            if reply:
                yield reply
            return

        if "charset" not in content_type:
            resp.encoding = "utf-8"

        if "text/event-stream" in content_type:
            lines = resp.iter_lines(decode_unicode=True)
            for chunk in iter_sse_text(lines):
                self._check_deadline(deadline)
                yield chunk
            return

        for chunk in resp.iter_content(chunk_size=None, decode_unicode=True):
            self._check_deadline(deadline)
            if chunk:
                yield chunk

    def complete(self, messages: list[dict[str, str]]) -> Iterator[str]:
        deadline = time.monotonic() + self.timeout
        produced = False

        try:
            with self.http.post(
                self.endpoint,
                json={"messages": messages},
                timeout=self.timeout,
                stream=True,
            ) as resp:
                if not resp.ok:
                    raise error_from_response(resp)
                for chunk in self._body_chunks(resp, deadline):
                    produced = True
                    yield chunk
        except requests.Timeout as e:
            raise NetworkError(f"Request timed out after {self.timeout:g}s") from e
        except requests.RequestException as e:
            logger.warning("Completion request to %s failed: %s", self.endpoint, e)
            raise NetworkError(f"Network error: {e}") from e

        if not produced:
            raise EmptyReplyError()
