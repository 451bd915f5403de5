"""
Completion HTTP endpoint. Adds the system prompt server-side and proxies the
conversation to the configured OpenAI-compatible provider.

POST /api/chat  {"messages": [{"role", "content"}], "prompt"?: str}
  -> {"reply": text}            when streaming is off
  -> text/plain streamed body   when streaming is on
  -> {"error", "details"?}      with a non-2xx status on failure
"""

from __future__ import annotations
import logging
from typing import Iterator, List, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from .config import Settings, get_settings, setup_logging
from .errors import (
    ConfigurationError,
    EmptyReplyError,
    MicroBotError,
    NetworkError,
    UpstreamError,
)
from .interfaces import CompletionService
from .services.llm_openai import OpenAILLMClient
from .services.security import DefaultSecurity, InputRejected

logger = logging.getLogger(__name__)

security = DefaultSecurity()


class ChatMessageIn(BaseModel):
    role: str = ""
    content: str = ""


class ChatRequest(BaseModel):
    messages: List[ChatMessageIn] = Field(default_factory=list)
    prompt: Optional[str] = None


class ChatReply(BaseModel):
    reply: str


def get_completion(settings: Settings = Depends(get_settings)) -> CompletionService:
    return OpenAILLMClient(
        settings.api_key,
        api_base=settings.api_base,
        settings=settings.llm.to_settings(),
        stream=settings.stream,
        timeout=settings.request_timeout,
    )


def error_status(exc: MicroBotError) -> int:
    if isinstance(exc, ConfigurationError):
        return 503
    if isinstance(exc, NetworkError):
        return 504
    if isinstance(exc, UpstreamError) and exc.status_code and exc.status_code >= 400:
        return exc.status_code
    return 502


def _relay(first: str, rest: Iterator[str]) -> Iterator[str]:
    yield first
    try:
        yield from rest
    except Exception:
        # Headers are already sent; the client sees a truncated reply.
        logger.exception("Completion stream failed mid-reply")


router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat", response_model=ChatReply)
def chat(
    body: ChatRequest,
    completion: CompletionService = Depends(get_completion),
    settings: Settings = Depends(get_settings),
):
    history = security.clean_history([m.model_dump() for m in body.messages])
    if body.prompt and body.prompt.strip():
        history.append(
            {"role": "user", "content": security.sanitize_for_prompt(body.prompt)}
        )
    if not history or history[-1]["role"] != "user":
        return JSONResponse({"error": "No user message to answer"}, status_code=422)
    try:
        security.validate_user_input(history[-1]["content"])
    except InputRejected as e:
        return JSONResponse({"error": str(e)}, status_code=413)

    chunks = iter(completion.complete(history))
    # Pull the first chunk before answering so failures still get a status code.
    first = next(chunks, "")
    if not first:
        raise EmptyReplyError()

    if settings.stream:
        return StreamingResponse(
            _relay(first, chunks),
            media_type="text/plain; charset=utf-8",
            headers={"Cache-Control": "no-cache, no-transform"},
        )
    return ChatReply(reply=first + "".join(chunks))


@router.get("/health")
def health_check():
    return {"status": "ok"}


def create_app() -> FastAPI:
    app = FastAPI(title="MicroBot API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    @app.exception_handler(MicroBotError)
    async def completion_error_handler(request: Request, exc: MicroBotError):
        status = error_status(exc)
        logger.error("%s %s -> %d: %s", request.method, request.url.path, status, exc)
        payload = {"error": str(exc)}
        details = getattr(exc, "details", None)
        if details:
            payload["details"] = details
        return JSONResponse(payload, status_code=status)

    return app


app = create_app()


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run("microbot.server:app", host="0.0.0.0", port=8000)
