"""Streaming helpers for converting Retool replies to OpenAI format."""

from __future__ import annotations

import json
import time
import uuid
from typing import Generator

from ..config import Settings
from ..models import (
    ChatCompletionChoice,
    ChatCompletionResponse,
    ChatMessage,
    StreamChoice,
    StreamResponse,
)
from ..utils import log_debug


def retool_stream_generator(full_message: str, model_id: str, settings: Settings) -> Generator[str, None, None]:
    """
    Replay a finished Retool reply as OpenAI SSE chunks.

    The text is cut into stream_chunk_size slices with a short pause between
    them so clients render it as if it were typed live.
    """
    stream_id = f"chatcmpl-{uuid.uuid4().hex}"
    created_time = int(time.time())

    def frame(choice: StreamChoice) -> str:
        chunk = StreamResponse(id=stream_id, created=created_time, model=model_id, choices=[choice])
        return "data: " + chunk.model_dump_json() + "\n\n"

    yield frame(StreamChoice(delta={"role": "assistant"}))

    size = settings.stream_chunk_size
    for start in range(0, len(full_message), size):
        yield frame(StreamChoice(delta={"content": full_message[start : start + size]}))
        if settings.stream_delay:
            time.sleep(settings.stream_delay)

    yield frame(StreamChoice(delta={}, finish_reason="stop"))
    yield "data: [DONE]\n\n"
    log_debug(settings, f"Stream {stream_id} completed, {len(full_message)} chars")


def error_stream_generator(message: str, code: int = 503) -> Generator[str, None, None]:
    yield f"data: {json.dumps({'error': {'message': message, 'code': code}})}\n\n"
    yield "data: [DONE]\n\n"


def build_non_stream_response(full_message: str, model_id: str) -> ChatCompletionResponse:
    """Wrap a Retool reply into a single chat.completion document."""
    return ChatCompletionResponse(
        model=model_id,
        choices=[ChatCompletionChoice(message=ChatMessage(role="assistant", content=full_message))],
    )
