"""Router exposing /v1/chat/completions endpoint."""

from __future__ import annotations

import asyncio
import threading
from typing import Union

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.concurrency import run_in_threadpool

from ..auth import authenticate_client
from ..catalog import find_model
from ..config import Settings
from ..core.orchestrator import EXHAUSTED_STREAM_MESSAGE, complete_chat
from ..core.stream import build_non_stream_response, error_stream_generator, retool_stream_generator
from ..dependencies import get_runtime_state, get_settings
from ..models import ChatCompletionRequest, ChatCompletionResponse
from ..state import RuntimeState
from ..utils import format_messages_for_retool, log_debug

router = APIRouter()

DISCONNECT_CHECK_INTERVAL = 0.5

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _cancel_on_disconnect(http_request: Request, cancel_event: threading.Event) -> None:
    while not cancel_event.is_set():
        if await http_request.is_disconnected():
            print("Client disconnected, cancelling Retool session")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_CHECK_INTERVAL)


@router.post("/v1/chat/completions", response_model=None)
async def chat_completions(
    request: ChatCompletionRequest,
    http_request: Request,
    state: RuntimeState = Depends(get_runtime_state),
    settings: Settings = Depends(get_settings),
    _: str = Depends(authenticate_client),
) -> Union[ChatCompletionResponse, StreamingResponse, JSONResponse]:
    """Create chat completion using the Retool account pool."""

    if not request.messages:
        raise HTTPException(status_code=400, detail="No messages provided in the request.")

    if find_model(state.models, request.model) is None:
        raise HTTPException(status_code=404, detail=f"Model '{request.model}' not found.")

    prompt = format_messages_for_retool(request.messages)
    log_debug(settings, f"Formatted prompt: {prompt[:120]}...")

    # The poll loop runs in a worker thread; the event stops it when the client goes away.
    cancel_event = threading.Event()
    watcher = asyncio.create_task(_cancel_on_disconnect(http_request, cancel_event))
    try:
        outcome = await run_in_threadpool(
            complete_chat,
            state.registry,
            state.models,
            request.model,
            prompt,
            settings,
            cancel_event,
            state.session_factory,
        )
    finally:
        cancel_event.set()
        watcher.cancel()

    if outcome.succeeded:
        if request.stream:
            log_debug(settings, "Returning replayed response stream")
            return StreamingResponse(
                retool_stream_generator(outcome.text, request.model, settings),
                media_type="text/event-stream",
                headers=SSE_HEADERS,
            )
        log_debug(settings, "Building non-stream response")
        return build_non_stream_response(outcome.text, request.model)

    if request.stream:
        return StreamingResponse(
            error_stream_generator(EXHAUSTED_STREAM_MESSAGE),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )
    return JSONResponse(
        status_code=503,
        content=outcome.error_response().model_dump(mode="json", by_alias=True, exclude_none=True),
    )
