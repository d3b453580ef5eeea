"""FastAPI application factory for Retool2API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from requests import Session

from .bootstrap import bootstrap_state
from .config import Settings, get_settings
from .routers import chat_router, debug_router, models_router
from .state import RuntimeState
from .utils import create_requests_session


def create_app(
    settings: Optional[Settings] = None,
    session_factory: Callable[[Settings], Session] = create_requests_session,
) -> FastAPI:
    settings = settings or get_settings()
    runtime_state = RuntimeState(session_factory=session_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        print("Starting Retool OpenAI API Adapter server...")
        bootstrap_state(runtime_state, settings)
        print("Server initialization completed.")
        yield
        print("Server shutdown completed.")

    app = FastAPI(title="Retool OpenAI API Adapter", lifespan=lifespan)
    app.state.settings = settings
    app.state.runtime_state = runtime_state

    app.add_middleware(TrustedHostMiddleware, allowed_hosts=["*"])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(models_router.router)
    app.include_router(chat_router.router)
    app.include_router(debug_router.router)

    return app
