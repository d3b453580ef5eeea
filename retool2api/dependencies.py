"""Common FastAPI dependencies."""

from __future__ import annotations

from typing import List

from fastapi import Depends, Request

from .config import Settings
from .models import ModelRecord
from .state import RuntimeState


def get_settings(request: Request) -> Settings:  # pragma: no cover - trivial accessor
    return request.app.state.settings  # type: ignore[attr-defined]


def get_runtime_state(request: Request) -> RuntimeState:  # pragma: no cover - trivial accessor
    return request.app.state.runtime_state  # type: ignore[attr-defined]


def get_models(state: RuntimeState = Depends(get_runtime_state)) -> List[ModelRecord]:
    return state.models
