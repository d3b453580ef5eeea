"""Routers exposing model listing endpoints."""

from __future__ import annotations

import time
from typing import List

from fastapi import APIRouter, Depends

from ..auth import authenticate_client
from ..dependencies import get_models
from ..models import ModelInfo, ModelList, ModelRecord

router = APIRouter()


def _build_model_list(models: List[ModelRecord]) -> ModelList:
    created = int(time.time())
    data = [
        ModelInfo(
            id=model.id,
            created=created,
            owned_by=model.owned_by,
            name=f"{model.name} ({model.model_name})",
        )
        for model in models
    ]
    return ModelList(data=data)


@router.get("/v1/models", response_model=ModelList)
async def list_v1_models(
    models: List[ModelRecord] = Depends(get_models),
    _: str = Depends(authenticate_client),
) -> ModelList:
    """List available models - authenticated."""
    return _build_model_list(models)


@router.get("/models", response_model=ModelList)
async def list_models_no_auth(
    models: List[ModelRecord] = Depends(get_models),
) -> ModelList:
    """List available models without authentication for compatibility."""
    return _build_model_list(models)
