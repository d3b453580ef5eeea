"""Router toggling verbose debug logging at runtime."""

from __future__ import annotations

from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query

from ..auth import authenticate_client
from ..config import Settings
from ..dependencies import get_settings

router = APIRouter()


@router.get("/debug")
async def toggle_debug(
    enable: Optional[bool] = Query(default=None),
    settings: Settings = Depends(get_settings),
    _: str = Depends(authenticate_client),
) -> Dict[str, bool]:
    """Read the debug flag, or set it with ?enable=true|false."""
    if enable is not None:
        settings.debug_mode = enable
        print(f"Debug mode {'enabled' if enable else 'disabled'}")
    return {"debug_mode": settings.debug_mode}
