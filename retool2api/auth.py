"""Bearer-token authentication for FastAPI routes."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings
from .dependencies import get_runtime_state, get_settings
from .state import RuntimeState
from .utils import log_debug, mask_token

security = HTTPBearer(auto_error=False)


def authenticate_client(
    state: RuntimeState = Depends(get_runtime_state),
    settings: Settings = Depends(get_settings),
    auth: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Check the bearer token against CLIENT_API_KEYS and return it."""
    if not state.valid_client_keys:
        raise HTTPException(
            status_code=503,
            detail="Service unavailable: Client API keys not configured on server.",
        )

    if not auth or not auth.credentials:
        raise HTTPException(
            status_code=401,
            detail="API key required in Authorization header.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = auth.credentials.strip()
    if token not in state.valid_client_keys:
        log_debug(settings, f"Rejected client key {mask_token(token)}")
        raise HTTPException(status_code=403, detail="Invalid client API key.")
    return token
