"""Runtime state container for the FastAPI application."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Set

from requests import Session

from .accounts import AccountRegistry
from .config import Settings
from .models import ModelRecord
from .utils import create_requests_session


@dataclass
class RuntimeState:
    """Holds mutable runtime data that changes while the app is running."""

    valid_client_keys: Set[str] = field(default_factory=set)
    registry: AccountRegistry = field(default_factory=AccountRegistry)
    models: List[ModelRecord] = field(default_factory=list)
    session_factory: Callable[[Settings], Session] = create_requests_session
