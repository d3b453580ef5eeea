"""Utility functions used across modules."""

from __future__ import annotations

import json
import threading
import time
from typing import Callable, List, Optional, TypeVar

import requests
from requests import Session

from .config import Settings
from .models import ChatMessage, RetoolAccount, RetoolError

T = TypeVar("T")


def create_requests_session(settings: Settings) -> Session:
    """Create a configured requests session with retries and proxy support."""
    session = requests.Session()
    proxies = {key: value for key, value in settings.proxies.items() if value}

    if proxies:
        # Requests only cares about HTTP/HTTPS for the session-level proxies; include no_proxy if set.
        session.proxies.update(proxies)
    else:
        session.proxies = {"http": None, "https": None}

    adapter = requests.adapters.HTTPAdapter(max_retries=3)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def format_messages_for_retool(messages: List[ChatMessage]) -> str:
    """
    Convert a multi-turn conversation to the single prompt Retool agents expect.

    Turns are rendered as "Human: ..." / "Assistant: ..." separated by a blank
    line. When the assistant spoke last a trailing "Human: " marker is added
    so the agent continues from a human turn.
    """
    turns: List[str] = []
    for msg in messages:
        role = "Human" if msg.role == "user" else "Assistant"
        content = msg.content if isinstance(msg.content, str) else json.dumps(msg.content)
        turns.append(f"{role}: {content}")

    if messages and messages[-1].role == "assistant":
        turns.append("Human: ")

    return "\n\n".join(turns)


def poll_until(
    check: Callable[[], Optional[T]],
    interval: float,
    timeout: float,
    cancel_event: Optional[threading.Event] = None,
) -> Optional[T]:
    """
    Call ``check`` every ``interval`` seconds until it returns a value.

    Returns None once ``timeout`` seconds have passed or ``cancel_event`` is
    set; callers tell the two apart by inspecting the event.
    """
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if cancel_event is not None and cancel_event.is_set():
            return None
        result = check()
        if result is not None:
            return result
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        wait = min(interval, remaining)
        if cancel_event is not None:
            if cancel_event.wait(wait):
                return None
        else:
            time.sleep(wait)
    return None


def mask_token(token: Optional[str], visible_chars: int = 4) -> str:
    """Safely mask a token for logging, showing only last N characters"""
    if not token or len(token) <= visible_chars:
        return "***"
    return f"...{token[-visible_chars:]}"


def log_retool_error(error: RetoolError) -> None:
    """Print a failed Retool call as a multi-line structured record."""
    lines = [
        "[ERROR] Retool API failed",
        f"  Operation: {error.operation.value}",
        f"  Account: {error.account}",
    ]
    if error.status_code is not None:
        lines.append(f"  Status: {error.status_code}")
    lines.append(f"  Message: {error.message}")
    lines.append(f"  Timestamp: {error.timestamp}")
    print("\n".join(lines))


def log_account_event(account: RetoolAccount, message: str) -> None:
    print(f"[ACCOUNT] {account.domain_name} (token {mask_token(account.access_token)}): {message}")


def log_debug(settings: Settings, message: str) -> None:
    """Log message only if DEBUG_MODE is enabled."""
    if settings.debug_mode:
        print(f"[DEBUG] {message}")
