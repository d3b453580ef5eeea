"""Retool agent API calls: agent discovery and the thread/message/poll session."""

from __future__ import annotations

import threading
import time
from typing import Any, Dict, List, Optional

import requests
from requests import Session

from ..config import Settings
from ..models import Err, Ok, Result, RetoolAccount, RetoolAgent, RetoolError, RetoolOperation
from ..utils import log_debug, log_retool_error, poll_until

USER_AGENT = "Retool2API/1.0"
MIN_POLL_TIMEOUT = 0.1


def _headers(account: RetoolAccount, json_body: bool = False) -> Dict[str, str]:
    headers = {
        "x-xsrf-token": account.x_xsrf_token,
        "Cookie": f"accessToken={account.access_token}",
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
    }
    if json_body:
        headers["Content-Type"] = "application/json"
    return headers


def _base_url(account: RetoolAccount) -> str:
    return f"https://{account.domain_name}/api/agents"


def _fail(
    operation: RetoolOperation,
    account: RetoolAccount,
    message: str,
    status_code: Optional[int] = None,
) -> Err:
    error = RetoolError(
        operation=operation,
        account=account.domain_name,
        status_code=status_code,
        message=message,
    )
    log_retool_error(error)
    return Err(error)


def _request(
    session: Session,
    method: str,
    url: str,
    operation: RetoolOperation,
    account: RetoolAccount,
    failure_message: str,
    settings: Settings,
    payload: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = None,
) -> Result[Any]:
    """Perform one Retool call and decode its JSON body."""
    try:
        response = session.request(
            method,
            url,
            json=payload,
            headers=_headers(account, json_body=payload is not None),
            timeout=settings.request_timeout if timeout is None else timeout,
        )
    except requests.RequestException as exc:
        return _fail(operation, account, f"{failure_message}: {exc}")

    if not response.ok:
        return _fail(operation, account, failure_message, response.status_code)

    try:
        return Ok(response.json())
    except ValueError as exc:
        return _fail(operation, account, f"{failure_message}: invalid JSON ({exc})")


def query_agents(session: Session, account: RetoolAccount, settings: Settings) -> Result[List[RetoolAgent]]:
    """List the agents configured in the account's workspace."""
    result = _request(
        session,
        "GET",
        _base_url(account),
        RetoolOperation.AGENT_QUERY,
        account,
        "Agent query failed",
        settings,
    )
    if isinstance(result, Err):
        return result
    try:
        return Ok([RetoolAgent.from_api(item) for item in result.value["agents"]])
    except (KeyError, TypeError) as exc:
        return _fail(RetoolOperation.AGENT_QUERY, account, f"Unexpected agent list payload: {exc!r}")


def create_thread(session: Session, account: RetoolAccount, agent_id: str, settings: Settings) -> Result[str]:
    result = _request(
        session,
        "POST",
        f"{_base_url(account)}/{agent_id}/threads",
        RetoolOperation.THREAD_CREATE,
        account,
        "Create thread failed",
        settings,
        payload={"name": "", "timezone": ""},
    )
    if isinstance(result, Err):
        return result
    try:
        return Ok(str(result.value["id"]))
    except (KeyError, TypeError) as exc:
        return _fail(RetoolOperation.THREAD_CREATE, account, f"Thread id missing from response: {exc!r}")


def send_message(
    session: Session,
    account: RetoolAccount,
    agent_id: str,
    thread_id: str,
    text: str,
    settings: Settings,
) -> Result[str]:
    """Post the prompt to a thread and return the run id that will answer it."""
    result = _request(
        session,
        "POST",
        f"{_base_url(account)}/{agent_id}/threads/{thread_id}/messages",
        RetoolOperation.MESSAGE_SEND,
        account,
        "Send message failed",
        settings,
        payload={"type": "text", "text": text, "timezone": settings.message_timezone},
    )
    if isinstance(result, Err):
        return result
    try:
        return Ok(str(result.value["content"]["runId"]))
    except (KeyError, TypeError) as exc:
        return _fail(RetoolOperation.MESSAGE_SEND, account, f"Run id missing from response: {exc!r}")


def get_message(
    session: Session,
    account: RetoolAccount,
    agent_id: str,
    run_id: str,
    settings: Settings,
    cancel_event: Optional[threading.Event] = None,
) -> Result[str]:
    """
    Poll the run log until the agent reports COMPLETED.

    A failed poll ends the session at once; there is no retry of the poll
    request itself. The final trace entry holds the answer text.
    """
    url = f"{_base_url(account)}/{agent_id}/logs/{run_id}"
    deadline = time.monotonic() + settings.poll_timeout

    def check() -> Optional[Result[str]]:
        # A poll never outlives the overall deadline.
        remaining = max(deadline - time.monotonic(), MIN_POLL_TIMEOUT)
        result = _request(
            session,
            "GET",
            url,
            RetoolOperation.MESSAGE_GET,
            account,
            "Get log failed",
            settings,
            timeout=min(settings.request_timeout, remaining),
        )
        if isinstance(result, Err):
            return result
        data = result.value
        status = data.get("status") if isinstance(data, dict) else None
        log_debug(settings, f"Run {run_id} on {account.domain_name} status: {status}")
        if status != "COMPLETED":
            return None
        try:
            return Ok(data["trace"][-1]["data"]["data"]["content"])
        except (KeyError, IndexError, TypeError) as exc:
            return _fail(RetoolOperation.MESSAGE_GET, account, f"Completed run has no content: {exc!r}")

    outcome = poll_until(check, settings.poll_interval, settings.poll_timeout, cancel_event)
    if outcome is not None:
        return outcome
    if cancel_event is not None and cancel_event.is_set():
        return _fail(RetoolOperation.MESSAGE_GET, account, "Request cancelled")
    return _fail(RetoolOperation.MESSAGE_GET, account, "Timeout waiting for completion")


def run_session(
    session: Session,
    account: RetoolAccount,
    agent_id: str,
    prompt: str,
    settings: Settings,
    cancel_event: Optional[threading.Event] = None,
) -> Result[str]:
    """Create a thread, send the prompt and wait for the agent's reply."""
    thread = create_thread(session, account, agent_id, settings)
    if isinstance(thread, Err):
        return thread
    log_debug(settings, f"Created thread {thread.value} on {account.domain_name}")

    run = send_message(session, account, agent_id, thread.value, prompt, settings)
    if isinstance(run, Err):
        return run
    log_debug(settings, f"Started run {run.value} on {account.domain_name}")

    return get_message(session, account, agent_id, run.value, settings, cancel_event)
