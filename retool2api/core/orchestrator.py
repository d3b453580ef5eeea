"""Per-request failover loop across the Retool account pool."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from requests import Session

from ..accounts import AccountRegistry
from ..config import Settings
from ..models import Err, ErrorDetail, ErrorResponse, ModelRecord, RetoolAccount, RetoolError
from ..selector import select_next_account
from ..utils import create_requests_session, log_debug
from .retool import run_session

EXHAUSTED_MESSAGE = "All Retool accounts failed"
EXHAUSTED_STREAM_MESSAGE = "all retool attempts failed"


@dataclass
class CompletionOutcome:
    """Result of one orchestrated request: the reply text, or what went wrong."""

    text: Optional[str] = None
    attempts: int = 0
    errors: List[RetoolError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        return self.text is not None

    def error_response(self) -> ErrorResponse:
        return ErrorResponse(
            error=ErrorDetail(
                message=EXHAUSTED_MESSAGE,
                type="upstream_error",
                attempts=self.attempts,
                details=list(self.errors),
            )
        )


def complete_chat(
    registry: AccountRegistry,
    models: List[ModelRecord],
    model_id: str,
    prompt: str,
    settings: Settings,
    cancel_event: Optional[threading.Event] = None,
    session_factory: Callable[[Settings], Session] = create_requests_session,
) -> CompletionOutcome:
    """
    Try accounts one at a time until one answers or the pool runs dry.

    Each account is tried at most once per request. Every failure raises the
    account's error count, and a 401/403 removes it from rotation for good.
    """
    outcome = CompletionOutcome()
    tried: List[RetoolAccount] = []

    for _ in range(len(registry)):
        selection = select_next_account(registry, models, model_id, settings, exclude=tried)
        if selection is None:
            log_debug(settings, f"No more Retool accounts available for {model_id}")
            break

        account, agent_id = selection
        tried.append(account)
        outcome.attempts += 1
        log_debug(settings, f"Attempt {outcome.attempts}: {account.domain_name} agent {agent_id}")

        session = session_factory(settings)
        try:
            result = run_session(session, account, agent_id, prompt, settings, cancel_event)
        finally:
            session.close()

        if not isinstance(result, Err):
            outcome.text = result.value
            return outcome

        outcome.errors.append(result.error)
        if cancel_event is not None and cancel_event.is_set():
            outcome.cancelled = True
            print(f"Request for {model_id} cancelled while waiting on {account.domain_name}")
            return outcome

        registry.record_failure(account)
        if result.error.is_auth_error:
            registry.mark_invalid(account, f"authentication error ({result.error.status_code}) on {result.error.operation.value}")

    print(f"All Retool accounts failed for {model_id} after {outcome.attempts} attempt(s)")
    return outcome
