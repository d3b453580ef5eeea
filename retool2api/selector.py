"""Failover selection of the next Retool account for a model."""

from __future__ import annotations

import time
from typing import List, NamedTuple, Optional, Sequence

from .accounts import AccountRegistry
from .catalog import find_model
from .config import Settings
from .models import ModelRecord, RetoolAccount


class Selection(NamedTuple):
    account: RetoolAccount
    agent_id: str


def is_quarantined(account: RetoolAccount, settings: Settings, now: float) -> bool:
    """An account that failed too often rests for error_cooldown seconds after its last use."""
    return (
        account.error_count >= settings.max_error_count
        and now - account.last_used < settings.error_cooldown
    )


def select_next_account(
    registry: AccountRegistry,
    models: List[ModelRecord],
    model_id: str,
    settings: Settings,
    now: Optional[float] = None,
    exclude: Sequence[RetoolAccount] = (),
) -> Optional[Selection]:
    """
    Get the best Retool account able to serve ``model_id``.

    Candidates are valid, not quarantined, and own at least one agent of the
    model family. The least recently used candidate wins, ties going to the
    one with fewer errors and then to registry order. Selecting an account
    stamps its last_used even when the attempt that follows fails, which
    spreads retries across the pool. Accounts in ``exclude`` are skipped
    without being stamped.
    """
    record = find_model(models, model_id)
    if record is None:
        return None
    allowed = set(record.agents)

    with registry.lock:
        now = time.time() if now is None else now
        candidates: List[Selection] = []
        for account in registry:
            if any(account is tried for tried in exclude):
                continue
            if not account.is_valid or is_quarantined(account, settings, now):
                continue
            agent_id = next((agent.id for agent in account.agents if agent.id in allowed), None)
            if agent_id is None:
                continue
            candidates.append(Selection(account, agent_id))

        if not candidates:
            return None

        candidates.sort(key=lambda c: (c.account.last_used, c.account.error_count))
        chosen = candidates[0]
        chosen.account.last_used = now
        return chosen
