"""Model discovery: turn each account's Retool agents into model families."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

from requests import Session

from .accounts import AccountRegistry
from .config import Settings
from .core.retool import query_agents
from .models import Err, ModelRecord, RetoolAccount
from .utils import create_requests_session, log_debug

SERIES_SEGMENTS = 3


def model_series(model_name: str) -> str:
    """Family id of an upstream model name, e.g. claude-sonnet-4-20250514 -> claude-sonnet-4."""
    return "-".join(model_name.split("-")[:SERIES_SEGMENTS])


def model_owner(model_name: str) -> str:
    return "anthropic" if "claude" in model_name.lower() else "openai"


def build_model_catalog(accounts: Iterable[RetoolAccount]) -> List[ModelRecord]:
    """Group every account's agents into model families, in discovery order."""
    families: Dict[str, ModelRecord] = {}
    for account in accounts:
        for agent in account.agents:
            series = model_series(agent.model)
            record = families.get(series)
            if record is None:
                record = ModelRecord(
                    id=series,
                    name=agent.name,
                    model_name=agent.model,
                    owned_by=model_owner(agent.model),
                )
                families[series] = record
            record.agents.append(agent.id)
    return list(families.values())


def discover_models(
    registry: AccountRegistry,
    settings: Settings,
    session_factory: Callable[[Settings], Session] = create_requests_session,
) -> List[ModelRecord]:
    """
    Query every account for its agents and build the model catalog.

    A failing account does not stop discovery: it simply contributes no
    agents, and an authentication failure disables it for good.
    """
    session = session_factory(settings)
    try:
        for account in registry:
            result = query_agents(session, account, settings)
            if isinstance(result, Err):
                account.agents = []
                if result.error.is_auth_error:
                    registry.mark_invalid(account, "authentication error during agent discovery")
                continue
            account.agents = result.value
            log_debug(settings, f"{account.domain_name} -> {len(account.agents)} agents")
    finally:
        session.close()

    models = build_model_catalog(registry)
    print(f"Loaded {len(models)} unique model families from {len(registry)} Retool account(s).")
    return models


def find_model(models: List[ModelRecord], model_id: str) -> Optional[ModelRecord]:
    return next((m for m in models if m.id == model_id), None)
