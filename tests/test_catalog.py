"""Tests for agent discovery and model family aggregation."""

from __future__ import annotations

from fake_retool import FakeRetool, FakeWorkspace, agent, make_settings

from retool2api.accounts import AccountRegistry
from retool2api.catalog import build_model_catalog, discover_models, find_model, model_series
from retool2api.models import RetoolAccount, RetoolAgent


def _account(domain: str, *agents: RetoolAgent) -> RetoolAccount:
    return RetoolAccount(domain_name=domain, x_xsrf_token="x", access_token="t", agents=list(agents))


def test_model_series_keeps_three_segments() -> None:
    assert model_series("claude-sonnet-4-20250514") == "claude-sonnet-4"
    assert model_series("gpt-4o") == "gpt-4o"
    assert model_series("unknown") == "unknown"


def test_agents_of_one_family_collapse_into_one_record() -> None:
    accounts = [
        _account("a.retool.com", RetoolAgent("ag-1", "Opus", "anthropic-claude-3-opus-v2")),
        _account("b.retool.com", RetoolAgent("ag-2", "Opus too", "anthropic-claude-3-opus-v3")),
    ]

    models = build_model_catalog(accounts)

    assert len(models) == 1
    record = models[0]
    assert record.id == "anthropic-claude-3"
    assert record.agents == ["ag-1", "ag-2"]
    assert record.name == "Opus"
    assert record.model_name == "anthropic-claude-3-opus-v2"
    assert record.owned_by == "anthropic"


def test_ownership_and_ordering() -> None:
    accounts = [
        _account(
            "a.retool.com",
            RetoolAgent("ag-1", "GPT", "gpt-4o-2024-08-06"),
            RetoolAgent("ag-2", "Sonnet", "CLAUDE-sonnet-4-20250514"),
        )
    ]

    models = build_model_catalog(accounts)

    assert [m.id for m in models] == ["gpt-4o-2024", "CLAUDE-sonnet-4"]
    assert models[0].owned_by == "openai"
    assert models[1].owned_by == "anthropic"
    assert find_model(models, "gpt-4o-2024") is models[0]
    assert find_model(models, "missing") is None


def test_agent_without_model_is_grouped_as_unknown() -> None:
    parsed = RetoolAgent.from_api({"id": 7, "name": "Bare"})
    assert parsed == RetoolAgent("7", "Bare", "unknown")


def test_discover_models_tolerates_failing_accounts() -> None:
    backend = FakeRetool(
        {
            "good.retool.com": FakeWorkspace(agents=[agent("ag-1", "claude-sonnet-4-20250514")]),
            "revoked.retool.com": FakeWorkspace(failures={"agent_query": 401}),
            "flaky.retool.com": FakeWorkspace(failures={"agent_query": 500}),
        }
    )
    settings = make_settings("good.retool.com", "revoked.retool.com", "flaky.retool.com")
    registry = AccountRegistry.from_settings(settings)

    models = discover_models(registry, settings, backend.session_factory)

    good, revoked, flaky = registry.accounts
    assert [m.id for m in models] == ["claude-sonnet-4"]
    assert models[0].agents == ["ag-1"]
    assert good.is_valid and [a.id for a in good.agents] == ["ag-1"]
    assert revoked.is_valid is False and revoked.agents == []
    assert flaky.is_valid is True and flaky.agents == []
    assert backend.closed_sessions == 1


def test_rediscovery_replaces_catalog() -> None:
    workspace = FakeWorkspace(agents=[agent("ag-1", "gpt-4o-mini-2024")])
    backend = FakeRetool({"a.retool.com": workspace})
    settings = make_settings("a.retool.com")
    registry = AccountRegistry.from_settings(settings)

    assert [m.id for m in discover_models(registry, settings, backend.session_factory)] == ["gpt-4o-mini"]

    workspace.agents = [agent("ag-2", "claude-opus-4-1")]
    models = discover_models(registry, settings, backend.session_factory)

    assert [m.id for m in models] == ["claude-opus-4"]
    assert models[0].agents == ["ag-2"]
