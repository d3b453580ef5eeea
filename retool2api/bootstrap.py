"""Helpers for loading runtime state from configuration."""

from __future__ import annotations

from .accounts import AccountRegistry
from .catalog import discover_models
from .config import Settings
from .state import RuntimeState


def load_client_api_keys(state: RuntimeState, settings: Settings) -> None:
    """Populate the runtime state's valid client keys set."""
    state.valid_client_keys = set(settings.client_api_keys)
    print(f"Successfully loaded {len(state.valid_client_keys)} client API keys from configuration.")


def load_retool_models(state: RuntimeState, settings: Settings) -> None:
    """Discover agents on every account and replace the model catalog."""
    state.models = discover_models(state.registry, settings, state.session_factory)
    if not state.models:
        print("Warning: no Retool models discovered, chat completions will return 404.")


def bootstrap_state(state: RuntimeState, settings: Settings) -> None:
    """Load all runtime resources from configuration."""
    load_client_api_keys(state, settings)
    state.registry = AccountRegistry.from_settings(settings)
    load_retool_models(state, settings)
