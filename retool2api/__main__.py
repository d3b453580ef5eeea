"""Run the Retool OpenAI API Adapter with uvicorn."""

from __future__ import annotations

import uvicorn

from .app import create_app
from .config import get_settings


def main() -> None:
    settings = get_settings()

    print("\n--- Retool OpenAI API Adapter ---")
    print(f"Debug Mode: {settings.debug_mode}")
    print("Endpoints:")
    print("  GET  /v1/models (Client API Key Auth)")
    print("  GET  /models (No Auth)")
    print("  POST /v1/chat/completions (Client API Key Auth)")
    print("  GET  /debug?enable=true|false (Client API Key Auth)")
    print(f"\nClient API Keys: {len(settings.client_api_keys)}")
    print(f"Retool Accounts: {len(settings.retool_accounts)}")
    print("------------------------------------")

    print(f"Starting server on {settings.host}:{settings.port}")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
