"""Application configuration and settings helpers."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class RetoolAccountConfig(BaseModel):
    """Credentials for one Retool workspace as given in RETOOL_ACCOUNTS."""

    model_config = ConfigDict(populate_by_name=True)

    domain_name: str = Field(..., min_length=1)
    x_xsrf_token: str = Field(..., min_length=1)
    access_token: str = Field(..., min_length=1, alias="accessToken")


class Settings(BaseModel):
    """Centralized application configuration."""

    client_api_keys: List[str] = Field(..., description="Comma separated CLIENT_API_KEYS value")
    retool_accounts: List[RetoolAccountConfig] = Field(..., description="JSON array RETOOL_ACCOUNTS value")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    debug_mode: bool = Field(default=False)
    max_error_count: int = Field(default=3)
    error_cooldown: float = Field(default=300, description="Quarantine window in seconds")
    poll_interval: float = Field(default=1.0)
    poll_timeout: float = Field(default=300)
    request_timeout: float = Field(default=30)
    stream_chunk_size: int = Field(default=5, gt=0)
    stream_delay: float = Field(default=0.01, ge=0)
    message_timezone: str = Field(default="Asia/Shanghai")
    http_proxy: Optional[str] = Field(default=None)
    https_proxy: Optional[str] = Field(default=None)
    no_proxy: Optional[str] = Field(default=None)

    @field_validator("client_api_keys", "retool_accounts")
    @classmethod
    def _ensure_values(cls, value, info):
        if not value:
            raise ValueError(f"{info.field_name} cannot be empty")
        return value

    @property
    def proxies(self) -> dict[str, Optional[str]]:
        return {
            "http": self.http_proxy,
            "https": self.https_proxy,
            "no_proxy": self.no_proxy,
        }


def parse_client_api_keys(raw: Optional[str]) -> List[str]:
    """Split a comma separated key list, trimming blanks and dropping duplicates."""
    if not raw:
        return []
    keys: List[str] = []
    for item in raw.split(","):
        key = item.strip()
        if key and key not in keys:
            keys.append(key)
    return keys


def parse_retool_accounts(raw: Optional[str]) -> List[RetoolAccountConfig]:
    """
    Parse the RETOOL_ACCOUNTS JSON array.

    Raises ValueError when the value is not valid JSON, is not an array,
    or an entry is missing one of its credentials.
    """
    if not raw or not raw.strip():
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"RETOOL_ACCOUNTS is not valid JSON: {exc}") from exc
    if not isinstance(parsed, list):
        raise ValueError("RETOOL_ACCOUNTS must be a JSON array")

    accounts: List[RetoolAccountConfig] = []
    for index, entry in enumerate(parsed):
        try:
            accounts.append(RetoolAccountConfig.model_validate(entry))
        except ValidationError as exc:
            raise ValueError(f"RETOOL_ACCOUNTS[{index}] is invalid: {exc}") from exc
    return accounts


@lru_cache()
def get_settings() -> Settings:
    """Load settings from environment variables."""

    import os
    from dotenv import load_dotenv

    load_dotenv()

    missing = [name for name in ("CLIENT_API_KEYS", "RETOOL_ACCOUNTS") if not os.getenv(name)]
    if missing:
        message = f"Missing required environment variables: {', '.join(missing)}"
        print(f"[ERROR] Configuration failed: {message}")
        raise ValueError(message)

    errors: List[str] = []
    client_api_keys = parse_client_api_keys(os.getenv("CLIENT_API_KEYS"))
    if not client_api_keys:
        errors.append("CLIENT_API_KEYS is empty or contains only whitespace")

    retool_accounts: List[RetoolAccountConfig] = []
    try:
        retool_accounts = parse_retool_accounts(os.getenv("RETOOL_ACCOUNTS"))
        if not retool_accounts:
            errors.append("RETOOL_ACCOUNTS is empty or contains no valid accounts")
    except ValueError as exc:
        errors.append(f"Failed to parse RETOOL_ACCOUNTS: {exc}")

    if errors:
        for error in errors:
            print(f"[ERROR] Configuration failed: {error}")
        raise ValueError("; ".join(errors))

    return Settings(
        client_api_keys=client_api_keys,
        retool_accounts=retool_accounts,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        debug_mode=os.getenv("DEBUG_MODE", "false").lower() == "true",
        max_error_count=int(os.getenv("MAX_ERROR_COUNT", "3")),
        error_cooldown=float(os.getenv("ERROR_COOLDOWN", "300")),
        poll_interval=float(os.getenv("POLL_INTERVAL", "1")),
        poll_timeout=float(os.getenv("POLL_TIMEOUT", "300")),
        request_timeout=float(os.getenv("REQUEST_TIMEOUT", "30")),
        stream_chunk_size=int(os.getenv("STREAM_CHUNK_SIZE", "5")),
        stream_delay=float(os.getenv("STREAM_DELAY", "0.01")),
        message_timezone=os.getenv("MESSAGE_TIMEZONE", "Asia/Shanghai"),
        http_proxy=os.getenv("HTTP_PROXY"),
        https_proxy=os.getenv("HTTPS_PROXY"),
        no_proxy=os.getenv("NO_PROXY"),
    )
