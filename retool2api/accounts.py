"""Retool account pool and its health bookkeeping."""

from __future__ import annotations

from threading import Lock
from typing import Iterable, Iterator, List

from .config import Settings
from .models import RetoolAccount
from .utils import log_account_event


class AccountRegistry:
    """
    Owns the Retool accounts for the lifetime of the process.

    Health fields are updated under a short lock; the lock is never held
    while talking to Retool. Invalidated accounts stay in the pool so the
    selector can keep skipping them.
    """

    def __init__(self, accounts: Iterable[RetoolAccount] = ()) -> None:
        self._accounts: List[RetoolAccount] = list(accounts)
        self.lock = Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "AccountRegistry":
        registry = cls(
            RetoolAccount(
                domain_name=config.domain_name,
                x_xsrf_token=config.x_xsrf_token,
                access_token=config.access_token,
            )
            for config in settings.retool_accounts
        )
        print(f"Successfully loaded {len(registry)} Retool accounts from configuration.")
        return registry

    @property
    def accounts(self) -> List[RetoolAccount]:
        return self._accounts

    def __iter__(self) -> Iterator[RetoolAccount]:
        return iter(self._accounts)

    def __len__(self) -> int:
        return len(self._accounts)

    def mark_invalid(self, account: RetoolAccount, reason: str) -> None:
        """Permanently remove an account from rotation."""
        with self.lock:
            account.is_valid = False
        log_account_event(account, f"Marked invalid: {reason}")

    def record_failure(self, account: RetoolAccount) -> int:
        with self.lock:
            account.error_count += 1
            count = account.error_count
        log_account_event(account, f"error count: {count}")
        return count
