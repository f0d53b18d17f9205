"""Ledger store backends."""

from mozza_ledger.config import Settings, get_settings
from mozza_ledger.store.base import (
    ACCOUNTS,
    CONFIG,
    EXPENSES,
    SHIFTS,
    STAFF,
    TRANSACTIONS,
    BatchOperation,
    Increment,
    LedgerStore,
    OperationKind,
)
from mozza_ledger.store.local import LocalLedgerStore
from mozza_ledger.store.remote import RemoteLedgerStore


def create_store(settings: Settings | None = None) -> LedgerStore:
    """Build the store selected by ``MOZZA_MODE``."""
    settings = settings or get_settings()
    if settings.mode == "live":
        token = settings.store_token.get_secret_value() if settings.store_token else None
        return RemoteLedgerStore(
            base_url=settings.store_url,
            token=token,
            timeout=settings.store_timeout,
            max_retries=settings.store_max_retries,
        )
    return LocalLedgerStore(settings.sandbox_path)


__all__ = [
    "ACCOUNTS",
    "CONFIG",
    "EXPENSES",
    "SHIFTS",
    "STAFF",
    "TRANSACTIONS",
    "BatchOperation",
    "Increment",
    "LedgerStore",
    "LocalLedgerStore",
    "OperationKind",
    "RemoteLedgerStore",
    "create_store",
]
