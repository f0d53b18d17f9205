"""Pytest configuration and fixtures."""

import os
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

# Set test environment variables before importing settings
os.environ.setdefault("MOZZA_MODE", "sandbox")
os.environ.setdefault("MOZZA_STORE_URL", "http://store.test")
os.environ.setdefault("MOZZA_OPERATOR", "Test Chef")

from mozza_ledger.errors import StorageError  # noqa: E402
from mozza_ledger.flow import FlowConfiguration  # noqa: E402
from mozza_ledger.ledger import BackOffice  # noqa: E402
from mozza_ledger.models import AccountType  # noqa: E402
from mozza_ledger.store import LocalLedgerStore  # noqa: E402


class FlakyStore(LocalLedgerStore):
    """In-memory store whose next batch commits can be made to fail."""

    def __init__(self):
        super().__init__()
        self.fail_next = 0
        self.commits = 0

    async def commit_batch(self, operations):
        if self.fail_next:
            self.fail_next -= 1
            raise StorageError("simulated outage", status_code=503)
        self.commits += 1
        await super().commit_batch(operations)


@pytest.fixture
def store():
    """Fresh in-memory sandbox store."""
    return FlakyStore()


@pytest.fixture
def office(store):
    return BackOffice(store, operator="Test Chef")


@pytest_asyncio.fixture
async def accounts(office):
    """One account per sweep role plus a bank account, keyed by role."""
    specs = {
        "sales": ("Daily Sales", AccountType.INCOME),
        "cards": ("Card Settlements", AccountType.RECEIVABLE),
        "hiking": ("Hiking Bar", AccountType.RECEIVABLE),
        "fx": ("FX Reserve", AccountType.ASSET),
        "bills": ("Guest Bills", AccountType.RECEIVABLE),
        "cash": ("Main Cash", AccountType.CASH),
        "variance": ("Cash Variance", AccountType.EQUITY),
        "bank": ("Operating Bank", AccountType.BANK),
    }
    created = {}
    for role, (name, kind) in specs.items():
        account = await office.add_account(name, kind)
        created[role] = account.id
    return created


@pytest_asyncio.fixture
async def flow(office, accounts):
    """A complete, saved flow configuration."""
    config = FlowConfiguration(
        sales_account=accounts["sales"],
        cards_account=accounts["cards"],
        hiking_account=accounts["hiking"],
        fx_account=accounts["fx"],
        bills_account=accounts["bills"],
        cash_account=accounts["cash"],
        variance_account=accounts["variance"],
    )
    return await office.save_flow_configuration(config)


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx AsyncClient."""
    client = AsyncMock()
    client.request = AsyncMock()
    client.aclose = AsyncMock()
    return client
