"""Tests for shift flow configuration."""

from dataclasses import replace

import pytest

from mozza_ledger.flow import FLOW_CONFIG_ID, FlowConfiguration, FlowConfigurationRepository
from mozza_ledger.store import CONFIG, LocalLedgerStore


def _complete() -> FlowConfiguration:
    return FlowConfiguration(
        sales_account="a1",
        cards_account="a2",
        hiking_account="a3",
        fx_account="a4",
        bills_account="a5",
        cash_account="a6",
        variance_account="a7",
    )


def test_defaults_are_empty_and_incomplete():
    """Test that a fresh configuration misses every role."""
    config = FlowConfiguration()

    assert not config.is_complete()
    assert config.missing_roles() == list(FlowConfiguration.roles())
    assert len(FlowConfiguration.roles()) == 7


def test_all_roles_set_is_complete():
    """Test that a configuration with every role is complete."""
    assert _complete().is_complete()


@pytest.mark.parametrize("role", FlowConfiguration.roles())
def test_any_single_empty_role_is_incomplete(role):
    """Test that any one empty role makes the configuration incomplete."""
    config = replace(_complete(), **{role: ""})

    assert not config.is_complete()
    assert config.missing_roles() == [role]


def test_whitespace_only_id_counts_as_missing():
    """Test that a whitespace-only account id counts as missing."""
    config = replace(_complete(), fx_account="   ")
    assert config.missing_roles() == ["fx_account"]


@pytest.mark.asyncio
async def test_repository_returns_defaults_when_nothing_saved():
    """Test that an empty store yields the default configuration."""
    repo = FlowConfigurationRepository(LocalLedgerStore())

    assert await repo.get() == FlowConfiguration()


@pytest.mark.asyncio
async def test_repository_saves_wholesale():
    """Test that saving replaces the stored configuration entirely."""
    store = LocalLedgerStore()
    repo = FlowConfigurationRepository(store)

    await repo.save(_complete())
    await repo.save(FlowConfiguration(sales_account="only-sales"))

    loaded = await repo.get()
    assert loaded == FlowConfiguration(sales_account="only-sales")
    record = await store.get_record(CONFIG, FLOW_CONFIG_ID)
    assert record is not None
    assert record["cards_account"] == ""
