"""Shift flow configuration: which account plays each settlement role."""

from dataclasses import asdict, dataclass, fields
from typing import Any

import structlog

from mozza_ledger.store import CONFIG, LedgerStore

logger = structlog.get_logger(__name__)

FLOW_CONFIG_ID = "shift_flow"


@dataclass(frozen=True)
class FlowConfiguration:
    """Account ids for the seven sweep roles; empty string means unset."""

    sales_account: str = ""
    cards_account: str = ""
    hiking_account: str = ""
    fx_account: str = ""
    bills_account: str = ""
    cash_account: str = ""
    variance_account: str = ""

    @classmethod
    def roles(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def missing_roles(self) -> list[str]:
        return [role for role in self.roles() if not str(getattr(self, role) or "").strip()]

    def is_complete(self) -> bool:
        return not self.missing_roles()

    @classmethod
    def from_record(cls, record: dict[str, Any] | None) -> "FlowConfiguration":
        record = record or {}
        return cls(**{role: str(record.get(role) or "") for role in cls.roles()})

    def to_record(self) -> dict[str, Any]:
        return asdict(self)


class FlowConfigurationRepository:
    """Loads and saves the process-wide flow configuration document."""

    def __init__(self, store: LedgerStore):
        self._store = store

    async def get(self) -> FlowConfiguration:
        return FlowConfiguration.from_record(
            await self._store.get_record(CONFIG, FLOW_CONFIG_ID)
        )

    async def save(self, config: FlowConfiguration) -> FlowConfiguration:
        """Replace the stored configuration wholesale."""
        await self._store.set_record(CONFIG, FLOW_CONFIG_ID, config.to_record())
        logger.info(
            "flow_configuration_saved",
            complete=config.is_complete(),
            missing=config.missing_roles(),
        )
        return config
