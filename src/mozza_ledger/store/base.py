"""Ledger store interface shared by the sandbox and live backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from mozza_ledger.models import new_id, to_decimal

# Collection names
ACCOUNTS = "accounts"
TRANSACTIONS = "transactions"
SHIFTS = "shifts"
EXPENSES = "expenses"
STAFF = "staff"
CONFIG = "config"


@dataclass(frozen=True)
class Increment:
    """Field value that adds to the stored number instead of replacing it."""

    amount: Decimal


class OperationKind(str, Enum):
    APPEND = "append"
    UPDATE = "update"
    SET = "set"
    DELETE = "delete"


@dataclass
class BatchOperation:
    """One write inside an atomic batch.

    ``precondition`` maps field names to the values they must currently hold;
    if any differs the whole batch is rejected before anything is applied.
    """

    kind: OperationKind
    collection: str
    record_id: str
    data: dict[str, Any] = field(default_factory=dict)
    precondition: dict[str, Any] | None = None

    @classmethod
    def append(cls, collection: str, record: dict[str, Any]) -> "BatchOperation":
        record = dict(record)
        record.setdefault("id", new_id())
        return cls(OperationKind.APPEND, collection, record["id"], record)

    @classmethod
    def update(
        cls,
        collection: str,
        record_id: str,
        fields: dict[str, Any],
        precondition: dict[str, Any] | None = None,
    ) -> "BatchOperation":
        return cls(OperationKind.UPDATE, collection, record_id, dict(fields), precondition)

    @classmethod
    def set(cls, collection: str, record_id: str, record: dict[str, Any]) -> "BatchOperation":
        return cls(OperationKind.SET, collection, record_id, dict(record))

    @classmethod
    def delete(cls, collection: str, record_id: str) -> "BatchOperation":
        return cls(OperationKind.DELETE, collection, record_id)


def merge_fields(current: dict[str, Any], fields: dict[str, Any]) -> dict[str, Any]:
    """Return ``current`` with ``fields`` applied, resolving increments."""
    merged = dict(current)
    for key, value in fields.items():
        if isinstance(value, Increment):
            base = to_decimal(merged.get(key) or "0", key)
            merged[key] = str(base + value.amount)
        else:
            merged[key] = value
    return merged


class LedgerStore(ABC):
    """Durable keyed storage for ledger records.

    ``supports_atomic_batch`` states whether ``commit_batch`` is truly atomic
    against crashes, or only all-or-nothing with respect to errors raised
    before the batch is persisted.
    """

    supports_atomic_batch: bool = False

    @abstractmethod
    async def read_collection(self, name: str) -> list[dict[str, Any]]:
        """Return all records of a collection in insertion order."""

    @abstractmethod
    async def get_record(self, collection: str, record_id: str) -> dict[str, Any] | None:
        """Return one record, or None when it does not exist."""

    @abstractmethod
    async def append_record(self, collection: str, record: dict[str, Any]) -> str:
        """Append a record and return its id."""

    @abstractmethod
    async def update_record(
        self, collection: str, record_id: str, fields: dict[str, Any]
    ) -> None:
        """Merge fields into an existing record."""

    @abstractmethod
    async def set_record(
        self, collection: str, record_id: str, record: dict[str, Any]
    ) -> None:
        """Create or wholesale replace a record."""

    @abstractmethod
    async def delete_record(self, collection: str, record_id: str) -> None:
        """Delete a record if present."""

    @abstractmethod
    async def commit_batch(self, operations: list[BatchOperation]) -> None:
        """Apply all operations, or none of them."""

    async def close(self) -> None:
        """Release any held resources."""

    async def __aenter__(self) -> "LedgerStore":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
