"""Sandbox store backed by a single JSON file (or nothing, for tests).

The whole dataset is held in memory. A batch is applied to a copy of that
snapshot and the copy is written out once; only when the write succeeds
does it replace the live snapshot. A crash during the file write itself is
the accepted risk of this backend, hence ``supports_atomic_batch = False``.
"""

import copy
import json
import os
from pathlib import Path
from typing import Any

import structlog

from mozza_ledger.errors import NotFoundError, PreconditionFailedError, StorageError
from mozza_ledger.store.base import (
    BatchOperation,
    LedgerStore,
    OperationKind,
    merge_fields,
)

logger = structlog.get_logger(__name__)

Snapshot = dict[str, dict[str, dict[str, Any]]]


class LocalLedgerStore(LedgerStore):
    """Key-value ledger store for sandbox mode."""

    supports_atomic_batch = False

    def __init__(self, path: Path | str | None = None):
        self._path = Path(path) if path is not None else None
        self._data: Snapshot = self._load()
        self._logger = logger.bind(component="local_store", path=str(self._path))

    def _load(self) -> Snapshot:
        if self._path is None or not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StorageError(f"Cannot read sandbox file {self._path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise StorageError(f"Sandbox file {self._path} must hold a mapping")
        return {
            name: {str(record["id"]): record for record in records}
            for name, records in raw.items()
        }

    def _persist(self, snapshot: Snapshot) -> None:
        if self._path is None:
            return
        payload = {name: list(records.values()) for name, records in snapshot.items()}
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)

    def _commit(self, snapshot: Snapshot) -> None:
        try:
            self._persist(snapshot)
        except OSError as exc:
            self._logger.error("sandbox_persist_failed", error=str(exc))
            raise StorageError(f"Failed to write sandbox file: {exc}") from exc
        self._data = snapshot

    # === Reads ===

    async def read_collection(self, name: str) -> list[dict[str, Any]]:
        return copy.deepcopy(list(self._data.get(name, {}).values()))

    async def get_record(self, collection: str, record_id: str) -> dict[str, Any] | None:
        record = self._data.get(collection, {}).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    # === Writes ===

    async def append_record(self, collection: str, record: dict[str, Any]) -> str:
        operation = BatchOperation.append(collection, record)
        await self.commit_batch([operation])
        return operation.record_id

    async def update_record(
        self, collection: str, record_id: str, fields: dict[str, Any]
    ) -> None:
        await self.commit_batch([BatchOperation.update(collection, record_id, fields)])

    async def set_record(
        self, collection: str, record_id: str, record: dict[str, Any]
    ) -> None:
        await self.commit_batch([BatchOperation.set(collection, record_id, record)])

    async def delete_record(self, collection: str, record_id: str) -> None:
        await self.commit_batch([BatchOperation.delete(collection, record_id)])

    async def commit_batch(self, operations: list[BatchOperation]) -> None:
        snapshot = copy.deepcopy(self._data)
        for operation in operations:
            self._apply(snapshot, operation)
        self._commit(snapshot)
        self._logger.debug("batch_committed", operations=len(operations))

    @staticmethod
    def _apply(snapshot: Snapshot, operation: BatchOperation) -> None:
        records = snapshot.setdefault(operation.collection, {})
        current = records.get(operation.record_id)

        if operation.precondition:
            if current is None:
                raise NotFoundError(operation.collection, operation.record_id)
            for key, expected in operation.precondition.items():
                if current.get(key) != expected:
                    raise PreconditionFailedError(
                        f"{operation.collection}/{operation.record_id}: "
                        f"expected {key}={expected!r}, found {current.get(key)!r}",
                        status_code=412,
                        details={"field": key, "expected": expected},
                    )

        if operation.kind == OperationKind.APPEND:
            if current is not None:
                raise StorageError(
                    f"{operation.collection}/{operation.record_id} already exists",
                    status_code=409,
                )
            records[operation.record_id] = copy.deepcopy(operation.data)
        elif operation.kind == OperationKind.UPDATE:
            if current is None:
                raise NotFoundError(operation.collection, operation.record_id)
            records[operation.record_id] = merge_fields(current, operation.data)
        elif operation.kind == OperationKind.SET:
            record = copy.deepcopy(operation.data)
            record["id"] = operation.record_id
            records[operation.record_id] = record
        elif operation.kind == OperationKind.DELETE:
            records.pop(operation.record_id, None)

    def reset(self) -> None:
        """Drop every collection, including the sandbox file contents."""
        self._commit({})
        self._logger.info("sandbox_reset")
