"""Exception hierarchy for ledger operations."""

from typing import Any


class LedgerError(Exception):
    """Base exception for ledger errors."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.details = details


class ConfigurationIncompleteError(LedgerError):
    """Shift flow configuration is missing one or more account roles."""

    def __init__(self, missing: list[str]):
        super().__init__(
            "Shift flow configuration is incomplete: missing " + ", ".join(missing),
            details={"missing": missing},
        )
        self.missing = missing


class StorageError(LedgerError):
    """Reading, writing or committing against the ledger store failed.

    Nothing is assumed to have changed; the whole operation is safe to retry.
    """

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message, details=details)
        self.status_code = status_code


class PreconditionFailedError(StorageError):
    """A batch precondition did not hold; the batch was not applied."""

    pass


class NotFoundError(LedgerError):
    """Referenced record does not exist."""

    def __init__(self, collection: str, record_id: str):
        super().__init__(
            f"{collection} record {record_id!r} not found",
            details={"collection": collection, "id": record_id},
        )
        self.collection = collection
        self.record_id = record_id


class ValidationError(LedgerError):
    """Malformed input, rejected before anything is written."""

    pass


class ShiftStateError(LedgerError):
    """Operation not allowed in the current shift lifecycle state."""

    pass
