"""Mozza Ledger - restaurant back-office ledger with shift-close sweeps."""

__version__ = "0.1.0"

from mozza_ledger.accounts import AccountBalanceModel
from mozza_ledger.config import configure_logging, get_settings
from mozza_ledger.errors import (
    ConfigurationIncompleteError,
    LedgerError,
    NotFoundError,
    PreconditionFailedError,
    ShiftStateError,
    StorageError,
    ValidationError,
)
from mozza_ledger.expenses import ExpenseService
from mozza_ledger.flow import FlowConfiguration, FlowConfigurationRepository
from mozza_ledger.ledger import BackOffice
from mozza_ledger.models import (
    Account,
    AccountType,
    CreditBillEntry,
    ExpenseRecord,
    ForeignCurrency,
    PaymentStatus,
    RealAccount,
    Shift,
    ShiftExpense,
    ShiftInjection,
    ShiftStatus,
    Transaction,
    TransactionDraft,
    VirtualSink,
)
from mozza_ledger.payroll import PayoutKind, PayrollService
from mozza_ledger.poster import TransactionPoster
from mozza_ledger.shifts import ShiftCloseResult, ShiftStateMachine
from mozza_ledger.store import LedgerStore, LocalLedgerStore, RemoteLedgerStore
from mozza_ledger.sweep import Posting, SweepEngine

__all__ = [
    # Version
    "__version__",
    # Facade
    "BackOffice",
    # Services
    "AccountBalanceModel",
    "TransactionPoster",
    "ShiftStateMachine",
    "ShiftCloseResult",
    "SweepEngine",
    "Posting",
    "FlowConfiguration",
    "FlowConfigurationRepository",
    "ExpenseService",
    "PayrollService",
    "PayoutKind",
    # Stores
    "LedgerStore",
    "LocalLedgerStore",
    "RemoteLedgerStore",
    # Records
    "Account",
    "AccountType",
    "Transaction",
    "TransactionDraft",
    "Shift",
    "ShiftStatus",
    "ShiftExpense",
    "ShiftInjection",
    "CreditBillEntry",
    "ForeignCurrency",
    "ExpenseRecord",
    "PaymentStatus",
    "RealAccount",
    "VirtualSink",
    # Errors
    "LedgerError",
    "ConfigurationIncompleteError",
    "StorageError",
    "PreconditionFailedError",
    "NotFoundError",
    "ValidationError",
    "ShiftStateError",
    # Config
    "get_settings",
    "configure_logging",
]
