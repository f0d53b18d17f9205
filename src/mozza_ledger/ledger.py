"""Back-office facade wiring the ledger services to one store."""

import asyncio
from decimal import Decimal
from typing import Any

import structlog

from mozza_ledger.accounts import AccountBalanceModel
from mozza_ledger.config import Settings, get_settings
from mozza_ledger.expenses import ExpenseService
from mozza_ledger.flow import FlowConfiguration, FlowConfigurationRepository
from mozza_ledger.models import (
    Account,
    AccountType,
    ExpenseRecord,
    PaymentStatus,
    Shift,
    ShiftInjection,
    Transaction,
    TransactionDraft,
)
from mozza_ledger.payroll import PayoutKind, PayrollService
from mozza_ledger.poster import TransactionPoster
from mozza_ledger.shifts import ShiftCloseResult, ShiftStateMachine
from mozza_ledger.store import LedgerStore, create_store
from mozza_ledger.sweep import SweepEngine

logger = structlog.get_logger(__name__)


class BackOffice:
    """Operations exposed to the presentation layer.

    The store is injected; use ``BackOffice.from_settings()`` to pick the
    sandbox or live backend from configuration.
    """

    def __init__(self, store: LedgerStore, operator: str = "Unknown"):
        self.store = store
        self.accounts = AccountBalanceModel(store)
        self.poster = TransactionPoster(store, self.accounts)
        self.flow = FlowConfigurationRepository(store)
        self.sweep = SweepEngine(store, self.accounts, self.poster)
        self.shifts = ShiftStateMachine(
            store, self.flow, self.sweep, self.accounts, operator=operator
        )
        self.expenses = ExpenseService(store, self.poster)
        self.payroll = PayrollService(store, self.poster)
        # At most one close in flight per session
        self._close_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "BackOffice":
        settings = settings or get_settings()
        logger.info("back_office_starting", mode=settings.mode)
        return cls(create_store(settings), operator=settings.operator)

    async def close(self) -> None:
        await self.store.close()

    async def __aenter__(self) -> "BackOffice":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # === Accounts & Transactions ===

    async def add_account(
        self, name: str, account_type: AccountType | str, initial_balance: Any = Decimal("0")
    ) -> Account:
        return await self.accounts.create_account(name, account_type, initial_balance)

    async def list_accounts(self) -> list[Account]:
        return await self.accounts.list_accounts()

    async def post_transaction(self, draft: TransactionDraft) -> Transaction:
        return await self.poster.post(draft)

    async def list_transactions(
        self, account_id: str | None = None, shift_id: str | None = None
    ) -> list[Transaction]:
        transactions = await self.poster.list_transactions(account_id, shift_id)
        return sorted(transactions, key=lambda t: (t.date, t.created_at), reverse=True)

    # === Flow Configuration ===

    async def get_flow_configuration(self) -> FlowConfiguration:
        return await self.flow.get()

    async def save_flow_configuration(self, config: FlowConfiguration) -> FlowConfiguration:
        return await self.flow.save(config)

    # === Shifts ===

    async def active_shift(self) -> Shift | None:
        return await self.shifts.find_open()

    async def start_shift(
        self,
        opening_float: Any = None,
        injections: list[ShiftInjection | dict[str, Any]] | None = None,
        accounting_date: str | None = None,
    ) -> Shift:
        return await self.shifts.start(opening_float, injections, accounting_date)

    async def update_active_shift(self, fields: dict[str, Any]) -> Shift:
        return await self.shifts.update(fields)

    async def close_shift(self, actual_cash: Any) -> ShiftCloseResult:
        async with self._close_lock:
            return await self.shifts.close(actual_cash)

    # === Expenses ===

    async def add_expense(
        self,
        amount: Any,
        description: str,
        category: str,
        date: str,
        account_id: str,
        payment_status: PaymentStatus | str = PaymentStatus.PENDING,
        vendor_id: str | None = None,
    ) -> tuple[ExpenseRecord, Transaction | None]:
        return await self.expenses.add_expense(
            amount, description, category, date, account_id, payment_status, vendor_id
        )

    async def settle_expense(self, expense_id: str, account_id: str) -> Transaction:
        return await self.expenses.settle_expense(expense_id, account_id)

    async def delete_expense(self, expense_id: str) -> None:
        await self.expenses.delete_expense(expense_id)

    # === Payroll ===

    async def issue_advance(self, staff_id: str, amount: Any, source_account_id: str) -> Transaction:
        return await self.payroll.issue_advance(staff_id, amount, source_account_id)

    async def issue_loan(self, staff_id: str, amount: Any, source_account_id: str) -> Transaction:
        return await self.payroll.issue_loan(staff_id, amount, source_account_id)

    async def run_payroll(
        self,
        staff_id: str,
        kind: PayoutKind | str,
        source_account_id: str,
        base_amount: Any = None,
        loan_repayment: Any = Decimal("0"),
    ) -> list[Transaction]:
        return await self.payroll.run_payroll(
            staff_id, kind, source_account_id, base_amount, loan_repayment
        )
