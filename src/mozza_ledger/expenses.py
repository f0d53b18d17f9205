"""Business expenses and pending-expense reminders."""

from typing import Any

import structlog

from mozza_ledger.errors import NotFoundError, ValidationError
from mozza_ledger.models import (
    ExpenseRecord,
    PaymentStatus,
    Transaction,
    TransactionDraft,
    new_id,
    to_decimal,
    utc_now,
)
from mozza_ledger.poster import TransactionPoster
from mozza_ledger.store import EXPENSES, BatchOperation, LedgerStore

logger = structlog.get_logger(__name__)


class ExpenseService:
    """Records expenses and posts their cash outflow when they are paid."""

    def __init__(self, store: LedgerStore, poster: TransactionPoster | None = None):
        self._store = store
        self._poster = poster or TransactionPoster(store)

    async def list_expenses(self) -> list[ExpenseRecord]:
        records = await self._store.read_collection(EXPENSES)
        expenses = [ExpenseRecord.from_record(record) for record in records]
        return sorted(expenses, key=lambda expense: expense.date, reverse=True)

    async def get_expense(self, expense_id: str) -> ExpenseRecord:
        record = await self._store.get_record(EXPENSES, expense_id)
        if record is None:
            raise NotFoundError(EXPENSES, expense_id)
        return ExpenseRecord.from_record(record)

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
        """Store the expense; a paid one also posts its outflow.

        Returns the expense and the chained transaction, if any.
        """
        value = to_decimal(amount)
        if value <= 0:
            raise ValidationError(f"Expense amount must be positive, got {value}")
        try:
            status = PaymentStatus(payment_status)
        except ValueError as exc:
            raise ValidationError(f"Unknown payment status {payment_status!r}") from exc

        expense = ExpenseRecord(
            id=new_id(),
            amount=value,
            description=description,
            category=category,
            date=date,
            payment_status=status,
            account_id=account_id,
            vendor_id=vendor_id,
            created_at=utc_now(),
        )
        batch = [BatchOperation.append(EXPENSES, expense.to_record())]
        transaction = None
        if status == PaymentStatus.PAID:
            # The outflow commits with the expense or not at all
            transaction = await self._poster.queue(
                batch,
                TransactionDraft(
                    amount=-value,
                    category=category,
                    description=f"Business Expense: {description}",
                    date=date,
                    account_id=account_id,
                    expense_id=expense.id,
                ),
            )

        await self._store.commit_batch(batch)
        logger.info(
            "expense_recorded",
            expense_id=expense.id,
            amount=str(value),
            status=status.value,
            transaction_id=transaction.id if transaction else None,
        )
        return expense, transaction

    async def settle_expense(self, expense_id: str, account_id: str) -> Transaction:
        """Pay a pending reminder from ``account_id`` and drop the reminder."""
        expense = await self.get_expense(expense_id)
        if expense.payment_status == PaymentStatus.PAID:
            raise ValidationError(f"Expense {expense_id!r} is already paid")

        batch: list[BatchOperation] = []
        transaction = await self._poster.queue(
            batch,
            TransactionDraft(
                amount=-expense.amount,
                category=expense.category,
                description=f"Settled: {expense.description.split(' [')[0]}",
                date=utc_now(),
                account_id=account_id,
            ),
        )
        batch.append(BatchOperation.delete(EXPENSES, expense_id))
        await self._store.commit_batch(batch)
        logger.info("expense_settled", expense_id=expense_id, transaction_id=transaction.id)
        return transaction

    async def delete_expense(self, expense_id: str) -> None:
        """Delete the expense record; transactions it produced are kept."""
        await self._store.delete_record(EXPENSES, expense_id)
        logger.info("expense_deleted", expense_id=expense_id)
