"""Transaction poster: the only writer of account balances."""

import structlog

from mozza_ledger.accounts import AccountBalanceModel
from mozza_ledger.models import Transaction, TransactionDraft
from mozza_ledger.store import TRANSACTIONS, BatchOperation, LedgerStore

logger = structlog.get_logger(__name__)


class TransactionPoster:
    """Appends immutable transactions together with their balance deltas."""

    def __init__(self, store: LedgerStore, accounts: AccountBalanceModel | None = None):
        self._store = store
        self._accounts = accounts or AccountBalanceModel(store)
        self._logger = logger.bind(component="poster")

    @property
    def accounts(self) -> AccountBalanceModel:
        return self._accounts

    async def queue(
        self,
        batch: list[BatchOperation],
        draft: TransactionDraft,
        known: set[str] | None = None,
    ) -> Transaction:
        """Add the append and its balance delta to ``batch`` without committing."""
        transaction = Transaction.from_draft(draft)
        deltas: list[BatchOperation] = []
        await self._accounts.apply_delta(
            deltas, transaction.account_id, transaction.amount, known
        )
        batch.append(BatchOperation.append(TRANSACTIONS, transaction.to_record()))
        batch.extend(deltas)
        return transaction

    async def post(self, draft: TransactionDraft) -> Transaction:
        """Record one transaction and move its account's balance."""
        batch: list[BatchOperation] = []
        transaction = await self.queue(batch, draft)
        await self._store.commit_batch(batch)
        self._logger.info(
            "transaction_posted",
            transaction_id=transaction.id,
            account_id=transaction.account_id,
            amount=str(transaction.amount),
            category=transaction.category,
        )
        return transaction

    async def list_transactions(
        self, account_id: str | None = None, shift_id: str | None = None
    ) -> list[Transaction]:
        transactions = [
            Transaction.from_record(record)
            for record in await self._store.read_collection(TRANSACTIONS)
        ]
        if account_id is not None:
            transactions = [t for t in transactions if t.account_id == account_id]
        if shift_id is not None:
            transactions = [t for t in transactions if t.shift_id == shift_id]
        return transactions
