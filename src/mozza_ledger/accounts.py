"""Account balance model.

A balance only ever moves as an increment queued into the same batch as the
transaction that explains it, so an account's balance always equals the sum
of its transaction history.
"""

from decimal import Decimal
from typing import Any

import structlog

from mozza_ledger.errors import NotFoundError, ValidationError
from mozza_ledger.models import (
    ZERO,
    Account,
    AccountType,
    RealAccount,
    Transaction,
    TransactionDraft,
    VirtualSink,
    new_id,
    resolve_target,
    to_decimal,
    utc_now,
)
from mozza_ledger.store import ACCOUNTS, TRANSACTIONS, BatchOperation, Increment, LedgerStore

logger = structlog.get_logger(__name__)

OPENING_BALANCE_CATEGORY = "Opening Balance"


class AccountBalanceModel:
    """Reads accounts and queues balance deltas."""

    def __init__(self, store: LedgerStore):
        self._store = store
        self._logger = logger.bind(component="accounts")

    async def list_accounts(self) -> list[Account]:
        records = await self._store.read_collection(ACCOUNTS)
        return [Account.from_record(record) for record in records]

    async def get_account(self, account_id: str) -> Account:
        record = await self._store.get_record(ACCOUNTS, account_id)
        if record is None:
            raise NotFoundError(ACCOUNTS, account_id)
        return Account.from_record(record)

    async def known_ids(self) -> set[str]:
        return {str(record["id"]) for record in await self._store.read_collection(ACCOUNTS)}

    async def resolve(
        self, account_id: str, known: set[str] | None = None
    ) -> RealAccount | VirtualSink:
        """Resolve an id to a posting target, checking real accounts exist."""
        target = resolve_target(account_id)
        if isinstance(target, RealAccount):
            if known is not None:
                exists = account_id in known
            else:
                exists = await self._store.get_record(ACCOUNTS, account_id) is not None
            if not exists:
                raise NotFoundError(ACCOUNTS, account_id)
        return target

    async def apply_delta(
        self,
        batch: list[BatchOperation],
        account_id: str,
        amount: Decimal,
        known: set[str] | None = None,
    ) -> None:
        """Queue ``amount`` onto the account's balance in ``batch``.

        Virtual sinks are skipped outright; nothing is queued for them.
        """
        target = await self.resolve(account_id, known)
        if isinstance(target, VirtualSink):
            return
        batch.append(
            BatchOperation.update(
                ACCOUNTS, target.account_id, {"balance": Increment(amount)}
            )
        )

    async def create_account(
        self,
        name: str,
        account_type: AccountType | str,
        initial_balance: Any = ZERO,
    ) -> Account:
        """Create an account, booking any initial balance as an opening posting."""
        if not name or not name.strip():
            raise ValidationError("Account name is required")
        try:
            kind = AccountType(account_type)
        except ValueError as exc:
            raise ValidationError(f"Unknown account type {account_type!r}") from exc
        opening = to_decimal(initial_balance, "initial_balance")

        account = Account(id=new_id(), name=name.strip(), type=kind, created_at=utc_now())
        batch = [BatchOperation.append(ACCOUNTS, account.to_record())]
        if opening != ZERO:
            draft = TransactionDraft(
                amount=opening,
                category=OPENING_BALANCE_CATEGORY,
                description=f"Opening balance: {account.name}",
                date=account.created_at,
                account_id=account.id,
            )
            batch.append(
                BatchOperation.append(TRANSACTIONS, Transaction.from_draft(draft).to_record())
            )
            batch.append(
                BatchOperation.update(ACCOUNTS, account.id, {"balance": Increment(opening)})
            )
        await self._store.commit_batch(batch)

        account.balance = opening
        self._logger.info(
            "account_created",
            account_id=account.id,
            name=account.name,
            type=kind.value,
            balance=str(opening),
        )
        return account

    async def verify_balances(self) -> dict[str, tuple[Decimal, Decimal]]:
        """Return ``{account_id: (stored, from_history)}`` for every mismatch."""
        totals: dict[str, Decimal] = {}
        for record in await self._store.read_collection(TRANSACTIONS):
            transaction = Transaction.from_record(record)
            totals[transaction.account_id] = (
                totals.get(transaction.account_id, ZERO) + transaction.amount
            )

        mismatches: dict[str, tuple[Decimal, Decimal]] = {}
        for account in await self.list_accounts():
            expected = totals.get(account.id, ZERO)
            if account.balance != expected:
                mismatches[account.id] = (account.balance, expected)
        if mismatches:
            self._logger.warning("balance_mismatch", accounts=sorted(mismatches))
        return mismatches
