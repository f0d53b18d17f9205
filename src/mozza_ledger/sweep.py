"""Shift-close sweep engine.

Turns a closing shift into the ordered postings that settle it:

1. gross sales land on the sales account (always, even when zero)
2. card, hiking bar and FX portions move from sales to their accounts
3. each credit bill moves from sales to the bills account
4. each till expense leaves the cash account
5. whatever sales remain in cash move from sales to the cash account
6. any counted-cash variance is booked on both the variance and cash accounts

Each transfer is a pair (out of sales, into the destination). Zero amounts
are skipped so no empty pairs are written. With no variance the sales account
nets to zero and every sold dollar sits on exactly one destination account.
"""

from dataclasses import dataclass
from decimal import Decimal

import structlog

from mozza_ledger.accounts import AccountBalanceModel
from mozza_ledger.errors import ConfigurationIncompleteError, ValidationError
from mozza_ledger.flow import FlowConfiguration
from mozza_ledger.models import ZERO, Shift, Transaction, TransactionDraft
from mozza_ledger.poster import TransactionPoster
from mozza_ledger.store import BatchOperation, LedgerStore

logger = structlog.get_logger(__name__)

REVENUE = "Revenue"
TRANSFER = "Transfer"
ADJUSTMENT = "Adjustment"


@dataclass(frozen=True)
class Posting:
    """One planned ledger line of a sweep."""

    description: str
    amount: Decimal
    category: str
    account_id: str
    date: str
    shift_id: str

    def to_draft(self) -> TransactionDraft:
        return TransactionDraft(
            amount=self.amount,
            category=self.category,
            description=self.description,
            date=self.date,
            account_id=self.account_id,
            shift_id=self.shift_id,
        )


class SweepEngine:
    """Plans and queues the settlement postings for a closing shift."""

    def __init__(
        self,
        store: LedgerStore,
        accounts: AccountBalanceModel | None = None,
        poster: TransactionPoster | None = None,
    ):
        self._store = store
        self._accounts = accounts or AccountBalanceModel(store)
        self._poster = poster or TransactionPoster(store, self._accounts)

    def plan(self, shift: Shift, flow: FlowConfiguration) -> list[Posting]:
        """Return the ordered postings for ``shift``.

        ``shift`` must already carry its ``end_time`` and ``difference``.
        """
        if not flow.is_complete():
            raise ConfigurationIncompleteError(flow.missing_roles())
        if shift.end_time is None:
            raise ValidationError("Shift must have an end_time before it is swept")

        postings: list[Posting] = []

        def post(description: str, amount: Decimal, category: str, account_id: str) -> None:
            postings.append(
                Posting(
                    description=description,
                    amount=amount,
                    category=category,
                    account_id=account_id,
                    date=shift.end_time or "",
                    shift_id=shift.id,
                )
            )

        def transfer(
            out_description: str, in_description: str, amount: Decimal, account_id: str
        ) -> None:
            post(out_description, -amount, TRANSFER, flow.sales_account)
            post(in_description, amount, TRANSFER, account_id)

        post(
            f"Daily Sales ({shift.accounting_date})",
            shift.total_sales,
            REVENUE,
            flow.sales_account,
        )

        if shift.cards > ZERO:
            transfer(
                "Sales Card Sweep", "Card Settlement Receipt", shift.cards, flow.cards_account
            )

        if shift.hiking_bar > ZERO:
            transfer(
                "Hiking Portion Sweep",
                "Hiking Bar Receivable",
                shift.hiking_bar,
                flow.hiking_account,
            )

        fx = shift.foreign_currency
        if fx.value > ZERO:
            transfer("FX Reserve Sweep", f"FX Reserve ({fx.comment})", fx.value, flow.fx_account)

        for bill in shift.credit_bills:
            if bill.amount > ZERO:
                transfer(
                    f"Credit Bill Sweep: {bill.customer_name}",
                    f"Guest Receivable: {bill.customer_name}",
                    bill.amount,
                    flow.bills_account,
                )

        for expense in shift.expenses:
            if expense.amount > ZERO:
                post(
                    f"Shift Expense: {expense.description}",
                    -expense.amount,
                    expense.category,
                    flow.cash_account,
                )

        cash_sales = shift.cash_sales
        if cash_sales > ZERO:
            transfer("Cash Portion Sweep", "Shift Cash Receipt", cash_sales, flow.cash_account)

        # Same sign on both lines: a memo on the variance ledger plus the
        # physical correction in the till.
        difference = shift.difference or ZERO
        if difference != ZERO:
            post("Cash Variance Adjustment", difference, ADJUSTMENT, flow.variance_account)
            post("Variance Correction in Till", difference, ADJUSTMENT, flow.cash_account)

        return postings

    async def queue(
        self, batch: list[BatchOperation], shift: Shift, flow: FlowConfiguration
    ) -> list[Transaction]:
        """Add every sweep posting to ``batch``; nothing is committed here."""
        postings = self.plan(shift, flow)
        known = await self._accounts.known_ids()
        transactions = []
        for posting in postings:
            transactions.append(await self._poster.queue(batch, posting.to_draft(), known))
        logger.debug(
            "sweep_planned",
            shift_id=shift.id,
            postings=len(postings),
            cash_sales=str(shift.cash_sales),
            difference=str(shift.difference or ZERO),
        )
        return transactions
