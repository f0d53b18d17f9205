"""Staff advances, loans and payroll payouts.

Advances are cleared at payroll time with a posting to the internal staff
ledger, a virtual sink, so settling them moves no real balance twice.
"""

from decimal import Decimal
from enum import Enum
from typing import Any

import structlog

from mozza_ledger.errors import NotFoundError, ValidationError
from mozza_ledger.models import (
    INTERNAL_STAFF_LEDGER,
    ZERO,
    StaffMember,
    Transaction,
    TransactionDraft,
    to_decimal,
    utc_now,
)
from mozza_ledger.poster import TransactionPoster
from mozza_ledger.store import STAFF, BatchOperation, Increment, LedgerStore

logger = structlog.get_logger(__name__)

STAFF_ADVANCE = "Staff Advance"
STAFF_LOAN = "Staff Loan"
STAFF_PAYROLL_INTERNAL = "Staff Payroll Internal"
PAYROLL_EXPENSE = "Payroll Expense"


class PayoutKind(str, Enum):
    SALARY = "SALARY"
    SERVICE_CHARGE = "SERVICE_CHARGE"


def _positive(value: Any, field_name: str) -> Decimal:
    amount = to_decimal(value, field_name)
    if amount <= ZERO:
        raise ValidationError(f"{field_name} must be positive, got {amount}")
    return amount


class PayrollService:
    """Posts staff money movements through the transaction poster."""

    def __init__(self, store: LedgerStore, poster: TransactionPoster | None = None):
        self._store = store
        self._poster = poster or TransactionPoster(store)
        self._logger = logger.bind(component="payroll")

    async def get_staff(self, staff_id: str) -> StaffMember:
        record = await self._store.get_record(STAFF, staff_id)
        if record is None:
            raise NotFoundError(STAFF, staff_id)
        return StaffMember.from_record(record)

    async def outstanding_advances(self, staff_id: str) -> Decimal:
        """Advances issued to a staff member and not yet cleared by payroll."""
        issued = ZERO
        cleared = ZERO
        for transaction in await self._poster.list_transactions():
            if transaction.staff_id != staff_id:
                continue
            if transaction.category == STAFF_ADVANCE:
                issued += -transaction.amount
            elif transaction.category == STAFF_PAYROLL_INTERNAL:
                cleared += transaction.amount
        return max(ZERO, issued - cleared)

    async def issue_advance(
        self, staff_id: str, amount: Any, source_account_id: str
    ) -> Transaction:
        staff = await self.get_staff(staff_id)
        value = _positive(amount, "amount")
        return await self._poster.post(
            TransactionDraft(
                amount=-value,
                category=STAFF_ADVANCE,
                description=f"Advance issued to {staff.name}",
                date=utc_now(),
                account_id=source_account_id,
                staff_id=staff.id,
            )
        )

    async def issue_loan(
        self, staff_id: str, amount: Any, source_account_id: str
    ) -> Transaction:
        staff = await self.get_staff(staff_id)
        value = _positive(amount, "amount")
        batch: list[BatchOperation] = []
        transaction = await self._poster.queue(
            batch,
            TransactionDraft(
                amount=-value,
                category=STAFF_LOAN,
                description=f"Loan given to {staff.name}",
                date=utc_now(),
                account_id=source_account_id,
                staff_id=staff.id,
            ),
        )
        batch.append(
            BatchOperation.update(STAFF, staff.id, {"loan_balance": Increment(value)})
        )
        await self._store.commit_batch(batch)
        self._logger.info(
            "loan_issued", staff_id=staff.id, amount=str(value), transaction_id=transaction.id
        )
        return transaction

    async def run_payroll(
        self,
        staff_id: str,
        kind: PayoutKind | str,
        source_account_id: str,
        base_amount: Any = None,
        loan_repayment: Any = ZERO,
    ) -> list[Transaction]:
        """Pay out net of advances and loan repayment.

        Salary payouts default to the staff member's salary; service charge
        payouts need ``base_amount``.
        """
        staff = await self.get_staff(staff_id)
        try:
            payout = PayoutKind(kind)
        except ValueError as exc:
            raise ValidationError(f"Unknown payout kind {kind!r}") from exc

        if base_amount is None:
            if payout == PayoutKind.SERVICE_CHARGE:
                raise ValidationError("Service charge payouts need a base amount")
            base = staff.salary
        else:
            base = to_decimal(base_amount, "base_amount")
        repayment = to_decimal(loan_repayment, "loan_repayment")
        if repayment < ZERO:
            raise ValidationError("loan_repayment cannot be negative")

        advances = await self.outstanding_advances(staff.id)
        net_pay = base - advances - repayment
        now = utc_now()
        batch: list[BatchOperation] = []
        posted: list[Transaction] = []

        if net_pay > ZERO:
            posted.append(
                await self._poster.queue(
                    batch,
                    TransactionDraft(
                        amount=-net_pay,
                        category=PAYROLL_EXPENSE,
                        description=f"{payout.value} Payout (Net): {staff.name}",
                        date=now,
                        account_id=source_account_id,
                        staff_id=staff.id,
                    ),
                )
            )

        if advances > ZERO:
            posted.append(
                await self._poster.queue(
                    batch,
                    TransactionDraft(
                        amount=advances,
                        category=STAFF_PAYROLL_INTERNAL,
                        description=f"Advance Settled via Payroll: {staff.name}",
                        date=now,
                        account_id=INTERNAL_STAFF_LEDGER,
                        staff_id=staff.id,
                    ),
                )
            )

        if repayment > ZERO:
            remaining = max(ZERO, staff.loan_balance - repayment)
            batch.append(
                BatchOperation.update(STAFF, staff.id, {"loan_balance": str(remaining)})
            )

        if batch:
            await self._store.commit_batch(batch)

        self._logger.info(
            "payroll_paid",
            staff_id=staff.id,
            kind=payout.value,
            base=str(base),
            advances=str(advances),
            loan_repayment=str(repayment),
            net=str(net_pay),
        )
        return posted
