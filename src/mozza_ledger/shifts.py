"""Shift state machine: NONE -> OPEN -> CLOSED.

The open shift is never cached; it is whatever shift record currently has
``status == "open"``. Starting a shift while one is open is refused here,
at the write boundary.
"""

import dataclasses
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

import structlog

from mozza_ledger.accounts import AccountBalanceModel
from mozza_ledger.errors import (
    ConfigurationIncompleteError,
    NotFoundError,
    ShiftStateError,
    StorageError,
    ValidationError,
)
from mozza_ledger.flow import FlowConfigurationRepository
from mozza_ledger.models import (
    ZERO,
    ForeignCurrency,
    Shift,
    ShiftInjection,
    ShiftStatus,
    Transaction,
    new_id,
    to_decimal,
    utc_now,
)
from mozza_ledger.store import SHIFTS, BatchOperation, LedgerStore
from mozza_ledger.sweep import SweepEngine

logger = structlog.get_logger(__name__)

EDITABLE_FIELDS = frozenset(
    {
        "accounting_date",
        "opening_float",
        "total_sales",
        "cards",
        "hiking_bar",
        "foreign_currency",
        "credit_bills",
        "injections",
        "expenses",
    }
)

_OPEN_GUARD = {"status": ShiftStatus.OPEN.value}


@dataclass
class ShiftCloseResult:
    """A closed shift and the sweep postings committed with it."""

    shift: Shift
    transactions: list[Transaction]


def _to_wire(value: Any) -> Any:
    """Normalise an edited field value into its record form."""
    if hasattr(value, "to_record"):
        return value.to_record()
    if isinstance(value, (list, tuple)):
        return [_to_wire(item) for item in value]
    if isinstance(value, (Decimal, int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _check_non_negative(shift: Shift) -> None:
    amounts: list[tuple[str, Decimal]] = [
        ("opening_float", shift.opening_float),
        ("total_sales", shift.total_sales),
        ("cards", shift.cards),
        ("hiking_bar", shift.hiking_bar),
        ("foreign_currency.value", shift.foreign_currency.value),
    ]
    amounts += [("credit_bills.amount", bill.amount) for bill in shift.credit_bills]
    amounts += [("injections.amount", item.amount) for item in shift.injections]
    amounts += [("expenses.amount", item.amount) for item in shift.expenses]
    for name, amount in amounts:
        if amount < ZERO:
            raise ValidationError(f"{name} cannot be negative, got {amount}")


class ShiftStateMachine:
    """Opens, edits and closes till shifts."""

    def __init__(
        self,
        store: LedgerStore,
        flow: FlowConfigurationRepository | None = None,
        sweep: SweepEngine | None = None,
        accounts: AccountBalanceModel | None = None,
        operator: str = "Unknown",
    ):
        self._store = store
        self._accounts = accounts or AccountBalanceModel(store)
        self._flow = flow or FlowConfigurationRepository(store)
        self._sweep = sweep or SweepEngine(store, self._accounts)
        self.operator = operator
        self._logger = logger.bind(component="shifts")

    # === Queries ===

    async def list_shifts(self) -> list[Shift]:
        """All shifts, newest first."""
        shifts = [Shift.from_record(record) for record in await self._store.read_collection(SHIFTS)]
        return sorted(shifts, key=lambda shift: shift.start_time, reverse=True)

    async def find_open(self) -> Shift | None:
        for shift in await self.list_shifts():
            if shift.is_open:
                return shift
        return None

    async def last_closed(self) -> Shift | None:
        closed = [shift for shift in await self.list_shifts() if not shift.is_open]
        if not closed:
            return None
        return max(closed, key=lambda shift: shift.end_time or "")

    async def suggest_opening_float(self) -> Decimal:
        """Carry forward the last counted cash, else the till balance, else zero."""
        last = await self.last_closed()
        if last is not None and last.actual_cash is not None:
            return last.actual_cash

        cash_account = (await self._flow.get()).cash_account
        if cash_account:
            try:
                return (await self._accounts.get_account(cash_account)).balance
            except NotFoundError:
                self._logger.warning("till_account_missing", account_id=cash_account)
        return ZERO

    # === Transitions ===

    async def start(
        self,
        opening_float: Any = None,
        injections: list[ShiftInjection | dict[str, Any]] | None = None,
        accounting_date: str | None = None,
    ) -> Shift:
        if await self.find_open() is not None:
            raise ShiftStateError("A shift is already open; close it before starting another")

        if opening_float is None:
            float_amount = await self.suggest_opening_float()
        else:
            float_amount = to_decimal(opening_float, "opening_float")

        parsed_injections = [
            item if isinstance(item, ShiftInjection) else ShiftInjection.from_record(item)
            for item in injections or []
        ]
        shift = Shift(
            id=new_id(),
            status=ShiftStatus.OPEN,
            start_time=utc_now(),
            accounting_date=accounting_date or date.today().isoformat(),
            opening_float=float_amount,
            foreign_currency=ForeignCurrency(),
            injections=parsed_injections,
        )
        _check_non_negative(shift)
        shift.expected_cash = shift.compute_expected_cash()

        await self._store.append_record(SHIFTS, shift.to_record())
        self._logger.info(
            "shift_started",
            shift_id=shift.id,
            accounting_date=shift.accounting_date,
            opening_float=str(shift.opening_float),
            expected_cash=str(shift.expected_cash),
        )
        return shift

    async def update(self, fields: dict[str, Any]) -> Shift:
        """Merge edits into the open shift and recompute expected cash."""
        unknown = sorted(set(fields) - EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(unknown)}")

        current = await self.find_open()
        if current is None:
            raise ShiftStateError("No open shift to update")

        merged = current.to_record()
        merged.update({key: _to_wire(value) for key, value in fields.items()})
        shift = Shift.from_record(merged)
        _check_non_negative(shift)
        shift.expected_cash = shift.compute_expected_cash()

        record = shift.to_record()
        changes = {key: record[key] for key in fields}
        changes["expected_cash"] = record["expected_cash"]
        await self._store.commit_batch(
            [BatchOperation.update(SHIFTS, shift.id, changes, precondition=_OPEN_GUARD)]
        )
        self._logger.debug(
            "shift_updated",
            shift_id=shift.id,
            fields=sorted(fields),
            expected_cash=str(shift.expected_cash),
        )
        return shift

    async def close(self, actual_cash: Any, closed_by: str | None = None) -> ShiftCloseResult:
        """Close the open shift and commit its sweep in the same batch."""
        flow = await self._flow.get()
        if not flow.is_complete():
            self._logger.warning("close_blocked_incomplete_flow", missing=flow.missing_roles())
            raise ConfigurationIncompleteError(flow.missing_roles())

        counted = to_decimal(actual_cash, "actual_cash")
        current = await self.find_open()
        if current is None:
            raise ShiftStateError("No open shift to close")

        closed = dataclasses.replace(
            current,
            status=ShiftStatus.CLOSED,
            end_time=utc_now(),
            actual_cash=counted,
            difference=counted - current.expected_cash,
            closed_by=closed_by or self.operator,
        )
        batch = [
            BatchOperation.update(
                SHIFTS,
                closed.id,
                {
                    "status": closed.status.value,
                    "end_time": closed.end_time,
                    "actual_cash": str(closed.actual_cash),
                    "difference": str(closed.difference),
                    "closed_by": closed.closed_by,
                    "total_sales": str(closed.total_sales),
                },
                precondition=_OPEN_GUARD,
            )
        ]
        transactions = await self._sweep.queue(batch, closed, flow)

        try:
            await self._store.commit_batch(batch)
        except StorageError as e:
            self._logger.error("shift_close_failed", shift_id=closed.id, error=str(e))
            raise

        self._logger.info(
            "shift_closed",
            shift_id=closed.id,
            actual_cash=str(counted),
            difference=str(closed.difference),
            postings=len(transactions),
            atomic=self._store.supports_atomic_batch,
        )
        return ShiftCloseResult(shift=closed, transactions=transactions)
