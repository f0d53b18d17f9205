"""Ledger record types.

Records live in the store as plain mappings: snake_case keys, Decimals as
strings and timestamps as ISO-8601 strings. Each type here knows how to read
itself from such a mapping (``from_record``) and write itself back
(``to_record``).
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any
from uuid import uuid4

from mozza_ledger.errors import ValidationError

ZERO = Decimal("0")

# Routing placeholders that never carry a balance
INTERNAL_LEDGER = "internal_ledger"
INTERNAL_STAFF_LEDGER = "internal_staff_ledger"
VIRTUAL_ACCOUNT_IDS = frozenset({INTERNAL_LEDGER, INTERNAL_STAFF_LEDGER})


def utc_now() -> str:
    return datetime.now(UTC).isoformat()


def new_id() -> str:
    return uuid4().hex


def to_decimal(value: Any, field_name: str = "amount") -> Decimal:
    """Parse a money value, raising ValidationError on malformed input."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be numeric, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (TypeError, ValueError, InvalidOperation) as exc:
            raise ValidationError(
                f"{field_name} must be numeric, got {value!r}"
            ) from exc
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be finite, got {value!r}")
    return result


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _mapping(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"{field_name} must be an object, got {value!r}")
    return value


def _mapping_list(value: Any, field_name: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{field_name} must be a list, got {value!r}")
    return [_mapping(item, field_name) for item in value]


# =============================================================================
# POSTING TARGETS
# =============================================================================


@dataclass(frozen=True)
class RealAccount:
    """A stored account whose balance moves with every posting."""

    account_id: str


@dataclass(frozen=True)
class VirtualSink:
    """A routing placeholder; postings land in history but move no balance."""

    account_id: str


PostingTarget = RealAccount | VirtualSink


def resolve_target(account_id: str) -> PostingTarget:
    if not account_id:
        raise ValidationError("account_id is required")
    if account_id in VIRTUAL_ACCOUNT_IDS:
        return VirtualSink(account_id)
    return RealAccount(account_id)


# =============================================================================
# ACCOUNTS & TRANSACTIONS
# =============================================================================


class AccountType(str, Enum):
    """Kinds of financial bucket."""

    RECEIVABLE = "receivable"
    INCOME = "income"
    PAYABLE = "payable"
    ASSET = "asset"
    CASH = "cash"
    BANK = "bank"
    EQUITY = "equity"


@dataclass
class Account:
    id: str
    name: str
    type: AccountType
    balance: Decimal = ZERO
    created_at: str = field(default_factory=utc_now)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Account":
        return cls(
            id=str(record["id"]),
            name=str(record.get("name", "")),
            type=AccountType(record.get("type", AccountType.ASSET.value)),
            balance=to_decimal(record.get("balance", "0"), "balance"),
            created_at=str(record.get("created_at", "")),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "balance": str(self.balance),
            "created_at": self.created_at,
        }


@dataclass
class TransactionDraft:
    """A transaction before the poster assigns its id and timestamp."""

    amount: Decimal
    category: str
    description: str
    date: str
    account_id: str
    shift_id: str | None = None
    staff_id: str | None = None
    expense_id: str | None = None

    def __post_init__(self) -> None:
        self.amount = to_decimal(self.amount)
        if not self.account_id:
            raise ValidationError("account_id is required")


@dataclass(frozen=True)
class Transaction:
    """An immutable posting against one account."""

    id: str
    amount: Decimal
    category: str
    description: str
    date: str
    account_id: str
    created_at: str
    shift_id: str | None = None
    staff_id: str | None = None
    expense_id: str | None = None

    @classmethod
    def from_draft(cls, draft: TransactionDraft) -> "Transaction":
        return cls(
            id=new_id(),
            amount=draft.amount,
            category=draft.category,
            description=draft.description,
            date=draft.date,
            account_id=draft.account_id,
            created_at=utc_now(),
            shift_id=draft.shift_id,
            staff_id=draft.staff_id,
            expense_id=draft.expense_id,
        )

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Transaction":
        return cls(
            id=str(record["id"]),
            amount=to_decimal(record.get("amount")),
            category=str(record.get("category", "")),
            description=str(record.get("description", "")),
            date=str(record.get("date", "")),
            account_id=str(record.get("account_id", "")),
            created_at=str(record.get("created_at", "")),
            shift_id=_optional_str(record.get("shift_id")),
            staff_id=_optional_str(record.get("staff_id")),
            expense_id=_optional_str(record.get("expense_id")),
        )

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "amount": str(self.amount),
            "category": self.category,
            "description": self.description,
            "date": self.date,
            "account_id": self.account_id,
            "created_at": self.created_at,
        }
        # Optional links are omitted rather than stored as null
        for key in ("shift_id", "staff_id", "expense_id"):
            value = getattr(self, key)
            if value is not None:
                record[key] = value
        return record


# =============================================================================
# SHIFTS
# =============================================================================


class ShiftStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class ForeignCurrency:
    value: Decimal = ZERO
    comment: str = ""

    @classmethod
    def from_record(cls, record: dict[str, Any] | None) -> "ForeignCurrency":
        record = _mapping(record, "foreign_currency")
        return cls(
            value=to_decimal(record.get("value", "0"), "foreign_currency.value"),
            comment=str(record.get("comment", "")),
        )

    def to_record(self) -> dict[str, Any]:
        return {"value": str(self.value), "comment": self.comment}


@dataclass
class CreditBillEntry:
    """Sales charged to a guest account instead of paid at the till."""

    customer_id: str
    customer_name: str
    amount: Decimal

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "CreditBillEntry":
        record = _mapping(record, "credit_bills")
        return cls(
            customer_id=str(record.get("customer_id", "")),
            customer_name=str(record.get("customer_name", "")),
            amount=to_decimal(record.get("amount"), "credit_bills.amount"),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "amount": str(self.amount),
        }


@dataclass
class ShiftInjection:
    """Extra cash put into the till."""

    source: str
    amount: Decimal
    id: str = field(default_factory=new_id)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ShiftInjection":
        record = _mapping(record, "injections")
        return cls(
            source=str(record.get("source", "")),
            amount=to_decimal(record.get("amount"), "injections.amount"),
            id=str(record.get("id") or new_id()),
        )

    def to_record(self) -> dict[str, Any]:
        return {"id": self.id, "source": self.source, "amount": str(self.amount)}


@dataclass
class ShiftExpense:
    """Cash paid out of the till during a shift."""

    category: str
    description: str
    amount: Decimal
    id: str = field(default_factory=new_id)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ShiftExpense":
        record = _mapping(record, "expenses")
        return cls(
            category=str(record.get("category", "")),
            description=str(record.get("description", "")),
            amount=to_decimal(record.get("amount"), "expenses.amount"),
            id=str(record.get("id") or new_id()),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "description": self.description,
            "amount": str(self.amount),
        }


@dataclass
class Shift:
    """One till session from opening float to cash count."""

    id: str
    status: ShiftStatus
    start_time: str
    accounting_date: str
    opening_float: Decimal
    total_sales: Decimal = ZERO
    cards: Decimal = ZERO
    hiking_bar: Decimal = ZERO
    foreign_currency: ForeignCurrency = field(default_factory=ForeignCurrency)
    credit_bills: list[CreditBillEntry] = field(default_factory=list)
    injections: list[ShiftInjection] = field(default_factory=list)
    expenses: list[ShiftExpense] = field(default_factory=list)
    expected_cash: Decimal = ZERO
    end_time: str | None = None
    actual_cash: Decimal | None = None
    difference: Decimal | None = None
    closed_by: str | None = None

    @property
    def is_open(self) -> bool:
        return self.status == ShiftStatus.OPEN

    @property
    def total_credit_bills(self) -> Decimal:
        return sum((bill.amount for bill in self.credit_bills), ZERO)

    @property
    def total_injections(self) -> Decimal:
        return sum((injection.amount for injection in self.injections), ZERO)

    @property
    def total_expenses(self) -> Decimal:
        return sum((expense.amount for expense in self.expenses), ZERO)

    @property
    def total_non_cash(self) -> Decimal:
        return (
            self.cards
            + self.hiking_bar
            + self.foreign_currency.value
            + self.total_credit_bills
        )

    @property
    def cash_sales(self) -> Decimal:
        return self.total_sales - self.total_non_cash

    def compute_expected_cash(self) -> Decimal:
        return (
            self.opening_float
            + self.cash_sales
            + self.total_injections
            - self.total_expenses
        )

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Shift":
        actual_cash = record.get("actual_cash")
        difference = record.get("difference")
        return cls(
            id=str(record["id"]),
            status=ShiftStatus(record.get("status", ShiftStatus.OPEN.value)),
            start_time=str(record.get("start_time", "")),
            accounting_date=str(record.get("accounting_date", "")),
            opening_float=to_decimal(record.get("opening_float", "0"), "opening_float"),
            total_sales=to_decimal(record.get("total_sales", "0"), "total_sales"),
            cards=to_decimal(record.get("cards", "0"), "cards"),
            hiking_bar=to_decimal(record.get("hiking_bar", "0"), "hiking_bar"),
            foreign_currency=ForeignCurrency.from_record(record.get("foreign_currency")),
            credit_bills=[
                CreditBillEntry.from_record(item)
                for item in _mapping_list(record.get("credit_bills"), "credit_bills")
            ],
            injections=[
                ShiftInjection.from_record(item)
                for item in _mapping_list(record.get("injections"), "injections")
            ],
            expenses=[
                ShiftExpense.from_record(item)
                for item in _mapping_list(record.get("expenses"), "expenses")
            ],
            expected_cash=to_decimal(record.get("expected_cash", "0"), "expected_cash"),
            end_time=_optional_str(record.get("end_time")),
            actual_cash=None if actual_cash is None else to_decimal(actual_cash, "actual_cash"),
            difference=None if difference is None else to_decimal(difference, "difference"),
            closed_by=_optional_str(record.get("closed_by")),
        )

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "status": self.status.value,
            "start_time": self.start_time,
            "accounting_date": self.accounting_date,
            "opening_float": str(self.opening_float),
            "total_sales": str(self.total_sales),
            "cards": str(self.cards),
            "hiking_bar": str(self.hiking_bar),
            "foreign_currency": self.foreign_currency.to_record(),
            "credit_bills": [bill.to_record() for bill in self.credit_bills],
            "injections": [injection.to_record() for injection in self.injections],
            "expenses": [expense.to_record() for expense in self.expenses],
            "expected_cash": str(self.expected_cash),
        }
        if self.end_time is not None:
            record["end_time"] = self.end_time
        if self.actual_cash is not None:
            record["actual_cash"] = str(self.actual_cash)
        if self.difference is not None:
            record["difference"] = str(self.difference)
        if self.closed_by is not None:
            record["closed_by"] = self.closed_by
        return record


# =============================================================================
# EXPENSES & STAFF
# =============================================================================


class PaymentStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"
    RECURRING = "recurring"


@dataclass
class ExpenseRecord:
    """A business expense, or a reminder for one not yet paid."""

    id: str
    amount: Decimal
    description: str
    category: str
    date: str
    payment_status: PaymentStatus
    account_id: str
    vendor_id: str | None = None
    created_at: str = field(default_factory=utc_now)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ExpenseRecord":
        return cls(
            id=str(record["id"]),
            amount=to_decimal(record.get("amount")),
            description=str(record.get("description", "")),
            category=str(record.get("category", "")),
            date=str(record.get("date", "")),
            payment_status=PaymentStatus(record.get("payment_status", "pending")),
            account_id=str(record.get("account_id", "")),
            vendor_id=_optional_str(record.get("vendor_id")),
            created_at=str(record.get("created_at", "")),
        )

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "amount": str(self.amount),
            "description": self.description,
            "category": self.category,
            "date": self.date,
            "payment_status": self.payment_status.value,
            "account_id": self.account_id,
            "created_at": self.created_at,
        }
        if self.vendor_id is not None:
            record["vendor_id"] = self.vendor_id
        return record


@dataclass
class StaffMember:
    id: str
    name: str
    role: str = ""
    salary: Decimal = ZERO
    loan_balance: Decimal = ZERO

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "StaffMember":
        return cls(
            id=str(record["id"]),
            name=str(record.get("name", "")),
            role=str(record.get("role", "")),
            salary=to_decimal(record.get("salary", "0"), "salary"),
            loan_balance=to_decimal(record.get("loan_balance", "0"), "loan_balance"),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "salary": str(self.salary),
            "loan_balance": str(self.loan_balance),
        }
