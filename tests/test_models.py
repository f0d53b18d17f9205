"""Tests for ledger record types."""

from decimal import Decimal

import pytest

from mozza_ledger.errors import ValidationError
from mozza_ledger.models import (
    INTERNAL_LEDGER,
    INTERNAL_STAFF_LEDGER,
    CreditBillEntry,
    ForeignCurrency,
    RealAccount,
    Shift,
    ShiftExpense,
    ShiftInjection,
    ShiftStatus,
    Transaction,
    TransactionDraft,
    VirtualSink,
    resolve_target,
    to_decimal,
)


class TestToDecimal:
    """Tests for money parsing."""

    def test_parses_strings_and_numbers(self):
        """Test that strings, ints and floats parse exactly."""
        assert to_decimal("12.50") == Decimal("12.50")
        assert to_decimal(7) == Decimal("7")
        assert to_decimal(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("bad", ["abc", "", None, True, "NaN", "Infinity"])
    def test_rejects_malformed_input(self, bad):
        """Test that non-numeric and non-finite input is rejected."""
        with pytest.raises(ValidationError):
            to_decimal(bad)


class TestPostingTargets:
    """Tests for posting target resolution."""

    def test_virtual_ids_resolve_to_sinks(self):
        """Test that the internal ledger ids resolve to virtual sinks."""
        assert resolve_target(INTERNAL_LEDGER) == VirtualSink(INTERNAL_LEDGER)
        assert resolve_target(INTERNAL_STAFF_LEDGER) == VirtualSink(INTERNAL_STAFF_LEDGER)

    def test_other_ids_resolve_to_real_accounts(self):
        """Test that other ids resolve to real accounts."""
        assert resolve_target("acc-1") == RealAccount("acc-1")

    def test_empty_id_is_invalid(self):
        """Test that an empty account id is rejected."""
        with pytest.raises(ValidationError):
            resolve_target("")


class TestTransaction:
    """Tests for transaction drafts and records."""

    def test_draft_parses_amount(self):
        """Test that a draft parses its amount."""
        draft = TransactionDraft(
            amount="-42.10",
            category="Operation",
            description="Ice",
            date="2024-05-01",
            account_id="acc-1",
        )
        assert draft.amount == Decimal("-42.10")

    def test_draft_rejects_non_numeric_amount(self):
        """Test that a draft rejects a non-numeric amount."""
        with pytest.raises(ValidationError):
            TransactionDraft(
                amount="ten",
                category="Operation",
                description="Ice",
                date="2024-05-01",
                account_id="acc-1",
            )

    def test_from_draft_assigns_id_and_timestamp(self):
        """Test that a transaction gets an id and timestamp and round trips."""
        draft = TransactionDraft(
            amount=Decimal("5"),
            category="Revenue",
            description="Tip jar",
            date="2024-05-01",
            account_id="acc-1",
            shift_id="shift-1",
        )
        transaction = Transaction.from_draft(draft)

        assert transaction.id
        assert transaction.created_at
        record = transaction.to_record()
        assert record["amount"] == "5"
        assert record["shift_id"] == "shift-1"
        assert "staff_id" not in record
        assert Transaction.from_record(record) == transaction


class TestShiftArithmetic:
    """Tests for shift totals and expected cash."""

    def _shift(self, **overrides) -> Shift:
        values = dict(
            id="s1",
            status=ShiftStatus.OPEN,
            start_time="2024-05-01T10:00:00+00:00",
            accounting_date="2024-05-01",
            opening_float=Decimal("200"),
        )
        values.update(overrides)
        return Shift(**values)

    def test_expected_cash_with_only_float_and_injections(self):
        """Test expected cash before any sales are entered."""
        shift = self._shift(injections=[ShiftInjection(source="Safe", amount=Decimal("50"))])
        assert shift.compute_expected_cash() == Decimal("250")

    def test_expected_cash_full_formula(self):
        """Test expected cash with every kind of line item."""
        shift = self._shift(
            total_sales=Decimal("1000"),
            cards=Decimal("300"),
            hiking_bar=Decimal("40"),
            foreign_currency=ForeignCurrency(Decimal("60"), "EUR 55"),
            credit_bills=[CreditBillEntry("c1", "Room 5", Decimal("100"))],
            injections=[ShiftInjection(source="Owner", amount=Decimal("20"))],
            expenses=[ShiftExpense("Supplies", "Ice", Decimal("15"))],
        )

        assert shift.total_non_cash == Decimal("500")
        assert shift.cash_sales == Decimal("500")
        # 200 + 500 + 20 - 15
        assert shift.compute_expected_cash() == Decimal("705")

    def test_record_keeps_close_fields(self):
        """Test that close fields survive a record round trip."""
        shift = self._shift(
            status=ShiftStatus.CLOSED,
            end_time="2024-05-01T23:00:00+00:00",
            actual_cash=Decimal("880"),
            difference=Decimal("-20"),
            closed_by="Chef",
        )
        restored = Shift.from_record(shift.to_record())

        assert restored.status == ShiftStatus.CLOSED
        assert restored.actual_cash == Decimal("880")
        assert restored.difference == Decimal("-20")
        assert restored.closed_by == "Chef"

    def test_malformed_line_item_is_rejected(self):
        """Test that a malformed credit bill amount is rejected."""
        record = self._shift().to_record()
        record["credit_bills"] = [{"customer_name": "Room 5", "amount": "lots"}]

        with pytest.raises(ValidationError):
            Shift.from_record(record)
