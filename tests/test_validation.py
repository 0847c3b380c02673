"""
Tests for split construction and draft validation.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from housesplit.models.ledger import (
    Expense,
    ExpenseDraft,
    ExpenseSplit,
    Member,
    SettlementDraft,
    SplitType,
)
from housesplit.validation import (
    LedgerValidator,
    SplitCalculationError,
    build_custom_splits,
    build_equal_splits,
)


MEMBERS = [
    Member(id="a", display_name="Alice", household_id="h1"),
    Member(id="b", display_name="Bob", household_id="h1"),
    Member(id="c", display_name="Cy", household_id="h1"),
]


def _expense_draft(**overrides):
    fields = dict(
        description="Groceries run",
        amount_total=Decimal("100.00"),
        payer_member_id="a",
        expense_date=date.today(),
        participant_ids=["a", "b", "c"],
    )
    fields.update(overrides)
    return ExpenseDraft(**fields)


def _settlement_draft(**overrides):
    fields = dict(
        from_member_id="b",
        to_member_id="a",
        amount=Decimal("30.00"),
        date=date.today(),
    )
    fields.update(overrides)
    return SettlementDraft(**fields)


def _issue_types(result):
    return {issue.issue_type for issue in result.issues}


class TestEqualSplits:
    """Tests for build_equal_splits."""

    def test_remainder_goes_to_first_participant(self):
        """Test that an extra cent lands on the first participant."""
        shares = build_equal_splits(Decimal("100.00"), ["a", "b", "c"])
        assert list(shares.values()) == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]

    def test_negative_remainder(self):
        """Test that rounding up per share takes the cent back from the first participant."""
        shares = build_equal_splits(Decimal("200.00"), ["a", "b", "c"])
        assert list(shares.values()) == [Decimal("66.66"), Decimal("66.67"), Decimal("66.67")]

    def test_shares_add_up_to_total(self):
        """Test that equal shares always sum to the total."""
        for total in ["0.01", "10.00", "19.99", "1234.57"]:
            shares = build_equal_splits(Decimal(total), ["a", "b", "c", "d", "e", "f", "g"])
            assert sum(shares.values()) == Decimal(total)

    def test_no_participants(self):
        """Test that an empty participant list is rejected."""
        with pytest.raises(SplitCalculationError):
            build_equal_splits(Decimal("10.00"), [])

    def test_repeated_participant_gets_one_share(self):
        """Test that listing a participant twice still splits the full total."""
        shares = build_equal_splits(Decimal("100.00"), ["a", "a", "b"])
        assert shares == {"a": Decimal("50.00"), "b": Decimal("50.00")}
        assert sum(shares.values()) == Decimal("100.00")


class TestCustomSplits:
    """Tests for build_custom_splits."""

    def test_amounts_used_as_entered(self):
        """Test a custom split that adds up."""
        shares = build_custom_splits(
            Decimal("50.00"), ["a", "b"], {"a": Decimal("20.00"), "b": Decimal("30.00")}
        )
        assert shares == {"a": Decimal("20.00"), "b": Decimal("30.00")}

    def test_missing_amount_owes_nothing(self):
        """Test that a participant without an amount owes zero."""
        shares = build_custom_splits(Decimal("50.00"), ["a", "b"], {"a": Decimal("50.00")})
        assert shares["b"] == Decimal("0.00")

    def test_one_cent_off_is_accepted(self):
        """Test the one cent tolerance on the custom total."""
        shares = build_custom_splits(
            Decimal("10.00"), ["a", "b"], {"a": "5.00", "b": "4.99"}
        )
        assert sum(shares.values()) == Decimal("9.99")

    def test_mismatch_rejected(self):
        """Test that amounts not adding up are rejected."""
        with pytest.raises(SplitCalculationError, match="don't add up"):
            build_custom_splits(Decimal("100.00"), ["a", "b"], {"a": "40", "b": "40"})

    def test_negative_amount_rejected(self):
        """Test that a negative custom amount is rejected."""
        with pytest.raises(SplitCalculationError):
            build_custom_splits(Decimal("10.00"), ["a", "b"], {"a": "20", "b": "-10"})

    def test_repeated_participant_counted_once(self):
        """Test that a repeated participant's amount is only counted once."""
        shares = build_custom_splits(
            Decimal("50.00"), ["a", "b", "a"], {"a": "20.00", "b": "30.00"}
        )
        assert shares == {"a": Decimal("20.00"), "b": Decimal("30.00")}

    def test_fractions_of_a_cent_rejected(self):
        """Test that sub-cent amounts are reported, not rounded."""
        with pytest.raises(SplitCalculationError) as exc_info:
            build_custom_splits(
                Decimal("100.00"), ["a", "b"], {"a": "33.335", "b": "66.665"}
            )
        assert exc_info.value.issue_type == "too_precise"


class TestValidateExpense:
    """Tests for LedgerValidator.validate_expense."""

    def test_valid_expense_builds_shares(self):
        """Test that a valid equal-split expense carries its shares."""
        result = LedgerValidator().validate_expense(_expense_draft(), MEMBERS)
        assert result.is_valid
        assert result.issues == []
        assert result.shares == {
            "a": Decimal("33.34"),
            "b": Decimal("33.33"),
            "c": Decimal("33.33"),
        }

    def test_missing_description(self):
        """Test that a blank description is an error."""
        result = LedgerValidator().validate_expense(_expense_draft(description="  "), MEMBERS)
        assert not result.is_valid
        assert "missing" in _issue_types(result)
        assert result.shares == {}

    def test_description_too_long(self):
        """Test the description length limit."""
        result = LedgerValidator().validate_expense(_expense_draft(description="x" * 201), MEMBERS)
        assert "too_long" in _issue_types(result)

    @pytest.mark.parametrize("amount, issue_type", [
        (Decimal("0"), "invalid_value"),
        (Decimal("-5"), "invalid_value"),
        (Decimal("1000000"), "too_large"),
        (Decimal("10.001"), "too_precise"),
    ])
    def test_bad_amounts(self, amount, issue_type):
        """Test amount checks."""
        result = LedgerValidator().validate_expense(_expense_draft(amount_total=amount), MEMBERS)
        assert not result.is_valid
        assert issue_type in _issue_types(result)

    def test_outsider_payer_and_participant(self):
        """Test that non-members can neither pay nor participate."""
        result = LedgerValidator().validate_expense(
            _expense_draft(payer_member_id="z", participant_ids=["a", "y"]),
            MEMBERS,
        )
        fields = [(i.field, i.issue_type) for i in result.issues]
        assert ("payer_member_id", "not_a_member") in fields
        assert ("participant_ids", "not_a_member") in fields

    def test_no_participants(self):
        """Test that at least one participant is required."""
        result = LedgerValidator().validate_expense(_expense_draft(participant_ids=[]), MEMBERS)
        assert not result.is_valid
        assert ("participant_ids", "missing") in [(i.field, i.issue_type) for i in result.issues]

    def test_custom_split_mismatch(self):
        """Test that an unbalanced custom split is reported as an error."""
        result = LedgerValidator().validate_expense(
            _expense_draft(
                split_type=SplitType.CUSTOM,
                participant_ids=["a", "b"],
                custom_amounts={"a": Decimal("40"), "b": Decimal("40")},
            ),
            MEMBERS,
        )
        assert not result.is_valid
        assert "split_mismatch" in _issue_types(result)

    def test_custom_split_sub_cent_amount(self):
        """Test that a sub-cent custom amount blocks the expense."""
        result = LedgerValidator().validate_expense(
            _expense_draft(
                split_type=SplitType.CUSTOM,
                participant_ids=["a", "b"],
                custom_amounts={"a": Decimal("33.335"), "b": Decimal("66.665")},
            ),
            MEMBERS,
        )
        assert not result.is_valid
        assert ("custom_amounts", "too_precise") in [(i.field, i.issue_type) for i in result.issues]
        assert result.shares == {}

    def test_future_date_is_only_a_warning(self):
        """Test that a far future date warns without blocking."""
        result = LedgerValidator().validate_expense(
            _expense_draft(expense_date=date.today() + timedelta(days=30)),
            MEMBERS,
        )
        assert result.is_valid
        assert len(result.warnings) == 1
        assert result.shares


class TestValidateSettlement:
    """Tests for LedgerValidator.validate_settlement."""

    def test_valid_settlement(self):
        """Test a settlement between two members."""
        result = LedgerValidator().validate_settlement(_settlement_draft(), MEMBERS)
        assert result.is_valid

    def test_same_member(self):
        """Test that a member cannot pay themselves."""
        result = LedgerValidator().validate_settlement(
            _settlement_draft(to_member_id="b"), MEMBERS
        )
        assert not result.is_valid
        assert "same_member" in _issue_types(result)

    def test_outsider(self):
        """Test that both sides must be members."""
        result = LedgerValidator().validate_settlement(
            _settlement_draft(from_member_id="z"), MEMBERS
        )
        assert ("from_member_id", "not_a_member") in [(i.field, i.issue_type) for i in result.issues]

    def test_note_too_long(self):
        """Test the note length limit."""
        result = LedgerValidator().validate_settlement(
            _settlement_draft(note="n" * 201), MEMBERS
        )
        assert "too_long" in _issue_types(result)

    def test_amount_too_large(self):
        """Test the maximum settlement amount."""
        result = LedgerValidator().validate_settlement(
            _settlement_draft(amount=Decimal("1000000")), MEMBERS
        )
        assert "too_large" in _issue_types(result)


class TestCheckSplitTotals:
    """Tests for LedgerValidator.check_split_totals."""

    def test_reports_only_mismatched_expenses(self):
        """Test that only expenses whose splits don't add up are flagged."""
        expenses = [
            Expense(id="e1", household_id="h1", description="Rent", amount_total=Decimal("900"),
                    payer_member_id="a", expense_date=date(2024, 1, 1)),
            Expense(id="e2", household_id="h1", description="Gas", amount_total=Decimal("60"),
                    payer_member_id="b", expense_date=date(2024, 1, 2)),
        ]
        splits = [
            ExpenseSplit(expense_id="e1", member_id="a", amount_owed=Decimal("450")),
            ExpenseSplit(expense_id="e1", member_id="b", amount_owed=Decimal("450")),
            ExpenseSplit(expense_id="e2", member_id="a", amount_owed=Decimal("20")),
        ]

        issues = LedgerValidator().check_split_totals(expenses, splits)

        assert len(issues) == 1
        assert issues[0].field == "expense:e2"
        assert issues[0].issue_type == "split_mismatch"
        assert issues[0].severity == "warning"
        assert "$20.00" in issues[0].message
