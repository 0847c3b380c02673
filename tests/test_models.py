"""
Tests for HouseSplit models

Test strategy:
1. Unit tests for individual components (models, engine, validators)
2. Integration tests for flows (with in-memory or mocked storage)
3. No real API calls in tests (use mocks)
"""

import json
import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from housesplit.models.ledger import (
    BalanceSummary,
    DebtSimplification,
    Expense,
    ExpenseCategory,
    ExpenseDraft,
    ExpenseSplit,
    HouseholdBalances,
    HouseholdSnapshot,
    Member,
    MemberRole,
    Settlement,
    SettlementDraft,
    ValidationIssue,
    ValidationResult,
)
from housesplit.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestLedgerRecords:
    """Tests for the stored record models."""

    def test_member_defaults_to_member_role(self):
        """Test that a member without a role is a plain member."""
        member = Member(id="m1", display_name="Alice")
        assert member.role == MemberRole.MEMBER
        assert member.household_id is None

    def test_member_strips_whitespace(self):
        """Test that whitespace is stripped from display names."""
        member = Member(id="m1", display_name="  Alice  ")
        assert member.display_name == "Alice"

    def test_member_requires_id(self):
        """Test that an empty member id is rejected."""
        with pytest.raises(ValueError):
            Member(id="", display_name="Alice")

    def test_expense_rejects_non_positive_amount(self):
        """Test that expenses must have a positive total."""
        with pytest.raises(ValueError):
            Expense(
                id="e1",
                household_id="h1",
                amount_total=Decimal("0"),
                payer_member_id="m1",
                expense_date=date(2024, 1, 1),
            )

    def test_expense_defaults_to_other_category(self):
        """Test the default expense category."""
        expense = Expense(
            id="e1",
            household_id="h1",
            amount_total=Decimal("12.50"),
            payer_member_id="m1",
            expense_date=date(2024, 1, 1),
        )
        assert expense.category == ExpenseCategory.OTHER

    def test_split_allows_zero_share(self):
        """Test that a participant may owe nothing on a custom split."""
        split = ExpenseSplit(expense_id="e1", member_id="m1", amount_owed=Decimal("0"))
        assert split.amount_owed == Decimal("0")

    def test_split_rejects_negative_share(self):
        """Test that negative shares are rejected."""
        with pytest.raises(ValueError):
            ExpenseSplit(expense_id="e1", member_id="m1", amount_owed=Decimal("-1"))

    def test_settlement_rejects_non_positive_amount(self):
        """Test that settlements must move a positive amount."""
        with pytest.raises(ValueError):
            Settlement(
                id="s1",
                household_id="h1",
                from_member_id="m1",
                to_member_id="m2",
                amount=Decimal("-5"),
                date=date(2024, 1, 1),
            )


class TestComputedViews:
    """Tests for the views produced by the balance engine."""

    def test_balance_summary_settled_within_a_cent(self):
        """Test that a balance under one cent counts as settled."""
        assert BalanceSummary(member_id="m1", member_name="A", net_balance=Decimal("0.009")).is_settled
        assert not BalanceSummary(member_id="m1", member_name="A", net_balance=Decimal("0.01")).is_settled

    def test_debt_simplification_requires_positive_amount(self):
        """Test that a suggested payment is never zero."""
        with pytest.raises(ValueError):
            DebtSimplification(
                from_member_id="m1",
                from_name="A",
                to_member_id="m2",
                to_name="B",
                amount=Decimal("0"),
            )

    def test_snapshot_record_count(self):
        """Test that record_count covers every record type."""
        snapshot = HouseholdSnapshot(
            household_id="h1",
            members=[Member(id="m1", display_name="A"), Member(id="m2", display_name="B")],
            splits=[ExpenseSplit(expense_id="e1", member_id="m1", amount_owed=Decimal("1"))],
        )
        assert snapshot.record_count == 3

    def test_household_balances_flags(self):
        """Test reconciled and settled flags on an empty result."""
        result = HouseholdBalances(household_id="h1")
        assert result.is_reconciled
        assert result.is_settled

        result = HouseholdBalances(household_id="h1", unreconciled={"m1": Decimal("5.00")})
        assert not result.is_reconciled
        assert result.model_dump()["is_reconciled"] is False


class TestDrafts:
    """Tests for creation input models."""

    def test_expense_draft_deduplicates_participants(self):
        """Test that repeated participants are kept once, in order."""
        draft = ExpenseDraft(
            description="Pizza",
            amount_total=Decimal("30"),
            payer_member_id="m1",
            expense_date=date(2024, 1, 1),
            participant_ids=["m2", "m1", "m2"],
        )
        assert draft.participant_ids == ["m2", "m1"]

    def test_settlement_draft_blank_note_is_none(self):
        """Test that a whitespace-only note becomes None."""
        draft = SettlementDraft(
            from_member_id="m1",
            to_member_id="m2",
            amount=Decimal("10"),
            date=date(2024, 1, 1),
            note="   ",
        )
        assert draft.note is None


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.BALANCES_COMPUTED,
            description="Balances computed",
        )
        assert event.event_id is not None
        assert event.timestamp is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.LEDGER_VIEWED,
            entity_type="household",
            entity_id="h1",
            correlation_id=correlation_id,
            description="Ledger listed 3 entries",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "ledger_viewed"
        assert log_dict["entity_id"] == "h1"
        assert log_dict["correlation_id"] == str(correlation_id)

    def test_audit_event_to_sheets_row(self):
        """Test conversion to Google Sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            description="Expense rejected",
            details={"issues": 2},
        )
        row = event.to_sheets_row()
        assert len(row) == 10
        assert row[0] == str(event.event_id)
        assert row[2] == "validation_failed"
        assert row[6] == ""
        assert json.loads(row[8]) == {"issues": 2}

    def test_audit_event_builder_balances_computed(self):
        """Test AuditEventBuilder.balances_computed."""
        correlation_id = uuid4()
        event = AuditEventBuilder.balances_computed("h1", 3, 2, correlation_id)
        assert event.event_type == AuditEventType.BALANCES_COMPUTED
        assert event.entity_id == "h1"
        assert event.details == {"member_count": 3, "transfer_count": 2}
        assert event.correlation_id == correlation_id

    def test_audit_event_builder_unreconciled_is_warning(self):
        """Test that unreconciled balances are audited as warnings."""
        event = AuditEventBuilder.balances_unreconciled("h1", {"m1": "20.00"}, uuid4())
        assert event.severity == AuditSeverity.WARNING
        assert event.details["residuals"] == {"m1": "20.00"}

    def test_audit_event_builder_storage_error(self):
        """Test AuditEventBuilder.storage_error."""
        event = AuditEventBuilder.storage_error("load_snapshot", "boom", uuid4())
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "boom"
        assert event.details["operation"] == "load_snapshot"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_counts(self):
        """Test error counting and warning messages."""
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(field="amount", issue_type="too_large", message="Too large", severity="error"),
                ValidationIssue(field="date", issue_type="future_date", message="Future", severity="warning"),
            ],
        )
        assert result.has_errors
        assert result.error_count == 1
        assert result.warnings == ["Future"]

    def test_validation_issue_rejects_unknown_severity(self):
        """Test that severity is restricted."""
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


class TestExpenseCategories:
    """Tests for expense categories."""

    def test_all_categories_present(self):
        """Test that the household categories are defined."""
        values = {c.value for c in ExpenseCategory}
        assert values == {
            "Groceries", "Rent", "Utilities", "Dining", "Gas", "Entertainment", "Other",
        }
