"""
Input Validation for new expenses and settlements

DESIGN DECISION: The balance engine never re-validates records. Everything
that must hold for balances to make sense (positive amounts, known members,
splits adding up to the total) is checked here, once, before a record is
created.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the user can correct the form.
"""

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Iterable, Sequence

from housesplit.balances.money import CENT, ZERO
from housesplit.config import get_settings
from housesplit.models.ledger import (
    Expense,
    ExpenseDraft,
    ExpenseSplit,
    Member,
    SettlementDraft,
    SplitType,
    ValidationIssue,
    ValidationResult,
)
from housesplit.validation.splits import (
    SplitCalculationError,
    build_custom_splits,
    build_equal_splits,
)


class LedgerValidator:
    """
    Validates expense and settlement drafts against a household's members.

    A draft is valid when it has no error-level issues. Warnings (such as a
    date in the future) are returned alongside but don't block creation.
    """

    def __init__(self):
        settings = get_settings()
        self._ledger = settings.ledger
        self._app = settings.app

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def validate_expense(
        self,
        draft: ExpenseDraft,
        members: Sequence[Member],
    ) -> ValidationResult:
        """
        Validate an expense draft and build its splits.

        Checks:
        - Description present and not too long
        - Amount positive, not too large, whole cents
        - Payer and participants are household members
        - Splits can be built (custom amounts add up)
        - Date not too far in the future (warning)
        """
        issues = []
        member_ids = {m.id for m in members}

        description = draft.description.strip()
        if not description:
            issues.append(self._error("description", "missing", "Description is required"))
        elif len(description) > self._ledger.max_description_length:
            issues.append(self._error("description", "too_long", "Description too long"))

        issues.extend(self._check_amount("amount_total", draft.amount_total))

        if not draft.payer_member_id:
            issues.append(self._error("payer_member_id", "missing", "Select who paid"))
        elif draft.payer_member_id not in member_ids:
            issues.append(self._error(
                "payer_member_id",
                "not_a_member",
                f"Payer {draft.payer_member_id} is not a member of this household",
            ))

        if not draft.participant_ids:
            issues.append(self._error(
                "participant_ids", "missing", "Select at least one participant"
            ))
        for participant_id in draft.participant_ids:
            if participant_id not in member_ids:
                issues.append(self._error(
                    "participant_ids",
                    "not_a_member",
                    f"Participant {participant_id} is not a member of this household",
                ))

        issues.extend(self._check_date("expense_date", draft.expense_date))

        shares = {}
        if not any(issue.severity == "error" for issue in issues):
            try:
                if draft.split_type == SplitType.EQUAL:
                    shares = build_equal_splits(draft.amount_total, draft.participant_ids)
                else:
                    shares = build_custom_splits(
                        draft.amount_total,
                        draft.participant_ids,
                        draft.custom_amounts,
                    )
            except SplitCalculationError as e:
                issues.append(self._error("custom_amounts", e.issue_type, str(e)))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return ValidationResult(
            is_valid=is_valid,
            issues=issues,
            shares=shares if is_valid else {},
        )

    # -------------------------------------------------------------------------
    # Settlements
    # -------------------------------------------------------------------------

    def validate_settlement(
        self,
        draft: SettlementDraft,
        members: Sequence[Member],
    ) -> ValidationResult:
        """
        Validate a settlement draft.

        Checks:
        - Payer and receiver present, distinct and household members
        - Amount positive, not too large, whole cents
        - Note not too long
        - Date not too far in the future (warning)
        """
        issues = []
        member_ids = {m.id for m in members}

        if not draft.from_member_id:
            issues.append(self._error("from_member_id", "missing", "Select who is paying"))
        elif draft.from_member_id not in member_ids:
            issues.append(self._error(
                "from_member_id",
                "not_a_member",
                f"Member {draft.from_member_id} is not part of this household",
            ))

        if not draft.to_member_id:
            issues.append(self._error("to_member_id", "missing", "Select who is receiving"))
        elif draft.to_member_id not in member_ids:
            issues.append(self._error(
                "to_member_id",
                "not_a_member",
                f"Member {draft.to_member_id} is not part of this household",
            ))

        if draft.from_member_id and draft.from_member_id == draft.to_member_id:
            issues.append(self._error(
                "to_member_id", "same_member", "Payer and receiver must be different"
            ))

        issues.extend(self._check_amount("amount", draft.amount))

        if draft.note and len(draft.note) > self._ledger.max_note_length:
            issues.append(self._error("note", "too_long", "Note too long"))

        issues.extend(self._check_date("date", draft.date))

        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
        )

    # -------------------------------------------------------------------------
    # Stored history
    # -------------------------------------------------------------------------

    def check_split_totals(
        self,
        expenses: Iterable[Expense],
        splits: Iterable[ExpenseSplit],
    ) -> list[ValidationIssue]:
        """
        Report expenses whose splits don't add up to their total.

        These are the records that make a household's suggested payments
        fail to reconcile. Reported as warnings: the history is already
        stored and balances are still computed from it.
        """
        owed_by_expense: dict[str, Decimal] = {}
        for split in splits:
            owed_by_expense[split.expense_id] = (
                owed_by_expense.get(split.expense_id, ZERO) + split.amount_owed
            )

        issues = []
        for expense in expenses:
            owed = owed_by_expense.get(expense.id, ZERO)
            if abs(owed - expense.amount_total) > CENT:
                issues.append(ValidationIssue(
                    field=f"expense:{expense.id}",
                    issue_type="split_mismatch",
                    message=(
                        f"Splits of '{expense.description or expense.id}' add up to "
                        f"{self._ledger.format_amount(owed)}, expected "
                        f"{self._ledger.format_amount(expense.amount_total)}"
                    ),
                    severity="warning",
                ))
        return issues

    # -------------------------------------------------------------------------
    # Shared checks
    # -------------------------------------------------------------------------

    def _check_amount(self, field: str, amount: Decimal) -> list[ValidationIssue]:
        try:
            if not amount.is_finite():
                return [self._error(field, "invalid_value", "Enter a valid amount")]
            if amount <= 0:
                return [self._error(
                    field, "invalid_value", "Amount must be greater than 0"
                )]
            if amount > self._ledger.max_amount:
                return [self._error(field, "too_large", "Amount too large")]
            if amount != amount.quantize(CENT):
                return [self._error(
                    field, "too_precise", "Amount cannot have fractions of a cent"
                )]
        except InvalidOperation:
            return [self._error(field, "invalid_value", "Enter a valid amount")]
        return []

    def _check_date(self, field: str, value: date) -> list[ValidationIssue]:
        tolerance = timedelta(days=self._app.future_date_tolerance_days)
        if value > date.today() + tolerance:
            return [ValidationIssue(
                field=field,
                issue_type="future_date",
                message=f"Date ({value}) is in the future",
                severity="warning",
            )]
        return []

    @staticmethod
    def _error(field: str, issue_type: str, message: str) -> ValidationIssue:
        return ValidationIssue(
            field=field,
            issue_type=issue_type,
            message=message,
            severity="error",
        )
