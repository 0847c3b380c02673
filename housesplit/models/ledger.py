"""
Core Data Models for HouseSplit

These models define the schemas for all records flowing through the system.
They are designed to:
1. Carry money as Decimal, never float
2. Be cheap to build from storage rows and test fixtures
3. Be serializable for logging and reports

DESIGN DECISION: Record models (Member, Expense, ExpenseSplit, Settlement)
only check shape, not business rules. Limits such as the maximum amount are
enforced by the validator when a record is created; the balance engine
must cope with whatever history storage hands it.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    Categories are informational only. They drive the dashboard breakdown
    and ledger filters, never the balance computation.
    """
    GROCERIES = "Groceries"
    RENT = "Rent"
    UTILITIES = "Utilities"
    DINING = "Dining"
    GAS = "Gas"
    ENTERTAINMENT = "Entertainment"
    OTHER = "Other"


class MemberRole(str, Enum):
    """Role of a member within a household."""
    ADMIN = "admin"
    MEMBER = "member"


class SplitType(str, Enum):
    """How an expense is divided between its participants."""
    EQUAL = "equal"
    CUSTOM = "custom"


class LedgerEntryType(str, Enum):
    """Kind of row shown in the household ledger."""
    EXPENSE = "expense"
    SETTLEMENT = "settlement"


# =============================================================================
# RECORDS - read from storage
# =============================================================================

class Member(BaseModel):
    """
    A participant in a household.

    Not necessarily a distinct login account: the same user appears as a
    different member in every household they join.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Member identifier"
    )
    display_name: str = Field(
        ...,
        description="Name shown to other household members"
    )
    household_id: Optional[str] = None
    role: MemberRole = MemberRole.MEMBER


class Expense(BaseModel):
    """A shared expense paid by one member."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    household_id: str
    description: str = ""
    amount_total: Decimal = Field(
        ...,
        gt=0,
        description="Total amount paid"
    )
    category: ExpenseCategory = ExpenseCategory.OTHER
    payer_member_id: str
    expense_date: date
    created_at: Optional[datetime] = None


class ExpenseSplit(BaseModel):
    """
    One member's share of an expense.

    The shares of an expense are expected to add up to its total
    (within 0.01). Nothing downstream depends on that for correctness.
    """

    expense_id: str
    member_id: str
    amount_owed: Decimal = Field(
        ...,
        ge=0,
        description="Amount this member owes for the expense"
    )
    id: Optional[str] = None


class Settlement(BaseModel):
    """A direct payment from one member to another."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    household_id: str
    from_member_id: str
    to_member_id: str
    amount: Decimal = Field(..., gt=0)
    date: date
    note: Optional[str] = None
    created_at: Optional[datetime] = None


# =============================================================================
# COMPUTED VIEWS - produced by the balance engine, never persisted
# =============================================================================

class BalanceSummary(BaseModel):
    """
    Balance of one member.

    net_balance > 0: the household owes this member money.
    net_balance < 0: this member owes the household money.
    """

    member_id: str
    member_name: str
    total_paid: Decimal = Decimal("0.00")
    total_owed: Decimal = Decimal("0.00")
    net_balance: Decimal = Decimal("0.00")

    @property
    def is_settled(self) -> bool:
        return abs(self.net_balance) < Decimal("0.01")


class DebtSimplification(BaseModel):
    """A suggested transfer that moves money from a debtor to a creditor."""

    from_member_id: str
    from_name: str
    to_member_id: str
    to_name: str
    amount: Decimal = Field(..., gt=0)


class HouseholdSnapshot(BaseModel):
    """
    Everything the balance engine needs for one household.

    Assembled by the storage layer; the engine only reads it.
    """

    household_id: str
    members: list[Member] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    splits: list[ExpenseSplit] = Field(default_factory=list)
    settlements: list[Settlement] = Field(default_factory=list)

    @property
    def record_count(self) -> int:
        return (
            len(self.members)
            + len(self.expenses)
            + len(self.splits)
            + len(self.settlements)
        )


class HouseholdBalances(BaseModel):
    """
    Result of a balance computation for one household.

    `unreconciled` lists members whose balance the suggested transfers do
    not clear. It is empty for consistent data; anything else points at
    splits that don't add up to their expense, or records that reference
    members no longer in the household.
    """

    household_id: str
    computed_at: datetime = Field(default_factory=datetime.utcnow)
    balances: list[BalanceSummary] = Field(default_factory=list)
    transfers: list[DebtSimplification] = Field(default_factory=list)
    unreconciled: dict[str, Decimal] = Field(default_factory=dict)

    @computed_field
    @property
    def is_reconciled(self) -> bool:
        return not self.unreconciled

    @computed_field
    @property
    def is_settled(self) -> bool:
        """True when nobody owes anything and there is nothing to pay."""
        return (
            all(summary.is_settled for summary in self.balances)
            and not self.transfers
        )


class LedgerEntry(BaseModel):
    """One row of the household ledger: an expense or a settlement."""

    id: str
    type: LedgerEntryType
    date: date
    description: str
    amount: Decimal
    category: Optional[ExpenseCategory] = None
    payer_name: Optional[str] = None
    from_name: Optional[str] = None
    to_name: Optional[str] = None
    created_at: Optional[datetime] = None


class CategoryTotal(BaseModel):
    """Total spent in one category."""

    category: ExpenseCategory
    amount: Decimal


# =============================================================================
# CREATION INPUT - what a user submits before a record exists
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    A new expense as submitted by a member, before validation.

    CRITICAL: Drafts are not records. They must pass LedgerValidator,
    which also builds the splits, before anything is stored.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str
    amount_total: Decimal
    category: ExpenseCategory = ExpenseCategory.OTHER
    payer_member_id: str
    expense_date: date
    participant_ids: list[str] = Field(default_factory=list)
    split_type: SplitType = SplitType.EQUAL
    custom_amounts: dict[str, Decimal] = Field(default_factory=dict)

    @field_validator('participant_ids')
    @classmethod
    def drop_duplicate_participants(cls, v: list[str]) -> list[str]:
        """Keep the first occurrence of each participant, preserving order."""
        return list(dict.fromkeys(v))


class SettlementDraft(BaseModel):
    """A new settlement as submitted by a member, before validation."""
    model_config = ConfigDict(str_strip_whitespace=True)

    from_member_id: str
    to_member_id: str
    amount: Decimal
    date: date
    note: Optional[str] = None

    @model_validator(mode='after')
    def blank_note_is_none(self) -> 'SettlementDraft':
        if self.note is not None and not self.note:
            self.note = None
        return self


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'too_large', 'not_a_member')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating an expense or settlement draft.

    Warnings don't block creation but should be shown to the user.
    """

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    # Built only for valid expense drafts: {member_id: amount owed}
    shares: dict[str, Decimal] = Field(default_factory=dict)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
