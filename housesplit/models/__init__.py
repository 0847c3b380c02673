"""
Data Models Package

This package contains all Pydantic models used in HouseSplit.
All data flowing through the system must conform to these schemas.
"""

from housesplit.models.ledger import (
    BalanceSummary,
    CategoryTotal,
    DebtSimplification,
    Expense,
    ExpenseCategory,
    ExpenseDraft,
    ExpenseSplit,
    HouseholdBalances,
    HouseholdSnapshot,
    LedgerEntry,
    LedgerEntryType,
    Member,
    MemberRole,
    Settlement,
    SettlementDraft,
    SplitType,
    ValidationIssue,
    ValidationResult,
)
from housesplit.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger records
    "Expense",
    "ExpenseCategory",
    "ExpenseSplit",
    "Member",
    "MemberRole",
    "Settlement",
    # Computed views
    "BalanceSummary",
    "CategoryTotal",
    "DebtSimplification",
    "HouseholdBalances",
    "HouseholdSnapshot",
    "LedgerEntry",
    "LedgerEntryType",
    # Creation input
    "ExpenseDraft",
    "SettlementDraft",
    "SplitType",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
