"""
Ledger and Dashboard Reports

Read-only views over a household's history:
- the ledger: expenses and settlements merged into one dated list
- the category breakdown shown on the dashboard

Like the balance engine these are pure functions over records the caller
has already fetched. Nothing is estimated: an unknown member is shown as
"Unknown", never guessed.
"""

from datetime import date
from typing import Iterable, Optional, Sequence

from housesplit.balances.money import ZERO, round_money
from housesplit.models.ledger import (
    CategoryTotal,
    Expense,
    ExpenseCategory,
    LedgerEntry,
    LedgerEntryType,
    Member,
    Settlement,
)

UNKNOWN_MEMBER = "Unknown"


def build_ledger(
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
    members: Sequence[Member],
) -> list[LedgerEntry]:
    """
    Merge expenses and settlements into ledger entries, newest date first.

    Entries on the same date keep their input order, expenses before
    settlements.
    """
    names = {m.id: m.display_name for m in members}

    entries = [
        LedgerEntry(
            id=expense.id,
            type=LedgerEntryType.EXPENSE,
            date=expense.expense_date,
            description=expense.description,
            amount=expense.amount_total,
            category=expense.category,
            payer_name=names.get(expense.payer_member_id, UNKNOWN_MEMBER),
            created_at=expense.created_at,
        )
        for expense in expenses
    ]
    entries.extend(
        LedgerEntry(
            id=settlement.id,
            type=LedgerEntryType.SETTLEMENT,
            date=settlement.date,
            description=settlement.note or "Settlement",
            amount=settlement.amount,
            from_name=names.get(settlement.from_member_id, UNKNOWN_MEMBER),
            to_name=names.get(settlement.to_member_id, UNKNOWN_MEMBER),
            created_at=settlement.created_at,
        )
        for settlement in settlements
    )

    entries.sort(key=lambda entry: entry.date, reverse=True)
    return entries


def filter_ledger(
    entries: Iterable[LedgerEntry],
    search: Optional[str] = None,
    category: Optional[ExpenseCategory] = None,
    member_name: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> list[LedgerEntry]:
    """
    Filter ledger entries.

    Args:
        search: Case-insensitive match on description, payer, from or to name
        category: Keep expenses in this category (settlements always pass)
        member_name: Keep expenses paid by this member (settlements always pass)
        date_from: Keep entries on or after this date
        date_to: Keep entries on or before this date
    """
    query = search.strip().lower() if search else ""
    result = []

    for entry in entries:
        if query:
            haystack = [entry.description, entry.payer_name, entry.from_name, entry.to_name]
            if not any(text and query in text.lower() for text in haystack):
                continue

        is_expense = entry.type == LedgerEntryType.EXPENSE
        if category and is_expense and entry.category != category:
            continue
        if member_name and is_expense and entry.payer_name != member_name:
            continue

        if date_from and entry.date < date_from:
            continue
        if date_to and entry.date > date_to:
            continue

        result.append(entry)

    return result


def category_breakdown(expenses: Iterable[Expense]) -> list[CategoryTotal]:
    """Total spent per category, largest first. Empty categories are omitted."""
    totals: dict = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, ZERO) + expense.amount_total

    breakdown = [
        CategoryTotal(category=category, amount=round_money(amount))
        for category, amount in totals.items()
    ]
    breakdown.sort(key=lambda item: item.amount, reverse=True)
    return breakdown
