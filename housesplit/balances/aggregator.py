"""
Balance Aggregator

Folds a household's expenses, splits and settlements into one signed net
balance per member:

    net = paid for expenses - shares owed - settlements sent + settlements received

Positive means the household owes the member money, negative means the
member owes the household.

GUARANTEES:
- Every member in the member list gets an entry, even with no activity
- Records that reference members outside the list are ignored, not raised
- Pure: the inputs are only read, the result depends on nothing else
"""

from typing import Iterable, Sequence

from housesplit.balances.money import ZERO, round_money
from housesplit.models.ledger import (
    BalanceSummary,
    Expense,
    ExpenseSplit,
    Member,
    Settlement,
)


class _Totals:
    """Running per-member totals for one aggregation pass."""

    def __init__(self, member_ids: Iterable[str]):
        ids = list(member_ids)
        self.paid = dict.fromkeys(ids, ZERO)
        self.owed = dict.fromkeys(ids, ZERO)
        self.sent = dict.fromkeys(ids, ZERO)
        self.received = dict.fromkeys(ids, ZERO)

    def add(self, bucket: dict, member_id: str, amount) -> None:
        # Unknown members (stale references) have no bucket and are skipped.
        if member_id in bucket:
            bucket[member_id] += amount

    def net(self, member_id: str):
        return (
            self.paid[member_id]
            - self.owed[member_id]
            - self.sent[member_id]
            + self.received[member_id]
        )


def _tally(
    member_ids: Iterable[str],
    expenses: Iterable[Expense],
    splits: Iterable[ExpenseSplit],
    settlements: Iterable[Settlement],
) -> _Totals:
    totals = _Totals(member_ids)

    for expense in expenses:
        totals.add(totals.paid, expense.payer_member_id, expense.amount_total)

    for split in splits:
        totals.add(totals.owed, split.member_id, split.amount_owed)

    for settlement in settlements:
        totals.add(totals.sent, settlement.from_member_id, settlement.amount)
        totals.add(totals.received, settlement.to_member_id, settlement.amount)

    return totals


def compute_balances(
    members: Sequence[Member],
    expenses: Iterable[Expense],
    splits: Iterable[ExpenseSplit],
    settlements: Iterable[Settlement],
) -> dict:
    """
    Compute the net balance of every member, rounded to cents.

    Args:
        members: Members of the household
        expenses: All expenses of the household
        splits: All splits belonging to those expenses
        settlements: All settlements of the household

    Returns:
        {member_id: Decimal net balance}, in member-list order
    """
    totals = _tally((m.id for m in members), expenses, splits, settlements)
    return {m.id: round_money(totals.net(m.id)) for m in members}


def summarize_balances(
    members: Sequence[Member],
    expenses: Iterable[Expense],
    splits: Iterable[ExpenseSplit],
    settlements: Iterable[Settlement],
) -> list[BalanceSummary]:
    """
    Compute a BalanceSummary per member, in member-list order.

    total_paid is what the member paid for expenses less what they sent
    in settlements; total_owed is their share of expenses less what they
    received. total_paid - total_owed is the net balance.
    """
    totals = _tally((m.id for m in members), expenses, splits, settlements)

    return [
        BalanceSummary(
            member_id=member.id,
            member_name=member.display_name,
            total_paid=round_money(totals.paid[member.id] - totals.sent[member.id]),
            total_owed=round_money(totals.owed[member.id] - totals.received[member.id]),
            net_balance=round_money(totals.net(member.id)),
        )
        for member in members
    ]


def summarize_member(
    member: Member,
    expenses: Iterable[Expense],
    splits: Iterable[ExpenseSplit],
    settlements: Iterable[Settlement],
) -> BalanceSummary:
    """Compute the BalanceSummary of a single member."""
    return summarize_balances([member], expenses, splits, settlements)[0]
