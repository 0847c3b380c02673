"""
Debt Simplifier

Turns net balances into a short list of direct payments that settles the
household.

ALGORITHM (greedy two-pointer matching):
1. Members owing more than a cent are debtors, members owed more than a
   cent are creditors; everyone else is settled and left out.
2. Debtors are sorted largest debt first, creditors largest credit first.
   Equal balances keep their input order.
3. The current debtor pays the current creditor min(debt, credit).
   Payments of a cent or less are not suggested.
4. A side whose remaining balance is within a cent of zero is done and
   its cursor moves on. Both cursors can move in the same step.
5. Stop when either side runs out.

KNOWN LIMITATION: the greedy pass gives few payments, but not always the
fewest possible. The tie-break order above is kept as-is so the
suggestions stay stable between page loads.

Nothing here raises. Balances that don't sum to zero just produce a plan
that leaves someone unsettled; see unreconciled_balances().
"""

from typing import Iterable, Mapping, Optional

from housesplit.balances.money import (
    SETTLE_TOLERANCE,
    Amount,
    is_settled,
    round_money,
    to_decimal,
)
from housesplit.models.ledger import BalanceSummary, DebtSimplification


def simplify_debts(
    balances: Mapping[str, Amount],
    names: Optional[Mapping[str, str]] = None,
) -> list[DebtSimplification]:
    """
    Suggest payments that bring every balance to zero.

    Balances are rounded to whole cents before matching, so every
    suggested amount is exactly what gets paid.

    Args:
        balances: {member_id: net balance}; positive is owed money
        names: {member_id: display name}; the id is used when missing

    Returns:
        Ordered list of transfers, each above one cent. May be empty.
    """
    names = names or {}
    working = {member_id: round_money(value) for member_id, value in balances.items()}

    # sorted() is stable, so equal balances keep their input order
    debtors = sorted(
        (m for m, v in working.items() if v < -SETTLE_TOLERANCE),
        key=lambda m: working[m],
    )
    creditors = sorted(
        (m for m, v in working.items() if v > SETTLE_TOLERANCE),
        key=lambda m: working[m],
        reverse=True,
    )

    transfers = []
    i = j = 0

    while i < len(debtors) and j < len(creditors):
        debtor, creditor = debtors[i], creditors[j]
        amount = min(-working[debtor], working[creditor])

        if amount > SETTLE_TOLERANCE:
            transfers.append(DebtSimplification(
                from_member_id=debtor,
                from_name=names.get(debtor, debtor),
                to_member_id=creditor,
                to_name=names.get(creditor, creditor),
                amount=round_money(amount),
            ))

        working[debtor] += amount
        working[creditor] -= amount

        if is_settled(working[debtor]):
            i += 1
        if is_settled(working[creditor]):
            j += 1

    return transfers


def simplify_summaries(summaries: Iterable[BalanceSummary]) -> list[DebtSimplification]:
    """Run simplify_debts over BalanceSummary rows, keeping display names."""
    summaries = list(summaries)
    return simplify_debts(
        {s.member_id: s.net_balance for s in summaries},
        names={s.member_id: s.member_name for s in summaries},
    )


def apply_transfers(
    balances: Mapping[str, Amount],
    transfers: Iterable[DebtSimplification],
) -> dict:
    """
    Balances after every transfer in the plan has been paid.

    Paying reduces the payer's debt and the payee's credit. Members that
    only appear in a transfer start from zero.
    """
    result = {member_id: to_decimal(value) for member_id, value in balances.items()}
    for transfer in transfers:
        result[transfer.from_member_id] = result.get(transfer.from_member_id, 0) + transfer.amount
        result[transfer.to_member_id] = result.get(transfer.to_member_id, 0) - transfer.amount
    return result


def unreconciled_balances(
    balances: Mapping[str, Amount],
    transfers: Iterable[DebtSimplification],
) -> dict:
    """
    Members the plan leaves unsettled, with what they would still be owed
    (positive) or still owe (negative).

    Empty for any household whose balances sum to zero. A leftover of
    exactly one cent is not reported: the plan never suggests payments
    that small.
    """
    remaining = apply_transfers(balances, transfers)
    return {
        member_id: round_money(value)
        for member_id, value in remaining.items()
        if abs(value) > SETTLE_TOLERANCE
    }
