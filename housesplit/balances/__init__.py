"""
Balance engine package.

Pure functions only: records in, balances and suggested payments out.
"""

from housesplit.balances.aggregator import (
    compute_balances,
    summarize_balances,
    summarize_member,
)
from housesplit.balances.money import CENT, SETTLE_TOLERANCE, round_money
from housesplit.balances.simplifier import (
    apply_transfers,
    simplify_debts,
    simplify_summaries,
    unreconciled_balances,
)

__all__ = [
    "CENT",
    "SETTLE_TOLERANCE",
    "apply_transfers",
    "compute_balances",
    "round_money",
    "simplify_debts",
    "simplify_summaries",
    "summarize_balances",
    "summarize_member",
    "unreconciled_balances",
]
