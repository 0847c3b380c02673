"""Ledger and dashboard report package."""

from housesplit.reports.ledger import build_ledger, category_breakdown, filter_ledger

__all__ = ["build_ledger", "category_breakdown", "filter_ledger"]
