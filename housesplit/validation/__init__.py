"""Input validation package."""

from housesplit.validation.splits import (
    SplitCalculationError,
    build_custom_splits,
    build_equal_splits,
)
from housesplit.validation.validator import LedgerValidator

__all__ = [
    "LedgerValidator",
    "SplitCalculationError",
    "build_custom_splits",
    "build_equal_splits",
]
