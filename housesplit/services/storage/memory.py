"""
In-Memory Storage Implementation

Holds records in plain lists. Used by the test suite and by callers that
already have a household's records in hand (e.g. fetched by another
service) and just want balances.
"""

from typing import Iterable, Optional, Sequence
from uuid import UUID

from housesplit.models.audit import AuditEvent
from housesplit.models.ledger import (
    Expense,
    ExpenseSplit,
    Member,
    Settlement,
)
from housesplit.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """List-backed ledger storage."""

    def __init__(
        self,
        members: Optional[Iterable[Member]] = None,
        expenses: Optional[Iterable[Expense]] = None,
        splits: Optional[Iterable[ExpenseSplit]] = None,
        settlements: Optional[Iterable[Settlement]] = None,
    ):
        self.members = list(members or [])
        self.expenses = list(expenses or [])
        self.splits = list(splits or [])
        self.settlements = list(settlements or [])

    def add_expense(self, expense: Expense, splits: Iterable[ExpenseSplit]) -> None:
        """Add an expense together with its splits."""
        self.expenses.append(expense)
        self.splits.extend(splits)

    async def list_members(self, household_id: str) -> list[Member]:
        return [m for m in self.members if m.household_id == household_id]

    async def list_expenses(self, household_id: str) -> list[Expense]:
        expenses = [e for e in self.expenses if e.household_id == household_id]
        expenses.sort(key=lambda e: e.expense_date, reverse=True)
        return expenses

    async def list_splits(self, expense_ids: Sequence[str]) -> list[ExpenseSplit]:
        wanted = set(expense_ids)
        return [s for s in self.splits if s.expense_id in wanted]

    async def list_settlements(self, household_id: str) -> list[Settlement]:
        settlements = [s for s in self.settlements if s.household_id == household_id]
        settlements.sort(key=lambda s: s.date, reverse=True)
        return settlements


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self.events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self.events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
