"""
Abstract Storage Interface

DESIGN DECISION: The balance engine never talks to storage. A storage
implementation hands the orchestrator a household's records and the
engine computes from that snapshot. This allows us to:
1. Read from Google Sheets, a database, or memory without touching the engine
2. Use in-memory storage for testing
3. Keep record writing (forms, CRUD) entirely outside this package

The ledger interface is read-only on purpose: creating, editing and
deleting records belongs to whatever application owns the data.
"""

from abc import ABC, abstractmethod
from typing import Sequence
from uuid import UUID

from housesplit.models.audit import AuditEvent
from housesplit.models.ledger import (
    Expense,
    ExpenseSplit,
    Member,
    Settlement,
)


class LedgerStorageInterface(ABC):
    """
    Abstract interface for reading a household's records.

    Every method filters by household (or by expense ids belonging to the
    household), so the engine never sees another household's data.
    """

    @abstractmethod
    async def list_members(self, household_id: str) -> list[Member]:
        """
        List the members of a household.

        Args:
            household_id: The household's identifier

        Returns:
            Members in join order

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def list_expenses(self, household_id: str) -> list[Expense]:
        """
        List all expenses of a household.

        Args:
            household_id: The household's identifier

        Returns:
            Expenses, newest expense date first
        """
        pass

    @abstractmethod
    async def list_splits(self, expense_ids: Sequence[str]) -> list[ExpenseSplit]:
        """
        List the splits of the given expenses.

        Args:
            expense_ids: Expenses whose splits to fetch

        Returns:
            Splits of those expenses, in storage order
        """
        pass

    @abstractmethod
    async def list_settlements(self, household_id: str) -> list[Settlement]:
        """
        List all settlements of a household.

        Args:
            household_id: The household's identifier

        Returns:
            Settlements, newest date first
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one balances page load).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
