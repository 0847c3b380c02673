"""
Main Orchestrator for HouseSplit

This module ties storage, the balance engine, reports and auditing
together into the flows a front end calls:
1. Balances (fetch history -> aggregate -> simplify -> report)
2. Member summary (the dashboard card for one member)
3. Ledger and category breakdown
4. Draft review (validate a new expense or settlement before it is stored)

DESIGN DECISION: The engine stays pure. All fetching, offloading and
auditing happens here, and the household to work on is always passed in
explicitly - there is no "current household" state in this package.
"""

import asyncio
from datetime import date
from typing import Optional
from uuid import UUID

from housesplit.audit import AuditLogger, configure_logging, create_correlation_id
from housesplit.balances import (
    compute_balances,
    simplify_summaries,
    summarize_balances,
    summarize_member,
    unreconciled_balances,
)
from housesplit.config import get_settings
from housesplit.models.ledger import (
    BalanceSummary,
    CategoryTotal,
    ExpenseCategory,
    ExpenseDraft,
    HouseholdBalances,
    HouseholdSnapshot,
    LedgerEntry,
    SettlementDraft,
    ValidationIssue,
    ValidationResult,
)
from housesplit.reports import build_ledger, category_breakdown, filter_ledger
from housesplit.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from housesplit.validation import LedgerValidator


def compute_household_balances(snapshot: HouseholdSnapshot) -> HouseholdBalances:
    """
    Run the balance engine over one household snapshot.

    Synchronous and pure; BalanceFlow decides where it runs.
    """
    summaries = summarize_balances(
        snapshot.members,
        snapshot.expenses,
        snapshot.splits,
        snapshot.settlements,
    )
    transfers = simplify_summaries(summaries)
    net = {summary.member_id: summary.net_balance for summary in summaries}

    return HouseholdBalances(
        household_id=snapshot.household_id,
        balances=summaries,
        transfers=transfers,
        unreconciled=unreconciled_balances(net, transfers),
    )


class BalanceFlow:
    """
    Orchestrates balance and report requests for a household.

    Flow:
    1. Load → members, expenses, splits of those expenses, settlements
    2. Compute → balances and suggested payments (offloaded when large)
    3. Audit → record the result, warn when it doesn't reconcile

    Results are never cached: every call recomputes from the full history.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[LedgerValidator] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._validator = validator or LedgerValidator()
        self._settings = get_settings().ledger

    async def load_snapshot(
        self,
        household_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> HouseholdSnapshot:
        """
        Fetch everything the engine needs for one household.

        Raises:
            StorageError: If any read fails (audited, then re-raised)
        """
        try:
            members = await self._storage.list_members(household_id)
            expenses = await self._storage.list_expenses(household_id)
            expense_ids = [expense.id for expense in expenses]
            splits = await self._storage.list_splits(expense_ids) if expense_ids else []
            settlements = await self._storage.list_settlements(household_id)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="load_snapshot",
                    error_message=str(e),
                    correlation_id=correlation_id or create_correlation_id(),
                )
            raise

        return HouseholdSnapshot(
            household_id=household_id,
            members=members,
            expenses=expenses,
            splits=splits,
            settlements=settlements,
        )

    async def compute(self, snapshot: HouseholdSnapshot) -> HouseholdBalances:
        """
        Compute balances for a snapshot.

        Large histories are computed in a worker thread so the event loop
        keeps serving other requests meanwhile.
        """
        if snapshot.record_count > self._settings.offload_threshold:
            return await asyncio.to_thread(compute_household_balances, snapshot)
        return compute_household_balances(snapshot)

    async def get_balances(
        self,
        household_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> HouseholdBalances:
        """
        Balances and suggested payments for a household.

        A result with residual `unreconciled` balances is still returned;
        it is audited as a warning so bad records can be tracked down.
        """
        correlation_id = correlation_id or create_correlation_id()

        snapshot = await self.load_snapshot(household_id, correlation_id)
        result = await self.compute(snapshot)

        if self._audit_logger:
            await self._audit_logger.log_balances_computed(
                household_id=household_id,
                member_count=len(result.balances),
                transfer_count=len(result.transfers),
                correlation_id=correlation_id,
            )
            if not result.is_reconciled:
                await self._audit_logger.log_balances_unreconciled(
                    household_id=household_id,
                    residuals={k: str(v) for k, v in result.unreconciled.items()},
                    correlation_id=correlation_id,
                )

        return result

    async def get_net_balances(self, household_id: str) -> dict:
        """Just the {member_id: net balance} mapping for a household."""
        snapshot = await self.load_snapshot(household_id)
        return compute_balances(
            snapshot.members,
            snapshot.expenses,
            snapshot.splits,
            snapshot.settlements,
        )

    async def get_member_summary(
        self,
        household_id: str,
        member_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> BalanceSummary:
        """
        Balance summary of one member (the dashboard card).

        Raises:
            NotFoundError: If the member doesn't belong to the household
        """
        correlation_id = correlation_id or create_correlation_id()
        snapshot = await self.load_snapshot(household_id, correlation_id)

        member = next((m for m in snapshot.members if m.id == member_id), None)
        if member is None:
            raise NotFoundError(
                f"Member {member_id} not found in household {household_id}"
            )

        summary = summarize_member(
            member,
            snapshot.expenses,
            snapshot.splits,
            snapshot.settlements,
        )

        if self._audit_logger:
            await self._audit_logger.log_member_summary(
                member_id=member_id,
                net_balance=str(summary.net_balance),
                correlation_id=correlation_id,
            )

        return summary

    async def get_ledger(
        self,
        household_id: str,
        search: Optional[str] = None,
        category: Optional[ExpenseCategory] = None,
        member_name: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[LedgerEntry]:
        """The household ledger, newest first, with optional filters."""
        correlation_id = correlation_id or create_correlation_id()
        snapshot = await self.load_snapshot(household_id, correlation_id)

        entries = filter_ledger(
            build_ledger(snapshot.expenses, snapshot.settlements, snapshot.members),
            search=search,
            category=category,
            member_name=member_name,
            date_from=date_from,
            date_to=date_to,
        )

        if self._audit_logger:
            filters = {
                "search": search,
                "category": category.value if category else None,
                "member_name": member_name,
                "date_from": date_from.isoformat() if date_from else None,
                "date_to": date_to.isoformat() if date_to else None,
            }
            await self._audit_logger.log_ledger_viewed(
                household_id=household_id,
                entry_count=len(entries),
                filters={k: v for k, v in filters.items() if v is not None},
                correlation_id=correlation_id,
            )

        return entries

    async def get_category_breakdown(self, household_id: str) -> list[CategoryTotal]:
        """Total spent per category for a household, largest first."""
        expenses = await self._storage.list_expenses(household_id)
        return category_breakdown(expenses)

    async def check_data_quality(self, household_id: str) -> list[ValidationIssue]:
        """
        Find stored expenses whose splits don't add up.

        Use this to explain a result that is not reconciled.
        """
        snapshot = await self.load_snapshot(household_id)
        return self._validator.check_split_totals(snapshot.expenses, snapshot.splits)

    async def review_expense(
        self,
        household_id: str,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """
        Validate a new expense against the household's members.

        On success the result carries the per-member shares to store
        alongside the expense.
        """
        correlation_id = correlation_id or create_correlation_id()
        members = await self._storage.list_members(household_id)
        result = self._validator.validate_expense(draft, members)
        await self._audit_rejection("expense", result, correlation_id)
        return result

    async def review_settlement(
        self,
        household_id: str,
        draft: SettlementDraft,
        correlation_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """Validate a new settlement against the household's members."""
        correlation_id = correlation_id or create_correlation_id()
        members = await self._storage.list_members(household_id)
        result = self._validator.validate_settlement(draft, members)
        await self._audit_rejection("settlement", result, correlation_id)
        return result

    async def _audit_rejection(
        self,
        entity_type: str,
        result: ValidationResult,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger and not result.is_valid:
            await self._audit_logger.log_validation_failed(
                entity_type=entity_type,
                issues=[issue.model_dump() for issue in result.issues],
                correlation_id=correlation_id,
            )


def create_balance_flow(
    storage: Optional[LedgerStorageInterface] = None,
) -> BalanceFlow:
    """
    Factory function to set up logging and build a BalanceFlow.

    Call once at application startup. Applies the LOG_LEVEL setting.

    Args:
        storage: Ledger storage to read from. If None, the household is
                read from Google Sheets and audit events are appended to
                the same spreadsheet; otherwise audit events are only
                logged locally.

    Raises:
        pydantic.ValidationError: If storage is None and the
            GOOGLE_SHEETS_ settings are missing
    """
    configure_logging(get_settings().app.log_level)

    if storage is None:
        sheets_client = GoogleSheetsClient()
        storage = GoogleSheetsLedgerStorage(sheets_client)
        audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
    else:
        audit_logger = AuditLogger()  # Local-only logging

    return BalanceFlow(storage, audit_logger=audit_logger)
