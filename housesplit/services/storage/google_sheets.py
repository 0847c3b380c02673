"""
Google Sheets Storage Implementation

DESIGN DECISION: A household's records can live in a Google Sheets
spreadsheet, one worksheet per record type:
1. Non-technical households can view and fix their data directly in Sheets
2. No database setup required
3. Easy to export/migrate later

TRADEOFFS:
- Every read fetches the whole worksheet (fine for household-sized data)
- Filtering by household happens in Python
- Rows that don't parse are skipped and logged, so one bad cell doesn't
  hide a household's balances

Ledger worksheets are only read here. The audit worksheet is appended to.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional, Sequence, TypeVar
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from housesplit.config import get_settings
from housesplit.models.audit import AuditEvent, AuditEventType, AuditSeverity
from housesplit.models.ledger import (
    Expense,
    ExpenseCategory,
    ExpenseSplit,
    Member,
    MemberRole,
    Settlement,
)
from housesplit.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger(__name__)

T = TypeVar("T")


MEMBER_COLUMNS = [
    "id",
    "household_id",
    "display_name",
    "role",
]

EXPENSE_COLUMNS = [
    "id",
    "household_id",
    "description",
    "amount_total",
    "category",
    "payer_member_id",
    "expense_date",
    "created_at",
]

SPLIT_COLUMNS = [
    "id",
    "expense_id",
    "member_id",
    "amount_owed",
]

SETTLEMENT_COLUMNS = [
    "id",
    "household_id",
    "from_member_id",
    "to_member_id",
    "amount",
    "date",
    "note",
    "created_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
]


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def _optional_datetime(value: str) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @property
    def settings(self):
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        Ledger access only needs read scope; the audit log needs write.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(
        self,
        title: str,
        create_with_columns: Optional[list[str]] = None,
    ) -> gspread.Worksheet:
        """
        Get a worksheet by title.

        If it doesn't exist and create_with_columns is given, it is created
        with that header row; otherwise NotFoundError is raised.
        """
        spreadsheet = self.get_spreadsheet()
        try:
            return spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            if create_with_columns is None:
                raise NotFoundError(f"Worksheet not found: {title}")
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=5000,
                cols=len(create_with_columns),
            )
            sheet.append_row(create_with_columns)
            return sheet

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self.get_worksheet(
            self._settings.audit_sheet_name,
            create_with_columns=AUDIT_COLUMNS,
        )


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of ledger storage.

    One record per row, header in row 1. Amounts are stored as plain
    decimal strings ("42.50") and dates as ISO strings.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_member(self, r: dict) -> Member:
        return Member(
            id=r["id"],
            household_id=r.get("household_id") or None,
            display_name=r.get("display_name", ""),
            role=MemberRole(r.get("role") or MemberRole.MEMBER.value),
        )

    def _row_to_expense(self, r: dict) -> Expense:
        return Expense(
            id=r["id"],
            household_id=r["household_id"],
            description=r.get("description", ""),
            amount_total=Decimal(r["amount_total"]),
            category=ExpenseCategory(r.get("category") or ExpenseCategory.OTHER.value),
            payer_member_id=r["payer_member_id"],
            expense_date=date.fromisoformat(r["expense_date"]),
            created_at=_optional_datetime(r.get("created_at", "")),
        )

    def _row_to_split(self, r: dict) -> ExpenseSplit:
        return ExpenseSplit(
            id=r.get("id") or None,
            expense_id=r["expense_id"],
            member_id=r["member_id"],
            amount_owed=Decimal(r["amount_owed"]),
        )

    def _row_to_settlement(self, r: dict) -> Settlement:
        return Settlement(
            id=r["id"],
            household_id=r["household_id"],
            from_member_id=r["from_member_id"],
            to_member_id=r["to_member_id"],
            amount=Decimal(r["amount"]),
            date=date.fromisoformat(r["date"]),
            note=r.get("note") or None,
            created_at=_optional_datetime(r.get("created_at", "")),
        )

    @retry(
        retry=retry_if_not_exception_type(NotFoundError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _fetch_rows(self, sheet_name: str) -> list[list]:
        """Fetch all data rows of a worksheet (header excluded)."""
        try:
            sheet = self._client.get_worksheet(sheet_name)
            return sheet.get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {sheet_name}: {e}")

    def _read_records(
        self,
        sheet_name: str,
        columns: list[str],
        parse: Callable[[dict], T],
    ) -> list[T]:
        """
        Read and parse every data row of a worksheet.

        Cells are matched to `columns` by position. Blank rows are ignored;
        rows that fail to parse are logged and skipped.
        """
        records = []
        for row_number, row in enumerate(self._fetch_rows(sheet_name), start=2):
            if not any(row):
                continue
            try:
                records.append(parse(dict(zip(columns, row))))
            except Exception as e:
                logger.warning(
                    "sheet_row_skipped",
                    sheet=sheet_name,
                    row=row_number,
                    error=str(e),
                )
        return records

    async def list_members(self, household_id: str) -> list[Member]:
        members = self._read_records(
            self._client.settings.members_sheet_name,
            MEMBER_COLUMNS,
            self._row_to_member,
        )
        return [m for m in members if m.household_id == household_id]

    async def list_expenses(self, household_id: str) -> list[Expense]:
        expenses = self._read_records(
            self._client.settings.expenses_sheet_name,
            EXPENSE_COLUMNS,
            self._row_to_expense,
        )
        expenses = [e for e in expenses if e.household_id == household_id]
        expenses.sort(key=lambda e: e.expense_date, reverse=True)
        return expenses

    async def list_splits(self, expense_ids: Sequence[str]) -> list[ExpenseSplit]:
        if not expense_ids:
            return []
        wanted = set(expense_ids)
        splits = self._read_records(
            self._client.settings.splits_sheet_name,
            SPLIT_COLUMNS,
            self._row_to_split,
        )
        return [s for s in splits if s.expense_id in wanted]

    async def list_settlements(self, household_id: str) -> list[Settlement]:
        settlements = self._read_records(
            self._client.settings.settlements_sheet_name,
            SETTLEMENT_COLUMNS,
            self._row_to_settlement,
        )
        settlements = [s for s in settlements if s.household_id == household_id]
        settlements.sort(key=lambda s: s.date, reverse=True)
        return settlements


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            entity_type=_cell(row, 4) or None,
            entity_id=_cell(row, 5) or None,
            correlation_id=UUID(_cell(row, 6)) if _cell(row, 6) else None,
            description=_cell(row, 7),
            details=json.loads(_cell(row, 8)) if _cell(row, 8) else {},
            error_message=_cell(row, 9) or None,
        )

    def _read_events(self) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except Exception as e:
                    logger.warning("audit_row_skipped", error=str(e))
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID, oldest first."""
        events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        events = self._read_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
