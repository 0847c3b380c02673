"""
Audit Logger

DESIGN DECISION: Every balance computation is logged.
This provides:
1. Traceability ("why does it say I owe $42?")
2. A visible signal when a household's data doesn't reconcile
3. Debugging capability

The audit logger:
- Is async so it fits the flows that call it
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from housesplit.config import get_settings
from housesplit.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from housesplit.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: Optional[str] = None) -> None:
    """
    Route structured logs to stderr at the given level.

    Defaults to the LOG_LEVEL setting. Called once at startup by
    create_balance_flow().
    """
    level = level or get_settings().app.log_level
    logging.basicConfig(format="%(message)s")
    logging.getLogger().setLevel(getattr(logging, level.upper()))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, if one is configured (for persistence)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("housesplit.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_balances_computed(
        self,
        household_id: str,
        member_count: int,
        transfer_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log a completed balance computation."""
        event = AuditEventBuilder.balances_computed(
            household_id=household_id,
            member_count=member_count,
            transfer_count=transfer_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_balances_unreconciled(
        self,
        household_id: str,
        residuals: dict[str, str],
        correlation_id: UUID,
    ) -> None:
        """Log members left unsettled by the suggested payments."""
        event = AuditEventBuilder.balances_unreconciled(
            household_id=household_id,
            residuals=residuals,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_member_summary(
        self,
        member_id: str,
        net_balance: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.member_summary_computed(
            member_id=member_id,
            net_balance=net_balance,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_ledger_viewed(
        self,
        household_id: str,
        entry_count: int,
        filters: dict,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.ledger_viewed(
            household_id=household_id,
            entry_count=entry_count,
            filters=filters,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_validation_failed(
        self,
        entity_type: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log a rejected expense or settlement draft."""
        event = AuditEventBuilder.validation_failed(
            entity_type=entity_type,
            issues=issues,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., opening the
    balances page). Pass it through all subsequent operations.
    """
    return uuid4()
