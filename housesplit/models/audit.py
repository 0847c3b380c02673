"""
Audit Models for HouseSplit

Every balance computation and every rejected input is logged for audit
purposes. This lets a household answer "why does the app say I owe $42?"
after the fact, and points at bad data when a plan doesn't reconcile.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Balance engine
    BALANCES_COMPUTED = "balances_computed"
    BALANCES_UNRECONCILED = "balances_unreconciled"
    MEMBER_SUMMARY_COMPUTED = "member_summary_computed"

    # Reports
    LEDGER_VIEWED = "ledger_viewed"

    # Input validation
    VALIDATION_FAILED = "validation_failed"

    # System events
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which household or member is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'household', 'member', 'expense')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one balances page load)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.balances_computed(household_id, 3, 2, correlation_id)
    """

    @staticmethod
    def balances_computed(
        household_id: str,
        member_count: int,
        transfer_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCES_COMPUTED,
            entity_type="household",
            entity_id=household_id,
            correlation_id=correlation_id,
            description=(
                f"Balances computed for {member_count} members, "
                f"{transfer_count} suggested payments"
            ),
            details={
                "member_count": member_count,
                "transfer_count": transfer_count,
            },
        )

    @staticmethod
    def balances_unreconciled(
        household_id: str,
        residuals: dict[str, str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCES_UNRECONCILED,
            severity=AuditSeverity.WARNING,
            entity_type="household",
            entity_id=household_id,
            correlation_id=correlation_id,
            description=(
                f"Suggested payments leave {len(residuals)} members unsettled"
            ),
            details={
                "residuals": residuals,
            },
        )

    @staticmethod
    def member_summary_computed(
        member_id: str,
        net_balance: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MEMBER_SUMMARY_COMPUTED,
            entity_type="member",
            entity_id=member_id,
            correlation_id=correlation_id,
            description=f"Member summary computed: net {net_balance}",
            details={
                "net_balance": net_balance,
            },
        )

    @staticmethod
    def ledger_viewed(
        household_id: str,
        entry_count: int,
        filters: dict,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_VIEWED,
            severity=AuditSeverity.DEBUG,
            entity_type="household",
            entity_id=household_id,
            correlation_id=correlation_id,
            description=f"Ledger listed {entry_count} entries",
            details={
                "entry_count": entry_count,
                "filters": filters,
            },
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
            correlation_id=correlation_id,
        )
