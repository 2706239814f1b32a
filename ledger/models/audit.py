"""
Audit Models for Weekly Ledger

Every write to the ledger or the wallets is logged for audit purposes.
This provides:
1. Complete traceability of wallet movements
2. Debugging information when things go wrong
3. The raw material for manual reconciliation after a ConsistencyError

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every ledger write and wallet adjustment has its own event type.
    """
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_REJECTED = "transaction_rejected"

    # Weekly closures
    WEEK_CLOSED = "week_closed"
    WEEK_CLOSE_REJECTED = "week_close_rejected"
    WEEK_REOPENED = "week_reopened"

    # Wallets and settings
    WALLET_ADJUSTED = "wallet_adjusted"
    RATIO_LIMIT_UPDATED = "ratio_limit_updated"

    # Categories
    CATEGORY_CREATED = "category_created"
    CATEGORY_DELETED = "category_deleted"

    # Failures
    PERSISTENCE_FAILED = "persistence_failed"
    COMPENSATION_APPLIED = "compensation_applied"
    CONSISTENCY_ERROR = "consistency_error"


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
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'closure', 'wallet')"
    )
    entity_id: Optional[UUID] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events of one week close)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

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
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.week_reopened(closure.id, 2, 2, 2024, correlation_id)
        event = AuditEventBuilder.category_deleted(category.id, correlation_id)
    """

    @staticmethod
    def transaction_created(
        transaction_id: UUID,
        tx_type: str,
        amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction recorded: {tx_type} {amount}",
            details={
                "type": tx_type,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: UUID,
        tx_type: str,
        amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction deleted: {tx_type} {amount}",
            details={
                "type": tx_type,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_rejected(
        draft_id: UUID,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="draft",
            entity_id=draft_id,
            correlation_id=correlation_id,
            description=f"Transaction rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def week_closed(
        closure_id: UUID,
        week_number: int,
        month: int,
        year: int,
        assigned_expenses: str,
        assigned_investments: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WEEK_CLOSED,
            entity_type="closure",
            entity_id=closure_id,
            correlation_id=correlation_id,
            description=f"Week {week_number} of {year}-{month:02d} closed",
            details={
                "week_number": week_number,
                "month": month,
                "year": year,
                "assigned_expenses": assigned_expenses,
                "assigned_investments": assigned_investments,
            },
            is_user_action=True,
        )

    @staticmethod
    def week_close_rejected(
        week_number: int,
        month: int,
        year: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WEEK_CLOSE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="closure",
            correlation_id=correlation_id,
            description=f"Week {week_number} of {year}-{month:02d} is already closed",
            details={
                "week_number": week_number,
                "month": month,
                "year": year,
            },
            is_user_action=True,
        )

    @staticmethod
    def week_reopened(
        closure_id: UUID,
        week_number: int,
        month: int,
        year: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WEEK_REOPENED,
            entity_type="closure",
            entity_id=closure_id,
            correlation_id=correlation_id,
            description=f"Week {week_number} of {year}-{month:02d} reopened",
            details={
                "week_number": week_number,
                "month": month,
                "year": year,
            },
            is_user_action=True,
        )

    @staticmethod
    def wallet_adjusted(
        expenses_before: str,
        investments_before: str,
        expenses_after: str,
        investments_after: str,
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WALLET_ADJUSTED,
            entity_type="wallet",
            correlation_id=correlation_id,
            description=f"Wallet adjusted ({reason})",
            details={
                "reason": reason,
                "expenses_before": expenses_before,
                "investments_before": investments_before,
                "expenses_after": expenses_after,
                "investments_after": investments_after,
            },
        )

    @staticmethod
    def ratio_limit_updated(
        old_value: int,
        new_value: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATIO_LIMIT_UPDATED,
            entity_type="profile",
            correlation_id=correlation_id,
            description=f"Ratio limit changed from {old_value}% to {new_value}%",
            details={
                "old_value": old_value,
                "new_value": new_value,
            },
            is_user_action=True,
        )

    @staticmethod
    def category_created(
        category_id: UUID,
        name: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_CREATED,
            entity_type="category",
            entity_id=category_id,
            correlation_id=correlation_id,
            description=f"Category created: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def category_deleted(
        category_id: UUID,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            entity_type="category",
            entity_id=category_id,
            correlation_id=correlation_id,
            description="Category deleted",
            is_user_action=True,
        )

    @staticmethod
    def persistence_failed(
        operation: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Store call failed during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )

    @staticmethod
    def compensation_applied(
        operation: str,
        entity_type: str,
        entity_id: UUID,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMPENSATION_APPLIED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Ledger write undone after wallet write failed ({operation})",
            details={"operation": operation},
        )

    @staticmethod
    def consistency_error(
        operation: str,
        entity_type: str,
        entity_id: UUID,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONSISTENCY_ERROR,
            severity=AuditSeverity.CRITICAL,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Wallet and ledger diverged during {operation}; manual reconciliation needed",
            error_message=error_message,
            details={"operation": operation},
        )
