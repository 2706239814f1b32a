"""
Audit Logger

DESIGN DECISION: Every write to the ledger or the wallets is logged.
This provides:
1. Complete traceability of wallet movements
2. Debugging capability
3. The history needed to reconcile by hand after a ConsistencyError

The audit logger:
- Is async to not block main flow
- Reports audit-store failures loudly in the local log without failing
  the ledger operation that already completed
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from ledger.models.audit import AuditEvent, AuditEventBuilder
from ledger.models.finance import WalletState
from ledger.services.storage import AuditStorageInterface


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


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit store (for persistence and user visibility)
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
        self._logger = structlog.get_logger("ledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # The ledger write this event describes has already happened
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_created(
        self,
        transaction_id: UUID,
        tx_type: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            tx_type=tx_type,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_transaction_deleted(
        self,
        transaction_id: UUID,
        tx_type: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            tx_type=tx_type,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_transaction_rejected(
        self,
        draft_id: UUID,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_rejected(
            draft_id=draft_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_week_closed(
        self,
        closure_id: UUID,
        week_number: int,
        month: int,
        year: int,
        assigned_expenses: str,
        assigned_investments: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.week_closed(
            closure_id=closure_id,
            week_number=week_number,
            month=month,
            year=year,
            assigned_expenses=assigned_expenses,
            assigned_investments=assigned_investments,
            correlation_id=correlation_id,
        ))

    async def log_week_close_rejected(
        self,
        week_number: int,
        month: int,
        year: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.week_close_rejected(
            week_number=week_number,
            month=month,
            year=year,
            correlation_id=correlation_id,
        ))

    async def log_week_reopened(
        self,
        closure_id: UUID,
        week_number: int,
        month: int,
        year: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.week_reopened(
            closure_id=closure_id,
            week_number=week_number,
            month=month,
            year=year,
            correlation_id=correlation_id,
        ))

    async def log_wallet_adjusted(
        self,
        before: WalletState,
        after: WalletState,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.wallet_adjusted(
            expenses_before=str(before.expenses),
            investments_before=str(before.investments),
            expenses_after=str(after.expenses),
            investments_after=str(after.investments),
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_ratio_limit_updated(
        self,
        old_value: int,
        new_value: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.ratio_limit_updated(
            old_value=old_value,
            new_value=new_value,
            correlation_id=correlation_id,
        ))

    async def log_category_created(
        self,
        category_id: UUID,
        name: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.category_created(
            category_id=category_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_category_deleted(
        self,
        category_id: UUID,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.category_deleted(
            category_id=category_id,
            correlation_id=correlation_id,
        ))

    async def log_persistence_failed(
        self,
        operation: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.persistence_failed(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_compensation_applied(
        self,
        operation: str,
        entity_type: str,
        entity_id: UUID,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.compensation_applied(
            operation=operation,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
        ))

    async def log_consistency_error(
        self,
        operation: str,
        entity_type: str,
        entity_id: UUID,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.consistency_error(
            operation=operation,
            entity_type=entity_type,
            entity_id=entity_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., closing a week).
    Pass it through all subsequent operations.
    """
    return uuid4()
