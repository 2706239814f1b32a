"""
Data Models Package

This package contains all Pydantic models used in the Weekly Ledger system.
All data flowing through the system must conform to these schemas.
"""

from ledger.models.finance import (
    CalendarCell,
    CalendarCellType,
    ClosureAllocation,
    ClosureOutcome,
    DateWindow,
    FinanceCategory,
    FinanceProfile,
    FlowTotals,
    Granularity,
    PeriodRecord,
    SortKey,
    Transaction,
    TransactionDraft,
    TransactionOutcome,
    TransactionQuery,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    WalletState,
    WeeklyClosure,
    WeekRange,
    WeekStatus,
)
from ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "CalendarCell",
    "CalendarCellType",
    "ClosureAllocation",
    "ClosureOutcome",
    "DateWindow",
    "FinanceCategory",
    "FinanceProfile",
    "FlowTotals",
    "Granularity",
    "PeriodRecord",
    "SortKey",
    "Transaction",
    "TransactionDraft",
    "TransactionOutcome",
    "TransactionQuery",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "WalletState",
    "WeeklyClosure",
    "WeekRange",
    "WeekStatus",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
