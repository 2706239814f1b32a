"""
Core Data Models for Weekly Ledger

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Keep wallet and settings state explicit (passed in, returned updated)

DESIGN DECISION: Amounts are Decimal and always stored positive.
The sign of a movement comes from its type at aggregation time.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Kinds of money movement."""
    INCOME = "income"
    EXPENSE = "expense"
    INVESTMENT = "investment"


class Granularity(str, Enum):
    """Period size used by the time-series aggregator."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class DateWindow(str, Enum):
    """
    Date windows accepted by the transaction filter.

    WEEK restricts to one natural week of a month (see periods.weeks).
    """
    TODAY = "today"
    LAST_7D = "last7d"
    LAST_30D = "last30d"
    CUSTOM = "custom"
    WEEK = "week"


class SortKey(str, Enum):
    """Sort orders for filtered transaction lists."""
    DATE_ASC = "date_asc"
    DATE_DESC = "date_desc"
    AMOUNT_ASC = "amount_asc"
    AMOUNT_DESC = "amount_desc"


class CalendarCellType(str, Enum):
    """Which month a calendar grid cell belongs to."""
    PREV = "prev"
    CURRENT = "current"
    NEXT = "next"


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    Raw transaction input, as typed by the user.

    CRITICAL: This is UNVERIFIED data. It must pass the TransactionValidator
    before a Transaction is built from it. Amount and date are kept as text
    so that malformed input reaches the validator instead of failing here.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    draft_id: UUID = Field(default_factory=uuid4)
    type: Optional[str] = None
    amount: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None

    @field_validator('amount', 'date', 'type', mode='before')
    @classmethod
    def coerce_to_text(cls, v):
        """Accept Decimal/int/date/enum values and keep them as text."""
        if v is None:
            return v
        if isinstance(v, Enum):
            return v.value
        if isinstance(v, (dt.date, dt.datetime)):
            return v.isoformat()
        return str(v)


class Transaction(BaseModel):
    """
    A dated money movement in the ledger.

    The amount is always positive; `type` decides its effect.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    type: TransactionType
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Positive amount"
    )
    category: str = Field(
        default="",
        max_length=100,
        description="Category name, free text"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the movement"
    )
    created_at: dt.datetime = Field(default_factory=utcnow)

    @property
    def signed_amount(self) -> Decimal:
        """Effect on the running balance: income adds, everything else subtracts."""
        if self.type == TransactionType.INCOME:
            return self.amount
        return -self.amount


class WeeklyClosure(BaseModel):
    """
    A week's locked-in ratio allocation.

    At most one may exist per (week_number, month, year); the ClosureEngine
    enforces this, not the store.
    """

    id: UUID = Field(default_factory=uuid4)
    week_number: int = Field(..., ge=1, le=6)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1)
    net_amount: Decimal
    assigned_expenses: Decimal
    assigned_investments: Decimal
    created_at: dt.datetime = Field(default_factory=utcnow)

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.week_number, self.month, self.year)


class FinanceCategory(BaseModel):
    """A user-defined category label for transactions."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(default="category", max_length=50)
    color: str = Field(default="gray", max_length=30)


# =============================================================================
# WALLET AND SETTINGS STATE
# =============================================================================

class WalletState(BaseModel):
    """
    The two running balances.

    Either may go negative (reopening a week, investing beyond allocation).
    Immutable: adjustments return a new value.
    """
    model_config = ConfigDict(frozen=True)

    expenses: Decimal = Decimal("0")
    investments: Decimal = Decimal("0")


class FinanceProfile(BaseModel):
    """
    Per-user finance settings plus wallet balances.

    This is the value threaded through every write operation and
    returned updated; there is no hidden shared state.
    """
    model_config = ConfigDict(frozen=True)

    ratio_limit: int = Field(default=30, ge=1, le=100)
    wallet: WalletState = Field(default_factory=WalletState)

    @property
    def investment_ratio(self) -> int:
        return 100 - self.ratio_limit

    def with_wallet(self, wallet: WalletState) -> "FinanceProfile":
        return self.model_copy(update={"wallet": wallet})


# =============================================================================
# PERIODS AND VIEW RECORDS
# =============================================================================

class WeekRange(BaseModel):
    """One natural week of a month: [start_day, end_day], 1-based id."""
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1)
    start_day: int = Field(..., ge=1, le=31)
    end_day: int = Field(..., ge=1, le=31)

    @model_validator(mode='after')
    def validate_bounds(self) -> 'WeekRange':
        if self.end_day < self.start_day:
            raise ValueError("Week end cannot be before start")
        return self

    def contains(self, day: int) -> bool:
        return self.start_day <= day <= self.end_day

    def date_bounds(self, month: int, year: int) -> tuple[dt.date, dt.date]:
        return dt.date(year, month, self.start_day), dt.date(year, month, self.end_day)


class FlowTotals(BaseModel):
    """Income/expense/investment sums over some set of transactions."""
    model_config = ConfigDict(frozen=True)

    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    investment: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expense - self.investment

    @property
    def is_empty(self) -> bool:
        return not (self.income or self.expense or self.investment)


class ClosureAllocation(BaseModel):
    """Result of the ratio split for one week, before persistence."""
    model_config = ConfigDict(frozen=True)

    totals: FlowTotals
    ratio_limit: int
    assigned_expenses: Decimal
    assigned_investments: Decimal

    @property
    def net_amount(self) -> Decimal:
        return self.totals.net


class WeekStatus(BaseModel):
    """A natural week together with its closure state, for display."""

    week: WeekRange
    month: int
    year: int
    closure: Optional[WeeklyClosure] = None
    is_current: bool = False

    @property
    def is_closed(self) -> bool:
        return self.closure is not None


class PeriodRecord(BaseModel):
    """One bucket of the time series."""

    label: str
    start: dt.date
    end: dt.date
    income: Decimal
    expense: Decimal
    investment: Decimal
    period_net: Decimal
    cumulative_balance: Decimal
    moving_average: Decimal


class CalendarCell(BaseModel):
    """One cell of the 6x7 Monday-first month grid."""

    day: int = Field(..., ge=1, le=31)
    cell_type: CalendarCellType
    date: Optional[dt.date] = None
    totals: Optional[FlowTotals] = None


class TransactionQuery(BaseModel):
    """
    Criteria for exploring transactions.

    Absent criteria match everything. `category` is either a category name
    or one of the transaction types, in which case it matches the type.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    text: Optional[str] = None
    category: Optional[str] = None
    date_window: Optional[DateWindow] = None
    custom_start: Optional[dt.date] = None
    custom_end: Optional[dt.date] = None
    week_id: Optional[int] = Field(default=None, ge=1)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = None
    sort_by: SortKey = SortKey.DATE_DESC

    @model_validator(mode='after')
    def validate_window(self) -> 'TransactionQuery':
        if self.date_window == DateWindow.CUSTOM:
            if self.custom_start is None or self.custom_end is None:
                raise ValueError("Custom window needs both start and end")
        if self.date_window == DateWindow.WEEK:
            if self.week_id is None or self.month is None or self.year is None:
                raise ValueError("Week window needs week_id, month and year")
        return self


# =============================================================================
# OPERATION OUTCOMES
# =============================================================================

class ClosureOutcome(BaseModel):
    """What a close/reopen did: the closure record and the updated profile."""

    closure: WeeklyClosure
    profile: FinanceProfile


class TransactionOutcome(BaseModel):
    """What a create/delete did: the transaction and the updated profile."""

    transaction: Transaction
    profile: FinanceProfile


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (types, required fields)
    Stage 2: Semantic validation (plausibility checks, warnings only)
    """

    draft_id: UUID
    validated_at: dt.datetime = Field(default_factory=utcnow)

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    # Populated only when the draft is valid
    transaction: Optional[Transaction] = None

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")


