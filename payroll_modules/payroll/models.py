"""
Payroll Domain Models (``payroll_modules.payroll.models``).

Responsibility
--------------
Frozen dataclass value objects representing the nouns of monthly payroll:
the pay period, the payroll record with its editable inputs and payment
fields, the derived breakdown, the caller's authorization context and the
admin override audit entries.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by
``RecalculationService`` and ``PayrollRecordStore``.

Invariants enforced
-------------------
* All models are ``frozen=True``; every change produces a new record.
  Amount maps on a record are read-only copies of what the caller passed.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``gross_salary``, ``total_deductions`` and ``net_salary`` are read-only
  views of the breakdown; they cannot be set on their own.
* Derived fields are never part of ``INPUT_FIELDS``.

Audit relevance
---------------
* ``admin_override_log`` is append-only: every override of a locked
  record adds exactly one ``AdminOverrideEntry``.
* ``version`` increases by one on every mutation and backs the
  optimistic lock in the record store.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from uuid import UUID, uuid4

from payroll_engines.attendance import Attendance
from payroll_engines.deductions import StatutoryDeductionLine
from payroll_engines.diagnostics import ComputationWarning
from payroll_engines.earnings import AllowanceLine, Overtime
from payroll_engines.proration import DEFAULT_WEEKEND, business_days, calendar_days
from payroll_kernel.exceptions import InvalidPeriodError
from payroll_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.models")


class PaymentStatus(str, Enum):
    """Payment lifecycle states."""
    PENDING = "Pending"
    PROCESSING = "Processing"
    PAID = "Paid"
    FAILED = "Failed"


class PaymentMethod(str, Enum):
    """How a salary was paid out."""
    BANK_TRANSFER = "Bank Transfer"
    CASH = "Cash"
    CHECK = "Check"
    OTHER = "Other"


@dataclass(frozen=True)
class PayrollPeriod:
    """A calendar month."""
    month: int
    year: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise InvalidPeriodError(f"month must be in 1..12, got {self.month}")
        if self.year < 1:
            raise InvalidPeriodError(f"year must be positive, got {self.year}")

    @property
    def calendar_days(self) -> int:
        return calendar_days(self.month, self.year)

    def business_days(self, weekend: tuple[int, ...] = DEFAULT_WEEKEND) -> int:
        return business_days(self.month, self.year, weekend)

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class AuthContext:
    """
    Who is acting, and whether they assert an admin override.

    Passed explicitly into every lifecycle call.
    """
    actor_id: UUID
    is_admin_override: bool = False
    reason: str | None = None


@dataclass(frozen=True)
class AdminOverrideEntry:
    """One audited use of an admin override."""
    timestamp: datetime
    actor_id: UUID
    action: str
    from_status: PaymentStatus | None = None
    to_status: PaymentStatus | None = None
    changed_fields: tuple[str, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class PayrollBreakdown:
    """Every derived amount of a payroll computation."""
    factor: Decimal
    working_days: int
    days_in_period: int
    baseline_salary: Decimal
    prorated_basic: Decimal
    allowances: tuple[AllowanceLine, ...]
    bonus: Decimal
    overtime_amount: Decimal
    statutory: tuple[StatutoryDeductionLine, ...]
    absent_penalty: Decimal
    late_penalty: Decimal
    leave_deduction: Decimal
    discretionary: tuple[tuple[str, Decimal], ...]
    gross_salary: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    warnings: tuple[ComputationWarning, ...] = ()
    settings_checksum: str = ""

    @property
    def allowance_amounts(self) -> dict[str, Decimal]:
        return {line.name: line.amount for line in self.allowances}

    @property
    def statutory_amounts(self) -> dict[str, Decimal]:
        return {line.name: line.value for line in self.statutory}

    @property
    def warning_codes(self) -> tuple[str, ...]:
        return tuple(w.code for w in self.warnings)


# Fields a caller may change with ``apply_edit``.  Everything else is
# identity, lifecycle-managed, or derived.
INPUT_FIELDS: frozenset[str] = frozenset({
    "attendance",
    "baseline_salary",
    "fixed_allowances",
    "bonus",
    "overtime",
    "statutory_overrides",
    "discretionary_deductions",
    "days_in_period",
    "payment_method",
    "remarks",
})


AMOUNT_MAP_FIELDS: tuple[str, ...] = (
    "fixed_allowances",
    "statutory_overrides",
    "discretionary_deductions",
)


@dataclass(frozen=True)
class PayrollRecord:
    """A monthly payroll record for one employee."""
    employee_id: str
    period: PayrollPeriod
    attendance: Attendance = field(default_factory=Attendance)
    baseline_salary: Decimal | None = None
    fixed_allowances: Mapping[str, Decimal] = field(default_factory=dict)
    bonus: Decimal = Decimal("0")
    overtime: Overtime | None = None
    statutory_overrides: Mapping[str, Decimal] = field(default_factory=dict)
    discretionary_deductions: Mapping[str, Decimal] = field(default_factory=dict)
    days_in_period: int | None = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: PaymentMethod | None = None
    payment_date: date | None = None
    transaction_id: str | None = None
    remarks: str | None = None
    admin_override_log: tuple[AdminOverrideEntry, ...] = ()
    version: int = 1
    breakdown: PayrollBreakdown | None = None
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self):
        # Read-only copies; the caller keeps no handle on record inputs.
        for name in AMOUNT_MAP_FIELDS:
            object.__setattr__(
                self, name, MappingProxyType(dict(getattr(self, name) or {}))
            )

    @property
    def effective_days_in_period(self) -> int:
        if self.days_in_period is not None:
            return self.days_in_period
        return self.period.calendar_days

    @property
    def gross_salary(self) -> Decimal | None:
        return None if self.breakdown is None else self.breakdown.gross_salary

    @property
    def total_deductions(self) -> Decimal | None:
        return None if self.breakdown is None else self.breakdown.total_deductions

    @property
    def net_salary(self) -> Decimal | None:
        return None if self.breakdown is None else self.breakdown.net_salary
