"""
Module: payroll_engines
Responsibility:
    Package entrypoint that re-exports the pure payroll calculators.  This
    is the canonical import surface for ``payroll_modules`` and
    ``payroll_services``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel, payroll_config and sibling engines.
    MUST NOT import payroll_services or payroll_modules.

Invariants enforced:
    - Purity: engines never read the clock; identical inputs always produce
      identical outputs.
    - Decimal-only arithmetic with ROUND_HALF_UP.

Audit relevance:
    Every engine invocation is traced via ``@traced_engine`` (see
    ``payroll_engines.tracer``), emitting PAYROLL_ENGINE_TRACE log records.

Usage:
    from payroll_engines import ProrationCalculator, EarningsAggregator
    from payroll_engines import DeductionAggregator, NetSalaryResolver
"""

from payroll_kernel.logging_config import get_logger

logger = get_logger("engines")

from payroll_engines.attendance import (
    Attendance,
    AttendanceStatus,
    AttendanceSummary,
    DailyAttendance,
    summarize_attendance,
)
from payroll_engines.deductions import (
    DeductionAggregator,
    DeductionResult,
    StatutoryDeductionLine,
)
from payroll_engines.diagnostics import ComputationWarning
from payroll_engines.earnings import (
    AllowanceLine,
    EarningsAggregator,
    EarningsResult,
    Overtime,
    overtime_amount,
)
from payroll_engines.net import NetSalaryResolver
from payroll_engines.proration import (
    ProrationCalculator,
    ProrationResult,
    business_days,
    calendar_days,
)

__all__ = [
    "AllowanceLine",
    "Attendance",
    "AttendanceStatus",
    "AttendanceSummary",
    "ComputationWarning",
    "DailyAttendance",
    "DeductionAggregator",
    "DeductionResult",
    "EarningsAggregator",
    "EarningsResult",
    "NetSalaryResolver",
    "Overtime",
    "ProrationCalculator",
    "ProrationResult",
    "StatutoryDeductionLine",
    "business_days",
    "calendar_days",
    "overtime_amount",
    "summarize_attendance",
]

logger.debug("engines_package_loaded", extra={
    "module_count": 6,
    "modules": [
        "attendance", "proration", "earnings", "deductions", "net", "diagnostics",
    ],
})
