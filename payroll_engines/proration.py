"""
payroll_engines.proration -- Attendance proration factor and period arithmetic.

Responsibility:
    Compute the proration factor that scales every baseline-derived salary
    component, and the calendar helpers (days in month, business days) that
    define a period's length.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - ``floor <= factor <= 1`` for every valid input.
    - ``working_days == 0`` yields ``factor == floor`` exactly, never 0.
    - The factor is quantized (ROUND_HALF_UP) before the floor is applied,
      so a payslip shows the same factor the amounts were derived from.

Failure modes:
    - InvalidPeriodError: ``days_in_period <= 0`` or month outside 1..12.
    - InvalidAttendanceError: negative counts, working days beyond period.

Usage:
    from payroll_engines.proration import ProrationCalculator

    result = ProrationCalculator().calculate(
        attendance=Attendance(present=27, late=1, absent=1, on_leave=1),
        days_in_period=30,
        floor=Decimal("0.1"),
    )
    result.factor  # Decimal("0.9333")
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from payroll_engines.attendance import Attendance
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.money import DEFAULT_ROUNDING
from payroll_kernel.exceptions import InvalidPeriodError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.proration")

DEFAULT_WEEKEND = (5, 6)  # Saturday, Sunday


def calendar_days(month: int, year: int) -> int:
    """Number of days in the given month."""
    if not 1 <= month <= 12:
        raise InvalidPeriodError(f"month must be in 1..12, got {month}")
    return calendar.monthrange(year, month)[1]


def business_days(
    month: int,
    year: int,
    weekend: tuple[int, ...] = DEFAULT_WEEKEND,
) -> int:
    """Weekdays in the month, excluding the ``weekend`` weekday numbers (Mon=0)."""
    total = calendar_days(month, year)
    first = date(year, month, 1)
    return sum(
        1
        for offset in range(total)
        if (first + timedelta(days=offset)).weekday() not in weekend
    )


@dataclass(frozen=True)
class ProrationResult:
    """Factor plus the inputs that produced it."""

    working_days: int
    days_in_period: int
    raw_factor: Decimal
    factor: Decimal

    @property
    def floor_applied(self) -> bool:
        return self.factor > self.raw_factor


class ProrationCalculator:
    """
    Computes ``factor = max(working_days / days_in_period, floor)``.

    Stateless; one instance may be shared across threads.
    """

    @traced_engine(
        "proration", "1.0",
        fingerprint_fields=("attendance", "days_in_period", "floor", "places"),
    )
    def calculate(
        self,
        attendance: Attendance,
        days_in_period: int,
        floor: Decimal,
        places: int | None = 4,
    ) -> ProrationResult:
        if days_in_period is None or days_in_period <= 0:
            raise InvalidPeriodError(
                "days_in_period must be positive", days_in_period=days_in_period
            )
        attendance.validate(days_in_period)

        raw = Decimal(attendance.working_days) / Decimal(days_in_period)
        if places is not None:
            raw = raw.quantize(Decimal(1).scaleb(-places), rounding=DEFAULT_ROUNDING)
        factor = max(raw, floor)

        result = ProrationResult(
            working_days=attendance.working_days,
            days_in_period=days_in_period,
            raw_factor=raw,
            factor=factor,
        )
        if result.floor_applied:
            logger.info(
                "proration_floor_applied",
                extra={
                    "working_days": attendance.working_days,
                    "days_in_period": days_in_period,
                    "raw_factor": str(raw),
                    "floor": str(floor),
                },
            )
        return result

    def factor(
        self,
        attendance: Attendance,
        days_in_period: int,
        floor: Decimal,
        places: int | None = 4,
    ) -> Decimal:
        """Shorthand returning only the factor."""
        return self.calculate(
            attendance=attendance,
            days_in_period=days_in_period,
            floor=floor,
            places=places,
        ).factor
