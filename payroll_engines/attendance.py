"""
payroll_engines.attendance -- Attendance counts and daily-mark summarisation.

Responsibility:
    Defines the ``Attendance`` counts the payroll engine prorates against and
    summarises raw daily attendance marks (Present / Absent / Late / Half Day
    / On Leave, with optional check-in and check-out times) into those
    counts plus hours worked and overtime hours.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - ``working_days = present + late`` is always derived, never stored.
    - Counts are non-negative and working days never exceed the period
      length (``Attendance.validate``).
    - One mark per calendar date in a summary.

Failure modes:
    - InvalidAttendanceError from ``Attendance.validate``.
    - ValueError from ``summarize_attendance`` on duplicate dates.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.money import ZERO, round_money
from payroll_kernel.exceptions import InvalidAttendanceError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.attendance")

STANDARD_DAY_HOURS = Decimal("8")
HALF_DAY_HOURS = Decimal("4")


class AttendanceStatus(str, Enum):
    """Daily attendance marks as recorded by the attendance source."""

    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"
    HALF_DAY = "Half Day"
    ON_LEAVE = "On Leave"


@dataclass(frozen=True)
class Attendance:
    """Monthly attendance counts for one employee."""

    present: int = 0
    absent: int = 0
    late: int = 0
    on_leave: int = 0

    @property
    def working_days(self) -> int:
        return self.present + self.late

    def validate(self, days_in_period: int) -> None:
        """
        Reject negative counts and working days beyond the period.

        Raises:
            InvalidAttendanceError
        """
        for name in ("present", "absent", "late", "on_leave"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidAttendanceError(name, value, "must be an integer")
            if value < 0:
                raise InvalidAttendanceError(name, value, "cannot be negative")
        if self.working_days > days_in_period:
            raise InvalidAttendanceError(
                "working_days",
                self.working_days,
                f"exceeds {days_in_period} days in period",
            )


@dataclass(frozen=True)
class DailyAttendance:
    """A single day's attendance mark."""

    work_date: date
    status: AttendanceStatus
    check_in: time | None = None
    check_out: time | None = None


@dataclass(frozen=True)
class AttendanceSummary:
    """Tallied attendance for a period, with hours worked and overtime."""

    present: int
    absent: int
    late: int
    half_day: int
    on_leave: int
    total_hours_worked: Decimal
    total_overtime_hours: Decimal

    @property
    def marked_days(self) -> int:
        return self.present + self.absent + self.late + self.half_day + self.on_leave

    def to_attendance(self) -> Attendance:
        """Counts used for proration. Half days are neither worked nor penalised."""
        return Attendance(
            present=self.present,
            absent=self.absent,
            late=self.late,
            on_leave=self.on_leave,
        )


def hours_between(check_in: time, check_out: time) -> Decimal:
    """Hours from check-in to check-out; a check-out before check-in wraps past midnight."""
    start = datetime.combine(date(2000, 1, 1), check_in)
    end = datetime.combine(date(2000, 1, 1), check_out)
    if end < start:
        end += timedelta(days=1)
    seconds = Decimal(int((end - start).total_seconds()))
    return seconds / Decimal("3600")


@traced_engine("attendance_summary", "1.0")
def summarize_attendance(
    days: Iterable[DailyAttendance],
    standard_day_hours: Decimal = STANDARD_DAY_HOURS,
) -> AttendanceSummary:
    """
    Tally daily marks into an ``AttendanceSummary``.

    Present and Late days contribute the hours between check-in and
    check-out (``standard_day_hours`` when either time is missing); hours
    beyond ``standard_day_hours`` count as overtime.  Half days contribute
    their recorded hours or four hours, never overtime.

    Raises:
        ValueError: two marks for the same date.
    """
    counts = {status: 0 for status in AttendanceStatus}
    hours_worked = ZERO
    overtime = ZERO
    seen: set[date] = set()

    for day in days:
        if day.work_date in seen:
            raise ValueError(f"Duplicate attendance mark for {day.work_date}")
        seen.add(day.work_date)
        status = AttendanceStatus(day.status)
        counts[status] += 1

        if status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE):
            if day.check_in is not None and day.check_out is not None:
                worked = hours_between(day.check_in, day.check_out)
            else:
                worked = standard_day_hours
            hours_worked += worked
            overtime += max(ZERO, worked - standard_day_hours)
        elif status == AttendanceStatus.HALF_DAY:
            if day.check_in is not None and day.check_out is not None:
                hours_worked += hours_between(day.check_in, day.check_out)
            else:
                hours_worked += HALF_DAY_HOURS

    summary = AttendanceSummary(
        present=counts[AttendanceStatus.PRESENT],
        absent=counts[AttendanceStatus.ABSENT],
        late=counts[AttendanceStatus.LATE],
        half_day=counts[AttendanceStatus.HALF_DAY],
        on_leave=counts[AttendanceStatus.ON_LEAVE],
        total_hours_worked=round_money(hours_worked),
        total_overtime_hours=round_money(overtime),
    )
    logger.debug(
        "attendance_summarized",
        extra={
            "marked_days": summary.marked_days,
            "present": summary.present,
            "late": summary.late,
            "absent": summary.absent,
            "half_day": summary.half_day,
            "on_leave": summary.on_leave,
            "overtime_hours": str(summary.total_overtime_hours),
        },
    )
    return summary
