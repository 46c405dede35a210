"""
Plain-data conversion for payroll value objects.

Used by the ORM layer (JSON text columns) and the preview CLI.  Decimals
are written as strings so values survive a round trip exactly.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from payroll_engines.attendance import Attendance
from payroll_engines.deductions import StatutoryDeductionLine
from payroll_engines.diagnostics import ComputationWarning
from payroll_engines.earnings import AllowanceLine, Overtime
from payroll_modules.payroll.models import (
    AdminOverrideEntry,
    PaymentStatus,
    PayrollBreakdown,
)


def _s(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def _d(value: Any) -> Decimal | None:
    return None if value is None else Decimal(str(value))


def amounts_to_dict(amounts: Mapping[str, Decimal]) -> dict[str, str]:
    return {name: str(amount) for name, amount in sorted(amounts.items())}


def amounts_from_dict(data: dict[str, Any] | None) -> dict[str, Decimal]:
    return {name: Decimal(str(amount)) for name, amount in (data or {}).items()}


def attendance_to_dict(attendance: Attendance) -> dict[str, int]:
    return {
        "present": attendance.present,
        "absent": attendance.absent,
        "late": attendance.late,
        "on_leave": attendance.on_leave,
    }


def attendance_from_dict(data: dict[str, Any]) -> Attendance:
    return Attendance(
        present=int(data.get("present", 0)),
        absent=int(data.get("absent", 0)),
        late=int(data.get("late", 0)),
        on_leave=int(data.get("on_leave", 0)),
    )


def overtime_to_dict(overtime: Overtime | None) -> dict[str, str | None] | None:
    if overtime is None:
        return None
    return {
        "hours": _s(overtime.hours),
        "hourly_rate_multiplier": _s(overtime.hourly_rate_multiplier),
        "amount": _s(overtime.amount),
    }


def overtime_from_dict(data: dict[str, Any] | None) -> Overtime | None:
    if data is None:
        return None
    return Overtime(
        hours=_d(data.get("hours")) or Decimal("0"),
        hourly_rate_multiplier=_d(data.get("hourly_rate_multiplier")),
        amount=_d(data.get("amount")),
    )


def override_log_to_list(entries: tuple[AdminOverrideEntry, ...]) -> list[dict[str, Any]]:
    return [
        {
            "timestamp": entry.timestamp.isoformat(),
            "actor_id": str(entry.actor_id),
            "action": entry.action,
            "from_status": None if entry.from_status is None else entry.from_status.value,
            "to_status": None if entry.to_status is None else entry.to_status.value,
            "changed_fields": list(entry.changed_fields),
            "description": entry.description,
        }
        for entry in entries
    ]


def override_log_from_list(data: list[dict[str, Any]] | None) -> tuple[AdminOverrideEntry, ...]:
    return tuple(
        AdminOverrideEntry(
            timestamp=datetime.fromisoformat(item["timestamp"]),
            actor_id=UUID(item["actor_id"]),
            action=item["action"],
            from_status=None if item.get("from_status") is None else PaymentStatus(item["from_status"]),
            to_status=None if item.get("to_status") is None else PaymentStatus(item["to_status"]),
            changed_fields=tuple(item.get("changed_fields", ())),
            description=item.get("description", ""),
        )
        for item in (data or ())
    )


def breakdown_to_dict(breakdown: PayrollBreakdown | None) -> dict[str, Any] | None:
    if breakdown is None:
        return None
    return {
        "factor": str(breakdown.factor),
        "working_days": breakdown.working_days,
        "days_in_period": breakdown.days_in_period,
        "baseline_salary": str(breakdown.baseline_salary),
        "prorated_basic": str(breakdown.prorated_basic),
        "allowances": [
            {
                "name": line.name,
                "original": str(line.original),
                "amount": str(line.amount),
                "prorated": line.prorated,
            }
            for line in breakdown.allowances
        ],
        "bonus": str(breakdown.bonus),
        "overtime_amount": str(breakdown.overtime_amount),
        "statutory": [
            {
                "name": line.name,
                "base": str(line.base),
                "raw": str(line.raw),
                "value": str(line.value),
                "clamped": line.clamped,
            }
            for line in breakdown.statutory
        ],
        "absent_penalty": str(breakdown.absent_penalty),
        "late_penalty": str(breakdown.late_penalty),
        "leave_deduction": str(breakdown.leave_deduction),
        "discretionary": [[name, str(amount)] for name, amount in breakdown.discretionary],
        "gross_salary": str(breakdown.gross_salary),
        "total_deductions": str(breakdown.total_deductions),
        "net_salary": str(breakdown.net_salary),
        "warnings": [
            {
                "code": w.code,
                "field": w.field,
                "original": _s(w.original),
                "adjusted": str(w.adjusted),
                "message": w.message,
            }
            for w in breakdown.warnings
        ],
        "settings_checksum": breakdown.settings_checksum,
    }


def breakdown_from_dict(data: dict[str, Any] | None) -> PayrollBreakdown | None:
    if data is None:
        return None
    return PayrollBreakdown(
        factor=Decimal(data["factor"]),
        working_days=int(data["working_days"]),
        days_in_period=int(data["days_in_period"]),
        baseline_salary=Decimal(data["baseline_salary"]),
        prorated_basic=Decimal(data["prorated_basic"]),
        allowances=tuple(
            AllowanceLine(
                name=item["name"],
                original=Decimal(item["original"]),
                amount=Decimal(item["amount"]),
                prorated=bool(item["prorated"]),
            )
            for item in data.get("allowances", ())
        ),
        bonus=Decimal(data["bonus"]),
        overtime_amount=Decimal(data["overtime_amount"]),
        statutory=tuple(
            StatutoryDeductionLine(
                name=item["name"],
                base=Decimal(item["base"]),
                raw=Decimal(item["raw"]),
                value=Decimal(item["value"]),
                clamped=bool(item["clamped"]),
            )
            for item in data.get("statutory", ())
        ),
        absent_penalty=Decimal(data["absent_penalty"]),
        late_penalty=Decimal(data["late_penalty"]),
        leave_deduction=Decimal(data["leave_deduction"]),
        discretionary=tuple(
            (name, Decimal(amount)) for name, amount in data.get("discretionary", ())
        ),
        gross_salary=Decimal(data["gross_salary"]),
        total_deductions=Decimal(data["total_deductions"]),
        net_salary=Decimal(data["net_salary"]),
        warnings=tuple(
            ComputationWarning(
                code=item["code"],
                field=item["field"],
                original=_d(item.get("original")),
                adjusted=Decimal(item["adjusted"]),
                message=item["message"],
            )
            for item in data.get("warnings", ())
        ),
        settings_checksum=data.get("settings_checksum", ""),
    )
