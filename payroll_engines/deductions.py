"""
payroll_engines.deductions -- Total deductions aggregation.

Responsibility:
    Compute attendance-driven penalties, statutory deductions and
    discretionary deductions, and sum them into total deductions.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Penalties are linear in day counts and never scaled by the factor:
      ``absent * absent_rate``, ``late * late_rate``, ``on_leave * leave_rate``.
    - Statutory deductions are prorated: ``round_whole(base * factor)``,
      then clamped to the rule's range.  Clamping never raises; it yields a
      ``ComputationWarning`` coded DEDUCTION_OUT_OF_RANGE.
    - Discretionary deductions (loan repayment, other) pass through.
    - A large penalty may exceed gross salary; nothing here caps it.

Failure modes:
    - ValueError: negative discretionary amount or statutory override,
      or an override naming an unknown statutory deduction.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from payroll_config.schema import StatutoryDeductionRule
from payroll_engines.attendance import Attendance
from payroll_engines.diagnostics import ComputationWarning, clamped_deduction_warning
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.money import ZERO, round_money, round_whole, to_decimal
from payroll_kernel.exceptions import DeductionOutOfRangeError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.deductions")


@dataclass(frozen=True)
class StatutoryDeductionLine:
    """A statutory deduction: base amount, prorated value, and clamped value."""

    name: str
    base: Decimal
    raw: Decimal
    value: Decimal
    clamped: bool


@dataclass(frozen=True)
class DeductionResult:
    statutory: tuple[StatutoryDeductionLine, ...]
    absent_penalty: Decimal
    late_penalty: Decimal
    leave_deduction: Decimal
    discretionary: tuple[tuple[str, Decimal], ...]
    total_deductions: Decimal
    warnings: tuple[ComputationWarning, ...] = ()

    @property
    def statutory_amounts(self) -> dict[str, Decimal]:
        return {line.name: line.value for line in self.statutory}


def clamp(
    value: Decimal, minimum: Decimal | None, maximum: Decimal | None
) -> Decimal:
    if minimum is not None and value < minimum:
        return minimum
    if maximum is not None and value > maximum:
        return maximum
    return value


class DeductionAggregator:
    """Builds the deductions side of a payslip."""

    @traced_engine(
        "deductions", "1.0",
        fingerprint_fields=(
            "attendance", "factor", "statutory_overrides", "discretionary",
        ),
    )
    def aggregate(
        self,
        attendance: Attendance,
        factor: Decimal,
        statutory_rules: Sequence[StatutoryDeductionRule],
        absent_rate: Decimal,
        late_rate: Decimal,
        leave_rate: Decimal,
        statutory_overrides: Mapping[str, Decimal] | None = None,
        discretionary: Mapping[str, Decimal] | None = None,
        places: int = 2,
    ) -> DeductionResult:
        statutory_overrides = statutory_overrides or {}
        discretionary = discretionary or {}

        known = {rule.name for rule in statutory_rules}
        unknown = sorted(set(statutory_overrides) - known)
        if unknown:
            raise ValueError(f"Unknown statutory deductions: {unknown}")

        absent_penalty = round_money(attendance.absent * absent_rate, places)
        late_penalty = round_money(attendance.late * late_rate, places)
        leave_deduction = round_money(attendance.on_leave * leave_rate, places)

        lines: list[StatutoryDeductionLine] = []
        warnings: list[ComputationWarning] = []
        for rule in statutory_rules:
            base = to_decimal(
                statutory_overrides.get(rule.name, rule.base_amount), rule.name
            )
            if base < 0:
                raise ValueError(f"{rule.name} cannot be negative, got {base}")
            raw = round_whole(base * factor)
            value = clamp(raw, rule.minimum, rule.maximum)
            clamped = value != raw
            if clamped:
                error = DeductionOutOfRangeError(
                    deduction=rule.name,
                    value=raw,
                    minimum=rule.minimum,
                    maximum=rule.maximum,
                    clamped_to=value,
                )
                logger.warning(
                    "deduction_clamped",
                    extra={
                        "deduction": rule.name,
                        "raw": str(raw),
                        "clamped_to": str(value),
                        "error_code": error.code,
                    },
                )
                warnings.append(clamped_deduction_warning(error))
            lines.append(StatutoryDeductionLine(
                name=rule.name, base=base, raw=raw, value=value, clamped=clamped,
            ))

        discretionary_lines: list[tuple[str, Decimal]] = []
        for name in sorted(discretionary):
            amount = to_decimal(discretionary[name], name)
            if amount < 0:
                raise ValueError(f"deduction {name} cannot be negative, got {amount}")
            discretionary_lines.append((name, amount))

        total = round_money(
            sum((line.value for line in lines), ZERO)
            + absent_penalty
            + late_penalty
            + leave_deduction
            + sum((amount for _, amount in discretionary_lines), ZERO),
            places,
        )

        logger.debug(
            "deductions_aggregated",
            extra={
                "absent_penalty": str(absent_penalty),
                "late_penalty": str(late_penalty),
                "leave_deduction": str(leave_deduction),
                "total_deductions": str(total),
                "clamped": [line.name for line in lines if line.clamped],
            },
        )
        return DeductionResult(
            statutory=tuple(lines),
            absent_penalty=absent_penalty,
            late_penalty=late_penalty,
            leave_deduction=leave_deduction,
            discretionary=tuple(discretionary_lines),
            total_deductions=total,
            warnings=tuple(warnings),
        )
